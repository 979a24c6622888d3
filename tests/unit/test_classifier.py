"""Trend and status classification."""

from __future__ import annotations

import math

import pytest

from spt.config import Settings
from spt.progress.classifier import (
    StatusThresholds,
    StatusTier,
    Trend,
    classify,
    classify_status,
    classify_trend,
)


class TestTrend:
    @pytest.mark.parametrize(
        ("increment", "expected"),
        [
            (8, Trend.IMPROVED),
            (0.5, Trend.IMPROVED),
            (-2, Trend.DECLINED),
            (0, Trend.UNCHANGED),
            (math.nan, Trend.UNCHANGED),
            (math.inf, Trend.IMPROVED),
            (-math.inf, Trend.DECLINED),
        ],
    )
    def test_classify_trend(self, increment, expected):
        assert classify_trend(increment) is expected


class TestStatus:
    @pytest.mark.parametrize(
        ("progress", "expected"),
        [
            (35, StatusTier.EXCELLENT),
            (34.9, StatusTier.GOOD),
            (25, StatusTier.GOOD),
            (15, StatusTier.ACTIVE),
            (14, StatusTier.UNDERPERFORMING),
            (-3, StatusTier.UNDERPERFORMING),
            (math.nan, StatusTier.UNDERPERFORMING),
            (math.inf, StatusTier.EXCELLENT),
        ],
    )
    def test_default_thresholds(self, progress, expected):
        assert classify_status(progress) is expected

    def test_custom_thresholds(self):
        thresholds = StatusThresholds(excellent=10, good=5, active=1)
        assert classify_status(10, thresholds) is StatusTier.EXCELLENT
        assert classify_status(1, thresholds) is StatusTier.ACTIVE
        assert classify_status(0, thresholds) is StatusTier.UNDERPERFORMING

    def test_thresholds_from_settings(self):
        settings = Settings(status_excellent_min=50, status_good_min=30, status_active_min=10)
        thresholds = StatusThresholds.from_settings(settings)
        assert thresholds == StatusThresholds(excellent=50, good=30, active=10)


def test_classify_combines_trend_and_status():
    result = classify(7, 8)
    assert result.student_id == 7
    assert result.trend is Trend.IMPROVED
    assert result.status is StatusTier.UNDERPERFORMING
