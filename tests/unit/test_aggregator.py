"""Cohort summaries, leaderboards and class averages."""

from __future__ import annotations

import pytest

from spt.progress.aggregator import (
    CohortSummary,
    LeaderboardEntry,
    PeriodAverage,
    build_leaderboard,
    calculate_percentile,
    class_average_progression,
    status_breakdown,
    summarize_cohort,
)
from spt.progress.classifier import StatusTier, classify
from spt.progress.deltas import CURRENT_PERIOD, compute_deltas


class TestSummarizeCohort:
    def test_mixed_increments(self):
        records = [classify(i, inc) for i, inc in enumerate([5, -2, 0, 10])]
        summary = summarize_cohort(records)
        assert summary.total == 4
        assert (summary.improved, summary.declined, summary.unchanged) == (2, 1, 1)
        assert summary.improved_pct == 50.0
        assert summary.declined_pct == 25.0
        assert summary.unchanged_pct == 25.0
        assert summary.mean_increment == 3.25

    def test_empty_cohort_is_zeroed(self):
        assert summarize_cohort([]) == CohortSummary()

    def test_percentages_sum_to_100(self):
        records = [classify(i, inc) for i, inc in enumerate([1, 2, -1])]
        summary = summarize_cohort(records)
        total = summary.improved_pct + summary.declined_pct + summary.unchanged_pct
        assert total == pytest.approx(100.0)

    def test_mean_keeps_full_precision(self):
        records = [classify(i, inc) for i, inc in enumerate([1, 1, 0])]
        assert summarize_cohort(records).mean_increment == 2 / 3


class TestStatusBreakdown:
    def test_every_tier_present(self):
        counts = status_breakdown([classify(1, 40), classify(2, 3)])
        assert counts == {
            StatusTier.EXCELLENT: 1,
            StatusTier.GOOD: 0,
            StatusTier.ACTIVE: 0,
            StatusTier.UNDERPERFORMING: 1,
        }


class TestBuildLeaderboard:
    def test_top_n_is_stable_on_ties(self):
        board = build_leaderboard([("A", 50), ("B", 70), ("C", 70), ("D", 10)], limit=2)
        assert board == [
            LeaderboardEntry(rank=1, student_id="B", score=70),
            LeaderboardEntry(rank=2, student_id="C", score=70),
        ]

    def test_full_board(self):
        board = build_leaderboard([("A", 50), ("B", 70), ("C", 70), ("D", 10)])
        assert [(e.rank, e.student_id) for e in board] == [(1, "B"), (2, "C"), (3, "A"), (4, "D")]

    def test_empty(self):
        assert build_leaderboard([]) == []
        assert build_leaderboard([], limit=5) == []

    def test_limit_zero(self):
        assert build_leaderboard([("A", 1)], limit=0) == []

    def test_negative_limit_rejected(self):
        with pytest.raises(ValueError):
            build_leaderboard([("A", 1)], limit=-1)

    def test_one_entry_per_student(self):
        board = build_leaderboard([("A", 5), ("B", 9), ("A", 9)])
        assert [(e.student_id, e.score) for e in board] == [("A", 9), ("B", 9)]

    def test_negative_scores_rank_last(self):
        board = build_leaderboard([("A", -3), ("B", 0)])
        assert [e.student_id for e in board] == ["B", "A"]


class TestClassAverageProgression:
    def test_weeks_then_live_column(self):
        series = [
            compute_deltas({1: 10, 2: 20}, current=30),
            compute_deltas({1: 20, 2: 30}),
        ]
        assert class_average_progression(series) == [
            PeriodAverage(period=1, average=15.0),
            PeriodAverage(period=2, average=25.0),
            PeriodAverage(period=CURRENT_PERIOD, average=30.0),
        ]

    def test_no_live_snapshots(self):
        series = [compute_deltas({1: 4}), compute_deltas({1: 6})]
        assert class_average_progression(series) == [PeriodAverage(period=1, average=5.0)]

    def test_empty(self):
        assert class_average_progression([]) == []


class TestPercentile:
    def test_top_and_bottom(self):
        assert calculate_percentile(1, 100) == 99.0
        assert calculate_percentile(100, 100) == 0.0

    def test_share_ranked_below(self):
        assert calculate_percentile(2, 4) == 50.0
        assert calculate_percentile(3, 4) == 25.0

    def test_invalid(self):
        assert calculate_percentile(0, 10) == 0.0
        assert calculate_percentile(1, 0) == 0.0
