"""Trend and status classification.

Both mappings are total: any number (NaN and infinities included) lands in
exactly one trend and one tier. NaN compares false everywhere, so it reads
as unchanged / Underperforming.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spt.config import Settings


class Trend(str, Enum):
    IMPROVED = "improved"
    DECLINED = "declined"
    UNCHANGED = "unchanged"


class StatusTier(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    ACTIVE = "Active"
    UNDERPERFORMING = "Underperforming"


@dataclass(frozen=True)
class StatusThresholds:
    """Minimum weekly-progress figure for each tier (inclusive)."""

    excellent: float = 35
    good: float = 25
    active: float = 15

    @classmethod
    def from_settings(cls, settings: Settings) -> StatusThresholds:
        return cls(
            excellent=settings.status_excellent_min,
            good=settings.status_good_min,
            active=settings.status_active_min,
        )


@dataclass(frozen=True)
class Classification:
    student_id: int
    increment: float
    trend: Trend
    status: StatusTier


def classify_trend(increment: float) -> Trend:
    if increment > 0:
        return Trend.IMPROVED
    if increment < 0:
        return Trend.DECLINED
    return Trend.UNCHANGED


def classify_status(progress: float, thresholds: StatusThresholds = StatusThresholds()) -> StatusTier:
    if progress >= thresholds.excellent:
        return StatusTier.EXCELLENT
    if progress >= thresholds.good:
        return StatusTier.GOOD
    if progress >= thresholds.active:
        return StatusTier.ACTIVE
    return StatusTier.UNDERPERFORMING


def classify(
    student_id: int,
    increment: float,
    thresholds: StatusThresholds = StatusThresholds(),
) -> Classification:
    """Tag a student's current increment with a trend and a status tier."""
    return Classification(
        student_id=student_id,
        increment=increment,
        trend=classify_trend(increment),
        status=classify_status(increment, thresholds),
    )
