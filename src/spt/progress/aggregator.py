"""Cohort summaries and leaderboards.

Everything here is a pure fold over already-classified rows. Empty input
yields zeroed results, never an exception or NaN.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from spt.progress.classifier import Classification, StatusTier, Trend
from spt.progress.deltas import CURRENT_PERIOD, DeltaSeries

K = TypeVar("K", bound=Hashable)


@dataclass(frozen=True)
class CohortSummary:
    """Trend counts, their share of the cohort, and the mean current increment.

    ``mean_increment`` keeps full precision; round only when presenting.
    """

    total: int = 0
    improved: int = 0
    declined: int = 0
    unchanged: int = 0
    improved_pct: float = 0.0
    declined_pct: float = 0.0
    unchanged_pct: float = 0.0
    mean_increment: float = 0.0


@dataclass(frozen=True)
class LeaderboardEntry(Generic[K]):
    rank: int
    student_id: K
    score: float


@dataclass(frozen=True)
class PeriodAverage:
    period: int  # CURRENT_PERIOD for the live column
    average: float


def _pct(count: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return count / total * 100


def summarize_cohort(records: Iterable[Classification]) -> CohortSummary:
    """Count students per trend and average their current increments."""
    counts = {trend: 0 for trend in Trend}
    total = 0
    increment_sum = 0.0
    for record in records:
        counts[record.trend] += 1
        increment_sum += record.increment
        total += 1

    if total == 0:
        return CohortSummary()

    return CohortSummary(
        total=total,
        improved=counts[Trend.IMPROVED],
        declined=counts[Trend.DECLINED],
        unchanged=counts[Trend.UNCHANGED],
        improved_pct=_pct(counts[Trend.IMPROVED], total),
        declined_pct=_pct(counts[Trend.DECLINED], total),
        unchanged_pct=_pct(counts[Trend.UNCHANGED], total),
        mean_increment=increment_sum / total,
    )


def status_breakdown(records: Iterable[Classification]) -> dict[StatusTier, int]:
    """Number of students in each status tier (every tier present, possibly 0)."""
    counts = {tier: 0 for tier in StatusTier}
    for record in records:
        counts[record.status] += 1
    return counts


def build_leaderboard(
    scores: Iterable[tuple[K, float]],
    limit: int | None = None,
) -> list[LeaderboardEntry[K]]:
    """Rank students by score descending.

    Equal scores keep their input order (``sorted`` is stable). A student
    listed twice keeps its first position and its last score. ``limit``
    truncates to the top N; ``None`` returns everyone.
    """
    if limit is not None and limit < 0:
        raise ValueError(f"Invalid leaderboard limit: {limit}")

    latest: dict[K, float] = {}
    for student_id, score in scores:
        latest[student_id] = score

    ordered = sorted(latest.items(), key=lambda item: -item[1])
    if limit is not None:
        ordered = ordered[:limit]

    return [
        LeaderboardEntry(rank=idx + 1, student_id=student_id, score=score)
        for idx, (student_id, score) in enumerate(ordered)
    ]


def class_average_progression(series: Sequence[DeltaSeries]) -> list[PeriodAverage]:
    """Class average per week, then the live column when any student has one.

    Missing weeks count as 0, matching the delta engine.
    """
    if not series:
        return []

    periods = max(len(s.values) for s in series)
    averages = []
    for idx in range(periods):
        column = [s.values[idx] if idx < len(s.values) else 0 for s in series]
        averages.append(PeriodAverage(period=idx + 1, average=sum(column) / len(series)))

    if any(s.current is not None for s in series):
        live = [s.latest_total for s in series]
        averages.append(PeriodAverage(period=CURRENT_PERIOD, average=sum(live) / len(series)))

    return averages


def calculate_percentile(rank: int, total: int) -> float:
    """Share of the class ranked below a student, as a percentage.

    The student at the bottom of a 4-student class scores 0.0; second place
    scores 50.0. Unranked students and empty classes score 0.0.
    """
    if total <= 0 or rank <= 0:
        return 0.0
    return round(100 - (rank / total * 100), 2)
