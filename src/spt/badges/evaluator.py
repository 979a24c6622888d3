"""Badge evaluator: fixed rule set over a student's known history.

Pure: callers pass the badges already earned and persist whatever comes back
in ``BadgeEvaluation.new``. Badges are monotonic; once earned they stay in
``earned`` even after the qualifying condition lapses (e.g. a broken streak).
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any

from spt.badges.types import BadgeType
from spt.progress.deltas import DeltaSeries
from spt.progress.streaks import longest_run

if TYPE_CHECKING:
    from spt.config import Settings


@dataclass(frozen=True)
class BadgeRules:
    streak_min_days: int = 7
    streak_min_daily: int = 5
    century_threshold: int = 100
    comeback_min_increment: int = 10
    comeback_growth: float = 1.0
    weekly_topper_positions: int = 1
    challenge_days: int = 30

    @classmethod
    def from_settings(cls, settings: Settings) -> BadgeRules:
        return cls(
            streak_min_days=settings.streak_min_days,
            streak_min_daily=settings.streak_min_daily,
            century_threshold=settings.century_threshold,
            comeback_min_increment=settings.comeback_min_increment,
            comeback_growth=settings.comeback_growth,
            weekly_topper_positions=settings.weekly_topper_positions,
            challenge_days=settings.challenge_days,
        )


@dataclass(frozen=True)
class StudentHistory:
    """Everything the rules look at for one student."""

    student_id: int
    deltas: DeltaSeries
    daily: Mapping[date, int] = field(default_factory=dict)
    leaderboard_rank: int | None = None
    leaderboard_score: float = 0


@dataclass(frozen=True)
class BadgeAward:
    student_id: int
    badge_type: BadgeType
    earned_at: datetime
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BadgeEvaluation:
    student_id: int
    new: tuple[BadgeAward, ...]
    earned: frozenset[BadgeType]


Rule = Callable[[StudentHistory, BadgeRules], dict[str, Any] | None]


def _streak_master(history: StudentHistory, rules: BadgeRules) -> dict[str, Any] | None:
    run = longest_run(history.daily, rules.streak_min_daily)
    if run >= rules.streak_min_days:
        return {"streak_days": run, "min_daily": rules.streak_min_daily}
    return None


def _century_coder(history: StudentHistory, rules: BadgeRules) -> dict[str, Any] | None:
    total = history.deltas.latest_total
    if total >= rules.century_threshold:
        return {"total_solved": total}
    return None


def _comeback_coder(history: StudentHistory, rules: BadgeRules) -> dict[str, Any] | None:
    increments = history.deltas.increments
    for idx in range(1, len(increments)):
        previous, current = increments[idx - 1], increments[idx]
        if current < rules.comeback_min_increment:
            continue
        # A flat or negative prior week counts as unbounded growth.
        if previous <= 0 or (current - previous) / previous >= rules.comeback_growth:
            return {"previous_increment": previous, "increment": current}
    return None


def _weekly_topper(history: StudentHistory, rules: BadgeRules) -> dict[str, Any] | None:
    rank = history.leaderboard_rank
    if rank is not None and rank <= rules.weekly_topper_positions and history.leaderboard_score > 0:
        return {"rank": rank, "score": history.leaderboard_score}
    return None


def _consistency_champ(history: StudentHistory, rules: BadgeRules) -> dict[str, Any] | None:
    run = longest_run(history.daily, 1)
    if run >= rules.challenge_days:
        return {"active_days": run}
    return None


RULES: dict[BadgeType, Rule] = {
    BadgeType.STREAK_MASTER: _streak_master,
    BadgeType.CENTURY_CODER: _century_coder,
    BadgeType.COMEBACK_CODER: _comeback_coder,
    BadgeType.WEEKLY_TOPPER: _weekly_topper,
    BadgeType.CONSISTENCY_CHAMP: _consistency_champ,
}

_missing = set(BadgeType) - RULES.keys()
if _missing:
    raise RuntimeError(f"Badge rule missing for: {sorted(b.value for b in _missing)}")


def evaluate_badges(
    history: StudentHistory,
    earned: Iterable[BadgeType] = (),
    rules: BadgeRules = BadgeRules(),
    now: datetime | None = None,
) -> BadgeEvaluation:
    """Run every rule not yet satisfied and return the newly earned badges."""
    if now is None:
        now = datetime.now(timezone.utc)

    already = frozenset(earned)
    new: list[BadgeAward] = []
    for badge_type in BadgeType:
        if badge_type in already:
            continue
        metadata = RULES[badge_type](history, rules)
        if metadata is not None:
            new.append(BadgeAward(
                student_id=history.student_id,
                badge_type=badge_type,
                earned_at=now,
                metadata=metadata,
            ))

    return BadgeEvaluation(
        student_id=history.student_id,
        new=tuple(new),
        earned=already | {award.badge_type for award in new},
    )
