"""Badge catalogue: one enum member per badge type.

``BADGE_INFO`` must cover every member; a missing entry fails at import.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class BadgeType(str, Enum):
    """Badge types in evaluation order."""

    STREAK_MASTER = "streak_master"
    CENTURY_CODER = "century_coder"
    COMEBACK_CODER = "comeback_coder"
    WEEKLY_TOPPER = "weekly_topper"
    CONSISTENCY_CHAMP = "consistency_champ"

    @property
    def info(self) -> BadgeInfo:
        return BADGE_INFO[self]


@dataclass(frozen=True)
class BadgeInfo:
    title: str
    description: str
    emoji: str


BADGE_INFO: dict[BadgeType, BadgeInfo] = {
    BadgeType.STREAK_MASTER: BadgeInfo(
        title="Streak Master",
        description="7-day streak of 5+ daily problems",
        emoji="\U0001f9d0",
    ),
    BadgeType.CENTURY_CODER: BadgeInfo(
        title="Century Coder",
        description="100+ total problems solved",
        emoji="\U0001f4af",
    ),
    BadgeType.COMEBACK_CODER: BadgeInfo(
        title="Comeback Coder",
        description="Big week-over-week improvement",
        emoji="\U0001f525",
    ),
    BadgeType.WEEKLY_TOPPER: BadgeInfo(
        title="Weekly Topper",
        description="Top performer this week",
        emoji="\U0001f3c6",
    ),
    BadgeType.CONSISTENCY_CHAMP: BadgeInfo(
        title="Consistency Champ",
        description="Completed 30-day challenge",
        emoji="\U0001f9f1",
    ),
}

_missing = set(BadgeType) - BADGE_INFO.keys()
if _missing:
    raise RuntimeError(f"Badge metadata missing for: {sorted(b.value for b in _missing)}")
