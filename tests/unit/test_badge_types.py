"""Badge catalogue completeness."""

from __future__ import annotations

from spt.badges.evaluator import RULES
from spt.badges.types import BADGE_INFO, BadgeType


def test_every_badge_has_metadata_and_rule():
    assert set(BADGE_INFO) == set(BadgeType)
    assert set(RULES) == set(BadgeType)


def test_values_are_stable_identifiers():
    assert [b.value for b in BadgeType] == [
        "streak_master",
        "century_coder",
        "comeback_coder",
        "weekly_topper",
        "consistency_champ",
    ]


def test_info_property():
    assert BadgeType.CENTURY_CODER.info.title == "Century Coder"
    assert BadgeType("weekly_topper") is BadgeType.WEEKLY_TOPPER
