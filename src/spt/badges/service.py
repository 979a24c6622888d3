"""Badge persistence: evaluate the rule set for every student and store new awards."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from spt.badges.evaluator import BadgeAward, BadgeRules, StudentHistory, evaluate_badges
from spt.badges.types import BadgeType
from spt.config import get_settings
from spt.db.models import StudentBadge
from spt.progress.aggregator import build_leaderboard
from spt.progress.service import load_daily_activity, load_progress

logger = structlog.get_logger()


@dataclass
class EvaluationResult:
    awarded: list[BadgeAward] = field(default_factory=list)
    earned: dict[int, set[BadgeType]] = field(default_factory=dict)


async def get_earned(db: AsyncSession, student_ids: list[int]) -> dict[int, set[BadgeType]]:
    """Badge types already earned, per student."""
    if not student_ids:
        return {}
    result = await db.execute(
        select(StudentBadge.student_id, StudentBadge.badge_type).where(
            StudentBadge.student_id.in_(student_ids)
        )
    )
    earned: dict[int, set[BadgeType]] = defaultdict(set)
    for student_id, badge_type in result.all():
        try:
            earned[student_id].add(BadgeType(badge_type))
        except ValueError:
            logger.warning("unknown_badge_type", student_id=student_id, badge_type=badge_type)
    return dict(earned)


async def has_badge(db: AsyncSession, student_id: int, badge_type: BadgeType) -> bool:
    result = await db.execute(
        select(StudentBadge.id).where(
            StudentBadge.student_id == student_id,
            StudentBadge.badge_type == badge_type.value,
        )
    )
    return result.scalar_one_or_none() is not None


async def award_badge(db: AsyncSession, award: BadgeAward) -> bool:
    """Insert a badge if absent.

    Returns True if awarded, False if it was already earned (including a
    concurrent writer winning the UNIQUE constraint race).
    """
    if await has_badge(db, award.student_id, award.badge_type):
        return False

    db.add(StudentBadge(
        student_id=award.student_id,
        badge_type=award.badge_type.value,
        earned_at=award.earned_at,
        badge_metadata=dict(award.metadata),
    ))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return False

    logger.info("badge_awarded", student_id=award.student_id, badge_type=award.badge_type.value)
    return True


async def evaluate_all_badges(db: AsyncSession, now: datetime | None = None) -> EvaluationResult:
    """Evaluate every student and persist the newly earned badges.

    The leaderboard used by the topper rule ranks the current weekly increment.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    rules = BadgeRules.from_settings(get_settings())

    progress = await load_progress(db)
    student_ids = [p.student.id for p in progress]
    leaderboard = {
        entry.student_id: entry
        for entry in build_leaderboard((p.student.id, p.weekly_progress) for p in progress)
    }
    calendars = await load_daily_activity(db, student_ids)
    earned = await get_earned(db, student_ids)

    # Evaluate everything before writing; a rollback expires loaded rows.
    evaluations = []
    for item in progress:
        entry = leaderboard.get(item.student.id)
        history = StudentHistory(
            student_id=item.student.id,
            deltas=item.deltas,
            daily=calendars.get(item.student.id, {}),
            leaderboard_rank=entry.rank if entry else None,
            leaderboard_score=entry.score if entry else 0,
        )
        evaluations.append(evaluate_badges(history, earned.get(item.student.id, ()), rules, now))

    result = EvaluationResult()
    for evaluation in evaluations:
        result.earned[evaluation.student_id] = set(evaluation.earned)
        for award in evaluation.new:
            if await award_badge(db, award):
                result.awarded.append(award)

    logger.info("badges_evaluated", students=len(evaluations), awarded=len(result.awarded))
    return result


async def list_all_badges(db: AsyncSession, student_id: int | None = None) -> list[StudentBadge]:
    """Stored badges, newest first."""
    query = select(StudentBadge).order_by(StudentBadge.earned_at.desc(), StudentBadge.id.desc())
    if student_id is not None:
        query = query.where(StudentBadge.student_id == student_id)
    result = await db.execute(query)
    return list(result.scalars())
