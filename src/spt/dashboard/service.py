"""Dashboard payload builders.

Every function returns JSON-ready plain data (ISO dates, floats rounded to
two places). Numbers are computed by the progress/badge modules; this layer
only selects, orders and shapes them.
"""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from spt.badges.service import list_all_badges
from spt.badges.types import BADGE_INFO, BadgeType
from spt.config import get_settings
from spt.db.models import StudentBadge
from spt.progress.aggregator import (
    build_leaderboard,
    calculate_percentile,
    class_average_progression,
    status_breakdown,
    summarize_cohort,
)
from spt.progress.classifier import StatusTier
from spt.progress.deltas import CURRENT_PERIOD
from spt.progress.service import StudentProgress, load_daily_activity, load_progress
from spt.progress.streaks import current_run, longest_run
from spt.students.service import get_student_by_username

ADMIN_LEADERBOARD_SIZE = 5
BATCH_LEADERBOARD_SIZE = 10
UNIVERSITY_LEADERBOARD_SIZE = 20
ANALYTICS_TOP_STUDENTS = 10
ANALYTICS_TOP_IMPROVERS = 15
RECENT_BADGES = 10
CALENDAR_DAYS = 365


def _round(value: float) -> float:
    return round(value, 2)


def _iso(value: datetime | date | None) -> str | None:
    return value.isoformat() if value is not None else None


def student_summary(item: StudentProgress) -> dict[str, Any]:
    student = item.student
    return {
        "id": student.id,
        "name": student.name,
        "leetcode_username": student.leetcode_username,
        "leetcode_profile_link": student.leetcode_profile_link,
        "profile_photo": student.profile_photo,
        "batch": student.batch,
    }


def student_row(item: StudentProgress) -> dict[str, Any]:
    """Student identity plus live stats and classification."""
    current = item.current
    return {
        **student_summary(item),
        "total_solved": item.latest,
        "easy_solved": current.easy_solved if current else 0,
        "medium_solved": current.medium_solved if current else 0,
        "hard_solved": current.hard_solved if current else 0,
        "ranking": current.ranking if current else 0,
        "acceptance_rate": current.acceptance_rate if current else 0.0,
        "streak": item.student.platform_streak,
        "total_active_days": item.student.total_active_days,
        "last_synced_at": _iso(item.student.last_synced_at),
        "weekly_progress": item.weekly_progress,
        "trend": item.classification.trend.value,
        "status": item.classification.status.value,
    }


def _leaderboard(
    progress: list[StudentProgress],
    score: str = "weekly_progress",
    limit: int | None = None,
) -> list[dict[str, Any]]:
    by_id = {item.student.id: item for item in progress}
    entries = build_leaderboard(
        ((item.student.id, getattr(item, score)) for item in progress),
        limit=limit,
    )
    return [
        {
            "rank": entry.rank,
            "student": student_summary(by_id[entry.student_id]),
            "score": entry.score,
            "total_solved": by_id[entry.student_id].latest,
        }
        for entry in entries
    ]


def _cohort_stats(progress: list[StudentProgress]) -> dict[str, Any]:
    records = [item.classification for item in progress]
    tiers = status_breakdown(records)
    total = len(progress)
    streaks = [item.student.platform_streak for item in progress]
    return {
        "total_students": total,
        "active_students": total - tiers[StatusTier.UNDERPERFORMING],
        "underperforming": tiers[StatusTier.UNDERPERFORMING],
        "avg_problems": _round(sum(item.latest for item in progress) / total) if total else 0.0,
        "max_streak_overall": max(streaks, default=0),
        "avg_max_streak": _round(sum(streaks) / total) if total else 0.0,
        "status_breakdown": {tier.value: count for tier, count in tiers.items()},
    }


def _summary_stats(progress: list[StudentProgress]) -> dict[str, Any]:
    summary = summarize_cohort(item.classification for item in progress)
    return {
        "total_students": summary.total,
        "improved": summary.improved,
        "declined": summary.declined,
        "unchanged": summary.unchanged,
        "improved_pct": _round(summary.improved_pct),
        "declined_pct": _round(summary.declined_pct),
        "unchanged_pct": _round(summary.unchanged_pct),
        "average_improvement": _round(summary.mean_increment),
    }


async def admin_dashboard(db: AsyncSession) -> dict[str, Any]:
    progress = await load_progress(db)
    return {
        **_cohort_stats(progress),
        "summary": _summary_stats(progress),
        "leaderboard": _leaderboard(progress, limit=ADMIN_LEADERBOARD_SIZE),
        "students": [student_row(item) for item in progress],
    }


async def batch_dashboard(db: AsyncSession, batch: str) -> dict[str, Any]:
    progress = await load_progress(db, batch=batch)
    return {
        "batch": batch,
        **_cohort_stats(progress),
        "students": [student_row(item) for item in progress],
        "leaderboard": _leaderboard(progress, limit=BATCH_LEADERBOARD_SIZE),
    }


async def university_dashboard(db: AsyncSession) -> dict[str, Any]:
    progress = await load_progress(db)
    batches: dict[str, list[StudentProgress]] = {}
    for item in progress:
        batches.setdefault(item.student.batch or "unassigned", []).append(item)

    return {
        "combined": {
            **_cohort_stats(progress),
            "university_leaderboard": _leaderboard(progress, limit=UNIVERSITY_LEADERBOARD_SIZE),
        },
        "batches": {
            label: {
                **_cohort_stats(items),
                "leaderboard": _leaderboard(items, limit=BATCH_LEADERBOARD_SIZE),
            }
            for label, items in sorted(batches.items())
        },
    }


async def student_dashboard(
    db: AsyncSession,
    username: str,
    today: date | None = None,
) -> dict[str, Any]:
    """Raises ``StudentNotFoundError`` for an unknown username."""
    if today is None:
        today = datetime.now(timezone.utc).date()
    student = await get_student_by_username(db, username)
    cohort = await load_progress(db)
    item = next(p for p in cohort if p.student.id == student.id)

    ranks = {
        entry.student_id: entry.rank
        for entry in build_leaderboard((p.student.id, p.latest) for p in cohort)
    }
    calendar = (await load_daily_activity(
        db, [student.id], since=today - timedelta(days=CALENDAR_DAYS)
    )).get(student.id, {})
    badges = await list_all_badges(db, student_id=student.id)

    return {
        "student": student_row(item),
        "weeks": _week_values(item),
        "increments": list(item.deltas.increments),
        "total_improvement": item.deltas.total_improvement,
        "improvement_percent": _round(item.deltas.improvement_percent),
        "average_weekly_growth": _round(item.deltas.average_growth),
        "class_rank": ranks.get(student.id),
        "percentile": calculate_percentile(ranks.get(student.id, 0), len(cohort)),
        "current_streak": current_run(calendar, today),
        "longest_streak": longest_run(calendar),
        "calendar": [
            {"date": day.isoformat(), "count": count} for day, count in sorted(calendar.items())
        ],
        "badges": [_badge_row(badge) for badge in badges],
    }


def _week_values(item: StudentProgress) -> dict[str, int | None]:
    weeks: dict[str, int | None] = {
        f"week{idx}": value if present else None
        for idx, (value, present) in enumerate(zip(item.deltas.values, item.deltas.present), start=1)
    }
    weeks["current"] = item.deltas.current
    return weeks


async def leaderboard(db: AsyncSession, limit: int | None = None) -> list[dict[str, Any]]:
    """Weekly leaderboard (score = current weekly increment)."""
    if limit is None:
        limit = get_settings().leaderboard_default_size
    progress = await load_progress(db)
    return _leaderboard(progress, limit=limit)


async def rankings(db: AsyncSession) -> list[dict[str, Any]]:
    """Every student ranked by lifetime solved count."""
    progress = await load_progress(db)
    by_id = {item.student.id: item for item in progress}
    entries = build_leaderboard((item.student.id, item.latest) for item in progress)
    return [
        {
            "rank": entry.rank,
            "percentile": calculate_percentile(entry.rank, len(entries)),
            **student_row(by_id[entry.student_id]),
        }
        for entry in entries
    ]


def _weekly_row(item: StudentProgress) -> dict[str, Any]:
    increments = item.deltas.increments
    week_progress = {
        f"week{idx + 2}_progress": value
        for idx, value in enumerate(increments[: max(len(item.deltas.values) - 1, 0)])
    }
    return {
        "student": student_summary(item),
        "weeks": _week_values(item),
        "progress": week_progress,
        "current_solved": item.latest,
        "new_increment": item.weekly_progress,
        "last_updated": _iso(item.current.captured_at if item.current else None),
        "total_score": item.deltas.total_improvement,
        "average_weekly_growth": _round(item.deltas.average_growth),
        "trend": item.classification.trend.value,
        "status": item.classification.status.value,
    }


async def weekly_progress(db: AsyncSession) -> list[dict[str, Any]]:
    progress = await load_progress(db)
    return [_weekly_row(item) for item in progress]


async def analytics(db: AsyncSession) -> dict[str, Any]:
    progress = await load_progress(db)
    summary = _summary_stats(progress)
    by_id = {item.student.id: item for item in progress}

    top_students = build_leaderboard(
        ((item.student.id, item.latest) for item in progress), limit=ANALYTICS_TOP_STUDENTS
    )
    top_improvers = build_leaderboard(
        ((item.student.id, item.deltas.total_improvement) for item in progress),
        limit=ANALYTICS_TOP_IMPROVERS,
    )

    return {
        "summary_stats": summary,
        "top_students": [
            {"rank": e.rank, **student_row(by_id[e.student_id])} for e in top_students
        ],
        "top_improvers": [
            {"rank": e.rank, "total_improvement": e.score, **student_summary(by_id[e.student_id])}
            for e in top_improvers
        ],
        "progress_categories": {
            "improved": summary["improved"],
            "declined": summary["declined"],
            "unchanged": summary["unchanged"],
        },
        "class_average_progression": [
            {
                "period": "current" if point.period == CURRENT_PERIOD else f"week{point.period}",
                "average": _round(point.average),
            }
            for point in class_average_progression([item.deltas for item in progress])
        ],
        "all_students": [_weekly_row(item) for item in progress],
    }


def _badge_row(badge: StudentBadge) -> dict[str, Any]:
    try:
        info = BadgeType(badge.badge_type).info
        title, emoji = info.title, info.emoji
    except ValueError:
        title, emoji = badge.badge_type, ""
    return {
        "id": badge.id,
        "student_id": badge.student_id,
        "badge_type": badge.badge_type,
        "title": title,
        "emoji": emoji,
        "earned_at": _iso(badge.earned_at),
        "metadata": badge.badge_metadata or {},
    }


async def badges_overview(db: AsyncSession) -> dict[str, Any]:
    badges = await list_all_badges(db)
    progress = await load_progress(db)
    by_id = {item.student.id: item for item in progress}

    rows = []
    for badge in badges:
        row = _badge_row(badge)
        item = by_id.get(badge.student_id)
        row["student"] = student_summary(item) if item else None
        rows.append(row)

    popularity = Counter(badge.badge_type for badge in badges)
    return {
        "catalogue": [
            {
                "badge_type": badge_type.value,
                "title": info.title,
                "description": info.description,
                "emoji": info.emoji,
                "earned": popularity.get(badge_type.value, 0),
            }
            for badge_type, info in BADGE_INFO.items()
        ],
        "all_badges": rows,
        "badge_stats": {
            "total_badges": len(badges),
            "total_recipients": len({badge.student_id for badge in badges}),
            "most_popular_badge": popularity.most_common(1)[0][0] if popularity else None,
            "recent_badges": rows[:RECENT_BADGES],
        },
    }
