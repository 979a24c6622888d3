"""Snapshot persistence and per-student progress assembly.

Reads rows from the store, hands them to the pure delta/classifier code and
returns ``StudentProgress`` records that every dashboard builds on.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from spt.config import get_settings
from spt.db.models import DailyActivity, Snapshot, Student
from spt.progress.classifier import Classification, StatusThresholds, classify
from spt.progress.deltas import CURRENT_PERIOD, DeltaSeries, compute_deltas
from spt.students.service import list_students

logger = structlog.get_logger()

SNAPSHOT_FIELDS = (
    "total_solved",
    "easy_solved",
    "medium_solved",
    "hard_solved",
    "total_submissions",
    "total_accepted",
    "ranking",
)


@dataclass
class StudentProgress:
    student: Student
    current: Snapshot | None
    deltas: DeltaSeries
    classification: Classification

    @property
    def latest(self) -> int:
        return self.deltas.latest_total

    @property
    def weekly_progress(self) -> int:
        return self.deltas.current_increment


async def upsert_snapshot(
    db: AsyncSession,
    student_id: int,
    period: int,
    values: dict[str, Any],
    captured_at: datetime | None = None,
) -> Snapshot:
    """Insert or refresh the snapshot for (student, period)."""
    if captured_at is None:
        captured_at = datetime.now(timezone.utc)

    result = await db.execute(
        select(Snapshot).where(Snapshot.student_id == student_id, Snapshot.period == period)
    )
    snapshot = result.scalar_one_or_none()
    if snapshot is None:
        snapshot = Snapshot(student_id=student_id, period=period)
        db.add(snapshot)

    for name in SNAPSHOT_FIELDS:
        if name in values:
            setattr(snapshot, name, int(values[name] or 0))
    snapshot.captured_at = captured_at
    await db.flush()
    return snapshot


async def load_progress(
    db: AsyncSession,
    batch: str | None = None,
    students: list[Student] | None = None,
) -> list[StudentProgress]:
    """Delta series and classification for every (matching) student, in onboarding order.

    The week window is shared across the cohort: every captured week, or the
    configured number of tracked weeks before any week has been captured.
    """
    settings = get_settings()
    thresholds = StatusThresholds.from_settings(settings)

    if students is None:
        students = await list_students(db, batch=batch)
    if not students:
        return []

    student_ids = [s.id for s in students]
    result = await db.execute(
        select(Snapshot)
        .where(Snapshot.student_id.in_(student_ids))
        .order_by(Snapshot.student_id, Snapshot.period)
    )
    by_student: dict[int, dict[int, Snapshot]] = defaultdict(dict)
    for snapshot in result.scalars():
        by_student[snapshot.student_id][snapshot.period] = snapshot

    highest = max(
        (p for rows in by_student.values() for p in rows if p != CURRENT_PERIOD),
        default=0,
    )
    periods = highest or settings.tracked_weeks

    progress = []
    for student in students:
        rows = by_student.get(student.id, {})
        current = rows.get(CURRENT_PERIOD)
        totals = {p: s.total_solved for p, s in rows.items() if p != CURRENT_PERIOD}
        deltas = compute_deltas(
            totals,
            current=current.total_solved if current is not None else None,
            periods=periods,
        )
        progress.append(StudentProgress(
            student=student,
            current=current,
            deltas=deltas,
            classification=classify(student.id, deltas.current_increment, thresholds),
        ))
    return progress


async def load_daily_activity(
    db: AsyncSession,
    student_ids: list[int],
    since: date | None = None,
) -> dict[int, dict[date, int]]:
    """Per-student activity calendars."""
    if not student_ids:
        return {}
    query = select(DailyActivity).where(DailyActivity.student_id.in_(student_ids))
    if since is not None:
        query = query.where(DailyActivity.day >= since)
    result = await db.execute(query)

    calendars: dict[int, dict[date, int]] = defaultdict(dict)
    for row in result.scalars():
        calendars[row.student_id][row.day] = row.count
    return dict(calendars)


async def next_period(db: AsyncSession) -> int:
    """The week index following the latest captured week."""
    result = await db.execute(select(func.max(Snapshot.period)))
    return int(result.scalar() or 0) + 1


async def capture_week(
    db: AsyncSession,
    period: int | None = None,
    now: datetime | None = None,
) -> tuple[int, int]:
    """Copy every live snapshot into historical week ``period``.

    Returns (period, number of snapshots written). Students without a live
    snapshot are left without a row for that week. Captured weeks are never
    rewritten: ``period`` must come after the latest captured week.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    following = await next_period(db)
    if period is None:
        period = following
    if period <= CURRENT_PERIOD:
        raise ValueError(f"Invalid week index: {period}")
    if period < following:
        raise ValueError(f"Week {period} is already captured; next week is {following}")

    result = await db.execute(select(Snapshot).where(Snapshot.period == CURRENT_PERIOD))
    live_rows = list(result.scalars())
    for live in live_rows:
        await upsert_snapshot(
            db,
            live.student_id,
            period,
            {name: getattr(live, name) for name in SNAPSHOT_FIELDS},
            captured_at=now,
        )
    await db.commit()
    logger.info("week_captured", period=period, snapshots=len(live_rows))
    return period, len(live_rows)
