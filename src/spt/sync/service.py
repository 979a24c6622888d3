"""Mirror LeetCode statistics into the store.

Platform requests run concurrently (bounded by ``sync_concurrency``); writes
go through the single session afterwards, one savepoint per student. One
student's failure (upstream or storage) is recorded in the report and never
stops the others.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from spt.db.models import DailyActivity, Snapshot, Student
from spt.progress.deltas import CURRENT_PERIOD
from spt.progress.service import upsert_snapshot
from spt.students.service import list_students
from spt.sync.client import LeetCodeClient, PlatformProfile, SyncError

logger = structlog.get_logger()


@dataclass
class SyncReport:
    success: int = 0
    failed: int = 0
    errors: list[dict] = field(default_factory=list)

    def record_failure(self, student_id: int, username: str, message: str) -> None:
        self.failed += 1
        self.errors.append({"student_id": student_id, "username": username, "message": message})


async def apply_profile(
    db: AsyncSession,
    student: Student,
    profile: PlatformProfile,
    now: datetime | None = None,
) -> Snapshot:
    """Refresh the live snapshot, activity calendar and sync metadata for one student."""
    if now is None:
        now = datetime.now(timezone.utc)

    snapshot = await upsert_snapshot(
        db,
        student.id,
        CURRENT_PERIOD,
        {
            "total_solved": profile.total_solved,
            "easy_solved": profile.easy_solved,
            "medium_solved": profile.medium_solved,
            "hard_solved": profile.hard_solved,
            "total_submissions": profile.total_submissions,
            "total_accepted": profile.total_accepted,
            "ranking": profile.ranking,
        },
        captured_at=now,
    )

    if profile.calendar:
        result = await db.execute(
            select(DailyActivity).where(
                DailyActivity.student_id == student.id,
                DailyActivity.day.in_(list(profile.calendar)),
            )
        )
        existing = {row.day: row for row in result.scalars()}
        for day, count in profile.calendar.items():
            row = existing.get(day)
            if row is None:
                db.add(DailyActivity(student_id=student.id, day=day, count=count))
            else:
                row.count = count

    if profile.avatar_url:
        student.profile_photo = profile.avatar_url
    student.platform_streak = profile.streak
    student.total_active_days = profile.total_active_days
    student.last_synced_at = now
    await db.flush()
    return snapshot


async def sync_student(db: AsyncSession, client: LeetCodeClient, student: Student) -> Snapshot:
    """Sync one student. Raises ``SyncError`` when the platform call fails."""
    profile = await client.fetch_profile(student.leetcode_username)
    snapshot = await apply_profile(db, student, profile)
    await db.commit()
    logger.info("student_synced", student_id=student.id, total_solved=profile.total_solved)
    return snapshot


async def _fetch_all(
    client: LeetCodeClient,
    students: list[Student],
    concurrency: int,
) -> list[PlatformProfile | SyncError]:
    semaphore = asyncio.Semaphore(max(concurrency, 1))

    async def fetch(student: Student) -> PlatformProfile | SyncError:
        async with semaphore:
            try:
                return await client.fetch_profile(student.leetcode_username)
            except SyncError as exc:
                return exc

    return await asyncio.gather(*(fetch(s) for s in students))


async def sync_all(
    db: AsyncSession,
    client: LeetCodeClient,
    concurrency: int = 5,
    batch: str | None = None,
) -> SyncReport:
    """Sync every student; failures are reported per student, not retried."""
    students = await list_students(db, batch=batch)
    report = SyncReport()
    now = datetime.now(timezone.utc)

    results = await _fetch_all(client, students, concurrency)
    # Read before writing; a rolled-back savepoint expires the rows it touched.
    identities = [(s.id, s.leetcode_username) for s in students]
    for student, (student_id, username), outcome in zip(students, identities, results):
        if isinstance(outcome, SyncError):
            logger.warning("sync_failed", student_id=student_id, error=outcome.message)
            report.record_failure(student_id, username, outcome.message)
            continue
        try:
            async with db.begin_nested():
                await apply_profile(db, student, outcome, now)
        except SQLAlchemyError as exc:
            logger.warning("sync_store_failed", student_id=student_id, error=str(exc))
            report.record_failure(student_id, username, "could not store synced data")
            continue
        report.success += 1

    await db.commit()
    logger.info("sync_all_complete", success=report.success, failed=report.failed)
    return report


async def sync_profile_photos(
    db: AsyncSession,
    client: LeetCodeClient,
    concurrency: int = 5,
) -> SyncReport:
    """Refresh profile photos only."""
    students = await list_students(db)
    report = SyncReport()

    results = await _fetch_all(client, students, concurrency)
    for student, outcome in zip(students, results):
        if isinstance(outcome, SyncError):
            report.record_failure(student.id, student.leetcode_username, outcome.message)
            continue
        if outcome.avatar_url:
            student.profile_photo = outcome.avatar_url
        report.success += 1

    await db.commit()
    return report
