"""Sync and snapshot endpoints.

Every successful write drops the cached dashboards so the next poll sees it.
"""

from collections.abc import AsyncGenerator

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from spt.config import get_settings
from spt.dashboard.cache import invalidate_dashboards
from spt.database import get_session
from spt.progress.service import capture_week
from spt.redis_client import get_redis
from spt.students.service import get_student
from spt.sync.client import LeetCodeClient, client_from_settings
from spt.sync.schemas import CaptureResponse, StudentSyncResponse, SyncReportResponse
from spt.sync.service import sync_all, sync_profile_photos, sync_student

router = APIRouter(prefix="/api/v1", tags=["Sync"])


async def get_leetcode_client() -> AsyncGenerator[LeetCodeClient, None]:
    async with client_from_settings(get_settings()) as client:
        yield client


@router.post("/sync/all", response_model=SyncReportResponse)
async def sync_all_students(
    batch: str | None = Query(None, max_length=16),
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: aioredis.Redis = Depends(get_redis),  # noqa: B008
    client: LeetCodeClient = Depends(get_leetcode_client),  # noqa: B008
) -> SyncReportResponse:
    """Sync every student; per-student failures are listed, not raised."""
    report = await sync_all(db, client, get_settings().sync_concurrency, batch=batch)
    if report.success:
        await invalidate_dashboards(redis)
    return SyncReportResponse(success=report.success, failed=report.failed, errors=report.errors)


@router.post("/sync/student/{student_id}", response_model=StudentSyncResponse)
async def sync_one_student(
    student_id: int,
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: aioredis.Redis = Depends(get_redis),  # noqa: B008
    client: LeetCodeClient = Depends(get_leetcode_client),  # noqa: B008
) -> StudentSyncResponse:
    """Sync one student. Upstream failures answer 502."""
    student = await get_student(db, student_id)
    snapshot = await sync_student(db, client, student)
    await invalidate_dashboards(redis)
    return StudentSyncResponse(
        student_id=student.id,
        username=student.leetcode_username,
        total_solved=snapshot.total_solved,
        synced_at=student.last_synced_at,
    )


@router.post("/sync/profile-photos", response_model=SyncReportResponse)
async def sync_photos(
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: aioredis.Redis = Depends(get_redis),  # noqa: B008
    client: LeetCodeClient = Depends(get_leetcode_client),  # noqa: B008
) -> SyncReportResponse:
    report = await sync_profile_photos(db, client, get_settings().sync_concurrency)
    if report.success:
        await invalidate_dashboards(redis)
    return SyncReportResponse(success=report.success, failed=report.failed, errors=report.errors)


@router.post("/snapshots/capture", response_model=CaptureResponse)
async def capture_snapshots(
    period: int | None = Query(None, description="Week index; defaults to the next one"),
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: aioredis.Redis = Depends(get_redis),  # noqa: B008
) -> CaptureResponse:
    """Freeze the live snapshots as historical week ``period``."""
    try:
        captured, count = await capture_week(db, period)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await invalidate_dashboards(redis)
    return CaptureResponse(period=captured, snapshots=count)
