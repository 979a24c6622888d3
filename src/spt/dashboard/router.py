"""Dashboard endpoints plus CSV import/export of weekly progress.

Dashboards are polled by the browser (about every 30 s) and served from a
short-lived Redis cache.
"""

from typing import Any

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from spt.config import get_settings
from spt.dashboard import service
from spt.dashboard.cache import cache_key, cached, invalidate_dashboards
from spt.database import get_session
from spt.progress.importer import export_csv, import_weekly_progress
from spt.progress.service import load_progress
from spt.redis_client import get_redis

router = APIRouter(prefix="/api/v1", tags=["Dashboard"])


@router.get("/dashboard/admin")
async def admin_dashboard(
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: aioredis.Redis = Depends(get_redis),  # noqa: B008
) -> dict[str, Any]:
    ttl = get_settings().dashboard_cache_ttl_seconds
    return await cached(redis, cache_key("admin"), ttl, lambda: service.admin_dashboard(db))


@router.get("/dashboard/batch/{batch}")
async def batch_dashboard(
    batch: str,
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: aioredis.Redis = Depends(get_redis),  # noqa: B008
) -> dict[str, Any]:
    ttl = get_settings().dashboard_cache_ttl_seconds
    return await cached(redis, cache_key("batch", batch), ttl, lambda: service.batch_dashboard(db, batch))


@router.get("/dashboard/university")
async def university_dashboard(
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: aioredis.Redis = Depends(get_redis),  # noqa: B008
) -> dict[str, Any]:
    ttl = get_settings().dashboard_cache_ttl_seconds
    return await cached(redis, cache_key("university"), ttl, lambda: service.university_dashboard(db))


@router.get("/dashboard/student/{username}")
async def student_dashboard(
    username: str,
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: aioredis.Redis = Depends(get_redis),  # noqa: B008
) -> dict[str, Any]:
    """Unknown usernames answer 404."""
    ttl = get_settings().dashboard_cache_ttl_seconds
    return await cached(
        redis, cache_key("student", username), ttl, lambda: service.student_dashboard(db, username)
    )


@router.get("/leaderboard")
async def leaderboard(
    limit: int | None = Query(None, ge=1, le=500),
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: aioredis.Redis = Depends(get_redis),  # noqa: B008
) -> list[dict[str, Any]]:
    """Top students by this week's solved increment."""
    settings = get_settings()
    size = limit or settings.leaderboard_default_size
    return await cached(
        redis,
        cache_key("leaderboard", size),
        settings.dashboard_cache_ttl_seconds,
        lambda: service.leaderboard(db, size),
    )


@router.get("/rankings/all")
async def rankings(
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: aioredis.Redis = Depends(get_redis),  # noqa: B008
) -> list[dict[str, Any]]:
    ttl = get_settings().dashboard_cache_ttl_seconds
    return await cached(redis, cache_key("rankings"), ttl, lambda: service.rankings(db))


@router.get("/analytics")
async def analytics(
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: aioredis.Redis = Depends(get_redis),  # noqa: B008
) -> dict[str, Any]:
    ttl = get_settings().dashboard_cache_ttl_seconds
    return await cached(redis, cache_key("analytics"), ttl, lambda: service.analytics(db))


@router.get("/weekly-progress")
async def weekly_progress(
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: aioredis.Redis = Depends(get_redis),  # noqa: B008
) -> list[dict[str, Any]]:
    ttl = get_settings().dashboard_cache_ttl_seconds
    return await cached(redis, cache_key("weekly_progress"), ttl, lambda: service.weekly_progress(db))


@router.post("/import/weekly-progress")
async def import_weekly(
    request: Request,
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: aioredis.Redis = Depends(get_redis),  # noqa: B008
) -> dict[str, int]:
    """Import a weekly-progress CSV sent as the raw request body. Malformed CSV answers 400."""
    body = await request.body()
    report = await import_weekly_progress(db, body.decode("utf-8", errors="replace"))
    await invalidate_dashboards(redis)
    return {"created": report.created, "updated": report.updated, "snapshots": report.snapshots}


@router.get("/export/csv")
async def export_weekly(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> Response:
    progress = await load_progress(db)
    return Response(
        content=export_csv(progress),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="weekly_progress.csv"'},
    )
