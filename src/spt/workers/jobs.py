"""arq jobs: periodic LeetCode sync, weekly snapshot capture, badge evaluation.

Each job opens its own database session; the LeetCode client and Redis
connection are shared through the worker context.
"""

from __future__ import annotations

import logging

import redis.asyncio as aioredis

from spt.badges.service import evaluate_all_badges as evaluate_badges_for_all
from spt.config import get_settings
from spt.dashboard.cache import invalidate_dashboards
from spt.database import close_db, get_session_factory, init_db
from spt.progress.service import capture_week
from spt.sync.client import LeetCodeClient, client_from_settings
from spt.sync.service import sync_all

logger = logging.getLogger(__name__)


async def startup(ctx: dict) -> None:  # type: ignore[type-arg]
    settings = get_settings()
    await init_db(settings.database_url)
    ctx["redis_cache"] = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=5,
    )
    ctx["leetcode"] = client_from_settings(settings)
    logger.info("Progress worker started")


async def shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    client: LeetCodeClient | None = ctx.get("leetcode")
    if client:
        await client.aclose()

    redis_client: aioredis.Redis | None = ctx.get("redis_cache")
    if redis_client:
        await redis_client.aclose()

    await close_db()
    logger.info("Progress worker shut down")


async def sync_all_students(ctx: dict) -> dict[str, int]:  # type: ignore[type-arg]
    """Refresh every student's live snapshot, then evaluate badges."""
    settings = get_settings()
    async with get_session_factory()() as session:
        report = await sync_all(session, ctx["leetcode"], settings.sync_concurrency)
    logger.info("Synced %d students (%d failed)", report.success, report.failed)

    if report.success:
        await evaluate_all_badges(ctx)
        await invalidate_dashboards(ctx["redis_cache"])
    return {"success": report.success, "failed": report.failed}


async def capture_weekly_snapshots(ctx: dict) -> int:  # type: ignore[type-arg]
    """Freeze the live snapshots as the next historical week."""
    async with get_session_factory()() as session:
        period, count = await capture_week(session)
    await invalidate_dashboards(ctx["redis_cache"])
    logger.info("Captured week %d (%d snapshots)", period, count)
    return period


async def evaluate_all_badges(ctx: dict) -> int:  # type: ignore[type-arg]
    async with get_session_factory()() as session:
        result = await evaluate_badges_for_all(session)
    if result.awarded:
        logger.info("Awarded %d badges", len(result.awarded))
    return len(result.awarded)
