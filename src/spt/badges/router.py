"""Badge endpoints."""

from typing import Any

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from spt.badges.service import evaluate_all_badges
from spt.config import get_settings
from spt.dashboard import service
from spt.dashboard.cache import cache_key, cached, invalidate_dashboards
from spt.database import get_session
from spt.redis_client import get_redis

router = APIRouter(prefix="/api/v1/badges", tags=["Badges"])


@router.get("/all")
async def all_badges(
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: aioredis.Redis = Depends(get_redis),  # noqa: B008
) -> dict[str, Any]:
    """Badge catalogue, every awarded badge and summary stats."""
    ttl = get_settings().dashboard_cache_ttl_seconds
    return await cached(redis, cache_key("badges"), ttl, lambda: service.badges_overview(db))


@router.post("/evaluate")
async def evaluate(
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: aioredis.Redis = Depends(get_redis),  # noqa: B008
) -> dict[str, Any]:
    """Run the badge rules for every student and store new awards."""
    result = await evaluate_all_badges(db)
    if result.awarded:
        await invalidate_dashboards(redis)
    return {
        "awarded": [
            {
                "student_id": award.student_id,
                "badge_type": award.badge_type.value,
                "earned_at": award.earned_at.isoformat(),
                "metadata": award.metadata,
            }
            for award in result.awarded
        ],
        "students_evaluated": len(result.earned),
    }
