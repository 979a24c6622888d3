"""Short-TTL Redis cache for dashboard payloads.

Keys look like ``dashboard:<view>:<key>``. Redis trouble never fails a
request; the payload is just computed again.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import Any

import redis.asyncio as aioredis
import structlog

logger = structlog.get_logger()

CACHE_PREFIX = "dashboard"


def cache_key(view: str, key: str | int = "all") -> str:
    return f"{CACHE_PREFIX}:{view}:{key}"


async def cached(
    redis: aioredis.Redis,
    key: str,
    ttl: int,
    compute: Callable[[], Awaitable[Any]],
) -> Any:
    """Return the cached payload for ``key`` or compute and store it."""
    try:
        hit = await redis.get(key)
    except aioredis.RedisError:
        logger.warning("dashboard_cache_read_failed", key=key, exc_info=True)
        hit = None
    if hit:
        return json.loads(hit)

    payload = await compute()
    if ttl > 0:
        try:
            await redis.setex(key, ttl, json.dumps(payload))
        except aioredis.RedisError:
            logger.warning("dashboard_cache_write_failed", key=key, exc_info=True)
    return payload


async def invalidate_dashboards(redis: aioredis.Redis) -> int:
    """Drop every cached dashboard payload. Returns the number of keys removed."""
    try:
        keys = await redis.keys(f"{CACHE_PREFIX}:*")
        if keys:
            return int(await redis.delete(*keys))
    except aioredis.RedisError:
        logger.warning("dashboard_cache_invalidate_failed", exc_info=True)
    return 0
