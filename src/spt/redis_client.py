"""Redis client backing the dashboard payload cache.

One client is opened in the app lifespan and handed to the dashboard,
sync and badge routes through ``Depends(get_redis)``. Values are the JSON
strings written by :mod:`spt.dashboard.cache`, so responses are decoded.
"""

import redis.asyncio as redis
import structlog

logger = structlog.get_logger()

_cache_client: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 10) -> None:
    """Open the dashboard cache client."""
    global _cache_client  # noqa: PLW0603
    _cache_client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )
    logger.info("dashboard_cache_opened", max_connections=max_connections)


async def close_redis() -> None:
    global _cache_client  # noqa: PLW0603
    if _cache_client is not None:
        await _cache_client.aclose()
        _cache_client = None
        logger.info("dashboard_cache_closed")


def get_redis() -> redis.Redis:
    """Dashboard cache client for route dependencies."""
    if _cache_client is None:
        msg = "Dashboard cache is not open; the app lifespan has not run."
        raise RuntimeError(msg)
    return _cache_client
