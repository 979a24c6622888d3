"""Dashboard cache client lifecycle."""

from __future__ import annotations

import pytest

from spt import redis_client


class TestDashboardCacheClient:
    @pytest.mark.asyncio
    async def test_open_and_close(self):
        await redis_client.init_redis("redis://localhost:6379/15", max_connections=3)
        try:
            client = redis_client.get_redis()
            assert client.connection_pool.max_connections == 3
        finally:
            await redis_client.close_redis()

        with pytest.raises(RuntimeError, match="not open"):
            redis_client.get_redis()

    @pytest.mark.asyncio
    async def test_close_without_open_is_noop(self):
        await redis_client.close_redis()
        with pytest.raises(RuntimeError):
            redis_client.get_redis()
