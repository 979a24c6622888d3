"""Shared test fixtures.

API tests run the real app over ``httpx.ASGITransport`` with the database
swapped for in-memory SQLite, Redis for an ``AsyncMock`` and LeetCode for an
``httpx.MockTransport``.
"""

from __future__ import annotations

import json
from collections.abc import AsyncGenerator, Callable
from datetime import datetime
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from spt.database import get_session
from spt.db import models  # noqa: F401
from spt.db.base import Base
from spt.main import create_app
from spt.redis_client import get_redis
from spt.sync.client import LeetCodeClient
from spt.sync.router import get_leetcode_client


def leetcode_payload(
    username: str,
    easy: int = 0,
    medium: int = 0,
    hard: int = 0,
    ranking: int = 100_000,
    avatar: str | None = None,
    calendar: dict[datetime, int] | None = None,
    streak: int = 0,
) -> dict[str, Any]:
    """GraphQL response body shaped like LeetCode's."""
    total = easy + medium + hard
    raw_calendar = {str(int(day.timestamp())): count for day, count in (calendar or {}).items()}
    return {
        "data": {
            "matchedUser": {
                "username": username,
                "profile": {"ranking": ranking, "userAvatar": avatar, "realName": username.title()},
                "submitStats": {
                    "acSubmissionNum": [
                        {"difficulty": "All", "count": total, "submissions": total + 5},
                        {"difficulty": "Easy", "count": easy, "submissions": easy},
                        {"difficulty": "Medium", "count": medium, "submissions": medium},
                        {"difficulty": "Hard", "count": hard, "submissions": hard},
                    ],
                    "totalSubmissionNum": [
                        {"difficulty": "All", "count": total, "submissions": total * 2},
                    ],
                },
                "userCalendar": {
                    "streak": streak,
                    "totalActiveDays": len(raw_calendar),
                    "submissionCalendar": json.dumps(raw_calendar),
                },
            }
        }
    }


@pytest.fixture
def payload_factory() -> Callable[..., dict[str, Any]]:
    return leetcode_payload


@pytest.fixture
def leetcode_responses() -> dict[str, Any]:
    """username -> response body (dict) or HTTP status code (int)."""
    return {}


@pytest.fixture
def leetcode_transport(leetcode_responses: dict[str, Any]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        username = json.loads(request.content)["variables"]["username"]
        answer = leetcode_responses.get(username)
        if answer is None:
            return httpx.Response(200, json={"data": {"matchedUser": None}})
        if isinstance(answer, int):
            return httpx.Response(answer, text="upstream error")
        return httpx.Response(200, json=answer)

    return httpx.MockTransport(handler)


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for seeding and assertions."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def redis_mock() -> AsyncMock:
    redis = AsyncMock()
    redis.get.return_value = None
    redis.keys.return_value = []
    redis.delete.return_value = 0
    return redis


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    redis_mock: AsyncMock,
    leetcode_transport: httpx.MockTransport,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with test doubles wired in."""
    app = create_app()

    async def _session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    async def _leetcode() -> AsyncGenerator[LeetCodeClient, None]:
        async with LeetCodeClient("https://leetcode.test/graphql", transport=leetcode_transport) as lc:
            yield lc

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_redis] = lambda: redis_mock
    app.dependency_overrides[get_leetcode_client] = _leetcode

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
