"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from spt.badges.router import router as badges_router
from spt.config import get_settings
from spt.dashboard.router import router as dashboard_router
from spt.database import close_db, init_db
from spt.health.router import router as health_router
from spt.middleware import setup_middleware
from spt.redis_client import close_redis, init_redis
from spt.students.router import router as students_router
from spt.sync.router import router as sync_router


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url, settings.dashboard_cache_max_connections)
    yield
    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Student Progress Tracker API",
        description="LeetCode progress sync, weekly analytics, leaderboards and badges",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(students_router)
    app.include_router(sync_router)
    app.include_router(dashboard_router)
    app.include_router(badges_router)

    return app


app = create_app()
