"""arq worker settings module.

Import path for arq CLI: arq spt.workers.settings.WorkerSettings
"""

from __future__ import annotations

from arq.connections import RedisSettings
from arq.cron import cron

from spt.config import get_settings
from spt.workers.jobs import (
    capture_weekly_snapshots,
    evaluate_all_badges,
    shutdown,
    startup,
    sync_all_students,
)

_settings = get_settings()


class WorkerSettings:
    """arq worker settings for the progress worker."""

    functions = [sync_all_students, capture_weekly_snapshots, evaluate_all_badges]
    cron_jobs = [
        # Every 30 minutes
        cron(sync_all_students, minute={0, 30}, run_at_startup=False),
        # Monday 00:05 UTC, after the week rolls over
        cron(capture_weekly_snapshots, weekday=0, hour=0, minute=5),
    ]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = RedisSettings.from_dsn(_settings.arq_redis_url)
    max_jobs = 2
    job_timeout = _settings.worker_job_timeout_seconds
