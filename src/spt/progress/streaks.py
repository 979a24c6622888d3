"""Consecutive-day runs over a daily activity calendar."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, timedelta


def longest_run(daily: Mapping[date, int], min_count: int = 1) -> int:
    """Longest run of consecutive days with at least ``min_count`` activity."""
    qualifying = sorted(day for day, count in daily.items() if count >= min_count)
    best = 0
    run = 0
    previous: date | None = None
    for day in qualifying:
        if previous is not None and day - previous == timedelta(days=1):
            run += 1
        else:
            run = 1
        best = max(best, run)
        previous = day
    return best


def current_run(daily: Mapping[date, int], today: date, min_count: int = 1) -> int:
    """Run ending today, or yesterday when today has no activity yet."""
    day = today
    if daily.get(day, 0) < min_count:
        day = today - timedelta(days=1)

    run = 0
    while daily.get(day, 0) >= min_count:
        run += 1
        day -= timedelta(days=1)
    return run
