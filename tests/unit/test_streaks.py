"""Consecutive-day run helpers."""

from __future__ import annotations

from datetime import date, timedelta

from spt.progress.streaks import current_run, longest_run

START = date(2026, 9, 1)


def _days(counts: list[int], start: date = START) -> dict[date, int]:
    return {start + timedelta(days=i): c for i, c in enumerate(counts)}


class TestLongestRun:
    def test_empty(self):
        assert longest_run({}) == 0

    def test_gap_breaks_run(self):
        assert longest_run(_days([1, 1, 0, 1, 1, 1])) == 3

    def test_min_count(self):
        assert longest_run(_days([5, 6, 4, 5, 5, 5, 5]), min_count=5) == 4

    def test_unordered_input(self):
        daily = dict(reversed(list(_days([2, 2, 2]).items())))
        assert longest_run(daily) == 3


class TestCurrentRun:
    def test_ending_today(self):
        daily = _days([1, 1, 1])
        assert current_run(daily, START + timedelta(days=2)) == 3

    def test_today_not_yet_active(self):
        daily = _days([1, 1, 1])
        assert current_run(daily, START + timedelta(days=3)) == 3

    def test_broken(self):
        daily = _days([1, 1, 1])
        assert current_run(daily, START + timedelta(days=5)) == 0
