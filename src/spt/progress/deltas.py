"""Delta engine: week-over-week increments from ordered solve-count snapshots.

Historical periods are week indices ``1..n``; the live snapshot sits apart
(``CURRENT_PERIOD``) and is compared against the last historical week.
A period with no snapshot reads as 0 and every increment touching it is 0,
so downstream arithmetic never sees a hole. Regressions are NOT clamped.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

CURRENT_PERIOD = 0


@dataclass(frozen=True)
class DeltaSeries:
    """Per-student value series and derived increments."""

    values: tuple[int, ...]
    present: tuple[bool, ...]
    increments: tuple[int, ...]
    current: int | None
    current_increment: int

    @property
    def last_value(self) -> int:
        """Last historical value (0 when the series is empty)."""
        return self.values[-1] if self.values else 0

    @property
    def latest_total(self) -> int:
        """Live total when synced, otherwise the latest present historical value."""
        if self.current is not None:
            return self.current
        for value, present in zip(reversed(self.values), reversed(self.present)):
            if present:
                return value
        return 0

    @property
    def total_improvement(self) -> int:
        """Latest total minus the first present historical value."""
        for value, present in zip(self.values, self.present):
            if present:
                return self.latest_total - value
        return 0

    @property
    def improvement_percent(self) -> float:
        """Current increment relative to the last historical value, in percent."""
        if not self.values or not self.present[-1] or self.values[-1] <= 0:
            return 0.0
        return self.current_increment / self.values[-1] * 100

    @property
    def average_growth(self) -> float:
        """Mean increment across all reported pairs."""
        if not self.increments:
            return 0.0
        return sum(self.increments) / len(self.increments)


def compute_deltas(
    totals: Mapping[int, int],
    current: int | None = None,
    periods: int | None = None,
) -> DeltaSeries:
    """Compute increments for one student.

    ``totals`` maps week index -> total solved. ``periods`` fixes the window
    length (defaults to the highest week present); weeks outside ``1..periods``
    are ignored.
    """
    if periods is None:
        periods = max((p for p in totals if p > CURRENT_PERIOD), default=0)

    values: list[int] = []
    present: list[bool] = []
    for period in range(1, periods + 1):
        has_value = period in totals
        present.append(has_value)
        values.append(int(totals[period]) if has_value else 0)

    increments: list[int] = []
    for idx in range(1, len(values)):
        if present[idx] and present[idx - 1]:
            increments.append(values[idx] - values[idx - 1])
        else:
            increments.append(0)

    current_increment = 0
    if current is not None and values:
        current_increment = current - values[-1] if present[-1] else 0
        increments.append(current_increment)

    return DeltaSeries(
        values=tuple(values),
        present=tuple(present),
        increments=tuple(increments),
        current=current,
        current_increment=current_increment,
    )
