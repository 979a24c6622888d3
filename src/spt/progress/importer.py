"""CSV import/export of weekly progress.

Import columns: ``name``, ``username`` (or ``leetcode_username``), optional
``batch``, ``week1``..``weekN`` and optional ``current``. Blank week cells are
left missing rather than read as 0.
"""

from __future__ import annotations

import csv
import io
import math
import re
from collections.abc import Sequence
from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from spt.progress.deltas import CURRENT_PERIOD
from spt.progress.service import StudentProgress, upsert_snapshot
from spt.students.service import upsert_student

logger = structlog.get_logger()

_WEEK_COLUMN = re.compile(r"^week\s*(\d+)$", re.IGNORECASE)
_USERNAME_COLUMNS = ("username", "leetcode_username")
# Snapshot counts are INTEGER (int4) columns.
MAX_COUNT = 2**31 - 1


class ImportFormatError(Exception):
    """Malformed CSV payload."""


@dataclass
class ImportReport:
    created: int = 0
    updated: int = 0
    snapshots: int = 0


def _parse_count(raw: str, line: int, column: str) -> int | None:
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        number = float(raw)
    except ValueError:
        raise ImportFormatError(f"Line {line}: {column} must be a number, got {raw!r}") from None
    if not math.isfinite(number):
        raise ImportFormatError(f"Line {line}: {column} must be a finite number, got {raw!r}")
    value = int(number)
    if value < 0:
        raise ImportFormatError(f"Line {line}: {column} must not be negative")
    if value > MAX_COUNT:
        raise ImportFormatError(f"Line {line}: {column} is out of range ({value})")
    return value


async def import_weekly_progress(db: AsyncSession, csv_text: str) -> ImportReport:
    """Create/refresh students and their weekly snapshots from CSV text."""
    reader = csv.DictReader(io.StringIO(csv_text.lstrip("\ufeff")))
    if not reader.fieldnames:
        raise ImportFormatError("CSV is empty")

    columns = {name.strip().lower(): name for name in reader.fieldnames if name}
    username_col = next((columns[c] for c in _USERNAME_COLUMNS if c in columns), None)
    if username_col is None:
        raise ImportFormatError("CSV must have a 'username' column")

    week_cols: dict[int, str] = {}
    for key, original in columns.items():
        match = _WEEK_COLUMN.match(key)
        if match and int(match.group(1)) > CURRENT_PERIOD:
            week_cols[int(match.group(1))] = original

    name_col = columns.get("name")
    batch_col = columns.get("batch")
    current_col = columns.get("current")

    report = ImportReport()
    # Header is line 1.
    for line, row in enumerate(reader, start=2):
        username = (row.get(username_col) or "").strip()
        if not username:
            raise ImportFormatError(f"Line {line}: username is required")
        name = (row.get(name_col) or "").strip() if name_col else ""
        batch = (row.get(batch_col) or "").strip() if batch_col else ""

        values: dict[int, int] = {}
        for period, column in sorted(week_cols.items()):
            count = _parse_count(row.get(column), line, column)
            if count is not None:
                values[period] = count
        if current_col:
            count = _parse_count(row.get(current_col), line, current_col)
            if count is not None:
                values[CURRENT_PERIOD] = count

        student, created = await upsert_student(db, name, username, batch=batch or None)
        if created:
            report.created += 1
        else:
            report.updated += 1
        for period, count in values.items():
            await upsert_snapshot(db, student.id, period, {"total_solved": count})
            report.snapshots += 1

    await db.commit()
    logger.info(
        "weekly_progress_imported",
        created=report.created,
        updated=report.updated,
        snapshots=report.snapshots,
    )
    return report


def export_csv(progress: Sequence[StudentProgress]) -> str:
    """Render weekly progress as CSV, one row per student."""
    periods = max((len(p.deltas.values) for p in progress), default=0)
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow([
        "name",
        "username",
        "batch",
        *(f"week{i}" for i in range(1, periods + 1)),
        "current",
        "weekly_progress",
        "trend",
        "status",
    ])
    for item in progress:
        values = list(item.deltas.values) + [0] * (periods - len(item.deltas.values))
        writer.writerow([
            item.student.name,
            item.student.leetcode_username,
            item.student.batch or "",
            *values,
            item.deltas.current if item.deltas.current is not None else "",
            item.weekly_progress,
            item.classification.trend.value,
            item.classification.status.value,
        ])
    return buf.getvalue()
