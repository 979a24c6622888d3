"""ORM models for students, progress snapshots, daily activity and badges.

Tables are created by the Alembic migrations in ``alembic/versions``.
Column types stay portable (no dialect-specific types) so the same models
run against PostgreSQL in production and SQLite in tests.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from spt.db.base import Base


# ---------------------------------------------------------------------------
# Students
# ---------------------------------------------------------------------------


class Student(Base):
    """A tracked student and their LeetCode identity."""

    __tablename__ = "students"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    leetcode_username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    leetcode_profile_link: Mapped[str] = mapped_column(String(256), nullable=False)
    profile_photo: Mapped[str | None] = mapped_column(Text, nullable=True)
    batch: Mapped[str | None] = mapped_column(String(16), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # --- Sync metadata ---
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    platform_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_active_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    snapshots: Mapped[list[Snapshot]] = relationship(
        "Snapshot", back_populates="student", order_by="Snapshot.period"
    )
    badges: Mapped[list[StudentBadge]] = relationship("StudentBadge", back_populates="student")


# ---------------------------------------------------------------------------
# Progress snapshots
# ---------------------------------------------------------------------------


class Snapshot(Base):
    """Solved counts at one point in time: UNIQUE(student_id, period).

    Historical snapshots use week indices 1..n; period 0 holds the live row.
    """

    __tablename__ = "snapshots"
    __table_args__ = (
        UniqueConstraint("student_id", "period", name="snapshots_student_id_period_key"),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    period: Mapped[int] = mapped_column(Integer, nullable=False)
    total_solved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    easy_solved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    medium_solved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    hard_solved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_submissions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_accepted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ranking: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    captured_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    student: Mapped[Student] = relationship("Student", back_populates="snapshots")

    @property
    def acceptance_rate(self) -> float:
        if self.total_submissions <= 0:
            return 0.0
        return round(self.total_accepted / self.total_submissions * 100, 2)


class DailyActivity(Base):
    """Per-day activity count from the platform submission calendar."""

    __tablename__ = "daily_activity"
    __table_args__ = (
        UniqueConstraint("student_id", "day", name="daily_activity_student_id_day_key"),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    day: Mapped[date] = mapped_column(Date, nullable=False)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


# ---------------------------------------------------------------------------
# Badges
# ---------------------------------------------------------------------------


class StudentBadge(Base):
    """Badges earned by students: UNIQUE(student_id, badge_type) prevents duplicates."""

    __tablename__ = "student_badges"
    __table_args__ = (
        UniqueConstraint("student_id", "badge_type", name="student_badges_student_id_badge_type_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    badge_type: Mapped[str] = mapped_column(String(32), nullable=False)
    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    badge_metadata: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)

    student: Mapped[Student] = relationship("Student", back_populates="badges")
