"""Student lookup and onboarding."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from spt.config import get_settings
from spt.db.models import Student


class StudentNotFoundError(Exception):
    """No student matches the given id or username."""


def profile_link_for(username: str) -> str:
    return f"{get_settings().leetcode_profile_base_url.rstrip('/')}/{username}/"


async def list_students(
    db: AsyncSession,
    batch: str | None = None,
    search: str | None = None,
) -> list[Student]:
    """All students in onboarding order, optionally filtered by batch or a name/username search."""
    query = select(Student).order_by(Student.id)
    if batch:
        query = query.where(Student.batch == batch)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(
            or_(
                Student.name.ilike(pattern),
                Student.leetcode_username.ilike(pattern),
            )
        )
    result = await db.execute(query)
    return list(result.scalars())


async def get_student(db: AsyncSession, student_id: int) -> Student:
    student = await db.get(Student, student_id)
    if student is None:
        raise StudentNotFoundError(f"Student {student_id} not found")
    return student


async def get_student_by_username(db: AsyncSession, username: str) -> Student:
    result = await db.execute(
        select(Student).where(Student.leetcode_username == username)
    )
    student = result.scalar_one_or_none()
    if student is None:
        raise StudentNotFoundError(f"Student {username!r} not found")
    return student


async def upsert_student(
    db: AsyncSession,
    name: str,
    username: str,
    batch: str | None = None,
    profile_link: str | None = None,
) -> tuple[Student, bool]:
    """Create a student or refresh its name/batch. Returns (student, created)."""
    result = await db.execute(
        select(Student).where(Student.leetcode_username == username)
    )
    student = result.scalar_one_or_none()
    if student is not None:
        student.name = name or student.name
        if batch:
            student.batch = batch
        return student, False

    student = Student(
        name=name or username,
        leetcode_username=username,
        leetcode_profile_link=profile_link or profile_link_for(username),
        batch=batch,
        created_at=datetime.now(timezone.utc),
    )
    db.add(student)
    await db.flush()
    return student, True
