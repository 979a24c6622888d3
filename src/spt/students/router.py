"""Student directory endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from spt.database import get_session
from spt.students.schemas import StudentResponse
from spt.students.service import get_student_by_username, list_students

router = APIRouter(prefix="/api/v1/students", tags=["Students"])


@router.get("", response_model=list[StudentResponse])
async def students(
    batch: str | None = Query(None, max_length=16),
    search: str | None = Query(None, max_length=64),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> list[StudentResponse]:
    """All students in onboarding order, optionally filtered by batch or name/username."""
    rows = await list_students(db, batch=batch, search=search)
    return [StudentResponse.model_validate(row) for row in rows]


@router.get("/{username}", response_model=StudentResponse)
async def student(
    username: str,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> StudentResponse:
    return StudentResponse.model_validate(await get_student_by_username(db, username))
