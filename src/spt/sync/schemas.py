"""Response schemas for sync and snapshot endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class SyncFailure(BaseModel):
    student_id: int
    username: str
    message: str


class SyncReportResponse(BaseModel):
    success: int
    failed: int
    errors: list[SyncFailure] = Field(default_factory=list)


class StudentSyncResponse(BaseModel):
    student_id: int
    username: str
    total_solved: int
    synced_at: datetime | None = None


class CaptureResponse(BaseModel):
    period: int
    snapshots: int
