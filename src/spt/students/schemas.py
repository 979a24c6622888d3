"""Response schemas for student endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class StudentResponse(BaseModel):
    id: int
    name: str
    leetcode_username: str
    leetcode_profile_link: str
    profile_photo: str | None = None
    batch: str | None = None
    created_at: datetime | None = None
    last_synced_at: datetime | None = None
    platform_streak: int = 0
    total_active_days: int = 0

    model_config = {"from_attributes": True}
