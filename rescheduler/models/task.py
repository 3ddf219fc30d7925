"""
Task model definitions.

Tasks belong to a user and optionally to a plan; a null plan means the task
lives in free mode.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class TaskBase(BaseModel):
    """Base task model with common fields."""

    name: str = Field(..., min_length=1, max_length=500)
    plan_id: Optional[UUID] = None
    priority: int = Field(3, ge=1, le=4, description="1 = highest")
    estimated_duration_minutes: Optional[int] = Field(None, ge=1, le=1440)
    complexity_score: Optional[int] = Field(None, ge=1, le=10)

    # Recurrence
    is_recurring: bool = False
    is_indefinite: bool = False
    recurrence_days: list[int] = Field(
        default_factory=list, description="0 = Sunday ... 6 = Saturday"
    )
    default_start_time: Optional[str] = Field(None, description="HH:MM")
    default_end_time: Optional[str] = Field(None, description="HH:MM")

    @field_validator("recurrence_days", mode="before")
    @classmethod
    def coerce_recurrence_days(cls, value):
        if value is None:
            return []
        return [int(v) for v in value]

    @field_validator("recurrence_days")
    @classmethod
    def validate_recurrence_days(cls, value: list[int]) -> list[int]:
        for day in value:
            if day < 0 or day > 6:
                raise ValueError("recurrence_days must be between 0 (Sunday) and 6 (Saturday)")
        return value


class TaskCreate(TaskBase):
    """Model for creating a new task."""

    pass


class Task(TaskBase):
    """Complete task model."""

    id: UUID
    user_id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
