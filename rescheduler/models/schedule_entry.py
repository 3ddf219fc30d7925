"""
Schedule entry and completion models.

A schedule entry is one concrete placement of a task on a calendar day.
"""

from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from rescheduler.models.enums import ScheduleStatus


class ScheduleEntryCreate(BaseModel):
    """Model for creating a schedule entry."""

    task_id: UUID
    plan_id: Optional[UUID] = None
    date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, ge=0)
    day_index: int = 0
    status: ScheduleStatus = ScheduleStatus.SCHEDULED


class ScheduleEntry(ScheduleEntryCreate):
    """Complete schedule entry."""

    id: UUID
    user_id: str
    reschedule_count: int = 0
    last_rescheduled_at: Optional[datetime] = None
    rescheduled_from: Optional[date] = None
    reschedule_reason: Optional[dict[str, Any]] = None
    pending_reschedule_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OccupiedSlot(BaseModel):
    """A placement the scorer must avoid, with its task's priority."""

    task_id: UUID
    date: date
    start_time: str
    end_time: str
    priority: Optional[int] = None
    duration_minutes: Optional[int] = None


class CompletionCreate(BaseModel):
    """Model for recording a completed task instance."""

    task_id: UUID
    plan_id: Optional[UUID] = None
    scheduled_date: date


class Completion(CompletionCreate):
    """A finished task instance for (task_id, scheduled_date, plan_id)."""

    id: UUID
    user_id: str
    completed_at: datetime

    class Config:
        from_attributes = True
