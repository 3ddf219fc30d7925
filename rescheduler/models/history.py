"""
Scheduling history models (append-only audit log).
"""

from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class TaskAdjustment(BaseModel):
    """One applied move recorded in the daily history entry."""

    task_id: UUID
    old_date: date
    old_start_time: Optional[str] = None
    old_end_time: Optional[str] = None
    new_date: date
    new_start_time: Optional[str] = None
    new_end_time: Optional[str] = None
    context_score: Optional[float] = None
    from_proposal: bool = True


class SchedulingHistoryEntry(BaseModel):
    """Per-plan, per-day record of applied adjustments."""

    id: UUID
    plan_id: Optional[UUID] = None
    user_id: str
    adjustment_date: date
    old_end_date: Optional[date] = None
    new_end_date: Optional[date] = None
    days_extended: int = 0
    tasks_rescheduled: int = 0
    task_adjustments: list[dict[str, Any]] = Field(default_factory=list)
    reason: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    class Config:
        from_attributes = True
