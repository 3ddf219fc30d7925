"""
Plan model definitions.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from rescheduler.models.enums import PlanStatus


class PlanBase(BaseModel):
    """Base plan model."""

    name: str = Field(..., min_length=1, max_length=500)
    start_date: date
    end_date: date
    status: PlanStatus = PlanStatus.ACTIVE


class PlanCreate(PlanBase):
    """Model for creating a plan."""

    pass


class Plan(PlanBase):
    """Complete plan model."""

    id: UUID
    user_id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
