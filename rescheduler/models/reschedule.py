"""
Reschedule models: overdue tasks, candidate slots, proposals and results.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from rescheduler.models.enums import ProposalStatus, RescheduleReason, ScheduleStatus


class OverdueTask(BaseModel):
    """A schedule entry whose window elapsed without a completion."""

    task_id: UUID
    schedule_id: UUID
    task_name: str
    scheduled_date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration_minutes: Optional[int] = None
    priority: Optional[int] = None
    complexity_score: Optional[int] = None
    status: ScheduleStatus


class DetectionResult(BaseModel):
    """Detector output; an error is reported instead of an empty list."""

    tasks: list[OverdueTask] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RescheduleSlot(BaseModel):
    """A scored candidate placement."""

    date: date
    start_time: str
    end_time: str
    day_index: int
    score: float
    context_score: float = 0.0
    priority_penalty: float = 0.0
    density_penalty: float = 0.0


class RescheduleProposal(BaseModel):
    """A pending (or decided) reschedule awaiting explicit user action."""

    id: UUID
    user_id: str
    plan_id: Optional[UUID] = None
    task_schedule_id: UUID
    task_id: UUID

    proposed_date: date
    proposed_start_time: str
    proposed_end_time: str
    proposed_day_index: int

    original_date: date
    original_start_time: Optional[str] = None
    original_end_time: Optional[str] = None
    original_day_index: int = 0

    context_score: float = 0.0
    priority_penalty: float = 0.0
    density_penalty: float = 0.0
    reason: RescheduleReason = RescheduleReason.AUTO_RESCHEDULE_OVERDUE
    status: ProposalStatus = ProposalStatus.PENDING

    created_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by_user_id: Optional[str] = None

    class Config:
        from_attributes = True


class PendingRescheduleView(RescheduleProposal):
    """Pending proposal joined with task metadata for display."""

    task_name: Optional[str] = None
    task_priority: Optional[int] = None
    task_duration_minutes: Optional[int] = None


class RescheduleResult(BaseModel):
    """Outcome of proposing a new slot for one overdue task."""

    success: bool
    task_id: UUID
    task_name: str
    proposal_id: Optional[UUID] = None
    old_date: date
    old_start_time: Optional[str] = None
    old_end_time: Optional[str] = None
    new_date: date
    new_start_time: str
    new_end_time: str
    reason: str = "Task passed scheduled end_time without completion"
    context_score: Optional[float] = None


class ProposalBatchRequest(BaseModel):
    """Request body for accepting or rejecting proposals."""

    proposal_ids: list[UUID] = Field(..., min_length=1)


class ProposalBatchError(BaseModel):
    """Failure for one proposal in a batch."""

    proposal_id: UUID
    error: str


class ProposalBatchResult(BaseModel):
    """Outcome of a batch accept/reject."""

    success: bool
    message: str
    processed_ids: list[UUID] = Field(default_factory=list)
    errors: list[ProposalBatchError] = Field(default_factory=list)


class RescheduleRunRequest(BaseModel):
    """Request body for running the orchestrator; null plan_id = free mode."""

    plan_id: Optional[UUID] = None
    task_id: Optional[UUID] = None


class RescheduleRunResponse(BaseModel):
    """Response from an orchestrator run."""

    success: bool
    message: str
    results: list[RescheduleResult] = Field(default_factory=list)
