"""Reschedule API endpoints: overdue detection, passes and proposal review."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from rescheduler.api.deps import (
    AutoRescheduleSvc,
    CurrentUser,
    Detector,
    ProposalSvc,
    WorkdaySettingsSvc,
)
from rescheduler.models.reschedule import (
    OverdueTask,
    PendingRescheduleView,
    ProposalBatchRequest,
    ProposalBatchResult,
    RescheduleRunRequest,
    RescheduleRunResponse,
)

router = APIRouter()


@router.get("/overdue", response_model=list[OverdueTask])
async def list_overdue_tasks(
    user: CurrentUser,
    detector: Detector,
    plan_id: Optional[UUID] = Query(None, description="Plan scope; omit for free-mode tasks"),
):
    """Materialize missing recurring instances and list overdue entries."""
    result = await detector.detect_with_materialization(plan_id, user.id)
    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Overdue detection failed",
        )
    return result.tasks


@router.post("/run", response_model=RescheduleRunResponse)
async def run_reschedule(
    request: RescheduleRunRequest,
    user: CurrentUser,
    service: AutoRescheduleSvc,
    settings_service: WorkdaySettingsSvc,
):
    """Create pending proposals for overdue tasks in the scope."""
    if not await settings_service.is_auto_reschedule_enabled(user.id):
        return RescheduleRunResponse(
            success=False,
            message="Auto-reschedule is disabled",
        )
    results = await service.reschedule_overdue_tasks(request.plan_id, user.id, request.task_id)
    return RescheduleRunResponse(
        success=True,
        message=f"Created {len(results)} reschedule proposal(s)",
        results=results,
    )


@router.get("/pending", response_model=list[PendingRescheduleView])
async def list_pending_reschedules(
    user: CurrentUser,
    service: ProposalSvc,
    plan_id: Optional[UUID] = Query(None, description="Plan scope; omit for free-mode tasks"),
):
    """Pending proposals awaiting review, oldest first."""
    return await service.get_pending_reschedules(user.id, plan_id)


@router.post("/accept", response_model=ProposalBatchResult)
async def accept_reschedules(
    request: ProposalBatchRequest,
    user: CurrentUser,
    service: ProposalSvc,
):
    """Apply the given proposals."""
    return await service.apply_many(request.proposal_ids, user.id)


@router.post("/reject", response_model=ProposalBatchResult)
async def reject_reschedules(
    request: ProposalBatchRequest,
    user: CurrentUser,
    service: ProposalSvc,
):
    """Reject the given proposals; their tasks become overdue again."""
    return await service.reject_many(request.proposal_ids, user.id)
