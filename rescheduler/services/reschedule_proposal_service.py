"""
Reschedule proposal service.

Owns the proposal lifecycle: create (idempotent), accept, reject and the
pending listing shown to the user. Proposals are never applied without an
explicit accept.
"""

from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from rescheduler.core.exceptions import ReschedulerError
from rescheduler.core.logger import setup_logger
from rescheduler.interfaces.clock import IClock
from rescheduler.interfaces.completion_repository import ICompletionRepository
from rescheduler.interfaces.plan_repository import IPlanRepository
from rescheduler.interfaces.reschedule_proposal_repository import IRescheduleProposalRepository
from rescheduler.interfaces.scheduling_history_repository import ISchedulingHistoryRepository
from rescheduler.models.history import TaskAdjustment
from rescheduler.models.reschedule import (
    OverdueTask,
    PendingRescheduleView,
    ProposalBatchError,
    ProposalBatchResult,
    RescheduleProposal,
    RescheduleSlot,
)
from rescheduler.services.workday_settings_service import WorkdaySettingsService

logger = setup_logger(__name__)


class RescheduleProposalService:
    """Creates, applies and rejects reschedule proposals."""

    def __init__(
        self,
        proposal_repo: IRescheduleProposalRepository,
        completion_repo: ICompletionRepository,
        history_repo: ISchedulingHistoryRepository,
        plan_repo: IPlanRepository,
        settings_service: WorkdaySettingsService,
        clock: IClock,
    ):
        self._proposal_repo = proposal_repo
        self._completion_repo = completion_repo
        self._history_repo = history_repo
        self._plan_repo = plan_repo
        self._settings_service = settings_service
        self._clock = clock

    async def create_reschedule_proposal(
        self,
        task: OverdueTask,
        slot: RescheduleSlot,
        user_id: str,
        plan_id: Optional[UUID],
    ) -> RescheduleProposal:
        """Create a pending proposal, or return the one already pending for the entry."""
        proposal, created = await self._proposal_repo.create_pending(
            user_id, plan_id, task, slot, self._clock.now_utc()
        )
        if created:
            logger.info(
                f"Created reschedule proposal {proposal.id} for task {task.task_name}: "
                f"{task.scheduled_date} {task.start_time} -> {slot.date} {slot.start_time} "
                f"(score {slot.score:.2f})"
            )
        else:
            logger.info(f"Reusing pending proposal {proposal.id} for schedule {task.schedule_id}")
        return proposal

    async def apply_reschedule_proposal(
        self, proposal_id: UUID, user_id: str
    ) -> RescheduleProposal:
        """
        Move the schedule entry to the proposed placement.

        Raises:
            ProposalNotPendingError: If the proposal is missing or already processed
        """
        proposal = await self._proposal_repo.accept(user_id, proposal_id, self._clock.now_utc())
        logger.info(
            f"Applied reschedule proposal {proposal.id}: task {proposal.task_id} moved to "
            f"{proposal.proposed_date} {proposal.proposed_start_time}"
        )
        try:
            await self._record_history(proposal, user_id)
        except Exception:
            # The move is committed; an audit failure must not undo it
            logger.exception(f"Failed to record scheduling history for proposal {proposal.id}")
        return proposal

    async def _record_history(self, proposal: RescheduleProposal, user_id: str) -> None:
        settings = await self._settings_service.get_workday_settings(user_id)
        plan_end_date: Optional[date] = None
        if proposal.plan_id:
            plan = await self._plan_repo.get(user_id, proposal.plan_id)
            plan_end_date = plan.end_date if plan else None

        adjustment = TaskAdjustment(
            task_id=proposal.task_id,
            old_date=proposal.original_date,
            old_start_time=proposal.original_start_time,
            old_end_time=proposal.original_end_time,
            new_date=proposal.proposed_date,
            new_start_time=proposal.proposed_start_time,
            new_end_time=proposal.proposed_end_time,
            context_score=proposal.context_score,
        )
        await self._history_repo.append_adjustment(
            user_id,
            proposal.plan_id,
            self._clock.today(settings.timezone),
            adjustment.model_dump(mode="json"),
            plan_end_date=plan_end_date,
        )

    async def reject_reschedule_proposal(
        self, proposal_id: UUID, user_id: str
    ) -> RescheduleProposal:
        """
        Reject a proposal; its schedule entry goes back to overdue.

        Raises:
            ProposalNotPendingError: If the proposal is missing or already processed
        """
        proposal = await self._proposal_repo.reject(user_id, proposal_id, self._clock.now_utc())
        logger.info(f"Rejected reschedule proposal {proposal.id} for task {proposal.task_id}")
        return proposal

    async def get_pending_reschedules(
        self, user_id: str, plan_id: Optional[UUID]
    ) -> list[PendingRescheduleView]:
        """Pending proposals in scope, hiding ones whose original instance was completed."""
        proposals = await self._proposal_repo.list_pending(user_id, plan_id)
        visible: list[PendingRescheduleView] = []
        for proposal in proposals:
            try:
                completed = await self._completion_repo.exists(
                    user_id, proposal.task_id, proposal.plan_id, [proposal.original_date]
                )
            except Exception as e:
                logger.warning(f"Completion check failed for proposal {proposal.id}, keeping it: {e}")
                completed = False
            if not completed:
                visible.append(proposal)
        return visible

    async def apply_many(self, proposal_ids: list[UUID], user_id: str) -> ProposalBatchResult:
        processed: list[UUID] = []
        errors: list[ProposalBatchError] = []
        for proposal_id in proposal_ids:
            try:
                await self.apply_reschedule_proposal(proposal_id, user_id)
                processed.append(proposal_id)
            except ReschedulerError as e:
                errors.append(ProposalBatchError(proposal_id=proposal_id, error=e.message))
        return ProposalBatchResult(
            success=bool(processed) and not errors,
            message=f"Applied {len(processed)} of {len(proposal_ids)} proposal(s)",
            processed_ids=processed,
            errors=errors,
        )

    async def reject_many(self, proposal_ids: list[UUID], user_id: str) -> ProposalBatchResult:
        processed: list[UUID] = []
        errors: list[ProposalBatchError] = []
        for proposal_id in proposal_ids:
            try:
                await self.reject_reschedule_proposal(proposal_id, user_id)
                processed.append(proposal_id)
            except ReschedulerError as e:
                errors.append(ProposalBatchError(proposal_id=proposal_id, error=e.message))
        return ProposalBatchResult(
            success=bool(processed) and not errors,
            message=f"Rejected {len(processed)} of {len(proposal_ids)} proposal(s)",
            processed_ids=processed,
            errors=errors,
        )
