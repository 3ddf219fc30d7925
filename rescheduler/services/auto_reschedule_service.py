"""
Auto-reschedule service.

Runs one rescheduling pass for a plan scope: detect overdue entries, find
each a new slot and record it as a pending proposal. Nothing is moved until
the user accepts.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional
from uuid import UUID

from rescheduler.core.config import get_settings
from rescheduler.core.exceptions import PlanNotFoundError
from rescheduler.core.logger import setup_logger
from rescheduler.interfaces.clock import IClock
from rescheduler.interfaces.plan_repository import IPlanRepository
from rescheduler.interfaces.reschedule_proposal_repository import IRescheduleProposalRepository
from rescheduler.interfaces.schedule_repository import IScheduleRepository
from rescheduler.interfaces.scheduling_history_repository import ISchedulingHistoryRepository
from rescheduler.models.enums import ScheduleStatus
from rescheduler.models.reschedule import OverdueTask, RescheduleResult, RescheduleSlot
from rescheduler.models.workday import WorkdaySettings
from rescheduler.services.overdue_detector import OverdueDetector
from rescheduler.services.reschedule_proposal_service import RescheduleProposalService
from rescheduler.services.slot_scorer import SlotScorer
from rescheduler.services.workday_settings_service import WorkdaySettingsService
from rescheduler.utils.time_utils import minutes_to_time

logger = setup_logger(__name__)


class AutoRescheduleService:
    """Turns overdue schedule entries into pending reschedule proposals."""

    def __init__(
        self,
        detector: OverdueDetector,
        scorer: SlotScorer,
        proposal_service: RescheduleProposalService,
        schedule_repo: IScheduleRepository,
        proposal_repo: IRescheduleProposalRepository,
        plan_repo: IPlanRepository,
        history_repo: ISchedulingHistoryRepository,
        settings_service: WorkdaySettingsService,
        clock: IClock,
        free_mode_window_days: Optional[int] = None,
    ):
        self._detector = detector
        self._scorer = scorer
        self._proposal_service = proposal_service
        self._schedule_repo = schedule_repo
        self._proposal_repo = proposal_repo
        self._plan_repo = plan_repo
        self._history_repo = history_repo
        self._settings_service = settings_service
        self._clock = clock
        self._free_mode_window_days = (
            free_mode_window_days
            if free_mode_window_days is not None
            else get_settings().FREE_MODE_WINDOW_DAYS
        )

    async def reschedule_overdue_tasks(
        self,
        plan_id: Optional[UUID],
        user_id: str,
        task_id: Optional[UUID] = None,
    ) -> list[RescheduleResult]:
        """
        Propose new slots for every overdue entry in the scope.

        Args:
            plan_id: Plan scope, or None for free-mode tasks
            user_id: Owner of the schedule
            task_id: Restrict the pass to one task

        Returns:
            One result per proposal created in this pass

        Raises:
            PlanNotFoundError: If plan_id does not belong to the user
        """
        try:
            enabled = await self._settings_service.is_auto_reschedule_enabled(user_id)
        except Exception as e:
            logger.error(f"Auto-reschedule toggle check failed for user {user_id}: {e}")
            return []
        if not enabled:
            logger.info(f"Auto-reschedule disabled for user {user_id}, skipping")
            return []

        detection = await self._detector.detect_with_materialization(plan_id, user_id)
        if not detection.ok:
            logger.error(f"Skipping reschedule pass for user {user_id}: {detection.error}")
            return []

        overdue = detection.tasks
        if task_id is not None:
            overdue = [task for task in overdue if task.task_id == task_id]
        if not overdue:
            return []

        settings = await self._settings_service.get_workday_settings(user_id)
        today = self._clock.today(settings.timezone)
        plan_end_date = await self._resolve_plan_end_date(plan_id, user_id, today)

        results: list[RescheduleResult] = []
        for task in overdue:
            try:
                result, plan_end_date = await self._reschedule_one(
                    task, plan_id, user_id, plan_end_date, settings, today
                )
                if result:
                    results.append(result)
            except Exception as e:
                logger.error(f"Error rescheduling task {task.task_id} (schedule {task.schedule_id}): {e}")
                try:
                    await self._schedule_repo.set_status(user_id, task.schedule_id, ScheduleStatus.OVERDUE)
                except Exception as reset_error:
                    logger.error(f"Failed to reset schedule {task.schedule_id} to overdue: {reset_error}")

        logger.info(
            f"Reschedule pass for user {user_id} (plan={plan_id or 'free'}): "
            f"{len(results)} proposal(s) from {len(overdue)} overdue task(s)"
        )
        return results

    async def _resolve_plan_end_date(
        self, plan_id: Optional[UUID], user_id: str, today: date
    ) -> date:
        if plan_id is None:
            return today + timedelta(days=self._free_mode_window_days)
        plan = await self._plan_repo.get(user_id, plan_id)
        if not plan:
            raise PlanNotFoundError(plan_id)
        return plan.end_date

    async def _reschedule_one(
        self,
        task: OverdueTask,
        plan_id: Optional[UUID],
        user_id: str,
        plan_end_date: date,
        settings: WorkdaySettings,
        today: date,
    ) -> tuple[Optional[RescheduleResult], date]:
        if task.status == ScheduleStatus.PENDING_RESCHEDULE:
            return None, plan_end_date

        existing = await self._proposal_repo.get_pending_for_schedule(task.schedule_id)
        if existing:
            await self._schedule_repo.set_status(
                user_id, task.schedule_id, ScheduleStatus.PENDING_RESCHEDULE, existing.id
            )
            return None, plan_end_date

        if task.status == ScheduleStatus.SCHEDULED:
            await self._schedule_repo.set_status(user_id, task.schedule_id, ScheduleStatus.OVERDUE)
        if task.status != ScheduleStatus.RESCHEDULING:
            await self._schedule_repo.set_status(user_id, task.schedule_id, ScheduleStatus.RESCHEDULING)

        slot = await self._scorer.find_intelligent_reschedule_slot(
            task, plan_id, user_id, plan_end_date, settings.reschedule_window_days, settings
        )

        if slot is None and plan_id is None:
            slot = self._tomorrow_fallback_slot(task, settings, today)

        if slot is None and plan_id is not None:
            plan_end_date = await self._extend_plan(plan_id, user_id, plan_end_date, today, task)
            slot = await self._scorer.find_intelligent_reschedule_slot(
                task, plan_id, user_id, plan_end_date, 1, settings
            )

        if slot is None:
            logger.warning(f"Could not find slot for task {task.task_name} ({task.task_id})")
            return None, plan_end_date

        proposal = await self._proposal_service.create_reschedule_proposal(task, slot, user_id, plan_id)
        return (
            RescheduleResult(
                success=True,
                task_id=task.task_id,
                task_name=task.task_name,
                proposal_id=proposal.id,
                old_date=task.scheduled_date,
                old_start_time=task.start_time,
                old_end_time=task.end_time,
                new_date=slot.date,
                new_start_time=slot.start_time,
                new_end_time=slot.end_time,
                context_score=slot.context_score,
            ),
            plan_end_date,
        )

    def _tomorrow_fallback_slot(
        self, task: OverdueTask, settings: WorkdaySettings, today: date
    ) -> RescheduleSlot:
        policy = self._scorer.policy
        start = settings.workday_start_minutes
        end = start + (task.duration_minutes or policy.default_task_duration_minutes)
        return RescheduleSlot(
            date=today + timedelta(days=1),
            start_time=minutes_to_time(start),
            end_time=minutes_to_time(end),
            day_index=1,
            score=policy.fallback_score,
        )

    async def _extend_plan(
        self,
        plan_id: UUID,
        user_id: str,
        plan_end_date: date,
        today: date,
        task: OverdueTask,
    ) -> date:
        new_end_date = plan_end_date + timedelta(days=1)
        await self._plan_repo.update_end_date(user_id, plan_id, new_end_date)
        logger.info(f"Extended plan {plan_id} end date {plan_end_date} -> {new_end_date}")
        try:
            await self._history_repo.record_plan_extension(
                user_id,
                plan_id,
                today,
                plan_end_date,
                new_end_date,
                {
                    "type": "plan_extension",
                    "description": "No free slot for overdue task",
                    "task_id": str(task.task_id),
                },
            )
        except Exception:
            logger.exception(f"Failed to record plan extension for plan {plan_id}")
        return new_end_date

    async def reschedule_all_for_user(self, user_id: str) -> list[RescheduleResult]:
        """Run a pass for every active plan of the user, then for free-mode tasks."""
        results: list[RescheduleResult] = []
        plans = await self._plan_repo.list_active(user_id)
        scopes: list[Optional[UUID]] = [plan.id for plan in plans]
        scopes.append(None)
        for plan_id in scopes:
            try:
                results.extend(await self.reschedule_overdue_tasks(plan_id, user_id))
            except PlanNotFoundError as e:
                logger.warning(f"Skipping plan {plan_id} for user {user_id}: {e.message}")
        return results
