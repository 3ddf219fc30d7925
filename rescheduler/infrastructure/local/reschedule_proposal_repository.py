"""
SQLite implementation of reschedule proposal repository.

create_pending, accept and reject each touch the proposal and its schedule
entry inside one session and commit once.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError

from rescheduler.core.exceptions import NotFoundError, ProposalNotPendingError
from rescheduler.core.logger import setup_logger
from rescheduler.infrastructure.local.database import (
    PendingRescheduleORM,
    TaskORM,
    TaskScheduleORM,
    get_session_factory,
)
from rescheduler.infrastructure.local.query_utils import plan_scope, to_str, to_uuid
from rescheduler.interfaces.reschedule_proposal_repository import IRescheduleProposalRepository
from rescheduler.models.enums import ProposalStatus, RescheduleReason, ScheduleStatus
from rescheduler.models.reschedule import (
    OverdueTask,
    PendingRescheduleView,
    RescheduleProposal,
    RescheduleSlot,
)
from rescheduler.models.schedule_entry import OccupiedSlot
from rescheduler.utils.time_utils import calculate_duration

logger = setup_logger(__name__)


def _proposal_fields(orm: PendingRescheduleORM) -> dict:
    return dict(
        id=UUID(orm.id),
        user_id=orm.user_id,
        plan_id=to_uuid(orm.plan_id),
        task_schedule_id=UUID(orm.task_schedule_id),
        task_id=UUID(orm.task_id),
        proposed_date=orm.proposed_date,
        proposed_start_time=orm.proposed_start_time,
        proposed_end_time=orm.proposed_end_time,
        proposed_day_index=orm.proposed_day_index or 0,
        original_date=orm.original_date,
        original_start_time=orm.original_start_time,
        original_end_time=orm.original_end_time,
        original_day_index=orm.original_day_index or 0,
        context_score=orm.context_score or 0.0,
        priority_penalty=orm.priority_penalty or 0.0,
        density_penalty=orm.density_penalty or 0.0,
        reason=RescheduleReason(orm.reason),
        status=ProposalStatus(orm.status),
        created_at=orm.created_at,
        reviewed_at=orm.reviewed_at,
        reviewed_by_user_id=orm.reviewed_by_user_id,
    )


class SqliteRescheduleProposalRepository(IRescheduleProposalRepository):
    """SQLite implementation of reschedule proposal repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: PendingRescheduleORM) -> RescheduleProposal:
        return RescheduleProposal(**_proposal_fields(orm))

    @staticmethod
    def _pending_for_schedule_query(schedule_id: UUID):
        return select(PendingRescheduleORM).where(
            and_(
                PendingRescheduleORM.task_schedule_id == str(schedule_id),
                PendingRescheduleORM.status == ProposalStatus.PENDING.value,
            )
        )

    async def create_pending(
        self,
        user_id: str,
        plan_id: Optional[UUID],
        task: OverdueTask,
        slot: RescheduleSlot,
        now: datetime,
    ) -> tuple[RescheduleProposal, bool]:
        async with self._session_factory() as session:
            result = await session.execute(self._pending_for_schedule_query(task.schedule_id))
            existing = result.scalars().first()
            if existing:
                return self._orm_to_model(existing), False

            result = await session.execute(
                select(TaskScheduleORM).where(
                    and_(
                        TaskScheduleORM.id == str(task.schedule_id),
                        TaskScheduleORM.user_id == user_id,
                    )
                )
            )
            schedule = result.scalar_one_or_none()
            if not schedule:
                raise NotFoundError(f"Schedule entry {task.schedule_id} not found")

            orm = PendingRescheduleORM(
                id=str(uuid4()),
                user_id=user_id,
                plan_id=to_str(plan_id),
                task_schedule_id=str(task.schedule_id),
                task_id=str(task.task_id),
                proposed_date=slot.date,
                proposed_start_time=slot.start_time,
                proposed_end_time=slot.end_time,
                proposed_day_index=slot.day_index,
                original_date=task.scheduled_date,
                original_start_time=task.start_time,
                original_end_time=task.end_time,
                original_day_index=schedule.day_index or 0,
                context_score=slot.context_score,
                priority_penalty=slot.priority_penalty,
                density_penalty=slot.density_penalty,
                reason=RescheduleReason.AUTO_RESCHEDULE_OVERDUE.value,
                status=ProposalStatus.PENDING.value,
                created_at=now,
            )
            session.add(orm)
            schedule.status = ScheduleStatus.PENDING_RESCHEDULE.value
            schedule.pending_reschedule_id = orm.id
            schedule.updated_at = now
            try:
                await session.commit()
            except IntegrityError:
                # Another pass created the pending proposal first
                await session.rollback()
                result = await session.execute(
                    self._pending_for_schedule_query(task.schedule_id)
                )
                existing = result.scalars().first()
                if not existing:
                    raise
                logger.info(f"Pending proposal already exists for schedule {task.schedule_id}")
                return self._orm_to_model(existing), False

            await session.refresh(orm)
            return self._orm_to_model(orm), True

    async def get(self, user_id: str, proposal_id: UUID) -> Optional[RescheduleProposal]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(PendingRescheduleORM).where(
                    and_(
                        PendingRescheduleORM.id == str(proposal_id),
                        PendingRescheduleORM.user_id == user_id,
                    )
                )
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def get_pending_for_schedule(self, schedule_id: UUID) -> Optional[RescheduleProposal]:
        async with self._session_factory() as session:
            result = await session.execute(self._pending_for_schedule_query(schedule_id))
            orm = result.scalars().first()
            return self._orm_to_model(orm) if orm else None

    async def list_pending(
        self, user_id: str, plan_id: Optional[UUID]
    ) -> list[PendingRescheduleView]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(
                    PendingRescheduleORM,
                    TaskORM.name,
                    TaskORM.priority,
                    TaskORM.estimated_duration_minutes,
                )
                .outerjoin(TaskORM, TaskORM.id == PendingRescheduleORM.task_id)
                .where(
                    and_(
                        PendingRescheduleORM.user_id == user_id,
                        PendingRescheduleORM.status == ProposalStatus.PENDING.value,
                        plan_scope(PendingRescheduleORM.plan_id, plan_id),
                    )
                )
                .order_by(PendingRescheduleORM.created_at)
            )
            return [
                PendingRescheduleView(
                    **_proposal_fields(orm),
                    task_name=name,
                    task_priority=priority,
                    task_duration_minutes=duration,
                )
                for orm, name, priority, duration in result.all()
            ]

    async def list_pending_placements(
        self,
        user_id: str,
        plan_id: Optional[UUID],
        start_date: date,
        end_date: date,
    ) -> list[OccupiedSlot]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(PendingRescheduleORM, TaskORM.priority)
                .outerjoin(TaskORM, TaskORM.id == PendingRescheduleORM.task_id)
                .where(
                    and_(
                        PendingRescheduleORM.user_id == user_id,
                        PendingRescheduleORM.status == ProposalStatus.PENDING.value,
                        PendingRescheduleORM.proposed_date >= start_date,
                        PendingRescheduleORM.proposed_date <= end_date,
                        plan_scope(PendingRescheduleORM.plan_id, plan_id),
                    )
                )
            )
            return [
                OccupiedSlot(
                    task_id=UUID(orm.task_id),
                    date=orm.proposed_date,
                    start_time=orm.proposed_start_time,
                    end_time=orm.proposed_end_time,
                    priority=priority,
                    duration_minutes=calculate_duration(
                        orm.proposed_start_time, orm.proposed_end_time
                    ),
                )
                for orm, priority in result.all()
            ]

    async def _load_pending(self, session, user_id: str, proposal_id: UUID):
        result = await session.execute(
            select(PendingRescheduleORM).where(
                and_(
                    PendingRescheduleORM.id == str(proposal_id),
                    PendingRescheduleORM.user_id == user_id,
                    PendingRescheduleORM.status == ProposalStatus.PENDING.value,
                )
            )
        )
        proposal = result.scalar_one_or_none()
        if not proposal:
            raise ProposalNotPendingError(str(proposal_id))

        result = await session.execute(
            select(TaskScheduleORM).where(
                and_(
                    TaskScheduleORM.id == proposal.task_schedule_id,
                    TaskScheduleORM.user_id == user_id,
                )
            )
        )
        return proposal, result.scalar_one_or_none()

    async def accept(self, user_id: str, proposal_id: UUID, now: datetime) -> RescheduleProposal:
        async with self._session_factory() as session:
            proposal, schedule = await self._load_pending(session, user_id, proposal_id)
            if schedule is None:
                raise NotFoundError(f"Schedule entry {proposal.task_schedule_id} not found")

            schedule.date = proposal.proposed_date
            schedule.start_time = proposal.proposed_start_time
            schedule.end_time = proposal.proposed_end_time
            schedule.day_index = proposal.proposed_day_index
            schedule.reschedule_count = (schedule.reschedule_count or 0) + 1
            schedule.last_rescheduled_at = now
            schedule.rescheduled_from = proposal.original_date
            schedule.reschedule_reason = {
                "old_date": proposal.original_date.isoformat(),
                "old_start_time": proposal.original_start_time,
                "old_end_time": proposal.original_end_time,
                "reason": proposal.reason,
                "context_score": proposal.context_score,
                "priority_penalty": proposal.priority_penalty,
                "density_penalty": proposal.density_penalty,
                "rescheduled_at": now.isoformat(),
                "from_proposal": True,
            }
            schedule.status = ScheduleStatus.RESCHEDULED.value
            schedule.pending_reschedule_id = None
            schedule.updated_at = now

            proposal.status = ProposalStatus.ACCEPTED.value
            proposal.reviewed_at = now
            proposal.reviewed_by_user_id = user_id

            await session.commit()
            await session.refresh(proposal)
            return self._orm_to_model(proposal)

    async def reject(self, user_id: str, proposal_id: UUID, now: datetime) -> RescheduleProposal:
        async with self._session_factory() as session:
            proposal, schedule = await self._load_pending(session, user_id, proposal_id)

            proposal.status = ProposalStatus.REJECTED.value
            proposal.reviewed_at = now
            proposal.reviewed_by_user_id = user_id
            if schedule is not None:
                schedule.status = ScheduleStatus.OVERDUE.value
                schedule.pending_reschedule_id = None
                schedule.updated_at = now

            await session.commit()
            await session.refresh(proposal)
            return self._orm_to_model(proposal)
