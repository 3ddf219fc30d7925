"""
SQLite implementation of schedule entry repository.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Sequence
from uuid import UUID, uuid4

from sqlalchemy import and_, or_, select

from rescheduler.infrastructure.local.database import TaskORM, TaskScheduleORM, get_session_factory
from rescheduler.infrastructure.local.query_utils import plan_scope, to_str, to_uuid
from rescheduler.interfaces.schedule_repository import IScheduleRepository
from rescheduler.models.enums import ScheduleStatus
from rescheduler.models.schedule_entry import OccupiedSlot, ScheduleEntry, ScheduleEntryCreate
from rescheduler.utils.datetime_utils import now_utc
from rescheduler.utils.time_utils import trim_seconds


def schedule_orm_to_model(orm: TaskScheduleORM) -> ScheduleEntry:
    return ScheduleEntry(
        id=UUID(orm.id),
        user_id=orm.user_id,
        task_id=UUID(orm.task_id),
        plan_id=to_uuid(orm.plan_id),
        date=orm.date,
        start_time=orm.start_time,
        end_time=orm.end_time,
        duration_minutes=orm.duration_minutes,
        day_index=orm.day_index or 0,
        status=ScheduleStatus(orm.status),
        reschedule_count=orm.reschedule_count or 0,
        last_rescheduled_at=orm.last_rescheduled_at,
        rescheduled_from=orm.rescheduled_from,
        reschedule_reason=orm.reschedule_reason,
        pending_reschedule_id=to_uuid(orm.pending_reschedule_id),
        created_at=orm.created_at,
        updated_at=orm.updated_at,
    )


class SqliteScheduleRepository(IScheduleRepository):
    """SQLite implementation of schedule entry repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    async def create(self, user_id: str, entry: ScheduleEntryCreate) -> ScheduleEntry:
        async with self._session_factory() as session:
            now = now_utc()
            orm = TaskScheduleORM(
                id=str(uuid4()),
                user_id=user_id,
                task_id=str(entry.task_id),
                plan_id=to_str(entry.plan_id),
                date=entry.date,
                start_time=entry.start_time,
                end_time=entry.end_time,
                duration_minutes=entry.duration_minutes,
                day_index=entry.day_index,
                status=entry.status.value,
                reschedule_count=0,
                created_at=now,
                updated_at=now,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return schedule_orm_to_model(orm)

    async def get(self, user_id: str, schedule_id: UUID) -> Optional[ScheduleEntry]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskScheduleORM).where(
                    and_(
                        TaskScheduleORM.id == str(schedule_id),
                        TaskScheduleORM.user_id == user_id,
                    )
                )
            )
            orm = result.scalar_one_or_none()
            return schedule_orm_to_model(orm) if orm else None

    async def list_up_to(
        self,
        user_id: str,
        plan_id: Optional[UUID],
        up_to: date,
        statuses: Sequence[ScheduleStatus],
    ) -> list[ScheduleEntry]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskScheduleORM)
                .where(
                    and_(
                        TaskScheduleORM.user_id == user_id,
                        TaskScheduleORM.date <= up_to,
                        plan_scope(TaskScheduleORM.plan_id, plan_id),
                        TaskScheduleORM.status.in_([s.value for s in statuses]),
                    )
                )
                .order_by(TaskScheduleORM.date, TaskScheduleORM.start_time)
            )
            return [schedule_orm_to_model(orm) for orm in result.scalars().all()]

    async def find_instance(
        self,
        user_id: str,
        task_id: UUID,
        plan_id: Optional[UUID],
        on_date: date,
        start_time: str,
        end_time: str,
    ) -> Optional[ScheduleEntry]:
        async with self._session_factory() as session:
            # A moved instance keeps its origin in rescheduled_from and reschedule_reason
            result = await session.execute(
                select(TaskScheduleORM)
                .where(
                    and_(
                        TaskScheduleORM.user_id == user_id,
                        TaskScheduleORM.task_id == str(task_id),
                        plan_scope(TaskScheduleORM.plan_id, plan_id),
                        or_(
                            TaskScheduleORM.date == on_date,
                            TaskScheduleORM.rescheduled_from == on_date,
                        ),
                    )
                )
                .order_by(TaskScheduleORM.created_at)
            )
            wanted = (trim_seconds(start_time), trim_seconds(end_time))
            for orm in result.scalars().all():
                if orm.date == on_date and (
                    trim_seconds(orm.start_time),
                    trim_seconds(orm.end_time),
                ) == wanted:
                    return schedule_orm_to_model(orm)
                reason = orm.reschedule_reason or {}
                if orm.rescheduled_from == on_date and (
                    trim_seconds(reason.get("old_start_time")),
                    trim_seconds(reason.get("old_end_time")),
                ) == wanted:
                    return schedule_orm_to_model(orm)
            return None

    async def list_occupied(
        self,
        user_id: str,
        plan_id: Optional[UUID],
        start_date: date,
        end_date: date,
        exclude_schedule_id: Optional[UUID] = None,
    ) -> list[OccupiedSlot]:
        async with self._session_factory() as session:
            query = (
                select(TaskScheduleORM, TaskORM.priority)
                .join(TaskORM, TaskORM.id == TaskScheduleORM.task_id)
                .where(
                    and_(
                        TaskORM.user_id == user_id,
                        TaskScheduleORM.date >= start_date,
                        TaskScheduleORM.date <= end_date,
                        TaskScheduleORM.start_time.is_not(None),
                        TaskScheduleORM.end_time.is_not(None),
                        plan_scope(TaskScheduleORM.plan_id, plan_id),
                    )
                )
            )
            if exclude_schedule_id:
                query = query.where(TaskScheduleORM.id != str(exclude_schedule_id))
            result = await session.execute(
                query.order_by(TaskScheduleORM.date, TaskScheduleORM.start_time)
            )
            return [
                OccupiedSlot(
                    task_id=UUID(orm.task_id),
                    date=orm.date,
                    start_time=orm.start_time,
                    end_time=orm.end_time,
                    priority=priority,
                    duration_minutes=orm.duration_minutes,
                )
                for orm, priority in result.all()
            ]

    async def set_status(
        self,
        user_id: str,
        schedule_id: UUID,
        status: ScheduleStatus,
        pending_reschedule_id: Optional[UUID] = None,
    ) -> Optional[ScheduleEntry]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskScheduleORM).where(
                    and_(
                        TaskScheduleORM.id == str(schedule_id),
                        TaskScheduleORM.user_id == user_id,
                    )
                )
            )
            orm = result.scalar_one_or_none()
            if not orm:
                return None
            orm.status = status.value
            orm.pending_reschedule_id = to_str(pending_reschedule_id)
            orm.updated_at = now_utc()
            await session.commit()
            await session.refresh(orm)
            return schedule_orm_to_model(orm)
