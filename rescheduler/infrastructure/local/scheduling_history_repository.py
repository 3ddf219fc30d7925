"""
SQLite implementation of scheduling history repository.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, select

from rescheduler.infrastructure.local.database import SchedulingHistoryORM, get_session_factory
from rescheduler.infrastructure.local.query_utils import plan_scope, to_str, to_uuid
from rescheduler.interfaces.scheduling_history_repository import ISchedulingHistoryRepository
from rescheduler.models.history import SchedulingHistoryEntry
from rescheduler.utils.datetime_utils import now_utc


class SqliteSchedulingHistoryRepository(ISchedulingHistoryRepository):
    """SQLite implementation of scheduling history repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: SchedulingHistoryORM) -> SchedulingHistoryEntry:
        return SchedulingHistoryEntry(
            id=UUID(orm.id),
            plan_id=to_uuid(orm.plan_id),
            user_id=orm.user_id,
            adjustment_date=orm.adjustment_date,
            old_end_date=orm.old_end_date,
            new_end_date=orm.new_end_date,
            days_extended=orm.days_extended or 0,
            tasks_rescheduled=orm.tasks_rescheduled or 0,
            task_adjustments=list(orm.task_adjustments or []),
            reason=dict(orm.reason or {}),
            created_at=orm.created_at,
        )

    async def append_adjustment(
        self,
        user_id: str,
        plan_id: Optional[UUID],
        adjustment_date: date,
        adjustment: dict[str, Any],
        plan_end_date: Optional[date] = None,
    ) -> SchedulingHistoryEntry:
        async with self._session_factory() as session:
            result = await session.execute(
                select(SchedulingHistoryORM)
                .where(
                    and_(
                        SchedulingHistoryORM.user_id == user_id,
                        SchedulingHistoryORM.adjustment_date == adjustment_date,
                        plan_scope(SchedulingHistoryORM.plan_id, plan_id),
                    )
                )
                .order_by(SchedulingHistoryORM.created_at)
                .limit(1)
            )
            orm = result.scalars().first()
            if orm:
                # JSON columns need a new list to register the change
                orm.task_adjustments = [*(orm.task_adjustments or []), adjustment]
                orm.tasks_rescheduled = (orm.tasks_rescheduled or 0) + 1
            else:
                orm = SchedulingHistoryORM(
                    id=str(uuid4()),
                    user_id=user_id,
                    plan_id=to_str(plan_id),
                    adjustment_date=adjustment_date,
                    old_end_date=plan_end_date,
                    new_end_date=plan_end_date,
                    days_extended=0,
                    tasks_rescheduled=1,
                    task_adjustments=[adjustment],
                    reason={"type": "auto_reschedule", "description": "Applied reschedule proposals"},
                    created_at=now_utc(),
                )
                session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def record_plan_extension(
        self,
        user_id: str,
        plan_id: UUID,
        adjustment_date: date,
        old_end_date: date,
        new_end_date: date,
        reason: dict[str, Any],
    ) -> SchedulingHistoryEntry:
        async with self._session_factory() as session:
            orm = SchedulingHistoryORM(
                id=str(uuid4()),
                user_id=user_id,
                plan_id=str(plan_id),
                adjustment_date=adjustment_date,
                old_end_date=old_end_date,
                new_end_date=new_end_date,
                days_extended=(new_end_date - old_end_date).days,
                tasks_rescheduled=0,
                task_adjustments=[],
                reason=reason,
                created_at=now_utc(),
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def list(
        self, user_id: str, plan_id: Optional[UUID], limit: int = 30
    ) -> list[SchedulingHistoryEntry]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(SchedulingHistoryORM)
                .where(
                    and_(
                        SchedulingHistoryORM.user_id == user_id,
                        plan_scope(SchedulingHistoryORM.plan_id, plan_id),
                    )
                )
                .order_by(SchedulingHistoryORM.adjustment_date.desc(), SchedulingHistoryORM.created_at.desc())
                .limit(limit)
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]
