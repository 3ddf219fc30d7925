"""
SQLite implementation of task completion repository.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Sequence
from uuid import UUID, uuid4

from sqlalchemy import and_, func, select

from rescheduler.infrastructure.local.database import TaskCompletionORM, get_session_factory
from rescheduler.infrastructure.local.query_utils import plan_scope, to_str, to_uuid
from rescheduler.interfaces.completion_repository import ICompletionRepository
from rescheduler.models.schedule_entry import Completion, CompletionCreate
from rescheduler.utils.datetime_utils import now_utc


class SqliteCompletionRepository(ICompletionRepository):
    """SQLite implementation of task completion repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: TaskCompletionORM) -> Completion:
        return Completion(
            id=UUID(orm.id),
            user_id=orm.user_id,
            task_id=UUID(orm.task_id),
            plan_id=to_uuid(orm.plan_id),
            scheduled_date=orm.scheduled_date,
            completed_at=orm.completed_at,
        )

    async def create(self, user_id: str, completion: CompletionCreate) -> Completion:
        async with self._session_factory() as session:
            orm = TaskCompletionORM(
                id=str(uuid4()),
                user_id=user_id,
                task_id=str(completion.task_id),
                plan_id=to_str(completion.plan_id),
                scheduled_date=completion.scheduled_date,
                completed_at=now_utc(),
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def exists(
        self,
        user_id: str,
        task_id: UUID,
        plan_id: Optional[UUID],
        scheduled_dates: Sequence[date],
    ) -> bool:
        if not scheduled_dates:
            return False
        async with self._session_factory() as session:
            result = await session.execute(
                select(func.count())
                .select_from(TaskCompletionORM)
                .where(
                    and_(
                        TaskCompletionORM.user_id == user_id,
                        TaskCompletionORM.task_id == str(task_id),
                        TaskCompletionORM.scheduled_date.in_(list(set(scheduled_dates))),
                        plan_scope(TaskCompletionORM.plan_id, plan_id),
                    )
                )
            )
            return (result.scalar() or 0) > 0
