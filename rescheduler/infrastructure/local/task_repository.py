"""
SQLite implementation of task repository.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, select

from rescheduler.infrastructure.local.database import TaskORM, get_session_factory
from rescheduler.infrastructure.local.query_utils import plan_scope, to_str, to_uuid
from rescheduler.interfaces.task_repository import ITaskRepository
from rescheduler.models.task import Task, TaskCreate
from rescheduler.utils.datetime_utils import now_utc


class SqliteTaskRepository(ITaskRepository):
    """SQLite implementation of task repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: TaskORM) -> Task:
        return Task(
            id=UUID(orm.id),
            user_id=orm.user_id,
            plan_id=to_uuid(orm.plan_id),
            name=orm.name,
            priority=orm.priority or 3,
            estimated_duration_minutes=orm.estimated_duration_minutes,
            complexity_score=orm.complexity_score,
            is_recurring=bool(orm.is_recurring),
            is_indefinite=bool(orm.is_indefinite),
            recurrence_days=orm.recurrence_days or [],
            default_start_time=orm.default_start_time,
            default_end_time=orm.default_end_time,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    async def create(self, user_id: str, task: TaskCreate) -> Task:
        async with self._session_factory() as session:
            now = now_utc()
            orm = TaskORM(
                id=str(uuid4()),
                user_id=user_id,
                plan_id=to_str(task.plan_id),
                name=task.name,
                priority=task.priority,
                estimated_duration_minutes=task.estimated_duration_minutes,
                complexity_score=task.complexity_score,
                is_recurring=task.is_recurring,
                is_indefinite=task.is_indefinite,
                recurrence_days=list(task.recurrence_days),
                default_start_time=task.default_start_time,
                default_end_time=task.default_end_time,
                created_at=now,
                updated_at=now,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, user_id: str, task_id: UUID) -> Optional[Task]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskORM).where(
                    and_(TaskORM.id == str(task_id), TaskORM.user_id == user_id)
                )
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def get_many(self, user_id: str, task_ids: list[UUID]) -> list[Task]:
        if not task_ids:
            return []
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskORM).where(
                    and_(
                        TaskORM.user_id == user_id,
                        TaskORM.id.in_([str(task_id) for task_id in set(task_ids)]),
                    )
                )
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def list_indefinite_recurring(self, user_id: str, plan_id: Optional[UUID]) -> list[Task]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskORM)
                .where(
                    and_(
                        TaskORM.user_id == user_id,
                        TaskORM.is_recurring.is_(True),
                        TaskORM.is_indefinite.is_(True),
                        plan_scope(TaskORM.plan_id, plan_id),
                    )
                )
                .order_by(TaskORM.created_at)
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]
