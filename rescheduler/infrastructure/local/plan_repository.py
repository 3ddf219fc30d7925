"""
SQLite implementation of plan repository.
"""

from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, select

from rescheduler.infrastructure.local.database import PlanORM, get_session_factory
from rescheduler.interfaces.plan_repository import IPlanRepository
from rescheduler.models.enums import PlanStatus
from rescheduler.models.plan import Plan, PlanCreate
from rescheduler.utils.datetime_utils import now_utc


class SqlitePlanRepository(IPlanRepository):
    """SQLite implementation of plan repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: PlanORM) -> Plan:
        return Plan(
            id=UUID(orm.id),
            user_id=orm.user_id,
            name=orm.name,
            start_date=orm.start_date,
            end_date=orm.end_date,
            status=PlanStatus(orm.status),
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    async def create(self, user_id: str, plan: PlanCreate) -> Plan:
        async with self._session_factory() as session:
            now = now_utc()
            orm = PlanORM(
                id=str(uuid4()),
                user_id=user_id,
                name=plan.name,
                start_date=plan.start_date,
                end_date=plan.end_date,
                status=plan.status.value,
                created_at=now,
                updated_at=now,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, user_id: str, plan_id: UUID) -> Optional[Plan]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(PlanORM).where(
                    and_(PlanORM.id == str(plan_id), PlanORM.user_id == user_id)
                )
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def list_active(self, user_id: str) -> list[Plan]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(PlanORM)
                .where(
                    and_(
                        PlanORM.user_id == user_id,
                        PlanORM.status == PlanStatus.ACTIVE.value,
                    )
                )
                .order_by(PlanORM.created_at)
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def update_end_date(self, user_id: str, plan_id: UUID, end_date: date) -> Optional[Plan]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(PlanORM).where(
                    and_(PlanORM.id == str(plan_id), PlanORM.user_id == user_id)
                )
            )
            orm = result.scalar_one_or_none()
            if not orm:
                return None
            orm.end_date = end_date
            orm.updated_at = now_utc()
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)
