"""
SQLite implementation of user settings repository.
"""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import select, union

from rescheduler.infrastructure.local.database import (
    TaskScheduleORM,
    UserSettingsORM,
    get_session_factory,
)
from rescheduler.interfaces.user_settings_repository import IUserSettingsRepository
from rescheduler.models.workday import UserSettingsRecord
from rescheduler.utils.datetime_utils import now_utc


class SqliteUserSettingsRepository(IUserSettingsRepository):
    """SQLite implementation of user settings repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: UserSettingsORM) -> UserSettingsRecord:
        return UserSettingsRecord(
            user_id=orm.user_id,
            preferences=dict(orm.preferences or {}),
            timezone=orm.timezone,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    async def get(self, user_id: str) -> Optional[UserSettingsRecord]:
        async with self._session_factory() as session:
            orm = await session.get(UserSettingsORM, user_id)
            return self._orm_to_model(orm) if orm else None

    async def upsert(
        self,
        user_id: str,
        preferences: dict[str, Any],
        timezone: Optional[str] = None,
    ) -> UserSettingsRecord:
        async with self._session_factory() as session:
            orm = await session.get(UserSettingsORM, user_id)
            now = now_utc()
            if orm:
                orm.preferences = dict(preferences)
                if timezone is not None:
                    orm.timezone = timezone
                orm.updated_at = now
            else:
                orm = UserSettingsORM(
                    user_id=user_id,
                    preferences=dict(preferences),
                    timezone=timezone,
                    created_at=now,
                    updated_at=now,
                )
                session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def is_auto_reschedule_enabled(self, user_id: str) -> bool:
        record = await self.get(user_id)
        if not record:
            return True
        auto = record.preferences.get("auto_reschedule") or {}
        return auto.get("enabled", True) is not False

    async def list_user_ids(self) -> list[str]:
        async with self._session_factory() as session:
            # Users with schedule rows count even without a settings row
            result = await session.execute(
                union(select(UserSettingsORM.user_id), select(TaskScheduleORM.user_id))
            )
            return sorted(row[0] for row in result.all())
