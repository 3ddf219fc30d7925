"""
User settings repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from rescheduler.models.workday import UserSettingsRecord


class IUserSettingsRepository(ABC):
    @abstractmethod
    async def get(self, user_id: str) -> Optional[UserSettingsRecord]:
        pass

    @abstractmethod
    async def upsert(
        self,
        user_id: str,
        preferences: dict[str, Any],
        timezone: Optional[str] = None,
    ) -> UserSettingsRecord:
        pass

    @abstractmethod
    async def is_auto_reschedule_enabled(self, user_id: str) -> bool:
        """Feature toggle; enabled unless explicitly switched off."""
        pass

    @abstractmethod
    async def list_user_ids(self) -> list[str]:
        pass
