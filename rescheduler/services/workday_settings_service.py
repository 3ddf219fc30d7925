"""
Workday settings service.

Resolves per-user WorkdaySettings from the free-form preferences blob stored
in user_settings, falling back to defaults key by key.
"""

from __future__ import annotations

from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from rescheduler.core.config import get_settings
from rescheduler.core.exceptions import ValidationError
from rescheduler.core.logger import setup_logger
from rescheduler.interfaces.user_settings_repository import IUserSettingsRepository
from rescheduler.models.workday import (
    WorkdayPreferencesResponse,
    WorkdayPreferencesUpdate,
    WorkdaySettings,
)

logger = setup_logger(__name__)

WORKDAY_KEYS = (
    "workday_start_hour",
    "workday_start_minute",
    "workday_end_hour",
    "lunch_start_hour",
    "lunch_end_hour",
)
AUTO_RESCHEDULE_KEYS = ("buffer_minutes", "priority_spacing", "reschedule_window_days")


def _first_present(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def resolve_workday_settings(
    preferences: Optional[dict[str, Any]],
    timezone: Optional[str] = None,
) -> WorkdaySettings:
    """
    Build WorkdaySettings from a preferences blob.

    Workday keys are read from ``preferences.workday`` then the top level;
    scheduling keys from ``preferences.auto_reschedule`` then the top level.
    Missing keys keep the model defaults.
    """
    preferences = preferences or {}
    workday = preferences.get("workday") or {}
    auto = preferences.get("auto_reschedule") or {}

    values: dict[str, Any] = {}
    for key in WORKDAY_KEYS:
        value = _first_present(workday.get(key), preferences.get(key))
        if value is not None:
            values[key] = value
    for key in AUTO_RESCHEDULE_KEYS:
        value = _first_present(auto.get(key), preferences.get(key))
        if value is not None:
            values[key] = value
    values["timezone"] = timezone or get_settings().DEFAULT_TIMEZONE
    return WorkdaySettings(**values)


class WorkdaySettingsService:
    """Reads and updates workday and auto-reschedule preferences."""

    def __init__(self, user_settings_repo: IUserSettingsRepository):
        self._user_settings_repo = user_settings_repo

    async def get_workday_settings(self, user_id: str) -> WorkdaySettings:
        try:
            record = await self._user_settings_repo.get(user_id)
        except Exception as e:
            logger.error(f"Failed to load workday settings for user {user_id}: {e}")
            return resolve_workday_settings(None)

        if not record:
            return resolve_workday_settings(None)
        try:
            return resolve_workday_settings(record.preferences, record.timezone)
        except ValueError as e:
            logger.warning(f"Invalid stored workday preferences for user {user_id}: {e}")
            return resolve_workday_settings(None, record.timezone)

    async def is_auto_reschedule_enabled(self, user_id: str) -> bool:
        return await self._user_settings_repo.is_auto_reschedule_enabled(user_id)

    async def get_preferences(self, user_id: str) -> WorkdayPreferencesResponse:
        return WorkdayPreferencesResponse(
            settings=await self.get_workday_settings(user_id),
            auto_reschedule_enabled=await self.is_auto_reschedule_enabled(user_id),
        )

    async def update_preferences(
        self, user_id: str, update: WorkdayPreferencesUpdate
    ) -> WorkdayPreferencesResponse:
        """
        Merge a partial update into the stored preferences.

        The merged result is validated as a whole so a partial update cannot
        leave the workday or lunch window inverted.
        """
        record = await self._user_settings_repo.get(user_id)
        preferences = dict(record.preferences) if record else {}
        workday = dict(preferences.get("workday") or {})
        auto = dict(preferences.get("auto_reschedule") or {})

        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        for key in WORKDAY_KEYS:
            if key in changes:
                workday[key] = changes[key]
        for key in AUTO_RESCHEDULE_KEYS:
            if key in changes:
                auto[key] = changes[key]
        if "priority_spacing" in auto:
            auto["priority_spacing"] = getattr(
                auto["priority_spacing"], "value", auto["priority_spacing"]
            )
        if "auto_reschedule_enabled" in changes:
            auto["enabled"] = changes["auto_reschedule_enabled"]

        preferences["workday"] = workday
        preferences["auto_reschedule"] = auto

        timezone = changes.get("timezone")
        if timezone:
            try:
                ZoneInfo(timezone)
            except (ZoneInfoNotFoundError, ValueError):
                raise ValidationError(f"Unknown timezone: {timezone}")

        try:
            merged = resolve_workday_settings(preferences, timezone)
            WorkdayPreferencesUpdate(
                workday_start_hour=merged.workday_start_hour,
                workday_end_hour=merged.workday_end_hour,
                lunch_start_hour=merged.lunch_start_hour,
                lunch_end_hour=merged.lunch_end_hour,
            )
        except ValueError as e:
            raise ValidationError(f"Invalid workday preferences: {e}")

        await self._user_settings_repo.upsert(user_id, preferences, timezone)
        logger.info(f"Updated workday preferences for user {user_id}")
        return await self.get_preferences(user_id)
