"""Unit tests for workday settings resolution and updates."""

from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError as PydanticValidationError

from rescheduler.core.config import get_settings
from rescheduler.core.exceptions import ValidationError
from rescheduler.models.enums import PrioritySpacing
from rescheduler.models.workday import WorkdayPreferencesUpdate
from rescheduler.services.workday_settings_service import (
    WorkdaySettingsService,
    resolve_workday_settings,
)


def test_defaults_when_preferences_missing():
    settings = resolve_workday_settings(None)

    assert settings.workday_start_minutes == 9 * 60
    assert settings.workday_end_minutes == 17 * 60
    assert (settings.lunch_start_hour, settings.lunch_end_hour) == (12, 13)
    assert settings.buffer_minutes == 15
    assert settings.priority_spacing == PrioritySpacing.MODERATE
    assert settings.reschedule_window_days == 3
    assert settings.timezone == get_settings().DEFAULT_TIMEZONE


def test_nested_keys_win_over_top_level():
    settings = resolve_workday_settings(
        {
            "workday": {"workday_start_hour": 8},
            "workday_start_hour": 7,
            "lunch_start_hour": 11,
            "auto_reschedule": {"priority_spacing": "strict", "reschedule_window_days": 5},
            "buffer_minutes": 30,
        },
        "Europe/Berlin",
    )

    assert settings.workday_start_hour == 8
    assert settings.lunch_start_hour == 11
    assert settings.priority_spacing == PrioritySpacing.STRICT
    assert settings.reschedule_window_days == 5
    assert settings.buffer_minutes == 30
    assert settings.timezone == "Europe/Berlin"


@pytest.mark.asyncio
async def test_store_failure_returns_defaults():
    repo = AsyncMock()
    repo.get.side_effect = RuntimeError("db down")
    service = WorkdaySettingsService(repo)

    settings = await service.get_workday_settings("u1")

    assert settings.workday_start_hour == 9
    assert settings.reschedule_window_days == 3


@pytest.mark.asyncio
async def test_invalid_stored_values_fall_back(repos, settings_service, test_user_id):
    await repos.user_settings.upsert(test_user_id, {"workday": {"workday_end_hour": 99}}, "UTC")

    settings = await settings_service.get_workday_settings(test_user_id)

    assert settings.workday_end_hour == 17


@pytest.mark.asyncio
async def test_toggle_defaults_to_enabled(settings_service, test_user_id):
    assert await settings_service.is_auto_reschedule_enabled(test_user_id) is True


class TestUpdatePreferences:
    @pytest.mark.asyncio
    async def test_partial_update_merges(self, repos, settings_service, test_user_id):
        await repos.user_settings.upsert(
            test_user_id, {"workday": {"workday_start_hour": 8}, "theme": "dark"}
        )

        response = await settings_service.update_preferences(
            test_user_id,
            WorkdayPreferencesUpdate(
                workday_end_hour=18,
                priority_spacing=PrioritySpacing.LOOSE,
                auto_reschedule_enabled=False,
                timezone="America/New_York",
            ),
        )

        assert response.settings.workday_start_hour == 8
        assert response.settings.workday_end_hour == 18
        assert response.settings.priority_spacing == PrioritySpacing.LOOSE
        assert response.settings.timezone == "America/New_York"
        assert response.auto_reschedule_enabled is False

        record = await repos.user_settings.get(test_user_id)
        assert record.preferences["theme"] == "dark"
        assert record.preferences["auto_reschedule"] == {"priority_spacing": "loose", "enabled": False}

    @pytest.mark.asyncio
    async def test_merged_inverted_lunch_is_rejected(self, settings_service, test_user_id):
        with pytest.raises(ValidationError):
            await settings_service.update_preferences(
                test_user_id, WorkdayPreferencesUpdate(lunch_start_hour=14)
            )

    @pytest.mark.asyncio
    async def test_unknown_timezone_is_rejected(self, settings_service, test_user_id):
        with pytest.raises(ValidationError):
            await settings_service.update_preferences(
                test_user_id, WorkdayPreferencesUpdate(timezone="Mars/Olympus_Mons")
            )

    def test_request_model_bounds(self):
        with pytest.raises(PydanticValidationError):
            WorkdayPreferencesUpdate(reschedule_window_days=31)
        with pytest.raises(PydanticValidationError):
            WorkdayPreferencesUpdate(buffer_minutes=121)
        with pytest.raises(PydanticValidationError):
            WorkdayPreferencesUpdate(workday_start_hour=17, workday_end_hour=9)
