"""Workday settings API endpoints."""

from fastapi import APIRouter

from rescheduler.api.deps import CurrentUser, WorkdaySettingsSvc
from rescheduler.models.workday import WorkdayPreferencesResponse, WorkdayPreferencesUpdate

router = APIRouter()


@router.get("/workday", response_model=WorkdayPreferencesResponse)
async def get_workday_settings(user: CurrentUser, service: WorkdaySettingsSvc):
    """Resolved workday settings with defaults filled in."""
    return await service.get_preferences(user.id)


@router.put("/workday", response_model=WorkdayPreferencesResponse)
async def update_workday_settings(
    update: WorkdayPreferencesUpdate,
    user: CurrentUser,
    service: WorkdaySettingsSvc,
):
    """Partially update workday and auto-reschedule preferences."""
    return await service.update_preferences(user.id, update)
