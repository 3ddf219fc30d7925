"""
Workday settings and scoring policy.

WorkdaySettings is derived per user on every pass from stored preferences.
ScoringPolicy holds the slot scorer's weights and thresholds so they can be
varied in tests instead of living as inline constants.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from rescheduler.models.enums import PrioritySpacing

DEFAULT_WORKDAY_START_HOUR = 9
DEFAULT_WORKDAY_START_MINUTE = 0
DEFAULT_WORKDAY_END_HOUR = 17
DEFAULT_LUNCH_START_HOUR = 12
DEFAULT_LUNCH_END_HOUR = 13
DEFAULT_BUFFER_MINUTES = 15
DEFAULT_PRIORITY_SPACING = PrioritySpacing.MODERATE
DEFAULT_RESCHEDULE_WINDOW_DAYS = 3


class WorkdaySettings(BaseModel):
    """Per-user scheduling preferences with fallback defaults."""

    workday_start_hour: int = Field(DEFAULT_WORKDAY_START_HOUR, ge=0, le=23)
    workday_start_minute: int = Field(DEFAULT_WORKDAY_START_MINUTE, ge=0, le=59)
    workday_end_hour: int = Field(DEFAULT_WORKDAY_END_HOUR, ge=1, le=24)
    lunch_start_hour: int = Field(DEFAULT_LUNCH_START_HOUR, ge=0, le=23)
    lunch_end_hour: int = Field(DEFAULT_LUNCH_END_HOUR, ge=0, le=24)
    buffer_minutes: int = Field(DEFAULT_BUFFER_MINUTES, ge=0, le=120)
    priority_spacing: PrioritySpacing = DEFAULT_PRIORITY_SPACING
    reschedule_window_days: int = Field(DEFAULT_RESCHEDULE_WINDOW_DAYS, ge=0, le=30)
    timezone: str = "America/Los_Angeles"

    @property
    def workday_start_minutes(self) -> int:
        return self.workday_start_hour * 60 + self.workday_start_minute

    @property
    def workday_end_minutes(self) -> int:
        return self.workday_end_hour * 60

    @property
    def lunch_start_minutes(self) -> int:
        return self.lunch_start_hour * 60

    @property
    def lunch_end_minutes(self) -> int:
        return self.lunch_end_hour * 60


class WorkdayPreferencesUpdate(BaseModel):
    """Partial update of workday and auto-reschedule preferences."""

    workday_start_hour: Optional[int] = Field(None, ge=0, le=23)
    workday_start_minute: Optional[int] = Field(None, ge=0, le=59)
    workday_end_hour: Optional[int] = Field(None, ge=1, le=24)
    lunch_start_hour: Optional[int] = Field(None, ge=0, le=23)
    lunch_end_hour: Optional[int] = Field(None, ge=0, le=24)
    buffer_minutes: Optional[int] = Field(None, ge=0, le=120)
    priority_spacing: Optional[PrioritySpacing] = None
    reschedule_window_days: Optional[int] = Field(None, ge=0, le=30)
    auto_reschedule_enabled: Optional[bool] = None
    timezone: Optional[str] = None

    @model_validator(mode="after")
    def check_ranges(self):
        if (
            self.workday_start_hour is not None
            and self.workday_end_hour is not None
            and self.workday_start_hour >= self.workday_end_hour
        ):
            raise ValueError("workday_start_hour must be before workday_end_hour")
        if (
            self.lunch_start_hour is not None
            and self.lunch_end_hour is not None
            and self.lunch_start_hour >= self.lunch_end_hour
        ):
            raise ValueError("lunch_start_hour must be before lunch_end_hour")
        return self


class WorkdayPreferencesResponse(BaseModel):
    """Resolved settings plus the feature toggle."""

    settings: WorkdaySettings
    auto_reschedule_enabled: bool


class UserSettingsRecord(BaseModel):
    """Stored user_settings row: free-form preferences plus timezone."""

    user_id: str
    preferences: dict[str, Any] = Field(default_factory=dict)
    timezone: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ScoringPolicy(BaseModel):
    """Weights and thresholds used by the slot scorer."""

    model_config = ConfigDict(frozen=True)

    base_score: float = 100.0
    slot_granularity_minutes: int = Field(15, ge=1)
    default_task_duration_minutes: int = 60
    default_task_priority: int = 3

    # Priority-conflict penalty, keyed by spacing mode
    spacing_window_minutes: dict[PrioritySpacing, float] = Field(
        default_factory=lambda: {
            PrioritySpacing.STRICT: 120.0,
            PrioritySpacing.MODERATE: 90.0,
            PrioritySpacing.LOOSE: 60.0,
        }
    )
    spacing_weight: dict[PrioritySpacing, float] = Field(
        default_factory=lambda: {
            PrioritySpacing.STRICT: 1.0,
            PrioritySpacing.MODERATE: 0.7,
            PrioritySpacing.LOOSE: 0.5,
        }
    )
    same_priority_scale: float = 10.0
    lower_priority_weight: float = 0.3
    lower_priority_scale: float = 5.0

    # Density penalty
    density_window_minutes: float = 120.0
    density_per_task: float = 2.0
    density_cap: float = 20.0

    # Context fit
    high_priority_morning_bonus: float = 5.0
    low_priority_afternoon_bonus: float = 3.0
    lunch_malus: float = -3.0
    complex_morning_bonus: float = 2.0
    complexity_threshold: int = 7
    morning_cutoff_hour: int = 12
    afternoon_start_hour: int = 14
    low_priority_threshold: int = 3

    # Final score weights
    priority_penalty_weight: float = 0.3
    density_penalty_weight: float = 0.2
    context_weight: float = 0.1

    # Free-mode fallback placement
    fallback_score: float = 50.0


DEFAULT_SCORING_POLICY = ScoringPolicy()
