"""Pydantic models (schemas) for the application."""

from rescheduler.models.enums import (
    PlanStatus,
    PrioritySpacing,
    ProposalStatus,
    RescheduleReason,
    ScheduleStatus,
)
from rescheduler.models.history import SchedulingHistoryEntry, TaskAdjustment
from rescheduler.models.plan import Plan, PlanCreate
from rescheduler.models.reschedule import (
    DetectionResult,
    OverdueTask,
    PendingRescheduleView,
    RescheduleProposal,
    RescheduleResult,
    RescheduleSlot,
)
from rescheduler.models.schedule_entry import (
    Completion,
    CompletionCreate,
    OccupiedSlot,
    ScheduleEntry,
    ScheduleEntryCreate,
)
from rescheduler.models.task import Task, TaskCreate
from rescheduler.models.workday import ScoringPolicy, WorkdayPreferencesUpdate, WorkdaySettings

__all__ = [
    # Enums
    "PlanStatus",
    "PrioritySpacing",
    "ProposalStatus",
    "RescheduleReason",
    "ScheduleStatus",
    # Plan / Task
    "Plan",
    "PlanCreate",
    "Task",
    "TaskCreate",
    # Schedule
    "ScheduleEntry",
    "ScheduleEntryCreate",
    "OccupiedSlot",
    "Completion",
    "CompletionCreate",
    # Reschedule
    "OverdueTask",
    "DetectionResult",
    "RescheduleSlot",
    "RescheduleProposal",
    "PendingRescheduleView",
    "RescheduleResult",
    # History
    "SchedulingHistoryEntry",
    "TaskAdjustment",
    # Settings
    "WorkdaySettings",
    "WorkdayPreferencesUpdate",
    "ScoringPolicy",
]
