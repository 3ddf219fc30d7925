"""
Enum definitions for the application.

These enums are used across models and provide type-safe status values.
"""

from enum import Enum


class ScheduleStatus(str, Enum):
    """
    Lifecycle of one scheduled task instance.

    scheduled -> overdue -> rescheduling -> pending_reschedule -> rescheduled,
    with pending_reschedule -> overdue when the user rejects the proposal.
    """

    SCHEDULED = "scheduled"
    OVERDUE = "overdue"
    RESCHEDULING = "rescheduling"
    PENDING_RESCHEDULE = "pending_reschedule"
    RESCHEDULED = "rescheduled"
    COMPLETED = "completed"


# Statuses the detector considers; the rest already hold a proposal or are final
DETECTABLE_STATUSES = (
    ScheduleStatus.SCHEDULED,
    ScheduleStatus.OVERDUE,
    ScheduleStatus.RESCHEDULING,
)


class ProposalStatus(str, Enum):
    """Status of a reschedule proposal."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class PrioritySpacing(str, Enum):
    """How strongly the scorer keeps same-priority work apart."""

    STRICT = "strict"
    MODERATE = "moderate"
    LOOSE = "loose"


class PlanStatus(str, Enum):
    """Plan status."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class RescheduleReason(str, Enum):
    """Reason tag stored on proposals."""

    AUTO_RESCHEDULE_OVERDUE = "auto_reschedule_overdue"
