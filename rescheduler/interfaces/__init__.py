"""Abstract interfaces for infrastructure abstraction."""

from rescheduler.interfaces.auth_provider import IAuthProvider, User
from rescheduler.interfaces.clock import IClock
from rescheduler.interfaces.completion_repository import ICompletionRepository
from rescheduler.interfaces.plan_repository import IPlanRepository
from rescheduler.interfaces.reschedule_proposal_repository import IRescheduleProposalRepository
from rescheduler.interfaces.schedule_repository import IScheduleRepository
from rescheduler.interfaces.scheduling_history_repository import ISchedulingHistoryRepository
from rescheduler.interfaces.task_repository import ITaskRepository
from rescheduler.interfaces.user_settings_repository import IUserSettingsRepository

__all__ = [
    "IAuthProvider",
    "IClock",
    "ICompletionRepository",
    "IPlanRepository",
    "IRescheduleProposalRepository",
    "IScheduleRepository",
    "ISchedulingHistoryRepository",
    "ITaskRepository",
    "IUserSettingsRepository",
    "User",
]
