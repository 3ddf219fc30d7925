"""
Dependency injection for API endpoints.

This module provides FastAPI dependencies that inject the repository
implementations and wire the rescheduling services on top of them.
"""

from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status

from rescheduler.core.config import get_settings
from rescheduler.interfaces.auth_provider import IAuthProvider, User
from rescheduler.interfaces.clock import IClock
from rescheduler.interfaces.completion_repository import ICompletionRepository
from rescheduler.interfaces.plan_repository import IPlanRepository
from rescheduler.interfaces.reschedule_proposal_repository import IRescheduleProposalRepository
from rescheduler.interfaces.schedule_repository import IScheduleRepository
from rescheduler.interfaces.scheduling_history_repository import ISchedulingHistoryRepository
from rescheduler.interfaces.task_repository import ITaskRepository
from rescheduler.interfaces.user_settings_repository import IUserSettingsRepository
from rescheduler.services.auto_reschedule_service import AutoRescheduleService
from rescheduler.services.overdue_detector import OverdueDetector
from rescheduler.services.reschedule_proposal_service import RescheduleProposalService
from rescheduler.services.slot_scorer import SlotScorer
from rescheduler.services.workday_settings_service import WorkdaySettingsService


# ===========================================
# Repository Dependencies
# ===========================================


@lru_cache()
def get_plan_repository() -> IPlanRepository:
    """Get plan repository instance."""
    from rescheduler.infrastructure.local.plan_repository import SqlitePlanRepository
    return SqlitePlanRepository()


@lru_cache()
def get_task_repository() -> ITaskRepository:
    """Get task repository instance."""
    from rescheduler.infrastructure.local.task_repository import SqliteTaskRepository
    return SqliteTaskRepository()


@lru_cache()
def get_schedule_repository() -> IScheduleRepository:
    """Get schedule entry repository instance."""
    from rescheduler.infrastructure.local.schedule_repository import SqliteScheduleRepository
    return SqliteScheduleRepository()


@lru_cache()
def get_completion_repository() -> ICompletionRepository:
    """Get task completion repository instance."""
    from rescheduler.infrastructure.local.completion_repository import SqliteCompletionRepository
    return SqliteCompletionRepository()


@lru_cache()
def get_reschedule_proposal_repository() -> IRescheduleProposalRepository:
    """Get reschedule proposal repository instance."""
    from rescheduler.infrastructure.local.reschedule_proposal_repository import (
        SqliteRescheduleProposalRepository,
    )
    return SqliteRescheduleProposalRepository()


@lru_cache()
def get_scheduling_history_repository() -> ISchedulingHistoryRepository:
    """Get scheduling history repository instance."""
    from rescheduler.infrastructure.local.scheduling_history_repository import (
        SqliteSchedulingHistoryRepository,
    )
    return SqliteSchedulingHistoryRepository()


@lru_cache()
def get_user_settings_repository() -> IUserSettingsRepository:
    """Get user settings repository instance."""
    from rescheduler.infrastructure.local.user_settings_repository import (
        SqliteUserSettingsRepository,
    )
    return SqliteUserSettingsRepository()


@lru_cache()
def get_clock() -> IClock:
    """Get the system clock."""
    from rescheduler.utils.clock import SystemClock
    return SystemClock()


@lru_cache()
def get_auth_provider() -> IAuthProvider:
    """Get authentication provider instance."""
    settings = get_settings()
    from rescheduler.infrastructure.local.mock_auth import MockAuthProvider
    return MockAuthProvider(enabled=settings.AUTH_REQUIRED)


# ===========================================
# Service wiring
# ===========================================


def build_auto_reschedule_service(
    schedule_repo: Optional[IScheduleRepository] = None,
    task_repo: Optional[ITaskRepository] = None,
    completion_repo: Optional[ICompletionRepository] = None,
    proposal_repo: Optional[IRescheduleProposalRepository] = None,
    plan_repo: Optional[IPlanRepository] = None,
    history_repo: Optional[ISchedulingHistoryRepository] = None,
    user_settings_repo: Optional[IUserSettingsRepository] = None,
    clock: Optional[IClock] = None,
) -> AutoRescheduleService:
    """Wire the orchestrator; missing collaborators come from the cached getters."""
    schedule_repo = schedule_repo or get_schedule_repository()
    task_repo = task_repo or get_task_repository()
    completion_repo = completion_repo or get_completion_repository()
    proposal_repo = proposal_repo or get_reschedule_proposal_repository()
    plan_repo = plan_repo or get_plan_repository()
    history_repo = history_repo or get_scheduling_history_repository()
    clock = clock or get_clock()
    settings_service = WorkdaySettingsService(user_settings_repo or get_user_settings_repository())

    return AutoRescheduleService(
        detector=OverdueDetector(schedule_repo, task_repo, completion_repo, settings_service, clock),
        scorer=SlotScorer(schedule_repo, proposal_repo, settings_service, clock),
        proposal_service=RescheduleProposalService(
            proposal_repo, completion_repo, history_repo, plan_repo, settings_service, clock
        ),
        schedule_repo=schedule_repo,
        proposal_repo=proposal_repo,
        plan_repo=plan_repo,
        history_repo=history_repo,
        settings_service=settings_service,
        clock=clock,
    )


# ===========================================
# Type Aliases for Dependency Injection
# ===========================================

PlanRepo = Annotated[IPlanRepository, Depends(get_plan_repository)]
TaskRepo = Annotated[ITaskRepository, Depends(get_task_repository)]
ScheduleRepo = Annotated[IScheduleRepository, Depends(get_schedule_repository)]
CompletionRepo = Annotated[ICompletionRepository, Depends(get_completion_repository)]
ProposalRepo = Annotated[IRescheduleProposalRepository, Depends(get_reschedule_proposal_repository)]
HistoryRepo = Annotated[ISchedulingHistoryRepository, Depends(get_scheduling_history_repository)]
UserSettingsRepo = Annotated[IUserSettingsRepository, Depends(get_user_settings_repository)]
Clock = Annotated[IClock, Depends(get_clock)]


def get_workday_settings_service(user_settings_repo: UserSettingsRepo) -> WorkdaySettingsService:
    return WorkdaySettingsService(user_settings_repo)


WorkdaySettingsSvc = Annotated[WorkdaySettingsService, Depends(get_workday_settings_service)]


def get_overdue_detector(
    schedule_repo: ScheduleRepo,
    task_repo: TaskRepo,
    completion_repo: CompletionRepo,
    settings_service: WorkdaySettingsSvc,
    clock: Clock,
) -> OverdueDetector:
    return OverdueDetector(schedule_repo, task_repo, completion_repo, settings_service, clock)


def get_reschedule_proposal_service(
    proposal_repo: ProposalRepo,
    completion_repo: CompletionRepo,
    history_repo: HistoryRepo,
    plan_repo: PlanRepo,
    settings_service: WorkdaySettingsSvc,
    clock: Clock,
) -> RescheduleProposalService:
    return RescheduleProposalService(
        proposal_repo, completion_repo, history_repo, plan_repo, settings_service, clock
    )


def get_auto_reschedule_service(
    schedule_repo: ScheduleRepo,
    task_repo: TaskRepo,
    completion_repo: CompletionRepo,
    proposal_repo: ProposalRepo,
    plan_repo: PlanRepo,
    history_repo: HistoryRepo,
    user_settings_repo: UserSettingsRepo,
    clock: Clock,
) -> AutoRescheduleService:
    return build_auto_reschedule_service(
        schedule_repo=schedule_repo,
        task_repo=task_repo,
        completion_repo=completion_repo,
        proposal_repo=proposal_repo,
        plan_repo=plan_repo,
        history_repo=history_repo,
        user_settings_repo=user_settings_repo,
        clock=clock,
    )


Detector = Annotated[OverdueDetector, Depends(get_overdue_detector)]
ProposalSvc = Annotated[RescheduleProposalService, Depends(get_reschedule_proposal_service)]
AutoRescheduleSvc = Annotated[AutoRescheduleService, Depends(get_auto_reschedule_service)]


# ===========================================
# User Authentication
# ===========================================


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    auth_provider: IAuthProvider = Depends(get_auth_provider),
) -> User:
    """
    Get current authenticated user.

    When auth is not required, a bearer token (if any) still selects the
    user so local clients can act as different users.
    """
    if not authorization:
        if auth_provider.is_enabled():
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authorization header required",
            )
        return User(id="dev_user", email="dev@example.com", display_name="Developer")

    # Extract token from "Bearer <token>"
    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer":
            raise ValueError("Invalid scheme")
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
        )

    try:
        return await auth_provider.verify_token(token)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )


CurrentUser = Annotated[User, Depends(get_current_user)]
