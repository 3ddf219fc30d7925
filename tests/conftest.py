"""
Shared fixtures: in-memory SQLite database, fixed clock and wired services.

The test environment uses UTC as the default timezone so local dates in
assertions read the same as the fixed clock.
"""

import os

os.environ["ENVIRONMENT"] = "test"
os.environ["DEFAULT_TIMEZONE"] = "UTC"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

from datetime import date
from types import SimpleNamespace
from typing import Optional
from uuid import UUID

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rescheduler.api.deps import build_auto_reschedule_service
from rescheduler.infrastructure.local.completion_repository import SqliteCompletionRepository
from rescheduler.infrastructure.local.database import init_db
from rescheduler.infrastructure.local.plan_repository import SqlitePlanRepository
from rescheduler.infrastructure.local.reschedule_proposal_repository import (
    SqliteRescheduleProposalRepository,
)
from rescheduler.infrastructure.local.schedule_repository import SqliteScheduleRepository
from rescheduler.infrastructure.local.scheduling_history_repository import (
    SqliteSchedulingHistoryRepository,
)
from rescheduler.infrastructure.local.task_repository import SqliteTaskRepository
from rescheduler.infrastructure.local.user_settings_repository import SqliteUserSettingsRepository
from rescheduler.models.enums import ScheduleStatus
from rescheduler.models.plan import PlanCreate
from rescheduler.models.schedule_entry import CompletionCreate, ScheduleEntryCreate
from rescheduler.models.task import TaskCreate
from rescheduler.services.overdue_detector import OverdueDetector
from rescheduler.services.reschedule_proposal_service import RescheduleProposalService
from rescheduler.services.slot_scorer import SlotScorer
from rescheduler.services.workday_settings_service import WorkdaySettingsService
from rescheduler.utils.clock import FixedClock
from tests.constants import NOW


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def test_user_id():
    return "test_user"


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def repos(session_factory):
    return SimpleNamespace(
        plan=SqlitePlanRepository(session_factory=session_factory),
        task=SqliteTaskRepository(session_factory=session_factory),
        schedule=SqliteScheduleRepository(session_factory=session_factory),
        completion=SqliteCompletionRepository(session_factory=session_factory),
        proposal=SqliteRescheduleProposalRepository(session_factory=session_factory),
        history=SqliteSchedulingHistoryRepository(session_factory=session_factory),
        user_settings=SqliteUserSettingsRepository(session_factory=session_factory),
    )


@pytest.fixture
def settings_service(repos):
    return WorkdaySettingsService(repos.user_settings)


@pytest.fixture
def detector(repos, settings_service, clock):
    return OverdueDetector(repos.schedule, repos.task, repos.completion, settings_service, clock)


@pytest.fixture
def scorer(repos, settings_service, clock):
    return SlotScorer(repos.schedule, repos.proposal, settings_service, clock)


@pytest.fixture
def proposal_service(repos, settings_service, clock):
    return RescheduleProposalService(
        repos.proposal, repos.completion, repos.history, repos.plan, settings_service, clock
    )


@pytest.fixture
def auto_service(repos, clock):
    return build_auto_reschedule_service(
        schedule_repo=repos.schedule,
        task_repo=repos.task,
        completion_repo=repos.completion,
        proposal_repo=repos.proposal,
        plan_repo=repos.plan,
        history_repo=repos.history,
        user_settings_repo=repos.user_settings,
        clock=clock,
    )


# ===========================================
# Data builders
# ===========================================


@pytest.fixture
def make_plan(repos, test_user_id):
    async def _make(end_date: date = date(2025, 3, 20), name: str = "Launch plan"):
        return await repos.plan.create(
            test_user_id,
            PlanCreate(name=name, start_date=date(2025, 3, 1), end_date=end_date),
        )

    return _make


@pytest.fixture
def make_task(repos, test_user_id):
    async def _make(plan_id: Optional[UUID] = None, name: str = "Write report", **fields):
        return await repos.task.create(test_user_id, TaskCreate(name=name, plan_id=plan_id, **fields))

    return _make


@pytest.fixture
def make_entry(repos, test_user_id):
    async def _make(
        task,
        on_date: date,
        start_time: str,
        end_time: str,
        status: ScheduleStatus = ScheduleStatus.SCHEDULED,
        day_index: int = 0,
    ):
        return await repos.schedule.create(
            test_user_id,
            ScheduleEntryCreate(
                task_id=task.id,
                plan_id=task.plan_id,
                date=on_date,
                start_time=start_time,
                end_time=end_time,
                duration_minutes=task.estimated_duration_minutes,
                day_index=day_index,
                status=status,
            ),
        )

    return _make


@pytest.fixture
def complete(repos, test_user_id):
    async def _complete(task, scheduled_date: date):
        return await repos.completion.create(
            test_user_id,
            CompletionCreate(task_id=task.id, plan_id=task.plan_id, scheduled_date=scheduled_date),
        )

    return _complete
