"""
SQLite database configuration and ORM models.

This module defines the SQLAlchemy ORM models and database initialization.
"""

from functools import lru_cache
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    JSON,
    text,
)
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from rescheduler.core.config import get_settings
from rescheduler.utils.datetime_utils import now_utc


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


# ===========================================
# ORM Models
# ===========================================


class PlanORM(Base):
    """Plan ORM model."""

    __tablename__ = "plans"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    name = Column(String(500), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String(20), default="active", index=True)
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)


class TaskORM(Base):
    """Task ORM model."""

    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    plan_id = Column(String(36), nullable=True, index=True)
    name = Column(String(500), nullable=False)
    priority = Column(Integer, default=3)
    estimated_duration_minutes = Column(Integer, nullable=True)
    complexity_score = Column(Integer, nullable=True)

    # Recurrence
    is_recurring = Column(Boolean, default=False, index=True)
    is_indefinite = Column(Boolean, default=False)
    recurrence_days = Column(JSON, nullable=True, default=list)
    default_start_time = Column(String(8), nullable=True)
    default_end_time = Column(String(8), nullable=True)

    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)


class TaskScheduleORM(Base):
    """Schedule entry ORM model (one placement of a task on a day)."""

    __tablename__ = "task_schedule"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    task_id = Column(String(36), nullable=False, index=True)
    plan_id = Column(String(36), nullable=True, index=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(8), nullable=True)
    end_time = Column(String(8), nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    day_index = Column(Integer, default=0)
    status = Column(String(30), default="scheduled", index=True)
    reschedule_count = Column(Integer, default=0, nullable=False)
    last_rescheduled_at = Column(DateTime, nullable=True)
    rescheduled_from = Column(Date, nullable=True)
    reschedule_reason = Column(JSON, nullable=True)
    pending_reschedule_id = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)


class TaskCompletionORM(Base):
    """Completion of one task instance."""

    __tablename__ = "task_completions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    task_id = Column(String(36), nullable=False, index=True)
    plan_id = Column(String(36), nullable=True)
    scheduled_date = Column(Date, nullable=False)
    completed_at = Column(DateTime, default=now_utc)

    __table_args__ = (
        Index("idx_task_completions_lookup", "task_id", "scheduled_date", "plan_id"),
    )


class PendingRescheduleORM(Base):
    """Reschedule proposal ORM model."""

    __tablename__ = "pending_reschedules"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    plan_id = Column(String(36), nullable=True, index=True)
    task_schedule_id = Column(String(36), nullable=False, index=True)
    task_id = Column(String(36), nullable=False)

    proposed_date = Column(Date, nullable=False)
    proposed_start_time = Column(String(8), nullable=False)
    proposed_end_time = Column(String(8), nullable=False)
    proposed_day_index = Column(Integer, nullable=False, default=0)

    original_date = Column(Date, nullable=False)
    original_start_time = Column(String(8), nullable=True)
    original_end_time = Column(String(8), nullable=True)
    original_day_index = Column(Integer, nullable=False, default=0)

    context_score = Column(Float, default=0.0)
    priority_penalty = Column(Float, default=0.0)
    density_penalty = Column(Float, default=0.0)
    reason = Column(String(50), default="auto_reschedule_overdue")
    status = Column(String(20), default="pending", index=True)

    created_at = Column(DateTime, default=now_utc)
    reviewed_at = Column(DateTime, nullable=True)
    reviewed_by_user_id = Column(String(255), nullable=True)

    __table_args__ = (
        # At most one pending proposal per schedule entry
        Index(
            "uq_pending_reschedules_schedule_pending",
            "task_schedule_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )


class SchedulingHistoryORM(Base):
    """Daily scheduling audit log."""

    __tablename__ = "scheduling_history"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    plan_id = Column(String(36), nullable=True, index=True)
    adjustment_date = Column(Date, nullable=False)
    old_end_date = Column(Date, nullable=True)
    new_end_date = Column(Date, nullable=True)
    days_extended = Column(Integer, default=0)
    tasks_rescheduled = Column(Integer, default=0)
    task_adjustments = Column(JSON, nullable=True, default=list)
    reason = Column(JSON, nullable=True, default=dict)
    created_at = Column(DateTime, default=now_utc)


class UserSettingsORM(Base):
    """Per-user preferences (workday, auto_reschedule) and timezone."""

    __tablename__ = "user_settings"

    user_id = Column(String(255), primary_key=True)
    preferences = Column(JSON, nullable=False, default=dict)
    timezone = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)


# ===========================================
# Database Session Management
# ===========================================


@lru_cache()
def get_engine():
    """Get async engine instance."""
    settings = get_settings()
    return create_async_engine(settings.DATABASE_URL, echo=False)


def get_session_factory():
    """Get async session factory."""
    engine = get_engine()
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine=None):
    """Initialize database tables."""
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
