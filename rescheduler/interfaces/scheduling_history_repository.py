"""
Scheduling history repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Optional
from uuid import UUID

from rescheduler.models.history import SchedulingHistoryEntry


class ISchedulingHistoryRepository(ABC):
    """Abstract interface for the append-only scheduling audit log."""

    @abstractmethod
    async def append_adjustment(
        self,
        user_id: str,
        plan_id: Optional[UUID],
        adjustment_date: date,
        adjustment: dict[str, Any],
        plan_end_date: Optional[date] = None,
    ) -> SchedulingHistoryEntry:
        """Append one task adjustment to the day's entry, creating it if needed."""
        pass

    @abstractmethod
    async def record_plan_extension(
        self,
        user_id: str,
        plan_id: UUID,
        adjustment_date: date,
        old_end_date: date,
        new_end_date: date,
        reason: dict[str, Any],
    ) -> SchedulingHistoryEntry:
        """Record a plan end-date extension."""
        pass

    @abstractmethod
    async def list(
        self, user_id: str, plan_id: Optional[UUID], limit: int = 30
    ) -> list[SchedulingHistoryEntry]:
        """List history entries in scope, newest first."""
        pass
