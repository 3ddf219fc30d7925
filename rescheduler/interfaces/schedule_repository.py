"""
Schedule entry repository interface.

Every query is scoped: a plan_id of None selects free-mode rows
(plan_id IS NULL), never "all plans".
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional, Sequence
from uuid import UUID

from rescheduler.models.enums import ScheduleStatus
from rescheduler.models.schedule_entry import OccupiedSlot, ScheduleEntry, ScheduleEntryCreate


class IScheduleRepository(ABC):
    """Abstract interface for task_schedule persistence."""

    @abstractmethod
    async def create(self, user_id: str, entry: ScheduleEntryCreate) -> ScheduleEntry:
        """Insert a schedule entry."""
        pass

    @abstractmethod
    async def get(self, user_id: str, schedule_id: UUID) -> Optional[ScheduleEntry]:
        """Get a schedule entry by ID."""
        pass

    @abstractmethod
    async def list_up_to(
        self,
        user_id: str,
        plan_id: Optional[UUID],
        up_to: date,
        statuses: Sequence[ScheduleStatus],
    ) -> list[ScheduleEntry]:
        """List entries dated on or before up_to with one of the statuses."""
        pass

    @abstractmethod
    async def find_instance(
        self,
        user_id: str,
        task_id: UUID,
        plan_id: Optional[UUID],
        on_date: date,
        start_time: str,
        end_time: str,
    ) -> Optional[ScheduleEntry]:
        """
        Find the entry covering one concrete task instance.

        Matches a row still at the instance date and times (seconds ignored),
        or a row that was rescheduled away from it.
        """
        pass

    @abstractmethod
    async def list_occupied(
        self,
        user_id: str,
        plan_id: Optional[UUID],
        start_date: date,
        end_date: date,
        exclude_schedule_id: Optional[UUID] = None,
    ) -> list[OccupiedSlot]:
        """List timed entries in a date range, with their task priority."""
        pass

    @abstractmethod
    async def set_status(
        self,
        user_id: str,
        schedule_id: UUID,
        status: ScheduleStatus,
        pending_reschedule_id: Optional[UUID] = None,
    ) -> Optional[ScheduleEntry]:
        """Set an entry's status; the proposal link is replaced with pending_reschedule_id."""
        pass
