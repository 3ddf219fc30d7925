"""
Reschedule proposal repository interface.

Methods that touch both the proposal and its schedule entry run as a single
transaction.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from rescheduler.models.reschedule import (
    OverdueTask,
    PendingRescheduleView,
    RescheduleProposal,
    RescheduleSlot,
)
from rescheduler.models.schedule_entry import OccupiedSlot


class IRescheduleProposalRepository(ABC):
    """Abstract interface for pending_reschedules persistence."""

    @abstractmethod
    async def create_pending(
        self,
        user_id: str,
        plan_id: Optional[UUID],
        task: OverdueTask,
        slot: RescheduleSlot,
        now: datetime,
    ) -> tuple[RescheduleProposal, bool]:
        """
        Create a pending proposal and flip its schedule entry to pending_reschedule.

        Returns:
            (proposal, created). When a pending proposal already references
            the schedule entry it is returned with created=False.
        """
        pass

    @abstractmethod
    async def get(self, user_id: str, proposal_id: UUID) -> Optional[RescheduleProposal]:
        """Get a proposal owned by the user."""
        pass

    @abstractmethod
    async def get_pending_for_schedule(self, schedule_id: UUID) -> Optional[RescheduleProposal]:
        """Get the pending proposal referencing a schedule entry, if any."""
        pass

    @abstractmethod
    async def list_pending(self, user_id: str, plan_id: Optional[UUID]) -> list[PendingRescheduleView]:
        """List pending proposals in scope joined with task metadata, oldest first."""
        pass

    @abstractmethod
    async def list_pending_placements(
        self,
        user_id: str,
        plan_id: Optional[UUID],
        start_date: date,
        end_date: date,
    ) -> list[OccupiedSlot]:
        """Proposed placements of pending proposals within a date range."""
        pass

    @abstractmethod
    async def accept(self, user_id: str, proposal_id: UUID, now: datetime) -> RescheduleProposal:
        """
        Apply a pending proposal to its schedule entry and mark it accepted.

        Raises:
            ProposalNotPendingError: If missing or not pending
        """
        pass

    @abstractmethod
    async def reject(self, user_id: str, proposal_id: UUID, now: datetime) -> RescheduleProposal:
        """
        Mark a pending proposal rejected and return its entry to overdue.

        Raises:
            ProposalNotPendingError: If missing or not pending
        """
        pass
