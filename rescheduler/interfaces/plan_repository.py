"""
Plan repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from rescheduler.models.plan import Plan, PlanCreate


class IPlanRepository(ABC):
    """Abstract interface for plan persistence."""

    @abstractmethod
    async def create(self, user_id: str, plan: PlanCreate) -> Plan:
        """Create a plan."""
        pass

    @abstractmethod
    async def get(self, user_id: str, plan_id: UUID) -> Optional[Plan]:
        """Get a plan owned by the user."""
        pass

    @abstractmethod
    async def list_active(self, user_id: str) -> list[Plan]:
        """List the user's active plans."""
        pass

    @abstractmethod
    async def update_end_date(self, user_id: str, plan_id: UUID, end_date: date) -> Optional[Plan]:
        """Move a plan's end date."""
        pass
