"""
Task completion repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional, Sequence
from uuid import UUID

from rescheduler.models.schedule_entry import Completion, CompletionCreate


class ICompletionRepository(ABC):
    """Abstract interface for task_completions persistence."""

    @abstractmethod
    async def create(self, user_id: str, completion: CompletionCreate) -> Completion:
        """Record a completed instance."""
        pass

    @abstractmethod
    async def exists(
        self,
        user_id: str,
        task_id: UUID,
        plan_id: Optional[UUID],
        scheduled_dates: Sequence[date],
    ) -> bool:
        """
        Whether a completion exists for the task on any of the dates.

        plan_id is matched exactly, with None matching only NULL.
        """
        pass
