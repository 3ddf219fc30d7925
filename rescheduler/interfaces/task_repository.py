"""
Task repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from rescheduler.models.task import Task, TaskCreate


class ITaskRepository(ABC):
    """Abstract interface for task persistence."""

    @abstractmethod
    async def create(self, user_id: str, task: TaskCreate) -> Task:
        """Create a task."""
        pass

    @abstractmethod
    async def get(self, user_id: str, task_id: UUID) -> Optional[Task]:
        """Get a task by ID."""
        pass

    @abstractmethod
    async def get_many(self, user_id: str, task_ids: list[UUID]) -> list[Task]:
        """Get several tasks by ID; missing IDs are skipped."""
        pass

    @abstractmethod
    async def list_indefinite_recurring(self, user_id: str, plan_id: Optional[UUID]) -> list[Task]:
        """
        List indefinite recurring tasks in a scope.

        Args:
            user_id: Owner
            plan_id: Plan scope; None selects free-mode tasks
        """
        pass
