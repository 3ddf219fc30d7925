"""
Shared query helpers for SQLite repositories.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID


def plan_scope(column, plan_id: Optional[UUID]):
    """Filter for a plan scope; None selects free-mode rows."""
    if plan_id is None:
        return column.is_(None)
    return column == str(plan_id)


def to_uuid(value: Optional[str]) -> Optional[UUID]:
    return UUID(value) if value else None


def to_str(value: Optional[UUID]) -> Optional[str]:
    return str(value) if value else None
