"""
Authentication provider interface.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel


class User(BaseModel):
    """Authenticated user."""

    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None


class IAuthProvider(ABC):
    """Resolves bearer tokens to users."""

    @abstractmethod
    async def verify_token(self, token: str) -> User:
        """Verify a token and return the user it belongs to."""
        pass

    @abstractmethod
    def is_enabled(self) -> bool:
        """Whether requests must carry a token."""
        pass
