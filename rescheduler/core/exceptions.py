"""
Custom exceptions for the application.
"""

from typing import Any, Optional


class ReschedulerError(Exception):
    """Base exception for the rescheduler."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(ReschedulerError):
    """Resource not found."""

    pass


class PlanNotFoundError(NotFoundError):
    """Plan does not exist or is not owned by the user."""

    def __init__(self, plan_id: Any = None):
        super().__init__("Plan not found", details={"plan_id": str(plan_id) if plan_id else None})


class ValidationError(ReschedulerError):
    """Validation error."""

    pass


class AuthenticationError(ReschedulerError):
    """Authentication failed."""

    pass


class InfrastructureError(ReschedulerError):
    """Infrastructure-related error (DB, external services, etc.)."""

    pass


class BusinessLogicError(ReschedulerError):
    """Business logic constraint violation."""

    pass


class ProposalNotPendingError(BusinessLogicError):
    """Proposal is missing, owned by someone else, or no longer pending."""

    def __init__(self, proposal_id: Any = None):
        super().__init__(
            "Proposal not found or already processed",
            details={"proposal_id": str(proposal_id) if proposal_id else None},
        )
