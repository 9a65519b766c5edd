"""
Error taxonomy shared by every component.

Services raise these; the transport layer maps them to responses in one
place. Messages are safe to show to callers. Storage causes are logged
server-side and never carried in the message.
"""

from typing import Any, Optional


class FinanceTrackerError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(FinanceTrackerError):
    """
    Malformed or out-of-range input.

    Carries every violated field, not just the first one.
    """

    def __init__(self, issues: list, message: str = "Validation failed"):
        super().__init__(message)
        self.issues = issues

    @property
    def fields(self) -> list[str]:
        return [issue.field for issue in self.issues]


class UnauthenticatedError(FinanceTrackerError):
    """Missing or invalid credential."""


class UnauthorizedError(FinanceTrackerError):
    """Valid identity acting on a record it does not own."""


class NotFoundError(FinanceTrackerError):
    """No such record."""


class ConflictError(FinanceTrackerError):
    """A record with the same unique key already exists."""

    def __init__(self, message: str, existing: Optional[Any] = None):
        super().__init__(message)
        self.existing = existing


class StorageError(FinanceTrackerError):
    """Underlying store failure."""


class DuplicateError(StorageError):
    """The store rejected an insert on a unique constraint."""
