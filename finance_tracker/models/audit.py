"""
Audit Models for Finance Tracker

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability of every change to a user's ledger
2. Debugging information when things go wrong
3. A record of denied access attempts

Audit events are append-only.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Accounts
    USER_REGISTERED = "user_registered"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    PROFILE_UPDATED = "profile_updated"
    ACCOUNT_DELETED = "account_deleted"

    # Ledger
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Budgets
    BUDGET_CREATED = "budget_created"
    BUDGET_CONFLICT = "budget_conflict"

    # Reads
    BUDGETS_EVALUATED = "budgets_evaluated"
    REPORT_GENERATED = "report_generated"

    # Failures
    ACCESS_DENIED = "access_denied"
    VALIDATION_FAILED = "validation_failed"
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Who acted, and on what
    user_id: Optional[int] = None
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'budget', 'user')"
    )
    entity_id: Optional[int] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    # Server-side only, never returned to callers
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(user_id, txn_id, "food", "12.50")
    """

    @staticmethod
    def user_registered(user_id: int, email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REGISTERED,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            description="User registered",
            details={"email": email},
        )

    @staticmethod
    def login(email: str, user_id: Optional[int], succeeded: bool) -> AuditEvent:
        if succeeded:
            return AuditEvent(
                event_type=AuditEventType.LOGIN_SUCCEEDED,
                user_id=user_id,
                entity_type="user",
                entity_id=user_id,
                description="Login succeeded",
                details={"email": email},
            )
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description="Login failed",
            details={"email": email},
        )

    @staticmethod
    def profile_updated(user_id: int, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILE_UPDATED,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            description="Profile updated",
            details={"fields": fields},
        )

    @staticmethod
    def account_deleted(user_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_DELETED,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            description="Account and owned records deleted",
        )

    @staticmethod
    def transaction_created(
        user_id: int,
        transaction_id: int,
        transaction_type: str,
        amount: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"{transaction_type.capitalize()} of {amount} recorded",
            details={"type": transaction_type, "amount": amount},
        )

    @staticmethod
    def transaction_updated(
        user_id: int,
        transaction_id: int,
        fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction updated",
            details={"fields": fields},
        )

    @staticmethod
    def transaction_deleted(user_id: int, transaction_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction deleted",
        )

    @staticmethod
    def budget_created(
        user_id: int,
        budget_id: int,
        category: str,
        month: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_CREATED,
            user_id=user_id,
            entity_type="budget",
            entity_id=budget_id,
            description=f"Budget for {category} in {month} created",
            details={"category": category, "month": month},
        )

    @staticmethod
    def budget_conflict(user_id: int, category: str, month: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_CONFLICT,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="budget",
            description=f"Budget for {category} in {month} already exists",
            details={"category": category, "month": month},
        )

    @staticmethod
    def budgets_evaluated(
        user_id: int,
        month: str,
        budget_count: int,
        overspent_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGETS_EVALUATED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            entity_type="budget",
            description=f"Evaluated {budget_count} budgets for {month}",
            details={"month": month, "overspent": overspent_count},
        )

    @staticmethod
    def report_generated(user_id: int, month: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_GENERATED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            entity_type="report",
            description=f"Monthly report generated for {month}",
            details={"month": month},
        )

    @staticmethod
    def access_denied(
        user_id: int,
        entity_type: str,
        entity_id: int,
        action: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCESS_DENIED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Denied {action} on {entity_type} owned by another user",
            details={"action": action},
        )

    @staticmethod
    def validation_failed(
        stage: str,
        issues: list[dict],
        user_id: Optional[int] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.INFO,
            user_id=user_id,
            description=f"Validation failed at {stage}",
            details={"stage": stage, "issues": issues},
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        user_id: Optional[int] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            description=f"Storage failure during {operation}",
            details={"operation": operation},
            error_message=error_message,
        )
