"""
Audit Logger

Every significant action in the system is logged. This provides:
1. Traceability of every change to a user's ledger
2. A server-side record of storage failures callers never see
3. Visibility into denied access attempts

Events are written as structured JSON through structlog on top of the
standard logging module.
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from finance_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Route structlog output to stdout at the given level.

    structlog renders the JSON; the stdlib handler only prints it.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )


_SEVERITY_METHODS = {
    AuditSeverity.DEBUG: "debug",
    AuditSeverity.INFO: "info",
    AuditSeverity.WARNING: "warning",
    AuditSeverity.ERROR: "error",
}


class AuditLogger:
    """
    Central audit logging service.

    Stateless apart from the bound structlog logger, so one instance is
    shared by every service.
    """

    def __init__(self, name: str = "finance_tracker.audit"):
        self._logger = structlog.get_logger(name)

    async def log(self, event: AuditEvent) -> None:
        """Log an audit event at the level its severity implies."""
        method = getattr(self._logger, _SEVERITY_METHODS[event.severity])
        try:
            method("audit_event", **event.to_log_dict())
        except Exception as e:
            # Log failure but don't raise
            logging.getLogger(__name__).error(
                "audit_log_failed event_id=%s error=%s", event.event_id, e
            )

    async def log_validation_failed(
        self,
        stage: str,
        issues: list,
        user_id: Optional[int] = None,
    ) -> None:
        event = AuditEventBuilder.validation_failed(
            stage=stage,
            issues=[issue.to_detail() for issue in issues],
            user_id=user_id,
        )
        await self.log(event)

    async def log_access_denied(
        self,
        user_id: int,
        entity_type: str,
        entity_id: int,
        action: str,
    ) -> None:
        event = AuditEventBuilder.access_denied(
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
        )
        await self.log(event)

    async def log_storage_error(
        self,
        operation: str,
        error: Exception,
        user_id: Optional[int] = None,
    ) -> None:
        """Record the underlying cause of a storage failure, server-side only."""
        event = AuditEventBuilder.storage_error(
            operation=operation,
            error_message=f"{type(error).__name__}: {error}",
            user_id=user_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a request and pass it through.
    """
    return uuid4()
