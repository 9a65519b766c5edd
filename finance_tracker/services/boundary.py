"""
Storage boundary for the core components.

Store failures are logged with their cause and replaced by a generic
StorageError so nothing store-specific reaches a caller. Unique-constraint
violations pass through untouched; each component turns them into the
conflict it means.
"""

from typing import Awaitable, Optional, TypeVar

from finance_tracker.audit import AuditLogger
from finance_tracker.errors import DuplicateError, StorageError

T = TypeVar("T")

GENERIC_STORAGE_MESSAGE = "Storage operation failed"


async def call_storage(
    awaitable: Awaitable[T],
    operation: str,
    audit_logger: AuditLogger,
    user_id: Optional[int] = None,
) -> T:
    try:
        return await awaitable
    except DuplicateError:
        raise
    except StorageError as e:
        await audit_logger.log_storage_error(operation, e, user_id=user_id)
        raise StorageError(GENERIC_STORAGE_MESSAGE) from e
