"""
Storage Services Package

Provides abstract interfaces and the SQLAlchemy implementation for data
storage. Business logic only ever sees the interfaces.
"""

from finance_tracker.services.storage.interface import (
    BudgetStorageInterface,
    DuplicateError,
    StorageError,
    TransactionStorageInterface,
    UserStorageInterface,
)
from finance_tracker.services.storage.database import (
    Base,
    DatabaseBudgetStorage,
    DatabaseClient,
    DatabaseTransactionStorage,
    DatabaseUserStorage,
)

__all__ = [
    # Interfaces
    "BudgetStorageInterface",
    "TransactionStorageInterface",
    "UserStorageInterface",
    # Exceptions
    "DuplicateError",
    "StorageError",
    # SQLAlchemy implementation
    "Base",
    "DatabaseBudgetStorage",
    "DatabaseClient",
    "DatabaseTransactionStorage",
    "DatabaseUserStorage",
]
