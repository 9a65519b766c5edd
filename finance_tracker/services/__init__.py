"""Services package."""

from finance_tracker.services.auth import PasswordHasher, TokenAuthProvider
from finance_tracker.services.storage import (
    BudgetStorageInterface,
    DatabaseBudgetStorage,
    DatabaseClient,
    DatabaseTransactionStorage,
    DatabaseUserStorage,
    DuplicateError,
    StorageError,
    TransactionStorageInterface,
    UserStorageInterface,
)

__all__ = [
    # Auth services
    "PasswordHasher",
    "TokenAuthProvider",
    # Storage services
    "BudgetStorageInterface",
    "DatabaseBudgetStorage",
    "DatabaseClient",
    "DatabaseTransactionStorage",
    "DatabaseUserStorage",
    "DuplicateError",
    "StorageError",
    "TransactionStorageInterface",
    "UserStorageInterface",
]
