"""
Abstract Storage Interface

The persistence store sits behind these interfaces so that:
1. Business logic never depends on a particular database
2. Tests can run against an in-memory SQLite engine
3. Uniqueness and ownership are enforced where the data lives

The store is the authoritative guard for the (user, category, month)
budget constraint and for per-row ownership: owner-scoped mutations take
both the record id and the user id and touch nothing when they disagree.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional

from finance_tracker.errors import DuplicateError, StorageError
from finance_tracker.models.finance import Budget, Transaction, TransactionType, User


class UserStorageInterface(ABC):
    """Abstract interface for user storage operations."""

    @abstractmethod
    async def save_user(self, user: User) -> User:
        """
        Persist a new user and return it with its id.

        Raises:
            DuplicateError: If the email is already registered
            StorageError: If the save fails
        """
        pass

    @abstractmethod
    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        pass

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Look up a user by email, case-insensitively."""
        pass

    @abstractmethod
    async def update_user(self, user: User) -> Optional[User]:
        """
        Overwrite a user's mutable fields.

        Returns:
            The stored user, or None if it no longer exists

        Raises:
            DuplicateError: If the new email belongs to another user
        """
        pass

    @abstractmethod
    async def delete_user(self, user_id: int) -> Optional[User]:
        """
        Delete a user together with every transaction and budget it owns,
        in one storage transaction.

        Returns:
            The deleted user, or None if it did not exist
        """
        pass


class TransactionStorageInterface(ABC):
    """Abstract interface for transaction storage operations."""

    @abstractmethod
    async def save_transaction(self, transaction: Transaction) -> Transaction:
        """Persist a new transaction and return it with its id."""
        pass

    @abstractmethod
    async def get_transaction_by_id(self, transaction_id: int) -> Optional[Transaction]:
        pass

    @abstractmethod
    async def update_transaction(self, transaction: Transaction) -> Optional[Transaction]:
        """
        Overwrite a transaction, scoped to `transaction.user_id`.

        Returns:
            The stored transaction, or None if no row matched both the id
            and the owner
        """
        pass

    @abstractmethod
    async def delete_transaction(
        self,
        transaction_id: int,
        user_id: int,
    ) -> Optional[Transaction]:
        """
        Delete a transaction, scoped to its owner.

        Returns:
            The deleted transaction, or None if no row matched
        """
        pass

    @abstractmethod
    async def list_transactions(
        self,
        user_id: int,
        limit: int = 10,
        offset: int = 0,
    ) -> list[Transaction]:
        """A user's transactions, most recent date first."""
        pass

    @abstractmethod
    async def count_transactions(self, user_id: int) -> int:
        pass

    @abstractmethod
    async def sum_by_category(
        self,
        user_id: int,
        date_from: datetime,
        date_to: datetime,
        transaction_type: Optional[TransactionType] = None,
    ) -> dict[str, Decimal]:
        """
        Sum amounts per category for dates in [date_from, date_to).

        Args:
            transaction_type: Only count this type. None counts every type.
        """
        pass

    @abstractmethod
    async def sum_by_type(
        self,
        user_id: int,
        date_from: datetime,
        date_to: datetime,
    ) -> dict[TransactionType, Decimal]:
        """Sum amounts per transaction type for dates in [date_from, date_to)."""
        pass


class BudgetStorageInterface(ABC):
    """Abstract interface for budget storage operations."""

    @abstractmethod
    async def save_budget(self, budget: Budget) -> Budget:
        """
        Persist a new budget.

        Raises:
            DuplicateError: If a budget exists for the same user,
                category and month
        """
        pass

    @abstractmethod
    async def find_budget(
        self,
        user_id: int,
        category: str,
        month: datetime,
    ) -> Optional[Budget]:
        pass

    @abstractmethod
    async def list_budgets(
        self,
        user_id: int,
        date_from: datetime,
        date_to: datetime,
    ) -> list[Budget]:
        """A user's budgets whose month falls in [date_from, date_to)."""
        pass


__all__ = [
    "BudgetStorageInterface",
    "DuplicateError",
    "StorageError",
    "TransactionStorageInterface",
    "UserStorageInterface",
]
