"""
Core Data Models for Finance Tracker

These models define the schemas for all records and derived views flowing
through the system. They are designed to:
1. Carry money as Decimal end to end
2. Serialize with camelCase field names and numeric money on the wire
3. Keep password hashes out of every serialized payload

Derived views (BudgetWithSpending, MonthlyReport, TransactionPage) are
computed at read time and never persisted.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# Decimal in Python, number in JSON.
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """
    Direction of a transaction.

    The sign of money lives here, never in the amount.
    """
    INCOME = "income"
    EXPENSE = "expense"


class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# PERSISTED RECORDS
# =============================================================================

class User(CamelModel):
    """Registered user. Email is stored lowercase."""

    id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=255)
    password_hash: str = Field(..., exclude=True, repr=False)
    currency_preference: str = Field(default="USD", min_length=3, max_length=3)
    monthly_income: Money = Field(default=Decimal("0"), ge=0)
    created_at: datetime = Field(default_factory=utc_now)

    def public_dict(self) -> dict:
        """Profile fields safe to return to the owner."""
        return self.model_dump(mode="json", by_alias=True)


class Transaction(CamelModel):
    """
    A dated, typed, categorized monetary record owned by one user.

    Invariant: amount > 0.
    """

    id: Optional[int] = None
    user_id: int
    type: TransactionType
    category: str = Field(..., min_length=1, max_length=50)
    amount: Money = Field(..., gt=0, decimal_places=2)
    description: Optional[str] = Field(default=None, max_length=200)
    date: datetime = Field(default_factory=utc_now)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Budget(CamelModel):
    """
    A per-category spending ceiling for one calendar month.

    `month` is the first instant of the month in UTC. At most one budget
    exists per (user_id, category, month).
    """

    id: Optional[int] = None
    user_id: int
    category: str = Field(..., min_length=1, max_length=50)
    amount: Money = Field(..., gt=0, decimal_places=2)
    month: datetime
    created_at: datetime = Field(default_factory=utc_now)


# =============================================================================
# DERIVED VIEWS
# =============================================================================

class BudgetWithSpending(Budget):
    """A budget joined with its actual spend for the month."""

    total_spent: Money = Decimal("0")
    overspent: bool = False


class MonthlyReport(CamelModel):
    """Income/expense rollup for one calendar month."""

    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    income: Money = Decimal("0")
    expense: Money = Decimal("0")
    savings: Money = Decimal("0")
    savings_rate: Money = Decimal("0")


class Pagination(CamelModel):
    current_page: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
    total_items: int = Field(..., ge=0)
    items_per_page: int = Field(..., ge=1)


class TransactionPage(CamelModel):
    """One page of a user's transactions, newest first."""

    data: list[Transaction] = Field(default_factory=list)
    pagination: Pagination
