"""Input validation package."""

from finance_tracker.validation.schemas import (
    BudgetCreate,
    PageRequest,
    TransactionCreate,
    TransactionUpdate,
    UserLogin,
    UserRegistration,
    UserUpdate,
    ValidationIssue,
)
from finance_tracker.validation.validator import FinanceValidator, issues_from_pydantic

__all__ = [
    "BudgetCreate",
    "FinanceValidator",
    "PageRequest",
    "TransactionCreate",
    "TransactionUpdate",
    "UserLogin",
    "UserRegistration",
    "UserUpdate",
    "ValidationIssue",
    "issues_from_pydantic",
]
