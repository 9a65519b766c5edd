"""
Data Models Package

This package contains all Pydantic models used in the Finance Tracker.
All data flowing through the system must conform to these schemas.
"""

from finance_tracker.models.finance import (
    Budget,
    BudgetWithSpending,
    Money,
    MonthlyReport,
    Pagination,
    Transaction,
    TransactionPage,
    TransactionType,
    User,
    utc_now,
)
from finance_tracker.models.period import MonthPeriod, as_utc
from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Records and views
    "Budget",
    "BudgetWithSpending",
    "Money",
    "MonthlyReport",
    "Pagination",
    "Transaction",
    "TransactionPage",
    "TransactionType",
    "User",
    "utc_now",
    # Periods
    "MonthPeriod",
    "as_utc",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
