"""
Main Orchestrator for Finance Tracker

Builds every component once and wires them together:
1. One DatabaseClient shared by the three storage implementations
2. One validator and one audit logger shared by every service
3. The ledger, budget evaluator, report generator and account service

The transport layer only ever talks to AppComponents; it never touches
storage directly.
"""

from dataclasses import dataclass
from typing import Optional

from finance_tracker.accounts import AccountService
from finance_tracker.audit import AuditLogger
from finance_tracker.budgets import BudgetEvaluator
from finance_tracker.ledger import TransactionLedger
from finance_tracker.reports import MonthlyReportGenerator
from finance_tracker.services.auth import PasswordHasher, TokenAuthProvider
from finance_tracker.services.storage import (
    DatabaseBudgetStorage,
    DatabaseClient,
    DatabaseTransactionStorage,
    DatabaseUserStorage,
)
from finance_tracker.validation import FinanceValidator


@dataclass
class AppComponents:
    """Everything a request handler needs."""

    database: DatabaseClient
    tokens: TokenAuthProvider
    accounts: AccountService
    ledger: TransactionLedger
    budgets: BudgetEvaluator
    reports: MonthlyReportGenerator
    audit_logger: AuditLogger

    def close(self) -> None:
        self.database.dispose()


def create_app_components(
    database_url: Optional[str] = None,
    hasher: Optional[PasswordHasher] = None,
    token_provider: Optional[TokenAuthProvider] = None,
    spend_scope: Optional[str] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        database_url: SQLAlchemy URL. Defaults to DATABASE_URL from settings;
                      "sqlite://" gives a private in-memory database for tests.
        hasher: Override the password hasher (e.g. fewer bcrypt rounds in tests).
        token_provider: Override token settings.
        spend_scope: "expense" or "all"; defaults to the configured scope.
    """
    database = DatabaseClient(url=database_url)
    database.connect()

    audit_logger = AuditLogger()
    validator = FinanceValidator()
    tokens = token_provider or TokenAuthProvider()

    user_storage = DatabaseUserStorage(database)
    transaction_storage = DatabaseTransactionStorage(database)
    budget_storage = DatabaseBudgetStorage(database)

    return AppComponents(
        database=database,
        tokens=tokens,
        accounts=AccountService(
            user_storage,
            hasher=hasher,
            token_provider=tokens,
            validator=validator,
            audit_logger=audit_logger,
        ),
        ledger=TransactionLedger(
            transaction_storage,
            validator=validator,
            audit_logger=audit_logger,
        ),
        budgets=BudgetEvaluator(
            budget_storage,
            transaction_storage,
            validator=validator,
            audit_logger=audit_logger,
            spend_scope=spend_scope,
        ),
        reports=MonthlyReportGenerator(
            transaction_storage,
            validator=validator,
            audit_logger=audit_logger,
        ),
        audit_logger=audit_logger,
    )
