"""
Budget Evaluator

Creates per-category monthly budgets and reports, for a given month, how
much was actually spent against each one.

Spend is DERIVED at read time from the ledger, never stored, so it can
not drift from the transactions it summarizes.

At most one budget exists per (user, category, month). The lookup before
the insert only produces a friendlier error; the unique constraint in the
store is what actually enforces it.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Any, Optional

from finance_tracker.audit import AuditLogger
from finance_tracker.config import get_settings
from finance_tracker.errors import ConflictError, DuplicateError, ValidationError
from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.models.finance import Budget, BudgetWithSpending, TransactionType, utc_now
from finance_tracker.models.period import MonthInput, MonthPeriod
from finance_tracker.services.boundary import call_storage
from finance_tracker.services.storage import BudgetStorageInterface, TransactionStorageInterface
from finance_tracker.validation import FinanceValidator

CONFLICT_MESSAGE = "Budget already exists for this category and month"


def _category_key(category: str) -> str:
    return category.strip().lower()


class BudgetEvaluator:
    """
    Budget creation plus month-scoped spend evaluation.

    spend_scope:
        "expense" counts only expense transactions toward a budget.
        "all" counts every transaction in the category.
    """

    def __init__(
        self,
        budget_storage: BudgetStorageInterface,
        transaction_storage: TransactionStorageInterface,
        validator: Optional[FinanceValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        spend_scope: Optional[str] = None,
    ):
        self._budgets = budget_storage
        self._transactions = transaction_storage
        self._validator = validator or FinanceValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._spend_scope = spend_scope or get_settings().app.budget_spend_scope

    async def _conflict(self, user_id: int, category: str, month_label: str,
                        existing: Optional[Budget]) -> ConflictError:
        await self._audit_logger.log(AuditEventBuilder.budget_conflict(
            user_id=user_id,
            category=category,
            month=month_label,
        ))
        return ConflictError(CONFLICT_MESSAGE, existing=existing)

    async def create_budget(self, user_id: int, fields: Any) -> Budget:
        """
        Create a budget for one category in one month.

        `fields` holds category, amount and month (YYYY-MM).

        Raises:
            ValidationError: Bad input
            ConflictError: A budget for this category and month exists;
                carries the existing budget when it can be read back
        """
        try:
            validated = self._validator.validate_budget_create(fields)
        except ValidationError as e:
            await self._audit_logger.log_validation_failed(
                "budget_create", e.issues, user_id=user_id
            )
            raise

        category = _category_key(validated.category)
        month_label = MonthPeriod.containing(validated.month).label

        existing = await call_storage(
            self._budgets.find_budget(user_id, category, validated.month),
            "find_budget",
            self._audit_logger,
            user_id=user_id,
        )
        if existing is not None:
            raise await self._conflict(user_id, category, month_label, existing)

        budget = Budget(
            user_id=user_id,
            category=category,
            amount=validated.amount,
            month=validated.month,
            created_at=utc_now(),
        )

        try:
            saved = await call_storage(
                self._budgets.save_budget(budget),
                "save_budget",
                self._audit_logger,
                user_id=user_id,
            )
        except DuplicateError:
            # Lost the race to a concurrent insert
            existing = await call_storage(
                self._budgets.find_budget(user_id, category, validated.month),
                "find_budget",
                self._audit_logger,
                user_id=user_id,
            )
            raise await self._conflict(user_id, category, month_label, existing)

        await self._audit_logger.log(AuditEventBuilder.budget_created(
            user_id=user_id,
            budget_id=saved.id,
            category=category,
            month=month_label,
        ))
        return saved

    async def list_with_spending(
        self,
        user_id: int,
        month: MonthInput = None,
    ) -> list[BudgetWithSpending]:
        """
        The caller's budgets for `month` (default: current UTC month), each
        with the total spent in its category during that month.
        """
        period = self._validator.parse_month(month)

        budgets = await call_storage(
            self._budgets.list_budgets(user_id, period.start, period.end),
            "list_budgets",
            self._audit_logger,
            user_id=user_id,
        )
        if not budgets:
            return []

        transaction_type = TransactionType.EXPENSE if self._spend_scope == "expense" else None
        totals = await call_storage(
            self._transactions.sum_by_category(
                user_id,
                period.start,
                period.end,
                transaction_type=transaction_type,
            ),
            "sum_by_category",
            self._audit_logger,
            user_id=user_id,
        )

        # Categories match case-insensitively
        spent_by_category: dict[str, Decimal] = defaultdict(lambda: Decimal("0.00"))
        for category, total in totals.items():
            spent_by_category[_category_key(category)] += total

        evaluated = []
        for budget in budgets:
            spent = spent_by_category.get(_category_key(budget.category), Decimal("0.00"))
            evaluated.append(BudgetWithSpending(
                **budget.model_dump(),
                total_spent=spent,
                overspent=spent > budget.amount,
            ))

        await self._audit_logger.log(AuditEventBuilder.budgets_evaluated(
            user_id=user_id,
            month=period.label,
            budget_count=len(evaluated),
            overspent_count=sum(1 for b in evaluated if b.overspent),
        ))
        return evaluated
