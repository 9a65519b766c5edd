"""
Monthly Report Generator

Rolls a user's transactions for one calendar month up into income,
expense, savings and savings rate. Only stored transactions are summed;
nothing is estimated.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from finance_tracker.audit import AuditLogger
from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.models.finance import MonthlyReport, TransactionType
from finance_tracker.models.period import MonthInput
from finance_tracker.services.boundary import call_storage
from finance_tracker.services.storage import TransactionStorageInterface
from finance_tracker.validation import FinanceValidator

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def savings_rate(income: Decimal, savings: Decimal) -> Decimal:
    """Savings as a percentage of income, 2 places; 0 when there is no income."""
    if income <= 0:
        return ZERO
    return (savings / income * 100).quantize(CENT, rounding=ROUND_HALF_UP)


class MonthlyReportGenerator:

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        validator: Optional[FinanceValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = transaction_storage
        self._validator = validator or FinanceValidator()
        self._audit_logger = audit_logger or AuditLogger()

    async def generate(self, user_id: int, month: MonthInput = None) -> MonthlyReport:
        """
        Report for `month` (YYYY-MM string, date, or None for the current
        UTC month).
        """
        period = self._validator.parse_month(month)

        totals = await call_storage(
            self._storage.sum_by_type(user_id, period.start, period.end),
            "sum_by_type",
            self._audit_logger,
            user_id=user_id,
        )
        income = totals.get(TransactionType.INCOME, ZERO)
        expense = totals.get(TransactionType.EXPENSE, ZERO)
        savings = income - expense

        report = MonthlyReport(
            month=period.label,
            income=income,
            expense=expense,
            savings=savings,
            savings_rate=savings_rate(income, savings),
        )

        await self._audit_logger.log(AuditEventBuilder.report_generated(
            user_id=user_id,
            month=period.label,
        ))
        return report
