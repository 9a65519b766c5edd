"""
Validation Rules

Every piece of caller input passes through here before it reaches the
ledger, the budget evaluator or the report generator.

Each rule either returns a normalized, typed value or raises
ValidationError listing EVERY violated field. Rules are pure: they read
configuration once at construction and never touch storage.
"""

from datetime import date, datetime
from typing import Any, Optional, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from finance_tracker.config import get_settings
from finance_tracker.errors import ValidationError
from finance_tracker.models.period import MonthPeriod, MonthInput
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

ModelT = TypeVar("ModelT", bound=BaseModel)


# Messages for errors pydantic raises on its own, keyed by (field, type)
# first and then by type alone.
_MESSAGES = {
    ("type", "enum"): 'Type must be either "income" or "expense"',
    ("type", "missing"): 'Type must be either "income" or "expense"',
    ("category", "missing"): "Category is required",
    ("category", "string_too_short"): "Category is required",
    ("category", "string_too_long"): "Category must not exceed 50 characters",
    ("amount", "missing"): "Amount is required",
    ("description", "string_too_long"): "Description must not exceed 200 characters",
    ("month", "missing"): "Month is required",
    ("name", "string_too_short"): "Name must be at least 2 characters long",
    ("name", "string_too_long"): "Name is too long",
    ("email", "missing"): "Email is required",
    ("password", "missing"): "Password is required",
    ("password", "string_too_short"): "Password must be at least 8 characters long",
    ("page", "greater_than_equal"): "Page must be at least 1",
    ("page", "less_than_equal"): "Page is too large",
    ("pageSize", "greater_than_equal"): "Page size must be at least 1",
    "missing": "Field is required",
    "string_type": "Must be a string",
    "int_parsing": "Must be a whole number",
    "int_type": "Must be a whole number",
    "decimal_parsing": "Must be a number",
    "decimal_type": "Must be a number",
    "datetime_parsing": "Invalid date",
    "datetime_from_date_parsing": "Invalid date",
    "datetime_type": "Invalid date",
    "model_type": "Request body must be an object",
    "model_attributes_type": "Request body must be an object",
}


def issues_from_pydantic(exc: PydanticValidationError) -> list[ValidationIssue]:
    """Translate every pydantic error into a ValidationIssue."""
    issues = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "body"
        error_type = error["type"]

        if error_type == "value_error":
            message = str(error["ctx"]["error"])
        else:
            message = (
                _MESSAGES.get((field, error_type))
                or _MESSAGES.get(error_type)
                or error["msg"]
            )

        issues.append(ValidationIssue(
            field=field,
            issue_type=error_type,
            message=message,
        ))
    return issues


class FinanceValidator:
    """
    Validates and normalizes caller input.

    One instance is shared by all services; it holds no per-request state.
    """

    def __init__(self):
        app_settings = get_settings().app
        self._context = {
            "max_amount": app_settings.max_amount,
            "max_page_size": app_settings.max_page_size,
        }
        self._default_page_size = app_settings.default_page_size

    def _validate(self, model: type[ModelT], data: Any) -> ModelT:
        if isinstance(data, model):
            return data
        if data is None:
            data = {}
        try:
            return model.model_validate(data, context=self._context)
        except PydanticValidationError as e:
            raise ValidationError(issues_from_pydantic(e))

    # -- transactions ---------------------------------------------------------

    def validate_transaction_create(self, data: Any) -> TransactionCreate:
        return self._validate(TransactionCreate, data)

    def validate_transaction_update(self, data: Any) -> TransactionUpdate:
        return self._validate(TransactionUpdate, data)

    # -- budgets --------------------------------------------------------------

    def validate_budget_create(self, data: Any) -> BudgetCreate:
        return self._validate(BudgetCreate, data)

    # -- users ----------------------------------------------------------------

    def validate_registration(self, data: Any) -> UserRegistration:
        return self._validate(UserRegistration, data)

    def validate_login(self, data: Any) -> UserLogin:
        return self._validate(UserLogin, data)

    def validate_profile_update(self, data: Any) -> UserUpdate:
        return self._validate(UserUpdate, data)

    # -- reads ----------------------------------------------------------------

    def validate_page(
        self,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> PageRequest:
        """Defaults: page 1, the configured default page size."""
        return self._validate(PageRequest, {
            "page": 1 if page is None else page,
            "page_size": self._default_page_size if page_size is None else page_size,
        })

    def parse_month(self, value: MonthInput = None) -> MonthPeriod:
        """
        Resolve a month selector.

        None means the current UTC month; strings must be YYYY-MM;
        dates and datetimes select the month containing them.
        """
        if value is None:
            return MonthPeriod.current()
        if isinstance(value, (date, datetime)):
            return MonthPeriod.containing(value)
        try:
            return MonthPeriod.parse(value)
        except ValueError:
            raise ValidationError([ValidationIssue(
                field="month",
                issue_type="invalid_format",
                message="Month must be in YYYY-MM format",
            )])
