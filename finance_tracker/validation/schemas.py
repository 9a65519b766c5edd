"""
Input schemas for everything a caller can send.

These models normalize as they validate: categories are lowercased,
emails trimmed and lowercased, currencies uppercased, amounts quantized to
cents and timestamps converted to UTC. Limits that come from configuration
(the largest amount, the largest page) are read from the validation
context so the schemas themselves stay free of I/O.
"""

import re
from datetime import date, datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from finance_tracker.models.finance import TransactionType
from finance_tracker.models.period import MonthPeriod, as_utc

DEFAULT_MAX_AMOUNT = Decimal("99999999.99")
CENT = Decimal("0.01")
MAX_PAGE = 1_000_000

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
NAME_PATTERN = re.compile(r"^[a-zA-Z\s]+$")
SPECIAL_CHARACTERS = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(..., description="Field with the issue")
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'too_long', 'invalid_value')"
    )
    message: str = Field(..., description="Human-readable description of the issue")

    def to_detail(self) -> dict:
        return {"field": self.field, "message": self.message}


class InputModel(BaseModel):
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# SHARED FIELD RULES
# =============================================================================

def _coerce_amount(value: Any) -> Any:
    # JSON numbers only; "12.50" and true are rejected.
    if value is None:
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValueError("Amount must be a number")
    return value


def _check_amount(value: Optional[Decimal], info: ValidationInfo) -> Optional[Decimal]:
    if value is None:
        return value
    if not value.is_finite():
        raise ValueError("Amount must be a number")
    # Range applies to the stored cent value
    rounded = value.quantize(CENT, rounding=ROUND_HALF_UP)
    if rounded <= 0:
        raise ValueError("Amount must be greater than 0")
    limit = (info.context or {}).get("max_amount", DEFAULT_MAX_AMOUNT)
    if rounded > limit:
        raise ValueError("Amount is too large")
    return rounded


def _coerce_timestamp(value: Any) -> Any:
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    return value


def _normalize_email(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


def _check_email(value: Optional[str]) -> Optional[str]:
    if value is not None and not EMAIL_PATTERN.match(value):
        raise ValueError("Please provide a valid email address")
    return value


def _check_name(value: Optional[str]) -> Optional[str]:
    if value is not None and not NAME_PATTERN.match(value):
        raise ValueError("Name can only contain letters and spaces")
    return value


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionCreate(InputModel):
    """A new transaction. `date` stays None when omitted; the ledger fills it."""

    type: TransactionType
    category: str = Field(..., min_length=1, max_length=50)
    amount: Decimal
    description: Optional[str] = Field(default=None, max_length=200)
    date: Optional[datetime] = None

    @field_validator("category")
    @classmethod
    def lowercase_category(cls, v: str) -> str:
        return v.lower()

    @field_validator("amount", mode="before")
    @classmethod
    def amount_is_number(cls, v: Any) -> Any:
        return _coerce_amount(v)

    @field_validator("amount")
    @classmethod
    def amount_in_range(cls, v: Decimal, info: ValidationInfo) -> Decimal:
        return _check_amount(v, info)

    @field_validator("date", mode="before")
    @classmethod
    def accept_plain_dates(cls, v: Any) -> Any:
        return _coerce_timestamp(v)

    @field_validator("date")
    @classmethod
    def date_to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v) if v is not None else None


class TransactionUpdate(InputModel):
    """
    Partial update. Every field is optional; absent or null means unchanged.
    """

    type: Optional[TransactionType] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=50)
    amount: Optional[Decimal] = None
    description: Optional[str] = Field(default=None, max_length=200)
    date: Optional[datetime] = None

    @field_validator("category")
    @classmethod
    def lowercase_category(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v is not None else None

    @field_validator("amount", mode="before")
    @classmethod
    def amount_is_number(cls, v: Any) -> Any:
        return _coerce_amount(v)

    @field_validator("amount")
    @classmethod
    def amount_in_range(cls, v: Optional[Decimal], info: ValidationInfo) -> Optional[Decimal]:
        return _check_amount(v, info)

    @field_validator("date", mode="before")
    @classmethod
    def blank_date_is_absent(cls, v: Any) -> Any:
        if v == "":
            return None
        return _coerce_timestamp(v)

    @field_validator("date")
    @classmethod
    def date_to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v) if v is not None else None

    def changes(self) -> dict[str, Any]:
        """The fields the caller actually supplied."""
        return self.model_dump(exclude_none=True)


# =============================================================================
# BUDGETS
# =============================================================================

class BudgetCreate(InputModel):
    """A new monthly budget. `month` arrives as YYYY-MM."""

    category: str = Field(..., min_length=1, max_length=50)
    amount: Decimal
    month: datetime

    @field_validator("category")
    @classmethod
    def lowercase_category(cls, v: str) -> str:
        return v.lower()

    @field_validator("amount", mode="before")
    @classmethod
    def amount_is_number(cls, v: Any) -> Any:
        return _coerce_amount(v)

    @field_validator("amount")
    @classmethod
    def amount_in_range(cls, v: Decimal, info: ValidationInfo) -> Decimal:
        return _check_amount(v, info)

    @field_validator("month", mode="before")
    @classmethod
    def month_start(cls, v: Any) -> datetime:
        if not isinstance(v, str):
            raise ValueError("Month must be in YYYY-MM format")
        return MonthPeriod.parse(v.strip()).start


# =============================================================================
# USERS
# =============================================================================

class UserRegistration(InputModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def lowercase_email(cls, v: Any) -> Any:
        return _normalize_email(v)

    @field_validator("email")
    @classmethod
    def valid_email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("name")
    @classmethod
    def valid_name(cls, v: str) -> str:
        return _check_name(v)

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"\d", v):
            raise ValueError("Password must contain at least one number")
        if not SPECIAL_CHARACTERS.search(v):
            raise ValueError("Password must contain at least one special character")
        return v


class UserLogin(InputModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def lowercase_email(cls, v: Any) -> Any:
        return _normalize_email(v)

    @field_validator("email")
    @classmethod
    def valid_email(cls, v: str) -> str:
        return _check_email(v)


class UserUpdate(InputModel):
    """Profile changes. Absent or null fields are left unchanged."""

    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    email: Optional[str] = Field(default=None, max_length=255)
    currency_preference: Optional[str] = None
    monthly_income: Optional[Decimal] = None

    @field_validator("email", mode="before")
    @classmethod
    def lowercase_email(cls, v: Any) -> Any:
        return _normalize_email(v)

    @field_validator("email")
    @classmethod
    def valid_email(cls, v: Optional[str]) -> Optional[str]:
        return _check_email(v)

    @field_validator("name")
    @classmethod
    def valid_name(cls, v: Optional[str]) -> Optional[str]:
        return _check_name(v)

    @field_validator("currency_preference")
    @classmethod
    def three_letter_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if len(v) != 3 or not v.isalpha():
            raise ValueError("Currency must be a 3-letter code (e.g., USD, EUR)")
        return v.upper()

    @field_validator("monthly_income", mode="before")
    @classmethod
    def income_is_number(cls, v: Any) -> Any:
        if v is None:
            return v
        if isinstance(v, bool) or not isinstance(v, (int, float, Decimal)):
            raise ValueError("Monthly income must be a number")
        return v

    @field_validator("monthly_income")
    @classmethod
    def income_not_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is None:
            return v
        if not v.is_finite():
            raise ValueError("Monthly income must be a number")
        if v < 0:
            raise ValueError("Monthly income cannot be negative")
        return v.quantize(CENT, rounding=ROUND_HALF_UP)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


# =============================================================================
# READS
# =============================================================================

class PageRequest(InputModel):
    page: int = Field(default=1, ge=1, le=MAX_PAGE)
    page_size: int = Field(default=10, ge=1)

    @field_validator("page_size")
    @classmethod
    def within_max(cls, v: int, info: ValidationInfo) -> int:
        limit = (info.context or {}).get("max_page_size")
        if limit is not None and v > limit:
            raise ValueError(f"Page size must not exceed {limit}")
        return v

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size
