"""
Tests for input validation.

Every rule either returns a normalized value or raises ValidationError
naming every bad field.
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from finance_tracker.errors import ValidationError
from finance_tracker.models import MonthPeriod, TransactionType
from finance_tracker.validation import FinanceValidator


@pytest.fixture
def validator():
    return FinanceValidator()


def messages(error: ValidationError) -> dict[str, str]:
    return {issue.field: issue.message for issue in error.issues}


class TestTransactionRules:
    """Tests for transaction create/update input."""

    def test_valid_create_is_normalized(self, validator):
        """Test category lowercased, amount quantized, date in UTC."""
        result = validator.validate_transaction_create({
            "type": "expense",
            "category": "  Groceries ",
            "amount": 12.5,
            "description": "weekly shop",
            "date": "2024-03-05T10:00:00+02:00",
        })

        assert result.type == TransactionType.EXPENSE
        assert result.category == "groceries"
        assert result.amount == Decimal("12.50")
        assert result.date == datetime(2024, 3, 5, 8, 0, tzinfo=timezone.utc)

    def test_missing_date_stays_empty(self, validator):
        result = validator.validate_transaction_create({
            "type": "income", "category": "salary", "amount": 1000,
        })
        assert result.date is None

    def test_plain_date_becomes_midnight_utc(self, validator):
        result = validator.validate_transaction_create({
            "type": "income", "category": "salary", "amount": 1000, "date": date(2024, 3, 1),
        })
        assert result.date == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_amount_rounds_half_up_to_cents(self, validator):
        result = validator.validate_transaction_create({
            "type": "expense", "category": "food", "amount": Decimal("10.005"),
        })
        assert result.amount == Decimal("10.01")

    def test_reports_every_bad_field_at_once(self, validator):
        """Test one error lists type, category and amount together."""
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_transaction_create({
                "type": "transfer",
                "category": "",
                "amount": -5,
            })

        errors = messages(exc_info.value)
        assert set(errors) == {"type", "category", "amount"}
        assert errors["type"] == 'Type must be either "income" or "expense"'
        assert errors["category"] == "Category is required"
        assert errors["amount"] == "Amount must be greater than 0"

    def test_empty_body_reports_required_fields(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_transaction_create(None)

        assert {"type", "category", "amount"} <= set(exc_info.value.fields)

    @pytest.mark.parametrize("amount", ["12.50", True, None])
    def test_amount_must_be_a_json_number(self, validator, amount):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_transaction_create({
                "type": "expense", "category": "food", "amount": amount,
            })
        assert "amount" in exc_info.value.fields

    def test_amount_upper_bound(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_transaction_create({
                "type": "expense", "category": "food", "amount": 100000000,
            })
        assert messages(exc_info.value)["amount"] == "Amount is too large"

    @pytest.mark.parametrize("validate, data", [
        ("validate_transaction_create", {"type": "expense", "category": "food", "amount": 0.004}),
        ("validate_transaction_update", {"amount": 0.004}),
        ("validate_budget_create", {"category": "food", "amount": 0.004, "month": "2024-03"}),
    ])
    def test_amount_rounding_to_zero_is_rejected(self, validator, validate, data):
        """Test sub-cent amounts fail as a field error, not after rounding to 0.00."""
        with pytest.raises(ValidationError) as exc_info:
            getattr(validator, validate)(data)
        assert messages(exc_info.value)["amount"] == "Amount must be greater than 0"

    def test_half_cent_rounds_up_to_valid_amount(self, validator):
        result = validator.validate_transaction_create({
            "type": "expense", "category": "food", "amount": Decimal("0.005"),
        })
        assert result.amount == Decimal("0.01")

    def test_long_category_and_description(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_transaction_create({
                "type": "expense",
                "category": "x" * 51,
                "amount": 1,
                "description": "y" * 201,
            })

        errors = messages(exc_info.value)
        assert errors["category"] == "Category must not exceed 50 characters"
        assert errors["description"] == "Description must not exceed 200 characters"

    def test_update_changes_only_supplied_fields(self, validator):
        """Test null and absent fields are left out of the change set."""
        result = validator.validate_transaction_update({
            "amount": 45,
            "category": None,
            "date": "",
        })
        assert result.changes() == {"amount": Decimal("45.00")}

    def test_update_still_checks_supplied_fields(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_transaction_update({"amount": 0, "type": "gift"})
        assert set(exc_info.value.fields) == {"amount", "type"}


class TestBudgetRules:
    """Tests for budget input."""

    def test_month_becomes_first_instant(self, validator):
        result = validator.validate_budget_create({
            "category": "Food", "amount": 100, "month": "2024-03",
        })

        assert result.category == "food"
        assert result.month == datetime(2024, 3, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("month", ["2024-13", "March", 202403])
    def test_bad_month(self, validator, month):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_budget_create({"category": "food", "amount": 100, "month": month})
        assert messages(exc_info.value)["month"] == "Month must be in YYYY-MM format"

    def test_missing_everything(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_budget_create({})
        assert set(exc_info.value.fields) == {"category", "amount", "month"}


class TestUserRules:
    """Tests for registration, login and profile input."""

    def test_registration_normalizes_email(self, validator):
        result = validator.validate_registration({
            "name": "Alice Smith",
            "email": "  Alice@Example.COM ",
            "password": "Str0ng!Pass",
        })
        assert result.email == "alice@example.com"

    @pytest.mark.parametrize("password, message", [
        ("str0ng!pass", "Password must contain at least one uppercase letter"),
        ("STR0NG!PASS", "Password must contain at least one lowercase letter"),
        ("Strong!Pass", "Password must contain at least one number"),
        ("Str0ngPass1", "Password must contain at least one special character"),
        ("S0!a", "Password must be at least 8 characters long"),
    ])
    def test_weak_passwords(self, validator, password, message):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_registration({
                "name": "Alice Smith", "email": "alice@example.com", "password": password,
            })
        assert messages(exc_info.value)["password"] == message

    def test_bad_name_and_email_together(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_registration({
                "name": "R2D2", "email": "not-an-email", "password": "Str0ng!Pass",
            })

        errors = messages(exc_info.value)
        assert errors["name"] == "Name can only contain letters and spaces"
        assert errors["email"] == "Please provide a valid email address"

    def test_login_only_needs_a_password(self, validator):
        result = validator.validate_login({"email": "alice@example.com", "password": "x"})
        assert result.password == "x"

    def test_profile_update(self, validator):
        result = validator.validate_profile_update({
            "currencyPreference": "eur",
            "monthlyIncome": 2500,
        })
        assert result.changes() == {
            "currency_preference": "EUR",
            "monthly_income": Decimal("2500.00"),
        }

    def test_profile_update_rejects_bad_values(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_profile_update({
                "currencyPreference": "EURO",
                "monthlyIncome": -1,
            })

        errors = messages(exc_info.value)
        assert errors["currencyPreference"] == "Currency must be a 3-letter code (e.g., USD, EUR)"
        assert errors["monthlyIncome"] == "Monthly income cannot be negative"


class TestReadRules:
    """Tests for paging and month selectors."""

    def test_page_defaults(self, validator):
        request = validator.validate_page()

        assert request.page == 1
        assert request.page_size == 10
        assert request.offset == 0

    def test_page_offset(self, validator):
        assert validator.validate_page(3, 5).offset == 10

    def test_page_size_limit(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_page(1, 101)
        assert exc_info.value.issues[0].message == "Page size must not exceed 100"

    def test_page_must_be_positive(self, validator):
        with pytest.raises(ValidationError):
            validator.validate_page(0, 10)

    def test_page_upper_bound(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_page(10**19, 10)
        assert messages(exc_info.value) == {"page": "Page is too large"}

    def test_parse_month_defaults_to_current(self, validator):
        assert validator.parse_month(None) == MonthPeriod.current()

    def test_parse_month_rejects_garbage(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.parse_month("2024-3")
        assert exc_info.value.fields == ["month"]
