"""
Tests for monthly reports.
"""

import asyncio

import pytest
from datetime import date
from decimal import Decimal

from finance_tracker.errors import ValidationError
from finance_tracker.models import MonthPeriod
from finance_tracker.reports.monthly import savings_rate


def record(components, user_id, kind, amount, date_str="2024-03-15T00:00:00Z"):
    asyncio.run(components.ledger.create(user_id, {
        "type": kind, "category": "misc", "amount": amount, "date": date_str,
    }))


class TestMonthlyReport:

    def test_income_expense_savings_and_rate(self, components, alice):
        record(components, alice.id, "income", 1000)
        record(components, alice.id, "expense", 250)
        record(components, alice.id, "expense", 150)

        report = asyncio.run(components.reports.generate(alice.id, "2024-03"))

        assert report.month == "2024-03"
        assert report.income == Decimal("1000.00")
        assert report.expense == Decimal("400.00")
        assert report.savings == Decimal("600.00")
        assert report.savings_rate == Decimal("60.00")

    def test_no_income_means_zero_rate(self, components, alice):
        record(components, alice.id, "expense", 75)

        report = asyncio.run(components.reports.generate(alice.id, "2024-03"))

        assert report.income == Decimal("0")
        assert report.savings == Decimal("-75.00")
        assert report.savings_rate == Decimal("0")

    def test_empty_month(self, components, alice):
        report = asyncio.run(components.reports.generate(alice.id, "1999-01"))

        assert report.model_dump(mode="json", by_alias=True) == {
            "month": "1999-01",
            "income": 0.0,
            "expense": 0.0,
            "savings": 0.0,
            "savingsRate": 0.0,
        }

    def test_other_months_and_users_are_excluded(self, components, alice, bob):
        record(components, alice.id, "income", 500)
        record(components, alice.id, "income", 999, date_str="2024-04-01T00:00:00Z")
        record(components, bob.id, "income", 999)

        report = asyncio.run(components.reports.generate(alice.id, "2024-03"))
        assert report.income == Decimal("500.00")

    def test_defaults_to_current_month(self, components, alice):
        report = asyncio.run(components.reports.generate(alice.id))
        assert report.month == MonthPeriod.current().label

    def test_accepts_a_date(self, components, alice):
        report = asyncio.run(components.reports.generate(alice.id, date(2024, 3, 31)))
        assert report.month == "2024-03"

    def test_bad_month(self, components, alice):
        with pytest.raises(ValidationError):
            asyncio.run(components.reports.generate(alice.id, "2024-3"))


class TestSavingsRate:

    @pytest.mark.parametrize("income, savings, expected", [
        (Decimal("1000"), Decimal("600"), Decimal("60.00")),
        (Decimal("3"), Decimal("1"), Decimal("33.33")),
        (Decimal("3"), Decimal("2"), Decimal("66.67")),
        (Decimal("100"), Decimal("-50"), Decimal("-50.00")),
        (Decimal("0"), Decimal("-10"), Decimal("0")),
    ])
    def test_rounding(self, income, savings, expected):
        assert savings_rate(income, savings) == expected
