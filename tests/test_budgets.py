"""
Tests for budget creation and spend evaluation.
"""

import asyncio

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from finance_tracker.budgets import BudgetEvaluator
from finance_tracker.errors import ConflictError, ValidationError
from finance_tracker.models import Transaction, TransactionType
from finance_tracker.services.storage import DatabaseBudgetStorage, DatabaseTransactionStorage


def spend(components, user_id, amount, category="food", date="2024-03-10T00:00:00Z",
          kind="expense"):
    return asyncio.run(components.ledger.create(user_id, {
        "type": kind, "category": category, "amount": amount, "date": date,
    }))


def budget(components, user_id, amount=100, category="food", month="2024-03"):
    return asyncio.run(components.budgets.create_budget(user_id, {
        "category": category, "amount": amount, "month": month,
    }))


class TestCreateBudget:

    def test_create(self, components, alice):
        created = budget(components, alice.id, category="Food")

        assert created.id is not None
        assert created.category == "food"
        assert created.amount == Decimal("100.00")
        assert created.month == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_second_budget_same_month_conflicts(self, components, alice):
        first = budget(components, alice.id)

        with pytest.raises(ConflictError) as exc_info:
            budget(components, alice.id, amount=250, category="FOOD")

        assert exc_info.value.existing.id == first.id
        assert exc_info.value.message == "Budget already exists for this category and month"

    def test_same_category_other_month_or_user_is_fine(self, components, alice, bob):
        budget(components, alice.id)
        budget(components, alice.id, month="2024-04")
        budget(components, bob.id)

    def test_store_constraint_still_reports_conflict(self, components, alice):
        """A duplicate the pre-check missed surfaces as a conflict too."""

        class RacingStorage(DatabaseBudgetStorage):
            calls = 0

            async def find_budget(self, user_id, category, month):
                RacingStorage.calls += 1
                if RacingStorage.calls == 1:
                    return None
                return await super().find_budget(user_id, category, month)

        existing = budget(components, alice.id)
        evaluator = BudgetEvaluator(
            RacingStorage(components.database),
            DatabaseTransactionStorage(components.database),
        )

        with pytest.raises(ConflictError) as exc_info:
            asyncio.run(evaluator.create_budget(alice.id, {
                "category": "food", "amount": 50, "month": "2024-03",
            }))
        assert exc_info.value.existing.id == existing.id

    def test_bad_input(self, components, alice):
        with pytest.raises(ValidationError) as exc_info:
            budget(components, alice.id, amount=-1, month="2024-13")
        assert set(exc_info.value.fields) == {"amount", "month"}


class TestListWithSpending:

    def test_overspent_when_spend_exceeds_amount(self, components, alice):
        budget(components, alice.id, amount=100)
        spend(components, alice.id, 70)
        spend(components, alice.id, 50)

        [food] = asyncio.run(components.budgets.list_with_spending(alice.id, "2024-03"))

        assert food.total_spent == Decimal("120.00")
        assert food.overspent is True

    def test_under_budget(self, components, alice):
        budget(components, alice.id, amount=100)
        spend(components, alice.id, 80)

        [food] = asyncio.run(components.budgets.list_with_spending(alice.id, "2024-03"))

        assert food.total_spent == Decimal("80.00")
        assert food.overspent is False

    def test_spending_exactly_the_budget_is_not_overspent(self, components, alice):
        budget(components, alice.id, amount=100)
        spend(components, alice.id, 100)

        [food] = asyncio.run(components.budgets.list_with_spending(alice.id, "2024-03"))
        assert food.overspent is False

    def test_budget_without_spend(self, components, alice):
        budget(components, alice.id, category="travel")

        [travel] = asyncio.run(components.budgets.list_with_spending(alice.id, "2024-03"))

        assert travel.total_spent == Decimal("0")
        assert travel.overspent is False

    def test_only_that_month_counts(self, components, alice):
        budget(components, alice.id, amount=100)
        spend(components, alice.id, 90, date="2024-02-29T23:59:59Z")
        spend(components, alice.id, 90, date="2024-04-01T00:00:00Z")
        spend(components, alice.id, 10, date="2024-03-31T23:59:59Z")

        [food] = asyncio.run(components.budgets.list_with_spending(alice.id, "2024-03"))
        assert food.total_spent == Decimal("10.00")

    def test_income_does_not_count_as_spend(self, components, alice):
        budget(components, alice.id, amount=100)
        spend(components, alice.id, 500, kind="income")

        [food] = asyncio.run(components.budgets.list_with_spending(alice.id, "2024-03"))
        assert food.total_spent == Decimal("0")

    def test_all_scope_counts_every_type(self, components, alice):
        budget(components, alice.id, amount=100)
        spend(components, alice.id, 60)
        spend(components, alice.id, 60, kind="income")

        evaluator = BudgetEvaluator(
            DatabaseBudgetStorage(components.database),
            DatabaseTransactionStorage(components.database),
            spend_scope="all",
        )
        [food] = asyncio.run(evaluator.list_with_spending(alice.id, "2024-03"))

        assert food.total_spent == Decimal("120.00")
        assert food.overspent is True

    def test_other_users_spend_is_ignored(self, components, alice, bob):
        budget(components, alice.id, amount=100)
        spend(components, bob.id, 500)

        [food] = asyncio.run(components.budgets.list_with_spending(alice.id, "2024-03"))
        assert food.total_spent == Decimal("0")

    def test_no_budgets(self, components, alice):
        spend(components, alice.id, 10)
        assert asyncio.run(components.budgets.list_with_spending(alice.id, "2024-03")) == []

    def test_stored_categories_match_regardless_of_case(self, components, alice):
        """Rows written outside the ledger still count toward the budget."""
        transactions = DatabaseTransactionStorage(components.database)
        for category, amount in (("Food", "30.00"), (" FOOD ", "12.50")):
            asyncio.run(transactions.save_transaction(Transaction(
                user_id=alice.id,
                type=TransactionType.EXPENSE,
                category=category,
                amount=Decimal(amount),
                date=datetime(2024, 3, 10, tzinfo=timezone.utc),
            )))
        budget(components, alice.id, amount=40)

        [food] = asyncio.run(components.budgets.list_with_spending(alice.id, "2024-03"))

        assert food.category == "food"
        assert food.total_spent == Decimal("42.50")
        assert food.overspent is True

    def test_bad_month(self, components, alice):
        with pytest.raises(ValidationError):
            asyncio.run(components.budgets.list_with_spending(alice.id, "03/2024"))
