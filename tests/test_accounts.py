"""
Tests for registration, login, profile updates and account deletion.
"""

import asyncio

import pytest
from decimal import Decimal

from finance_tracker.errors import (
    ConflictError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)

STRONG_PASSWORD = "Str0ng!Pass"


class TestRegistration:

    def test_register_hashes_password(self, components, alice):
        assert alice.id is not None
        assert alice.email == "alice@example.com"
        assert alice.password_hash != STRONG_PASSWORD
        assert alice.password_hash.startswith("$2")
        assert alice.currency_preference == "USD"

    def test_email_must_be_unique_case_insensitively(self, components, alice, register):
        with pytest.raises(ConflictError):
            register(email="ALICE@example.com")

    def test_invalid_registration(self, components):
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(components.accounts.register({"name": "A", "email": "x"}))
        assert {"name", "email", "password"} <= set(exc_info.value.fields)


class TestLogin:

    def test_login_returns_token_for_user(self, components, alice):
        token, user = asyncio.run(components.accounts.login({
            "email": "Alice@Example.com", "password": STRONG_PASSWORD,
        }))

        assert user.id == alice.id
        assert components.tokens.verify_token(token) == alice.id

    @pytest.mark.parametrize("email, password", [
        ("alice@example.com", "Wr0ng!Pass"),
        ("nobody@example.com", STRONG_PASSWORD),
    ])
    def test_bad_credentials_share_one_message(self, components, alice, email, password):
        with pytest.raises(UnauthenticatedError) as exc_info:
            asyncio.run(components.accounts.login({"email": email, "password": password}))
        assert exc_info.value.message == "Invalid email or password"


class TestProfile:

    def test_update_only_supplied_fields(self, components, alice):
        updated = asyncio.run(components.accounts.update_profile(alice.id, {
            "currencyPreference": "eur",
            "monthlyIncome": 3200.5,
        }))

        assert updated.currency_preference == "EUR"
        assert updated.monthly_income == Decimal("3200.50")
        assert updated.name == alice.name
        assert updated.email == alice.email

    def test_email_taken_by_someone_else(self, components, alice, bob):
        with pytest.raises(ConflictError):
            asyncio.run(components.accounts.update_profile(alice.id, {"email": "bob@example.com"}))

    def test_keeping_own_email_is_fine(self, components, alice):
        updated = asyncio.run(components.accounts.update_profile(alice.id, {
            "email": "ALICE@example.com", "name": "Alice Cooper",
        }))
        assert updated.name == "Alice Cooper"

    def test_update_missing_user(self, components):
        with pytest.raises(NotFoundError):
            asyncio.run(components.accounts.update_profile(404, {"name": "Ghost"}))


class TestDeleteAccount:

    def test_delete_removes_user_and_owned_records(self, components, alice, bob):
        asyncio.run(components.ledger.create(alice.id, {
            "type": "expense", "category": "food", "amount": 10,
        }))
        asyncio.run(components.budgets.create_budget(alice.id, {
            "category": "food", "amount": 100, "month": "2024-03",
        }))
        kept = asyncio.run(components.ledger.create(bob.id, {
            "type": "expense", "category": "food", "amount": 10,
        }))

        deleted = asyncio.run(components.accounts.delete_account(alice.id))

        assert deleted.id == alice.id
        assert asyncio.run(components.ledger.list(alice.id)).pagination.total_items == 0
        assert asyncio.run(components.budgets.list_with_spending(alice.id, "2024-03")) == []
        assert asyncio.run(components.ledger.get_by_id(kept.id, user_id=bob.id))
        with pytest.raises(UnauthenticatedError):
            asyncio.run(components.accounts.login({
                "email": "alice@example.com", "password": STRONG_PASSWORD,
            }))

    def test_delete_twice(self, components, alice):
        asyncio.run(components.accounts.delete_account(alice.id))
        with pytest.raises(NotFoundError):
            asyncio.run(components.accounts.delete_account(alice.id))
