"""
Shared fixtures.

Every test gets its own in-memory SQLite database ("sqlite://" with a
static pool) so tests never see each other's rows. bcrypt runs at the
lowest cost factor to keep registration fast.
"""

import asyncio

import pytest

from finance_tracker.orchestrator import create_app_components
from finance_tracker.services.auth import PasswordHasher, TokenAuthProvider

TEST_SECRET = "test-secret-that-is-at-least-thirty-two-bytes"
STRONG_PASSWORD = "Str0ng!Pass"


@pytest.fixture
def components():
    app_components = create_app_components(
        database_url="sqlite://",
        hasher=PasswordHasher(rounds=4),
        token_provider=TokenAuthProvider(secret=TEST_SECRET),
    )
    yield app_components
    app_components.close()


@pytest.fixture
def register(components):
    """Register a user and return it."""

    def _register(name: str = "Alice Smith", email: str = "alice@example.com"):
        return asyncio.run(components.accounts.register({
            "name": name,
            "email": email,
            "password": STRONG_PASSWORD,
        }))

    return _register


@pytest.fixture
def alice(register):
    return register()


@pytest.fixture
def bob(register):
    return register(name="Bob Jones", email="bob@example.com")
