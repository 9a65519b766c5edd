"""Authentication services."""

from finance_tracker.services.auth.provider import PasswordHasher, TokenAuthProvider

__all__ = ["PasswordHasher", "TokenAuthProvider"]
