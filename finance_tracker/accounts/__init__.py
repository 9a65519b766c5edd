"""User accounts: registration, login, profile and deletion."""

from finance_tracker.accounts.service import AccountService

__all__ = ["AccountService"]
