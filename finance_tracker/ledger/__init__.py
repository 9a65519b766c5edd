"""Transaction ledger package."""

from finance_tracker.ledger.transactions import TransactionLedger

__all__ = ["TransactionLedger"]
