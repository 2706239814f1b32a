"""Transaction write-side package."""

from ledger.transactions.service import TransactionService

__all__ = ["TransactionService"]
