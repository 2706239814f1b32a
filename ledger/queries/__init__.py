"""Transaction exploration package."""

from ledger.queries.filters import TransactionFilter

__all__ = ["TransactionFilter"]
