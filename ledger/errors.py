"""
Error Taxonomy

Every failure of a ledger operation surfaces as one of these exceptions.
Nothing is logged-and-ignored: the caller always sees the outcome.

- ValidationError: input rejected before any store call
- AlreadyClosedError: a week was closed twice
- NotFoundError: the record to reopen/delete does not exist
- PersistenceError: a store call failed or timed out
- ConsistencyError: wallet and ledger diverged and could not be repaired
"""

from typing import Optional


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class ValidationError(LedgerError):
    """Input data failed validation. Raised before touching storage."""

    def __init__(self, message: str, issues: Optional[list] = None):
        self.issues = issues or []
        super().__init__(message)


class AlreadyClosedError(LedgerError):
    """The week already has a closure."""

    def __init__(self, week_number: int, month: int, year: int):
        self.week_number = week_number
        self.month = month
        self.year = year
        super().__init__(
            f"Week {week_number} of {year}-{month:02d} is already closed"
        )


class NotFoundError(LedgerError):
    """The requested record does not exist."""
    pass


class PersistenceError(LedgerError):
    """A store call failed or timed out."""
    pass


class ConsistencyError(LedgerError):
    """
    Wallet and ledger are out of step.

    Raised only when a wallet write failed AND undoing the ledger write
    failed too. Requires manual reconciliation.
    """
    pass
