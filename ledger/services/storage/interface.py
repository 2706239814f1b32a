"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
Just the operations the ledger needs: insert, delete, lookup, and
listing with equality and date-range filters.

Every implementation is scoped to a single user. The ledger has one
logical writer per user, so no locking is expressed here.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from ledger.models.audit import AuditEvent
from ledger.models.finance import (
    FinanceCategory,
    FinanceProfile,
    Transaction,
    TransactionType,
    WalletState,
    WeeklyClosure,
)


class TransactionStorageInterface(ABC):
    """
    Abstract interface for the transaction ledger.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def save_transaction(self, transaction: Transaction) -> bool:
        """
        Insert a transaction.

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_transaction_by_id(self, transaction_id: UUID) -> Optional[Transaction]:
        """Return the transaction, or None if it does not exist."""
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: UUID) -> bool:
        """
        Delete a transaction by ID.

        Returns:
            True if a row was deleted, False if it did not exist
        """
        pass

    @abstractmethod
    async def list_transactions(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        tx_type: Optional[TransactionType] = None,
        category: Optional[str] = None,
        ascending: bool = False,
    ) -> list[Transaction]:
        """
        List transactions with optional filters.

        Args:
            date_from: Only transactions on or after this date
            date_to: Only transactions on or before this date
            tx_type: Exact type match
            category: Exact category name match
            ascending: Order by date ascending (default newest first)
        """
        pass


class ClosureStorageInterface(ABC):
    """Abstract interface for weekly closure records."""

    @abstractmethod
    async def save_closure(self, closure: WeeklyClosure) -> bool:
        """
        Insert a closure record.

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def find_closure(
        self,
        week_number: int,
        month: int,
        year: int,
    ) -> Optional[WeeklyClosure]:
        """Return the closure for the week tuple, or None."""
        pass

    @abstractmethod
    async def delete_closure(self, closure_id: UUID) -> bool:
        """Delete a closure. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def list_closures(
        self,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> list[WeeklyClosure]:
        """List closures, optionally restricted to one month/year, by week number."""
        pass


class ProfileStorageInterface(ABC):
    """
    Abstract interface for the settings store.

    Holds the ratio limit and the two wallet balances of the user profile.
    """

    @abstractmethod
    async def get_profile(self) -> Optional[FinanceProfile]:
        """Return the stored profile, or None if the user has none yet."""
        pass

    @abstractmethod
    async def save_wallet(self, wallet: WalletState) -> bool:
        """Overwrite both wallet balances."""
        pass

    @abstractmethod
    async def save_ratio_limit(self, ratio_limit: int) -> bool:
        """Overwrite the ratio limit."""
        pass


class CategoryStorageInterface(ABC):
    """Abstract interface for user-defined categories."""

    @abstractmethod
    async def save_category(self, category: FinanceCategory) -> bool:
        pass

    @abstractmethod
    async def list_categories(self) -> list[FinanceCategory]:
        pass

    @abstractmethod
    async def delete_category(self, category_id: UUID) -> bool:
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events of one logical operation, in chronological order."""
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events for a specific entity, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
