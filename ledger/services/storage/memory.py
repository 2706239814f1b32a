"""
In-Memory Storage Implementation

Keeps every record in process memory. Used by the test-suite and for
local experiments without a spreadsheet. Records are copied on the way
in and out so callers can never mutate stored state by accident.
"""

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
from ledger.services.storage.interface import (
    AuditStorageInterface,
    CategoryStorageInterface,
    ClosureStorageInterface,
    DuplicateError,
    ProfileStorageInterface,
    TransactionStorageInterface,
)


class InMemoryTransactionStorage(TransactionStorageInterface):
    """Transaction ledger held in a dict keyed by id."""

    def __init__(self, transactions: Optional[list[Transaction]] = None):
        self._rows: dict[UUID, Transaction] = {}
        for tx in transactions or []:
            self._rows[tx.id] = tx.model_copy()

    async def save_transaction(self, transaction: Transaction) -> bool:
        if transaction.id in self._rows:
            raise DuplicateError(f"Transaction already exists: {transaction.id}")
        self._rows[transaction.id] = transaction.model_copy()
        return True

    async def get_transaction_by_id(self, transaction_id: UUID) -> Optional[Transaction]:
        tx = self._rows.get(transaction_id)
        return tx.model_copy() if tx else None

    async def delete_transaction(self, transaction_id: UUID) -> bool:
        return self._rows.pop(transaction_id, None) is not None

    async def list_transactions(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        tx_type: Optional[TransactionType] = None,
        category: Optional[str] = None,
        ascending: bool = False,
    ) -> list[Transaction]:
        result = []
        for tx in self._rows.values():
            if date_from and tx.date < date_from:
                continue
            if date_to and tx.date > date_to:
                continue
            if tx_type and tx.type != tx_type:
                continue
            if category is not None and tx.category != category:
                continue
            result.append(tx.model_copy())

        result.sort(key=lambda t: t.date, reverse=not ascending)
        return result


class InMemoryClosureStorage(ClosureStorageInterface):
    """Weekly closures held in a dict keyed by id."""

    def __init__(self):
        self._rows: dict[UUID, WeeklyClosure] = {}

    async def save_closure(self, closure: WeeklyClosure) -> bool:
        if closure.id in self._rows:
            raise DuplicateError(f"Closure already exists: {closure.id}")
        if any(row.key == closure.key for row in self._rows.values()):
            raise DuplicateError(f"Week already closed: {closure.key}")
        self._rows[closure.id] = closure.model_copy()
        return True

    async def find_closure(
        self,
        week_number: int,
        month: int,
        year: int,
    ) -> Optional[WeeklyClosure]:
        for closure in self._rows.values():
            if closure.key == (week_number, month, year):
                return closure.model_copy()
        return None

    async def delete_closure(self, closure_id: UUID) -> bool:
        return self._rows.pop(closure_id, None) is not None

    async def list_closures(
        self,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> list[WeeklyClosure]:
        result = [
            c.model_copy()
            for c in self._rows.values()
            if (month is None or c.month == month) and (year is None or c.year == year)
        ]
        result.sort(key=lambda c: (c.year, c.month, c.week_number))
        return result


class InMemoryProfileStorage(ProfileStorageInterface):
    """Single user profile (ratio limit + wallet)."""

    def __init__(self, profile: Optional[FinanceProfile] = None):
        self._profile = profile

    async def get_profile(self) -> Optional[FinanceProfile]:
        return self._profile

    async def save_wallet(self, wallet: WalletState) -> bool:
        current = self._profile or FinanceProfile()
        self._profile = current.with_wallet(wallet)
        return True

    async def save_ratio_limit(self, ratio_limit: int) -> bool:
        current = self._profile or FinanceProfile()
        self._profile = current.model_copy(update={"ratio_limit": ratio_limit})
        return True


class InMemoryCategoryStorage(CategoryStorageInterface):
    """User categories in insertion order."""

    def __init__(self):
        self._rows: dict[UUID, FinanceCategory] = {}

    async def save_category(self, category: FinanceCategory) -> bool:
        if category.id in self._rows:
            raise DuplicateError(f"Category already exists: {category.id}")
        self._rows[category.id] = category.model_copy()
        return True

    async def list_categories(self) -> list[FinanceCategory]:
        return [c.model_copy() for c in self._rows.values()]

    async def delete_category(self, category_id: UUID) -> bool:
        return self._rows.pop(category_id, None) is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
