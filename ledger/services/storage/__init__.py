"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the persistent backend; the in-memory backend serves tests
and local use. Both are swappable behind the interfaces.
"""

from ledger.services.storage.interface import (
    AuditStorageInterface,
    CategoryStorageInterface,
    ClosureStorageInterface,
    ConnectionError,
    DuplicateError,
    ProfileStorageInterface,
    StorageError,
    TransactionStorageInterface,
)
from ledger.services.storage.calls import call_store
from ledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryCategoryStorage,
    InMemoryClosureStorage,
    InMemoryProfileStorage,
    InMemoryTransactionStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "CategoryStorageInterface",
    "ClosureStorageInterface",
    "ProfileStorageInterface",
    "TransactionStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "StorageError",
    # Call guard
    "call_store",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryCategoryStorage",
    "InMemoryClosureStorage",
    "InMemoryProfileStorage",
    "InMemoryTransactionStorage",
]
