"""
Shared fixtures for the ledger tests.

All storage is in memory. Failure modes are simulated by small storage
doubles that raise StorageError or stall past the call timeout.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from ledger.audit import AuditLogger
from ledger.closures import ClosureEngine
from ledger.models.finance import FinanceProfile, Transaction, TransactionType
from ledger.services.storage import (
    InMemoryAuditStorage,
    InMemoryClosureStorage,
    InMemoryProfileStorage,
    InMemoryTransactionStorage,
    StorageError,
)
from ledger.transactions import TransactionService
from ledger.wallet import WalletLedger

TIMEOUT = 0.2


def make_tx(tx_type, amount, day, description="test", category=""):
    return Transaction(
        type=TransactionType(tx_type),
        amount=Decimal(amount),
        description=description,
        category=category,
        date=day,
    )


class FailingProfileStorage(InMemoryProfileStorage):
    """Every wallet write fails."""

    async def save_wallet(self, wallet):
        raise StorageError("sheet unavailable")


class StallingProfileStorage(InMemoryProfileStorage):
    """Wallet writes never finish within the timeout."""

    async def save_wallet(self, wallet):
        await asyncio.sleep(TIMEOUT * 10)
        return True


class FailingClosureStorage(InMemoryClosureStorage):
    """Closure writes fail."""

    async def save_closure(self, closure):
        raise StorageError("sheet unavailable")


class StallingClosureStorage(InMemoryClosureStorage):
    """Closure writes never finish within the timeout."""

    async def save_closure(self, closure):
        await asyncio.sleep(TIMEOUT * 10)
        return True


class UndeletableClosureStorage(InMemoryClosureStorage):
    """Closures can be written but not removed."""

    async def delete_closure(self, closure_id):
        raise StorageError("sheet unavailable")


class UndeletableTransactionStorage(InMemoryTransactionStorage):
    """Transactions can be written but not removed."""

    async def delete_transaction(self, transaction_id):
        raise StorageError("sheet unavailable")


@pytest.fixture
def feb_2024_transactions():
    """Week 2 of February 2024 is the 5th to the 11th."""
    return [
        make_tx("income", "1000", date(2024, 2, 5), "salary"),
        make_tx("expense", "500", date(2024, 2, 7), "groceries", "food"),
        make_tx("investment", "100", date(2024, 2, 9), "index fund"),
        make_tx("income", "50", date(2024, 2, 12), "refund"),
    ]


@pytest.fixture
def profile():
    return FinanceProfile(ratio_limit=30)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def build_engine(audit_logger):
    """Build a ClosureEngine over the given (or fresh) stores."""

    def _build(transactions=None, closures=None, profiles=None):
        closures = closures or InMemoryClosureStorage()
        profiles = profiles or InMemoryProfileStorage()
        wallet = WalletLedger(profiles, audit_logger, timeout=TIMEOUT)
        engine = ClosureEngine(
            InMemoryTransactionStorage(transactions),
            closures,
            wallet,
            audit_logger,
            timeout=TIMEOUT,
        )
        return engine, closures, profiles

    return _build


@pytest.fixture
def build_service(audit_logger):
    """Build a TransactionService over the given (or fresh) stores."""

    def _build(transactions=None, profiles=None):
        transactions = transactions or InMemoryTransactionStorage()
        profiles = profiles or InMemoryProfileStorage()
        wallet = WalletLedger(profiles, audit_logger, timeout=TIMEOUT)
        service = TransactionService(transactions, wallet, audit_logger, timeout=TIMEOUT)
        return service, transactions, profiles

    return _build
