"""
Tests for creating and deleting transactions.
"""

from datetime import date
from decimal import Decimal

import pytest

from conftest import FailingProfileStorage, UndeletableTransactionStorage
from ledger.errors import ConsistencyError, NotFoundError, PersistenceError, ValidationError
from ledger.models.audit import AuditEventType
from ledger.models.finance import FinanceProfile, TransactionDraft, WalletState
from ledger.services.storage import InMemoryTransactionStorage, StorageError

TODAY = date(2024, 2, 20)


def draft(tx_type="expense", amount="40", description="Dinner"):
    return TransactionDraft(
        type=tx_type,
        amount=amount,
        category="food",
        description=description,
        date="2024-02-19",
    )


class RefusingTransactionStorage(InMemoryTransactionStorage):
    async def save_transaction(self, transaction):
        raise StorageError("quota exceeded")


class TestCreateTransaction:
    """Tests for TransactionService.create_transaction."""

    @pytest.mark.asyncio
    async def test_expense_does_not_touch_wallet(self, build_service, profile):
        service, transactions, profiles = build_service()

        outcome = await service.create_transaction(draft(), profile, today=TODAY)

        assert outcome.profile == profile
        assert await transactions.get_transaction_by_id(outcome.transaction.id) is not None
        assert await profiles.get_profile() is None

    @pytest.mark.asyncio
    async def test_investment_debits_wallet(self, build_service, profile):
        service, _, profiles = build_service()

        outcome = await service.create_transaction(
            draft("investment", "250", "ETF"), profile, today=TODAY
        )

        assert outcome.profile.wallet.investments == Decimal("-250")
        assert (await profiles.get_profile()).wallet.investments == Decimal("-250")

    @pytest.mark.asyncio
    async def test_invalid_draft_stores_nothing(self, build_service, profile, audit_storage):
        service, transactions, _ = build_service()

        with pytest.raises(ValidationError) as exc_info:
            await service.create_transaction(draft(amount="-3"), profile, today=TODAY)

        assert exc_info.value.issues[0].field == "amount"
        assert await transactions.list_transactions() == []
        assert [e.event_type for e in audit_storage.events] == [AuditEventType.TRANSACTION_REJECTED]

    @pytest.mark.asyncio
    async def test_store_failure(self, build_service, profile):
        service, _, profiles = build_service(transactions=RefusingTransactionStorage())

        with pytest.raises(PersistenceError):
            await service.create_transaction(draft("investment"), profile, today=TODAY)

        assert await profiles.get_profile() is None

    @pytest.mark.asyncio
    async def test_wallet_failure_removes_investment(self, build_service, profile):
        service, transactions, _ = build_service(profiles=FailingProfileStorage())

        with pytest.raises(PersistenceError):
            await service.create_transaction(draft("investment"), profile, today=TODAY)

        assert await transactions.list_transactions() == []

    @pytest.mark.asyncio
    async def test_wallet_and_undo_failure(self, build_service, profile):
        service, transactions, _ = build_service(
            transactions=UndeletableTransactionStorage(),
            profiles=FailingProfileStorage(),
        )

        with pytest.raises(ConsistencyError):
            await service.create_transaction(draft("investment"), profile, today=TODAY)

        assert len(await transactions.list_transactions()) == 1


class TestDeleteTransaction:
    """Tests for TransactionService.delete_transaction."""

    @pytest.mark.asyncio
    async def test_delete_investment_credits_wallet(self, build_service, profile):
        service, transactions, _ = build_service()
        created = await service.create_transaction(
            draft("investment", "250", "ETF"), profile, today=TODAY
        )

        deleted = await service.delete_transaction(created.transaction.id, created.profile)

        assert deleted.profile.wallet == WalletState()
        assert await transactions.list_transactions() == []

    @pytest.mark.asyncio
    async def test_delete_expense_keeps_wallet(self, build_service):
        service, _, _ = build_service()
        profile = FinanceProfile(wallet=WalletState(expenses=Decimal("9")))
        created = await service.create_transaction(draft(), profile, today=TODAY)

        deleted = await service.delete_transaction(created.transaction.id, created.profile)

        assert deleted.profile.wallet.expenses == Decimal("9")

    @pytest.mark.asyncio
    async def test_delete_missing(self, build_service, profile):
        service, _, _ = build_service()

        with pytest.raises(NotFoundError):
            await service.delete_transaction(draft().draft_id, profile)

    @pytest.mark.asyncio
    async def test_wallet_failure_restores_investment(self, build_service, profile):
        service, transactions, _ = build_service()
        created = await service.create_transaction(
            draft("investment", "250", "ETF"), profile, today=TODAY
        )

        failing, _, _ = build_service(
            transactions=transactions, profiles=FailingProfileStorage()
        )
        with pytest.raises(PersistenceError):
            await failing.delete_transaction(created.transaction.id, created.profile)

        restored = await transactions.get_transaction_by_id(created.transaction.id)
        assert restored is not None
        assert restored.amount == Decimal("250")
