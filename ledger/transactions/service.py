"""
Transaction Service

Creates and deletes ledger transactions.

Only investment transactions touch a wallet: creating one moves money out
of the investment wallet, deleting one gives it back. Incomes and expenses
reach the wallets only through weekly closures.

DESIGN DECISION: Drafts are validated before any store call. A rejected
draft leaves no trace in storage, only a `transaction_rejected` audit
event.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from ledger.audit import AuditLogger, create_correlation_id
from ledger.config import get_settings
from ledger.errors import NotFoundError, PersistenceError, ValidationError
from ledger.models.finance import (
    FinanceProfile,
    TransactionDraft,
    TransactionOutcome,
    TransactionType,
)
from ledger.services.storage import TransactionStorageInterface, call_store
from ledger.validation import TransactionValidator
from ledger.wallet.ledger import WalletLedger


class TransactionService:
    """
    Usage:
        service = TransactionService(tx_storage, wallet_ledger, audit_logger)
        outcome = await service.create_transaction(draft, profile)
    """

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        wallet_ledger: WalletLedger,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[TransactionValidator] = None,
        timeout: Optional[float] = None,
    ):
        self._storage = transaction_storage
        self._wallet = wallet_ledger
        self._audit_logger = audit_logger
        self._validator = validator or TransactionValidator()
        self._timeout = timeout or get_settings().ledger.store_timeout_seconds

    async def _call(self, awaitable, operation: str):
        return await call_store(awaitable, operation=operation, timeout=self._timeout)

    async def create_transaction(
        self,
        draft: TransactionDraft,
        profile: FinanceProfile,
        correlation_id: Optional[UUID] = None,
        today: Optional[date] = None,
    ) -> TransactionOutcome:
        """
        Validate and store a new transaction.

        Raises:
            ValidationError: The draft was rejected (nothing stored)
            PersistenceError: A store call failed (nothing stored)
            ConsistencyError: Transaction stored, wallet not, undo failed
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate(draft, today=today)
        try:
            transaction = self._validator.require_valid(result)
        except ValidationError as e:
            if self._audit_logger:
                await self._audit_logger.log_transaction_rejected(
                    draft_id=draft.draft_id,
                    issues=[issue.model_dump() for issue in e.issues],
                    correlation_id=correlation_id,
                )
            raise

        try:
            saved = await self._call(self._storage.save_transaction(transaction), "save_transaction")
            if not saved:
                raise PersistenceError("save_transaction was not acknowledged")
        except PersistenceError as e:
            if self._audit_logger:
                await self._audit_logger.log_persistence_failed(
                    operation="save_transaction",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if transaction.type == TransactionType.INVESTMENT:
            profile = await self._wallet.commit(
                profile,
                WalletLedger.debit_investment(profile.wallet, transaction.amount),
                reason="create_investment",
                undo=lambda: self._call(
                    self._storage.delete_transaction(transaction.id), "delete_transaction"
                ),
                entity_type="transaction",
                entity_id=transaction.id,
                correlation_id=correlation_id,
            )

        if self._audit_logger:
            await self._audit_logger.log_transaction_created(
                transaction_id=transaction.id,
                tx_type=transaction.type.value,
                amount=str(transaction.amount),
                correlation_id=correlation_id,
            )

        return TransactionOutcome(transaction=transaction, profile=profile)

    async def delete_transaction(
        self,
        transaction_id: UUID,
        profile: FinanceProfile,
        correlation_id: Optional[UUID] = None,
    ) -> TransactionOutcome:
        """
        Remove a transaction, crediting investments back to their wallet.

        Closures already computed from the transaction are left untouched.

        Raises:
            NotFoundError: No transaction with that id
            PersistenceError: A store call failed (nothing removed)
            ConsistencyError: Transaction removed, wallet not, undo failed
        """
        correlation_id = correlation_id or create_correlation_id()

        transaction = await self._call(
            self._storage.get_transaction_by_id(transaction_id),
            "get_transaction",
        )
        if transaction is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

        try:
            deleted = await self._call(
                self._storage.delete_transaction(transaction_id),
                "delete_transaction",
            )
        except PersistenceError as e:
            if self._audit_logger:
                await self._audit_logger.log_persistence_failed(
                    operation="delete_transaction",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise
        if not deleted:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

        if transaction.type == TransactionType.INVESTMENT:
            profile = await self._wallet.commit(
                profile,
                WalletLedger.credit_investment(profile.wallet, transaction.amount),
                reason="delete_investment",
                undo=lambda: self._call(
                    self._storage.save_transaction(transaction), "save_transaction"
                ),
                entity_type="transaction",
                entity_id=transaction.id,
                correlation_id=correlation_id,
            )

        if self._audit_logger:
            await self._audit_logger.log_transaction_deleted(
                transaction_id=transaction.id,
                tx_type=transaction.type.value,
                amount=str(transaction.amount),
                correlation_id=correlation_id,
            )

        return TransactionOutcome(transaction=transaction, profile=profile)
