"""
Wallet Ledger

The expense wallet and the investment wallet are two independent running
totals. They change in exactly three situations:
1. A week is closed or reopened (ClosureEngine)
2. An investment transaction is created (investments -= amount)
3. An investment transaction is deleted (investments += amount)

ORDERING CONTRACT: a wallet write is issued only after the ledger write
that triggered it has been acknowledged. If the wallet write then fails,
the ledger write is undone so the two never drift apart. If the undo
fails as well, a ConsistencyError is raised for manual reconciliation.

Wallets are never clamped: negative balances are a legitimate outcome.
"""

from decimal import Decimal
from typing import Awaitable, Callable, Optional
from uuid import UUID

from ledger.audit import AuditLogger
from ledger.config import get_settings
from ledger.errors import ConsistencyError, PersistenceError
from ledger.models.finance import FinanceProfile, WalletState, WeeklyClosure
from ledger.services.storage import ProfileStorageInterface, call_store


class WalletLedger:
    """
    Applies and persists wallet adjustments.

    The arithmetic is exposed as static methods returning new WalletState
    values; `commit` persists one of those values under the ordering
    contract described above.
    """

    def __init__(
        self,
        profile_storage: ProfileStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        timeout: Optional[float] = None,
    ):
        self._storage = profile_storage
        self._audit_logger = audit_logger
        self._timeout = timeout or get_settings().ledger.store_timeout_seconds

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    @staticmethod
    def adjust_expenses(wallet: WalletState, delta: Decimal) -> WalletState:
        return wallet.model_copy(update={"expenses": wallet.expenses + delta})

    @staticmethod
    def adjust_investments(wallet: WalletState, delta: Decimal) -> WalletState:
        return wallet.model_copy(update={"investments": wallet.investments + delta})

    @classmethod
    def apply_closure(cls, wallet: WalletState, closure: WeeklyClosure) -> WalletState:
        wallet = cls.adjust_expenses(wallet, closure.assigned_expenses)
        return cls.adjust_investments(wallet, closure.assigned_investments)

    @classmethod
    def revert_closure(cls, wallet: WalletState, closure: WeeklyClosure) -> WalletState:
        wallet = cls.adjust_expenses(wallet, -closure.assigned_expenses)
        return cls.adjust_investments(wallet, -closure.assigned_investments)

    @classmethod
    def debit_investment(cls, wallet: WalletState, amount: Decimal) -> WalletState:
        return cls.adjust_investments(wallet, -amount)

    @classmethod
    def credit_investment(cls, wallet: WalletState, amount: Decimal) -> WalletState:
        return cls.adjust_investments(wallet, amount)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    async def commit(
        self,
        profile: FinanceProfile,
        wallet: WalletState,
        *,
        reason: str,
        undo: Callable[[], Awaitable[object]],
        entity_type: str,
        entity_id: UUID,
        correlation_id: UUID,
    ) -> FinanceProfile:
        """
        Persist `wallet` as the new balances of `profile`.

        Must be called after the triggering ledger write was acknowledged.

        Args:
            profile: Profile before the adjustment
            wallet: The adjusted balances
            reason: Short label for the audit trail (e.g. "close_week")
            undo: Reverts the ledger write if the wallet cannot be saved
            entity_type/entity_id: The ledger record the adjustment belongs to
            correlation_id: Correlation ID of the logical operation

        Returns:
            The updated profile

        Raises:
            PersistenceError: Wallet not saved, ledger write undone
            ConsistencyError: Wallet not saved and the undo failed too
        """
        try:
            saved = await call_store(
                self._storage.save_wallet(wallet),
                operation="save_wallet",
                timeout=self._timeout,
            )
            if not saved:
                raise PersistenceError("save_wallet was not acknowledged")
        except PersistenceError as wallet_error:
            if self._audit_logger:
                await self._audit_logger.log_persistence_failed(
                    operation=f"{reason}:save_wallet",
                    error_message=str(wallet_error),
                    correlation_id=correlation_id,
                )
            try:
                await undo()
            except PersistenceError as undo_error:
                if self._audit_logger:
                    await self._audit_logger.log_consistency_error(
                        operation=reason,
                        entity_type=entity_type,
                        entity_id=entity_id,
                        error_message=f"{wallet_error}; undo: {undo_error}",
                        correlation_id=correlation_id,
                    )
                raise ConsistencyError(
                    f"{reason}: {entity_type} {entity_id} was written but the wallet "
                    f"was not, and the write could not be undone ({undo_error})"
                ) from undo_error

            if self._audit_logger:
                await self._audit_logger.log_compensation_applied(
                    operation=reason,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_wallet_adjusted(
                before=profile.wallet,
                after=wallet,
                reason=reason,
                correlation_id=correlation_id,
            )
        return profile.with_wallet(wallet)
