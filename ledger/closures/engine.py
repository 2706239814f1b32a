"""
Closure Engine

Closing a natural week freezes its net result and distributes it between
the expense wallet and the investment wallet according to the profile's
ratio limit (the share of income budgeted for expenses).

Allocation for a week with income I, expenses E and ratio limit R:
    assigned_expenses    = I * R / 100 - E
    assigned_investments = I * (100 - R) / 100
If assigned_expenses is negative, the overspend is taken out of the
investment share and assigned_expenses becomes 0.

DESIGN DECISION: At most one closure exists per (week, month, year). The
existence check and the write are both store calls; the in-memory and
single-user sheet backends see no concurrent writers, so no lock is held
between them.

Write order for close: closure first, then wallet. Reopen mirrors it:
delete the closure, then revert the wallet. See wallet.ledger for what
happens when the second write fails.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from ledger.audit import AuditLogger, create_correlation_id
from ledger.config import get_settings
from ledger.errors import AlreadyClosedError, NotFoundError, PersistenceError
from ledger.models.finance import (
    ClosureAllocation,
    ClosureOutcome,
    FinanceProfile,
    FlowTotals,
    WeeklyClosure,
    WeekStatus,
)
from ledger.periods.weeks import find_week, partition_month
from ledger.reports.summaries import summarize
from ledger.services.storage import (
    ClosureStorageInterface,
    TransactionStorageInterface,
    call_store,
)
from ledger.wallet.ledger import WalletLedger

HUNDRED = Decimal("100")


def compute_allocation(totals: FlowTotals, ratio_limit: int) -> ClosureAllocation:
    """
    Split a week's totals between the two wallets.

    Pure function. The investment share absorbs any overspend so the
    expense share is never negative.
    """
    ratio = Decimal(ratio_limit)
    assigned_expenses = totals.income * ratio / HUNDRED - totals.expense
    assigned_investments = totals.income * (HUNDRED - ratio) / HUNDRED

    if assigned_expenses < 0:
        assigned_investments += assigned_expenses
        assigned_expenses = Decimal("0")

    return ClosureAllocation(
        totals=totals,
        ratio_limit=ratio_limit,
        assigned_expenses=assigned_expenses,
        assigned_investments=assigned_investments,
    )


class ClosureEngine:
    """
    Closes and reopens natural weeks.

    Usage:
        engine = ClosureEngine(tx_storage, closure_storage, wallet_ledger, audit)
        outcome = await engine.close_week(2, 2, 2024, profile)
        profile = outcome.profile
    """

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        closure_storage: ClosureStorageInterface,
        wallet_ledger: WalletLedger,
        audit_logger: Optional[AuditLogger] = None,
        timeout: Optional[float] = None,
    ):
        self._transactions = transaction_storage
        self._closures = closure_storage
        self._wallet = wallet_ledger
        self._audit_logger = audit_logger
        self._timeout = timeout or get_settings().ledger.store_timeout_seconds

    async def _call(self, awaitable, operation: str):
        return await call_store(awaitable, operation=operation, timeout=self._timeout)

    async def week_totals(self, week_id: int, month: int, year: int) -> FlowTotals:
        """Sum the transactions dated inside one natural week."""
        week = find_week(week_id, month, year)
        start, end = week.date_bounds(month, year)
        transactions = await self._call(
            self._transactions.list_transactions(date_from=start, date_to=end),
            "list_transactions",
        )
        return summarize(transactions)

    async def preview(
        self,
        week_id: int,
        month: int,
        year: int,
        profile: FinanceProfile,
    ) -> ClosureAllocation:
        """What closing the week right now would assign. Writes nothing."""
        totals = await self.week_totals(week_id, month, year)
        return compute_allocation(totals, profile.ratio_limit)

    async def close_week(
        self,
        week_id: int,
        month: int,
        year: int,
        profile: FinanceProfile,
        correlation_id: Optional[UUID] = None,
    ) -> ClosureOutcome:
        """
        Close a natural week and credit both wallets.

        Args:
            week_id: Natural week id within the month
            month/year: The month the week belongs to
            profile: Current ratio limit and wallet balances
            correlation_id: Correlation ID of the calling action

        Returns:
            The stored closure and the profile with updated wallets

        Raises:
            ValidationError: Unknown month or week id
            AlreadyClosedError: A closure for this week exists
            PersistenceError: A store call failed (no partial effect remains)
            ConsistencyError: Closure stored but wallet not, and undo failed
        """
        correlation_id = correlation_id or create_correlation_id()
        find_week(week_id, month, year)

        existing = await self._call(
            self._closures.find_closure(week_id, month, year),
            "find_closure",
        )
        if existing is not None:
            if self._audit_logger:
                await self._audit_logger.log_week_close_rejected(
                    week_number=week_id,
                    month=month,
                    year=year,
                    correlation_id=correlation_id,
                )
            raise AlreadyClosedError(week_id, month, year)

        allocation = await self.preview(week_id, month, year, profile)
        closure = WeeklyClosure(
            week_number=week_id,
            month=month,
            year=year,
            net_amount=allocation.net_amount,
            assigned_expenses=allocation.assigned_expenses,
            assigned_investments=allocation.assigned_investments,
        )

        await self._write(self._closures.save_closure(closure), "save_closure", correlation_id)

        updated = await self._wallet.commit(
            profile,
            WalletLedger.apply_closure(profile.wallet, closure),
            reason="close_week",
            undo=lambda: self._call(self._closures.delete_closure(closure.id), "delete_closure"),
            entity_type="closure",
            entity_id=closure.id,
            correlation_id=correlation_id,
        )

        if self._audit_logger:
            await self._audit_logger.log_week_closed(
                closure_id=closure.id,
                week_number=week_id,
                month=month,
                year=year,
                assigned_expenses=str(closure.assigned_expenses),
                assigned_investments=str(closure.assigned_investments),
                correlation_id=correlation_id,
            )

        return ClosureOutcome(closure=closure, profile=updated)

    async def reopen_week(
        self,
        week_id: int,
        month: int,
        year: int,
        profile: FinanceProfile,
        correlation_id: Optional[UUID] = None,
    ) -> ClosureOutcome:
        """
        Remove a week's closure and subtract its amounts from both wallets.

        Returns:
            The removed closure and the profile with reverted wallets

        Raises:
            NotFoundError: The week has no closure
            PersistenceError: A store call failed (no partial effect remains)
            ConsistencyError: Closure removed but wallet not, and undo failed
        """
        correlation_id = correlation_id or create_correlation_id()

        closure = await self._call(
            self._closures.find_closure(week_id, month, year),
            "find_closure",
        )
        if closure is None:
            raise NotFoundError(f"Week {week_id} of {year}-{month:02d} is not closed")

        deleted = await self._write(
            self._closures.delete_closure(closure.id),
            "delete_closure",
            correlation_id,
            require_ack=False,
        )
        if not deleted:
            raise NotFoundError(f"Closure {closure.id} no longer exists")

        updated = await self._wallet.commit(
            profile,
            WalletLedger.revert_closure(profile.wallet, closure),
            reason="reopen_week",
            undo=lambda: self._call(self._closures.save_closure(closure), "save_closure"),
            entity_type="closure",
            entity_id=closure.id,
            correlation_id=correlation_id,
        )

        if self._audit_logger:
            await self._audit_logger.log_week_reopened(
                closure_id=closure.id,
                week_number=week_id,
                month=month,
                year=year,
                correlation_id=correlation_id,
            )

        return ClosureOutcome(closure=closure, profile=updated)

    async def week_statuses(
        self,
        month: int,
        year: int,
        today: Optional[date] = None,
    ) -> list[WeekStatus]:
        """Every natural week of the month with its closure, if any."""
        weeks = partition_month(month, year)
        closures = await self._call(
            self._closures.list_closures(month=month, year=year),
            "list_closures",
        )
        by_week = {c.week_number: c for c in closures}
        today = today or date.today()

        return [
            WeekStatus(
                week=week,
                month=month,
                year=year,
                closure=by_week.get(week.id),
                is_current=(
                    today.year == year
                    and today.month == month
                    and week.contains(today.day)
                ),
            )
            for week in weeks
        ]

    async def _write(
        self,
        awaitable,
        operation: str,
        correlation_id: UUID,
        require_ack: bool = True,
    ):
        """Run a ledger write, auditing the failure before re-raising."""
        try:
            result = await self._call(awaitable, operation)
            if require_ack and not result:
                raise PersistenceError(f"{operation} was not acknowledged")
            return result
        except PersistenceError as e:
            if self._audit_logger:
                await self._audit_logger.log_persistence_failed(
                    operation=operation,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise
