"""
Main Orchestrator for Weekly Ledger

This module ties together all the components and defines the
end-to-end flows for:
1. Recording (draft -> validate -> store -> wallet)
2. Weekly closing (partition -> sum -> allocate -> store -> wallet)
3. Read-side views (week board, chart, explorer, calendar)

DESIGN DECISION: The orchestrator is the only place that loads the
profile from storage. Every domain component receives the profile as an
explicit value and hands back the updated one; nothing holds wallet
balances between calls.

Every write flow runs under one correlation ID so that all audit events
of a user action can be traced together.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from ledger.audit import AuditLogger, create_correlation_id
from ledger.closures import ClosureEngine
from ledger.config import get_settings
from ledger.errors import NotFoundError, PersistenceError
from ledger.models.finance import (
    CalendarCell,
    ClosureAllocation,
    ClosureOutcome,
    FinanceCategory,
    FinanceProfile,
    FlowTotals,
    Granularity,
    PeriodRecord,
    Transaction,
    TransactionDraft,
    TransactionOutcome,
    TransactionQuery,
    WeekStatus,
)
from ledger.periods import find_week
from ledger.queries import TransactionFilter
from ledger.reports import (
    TimeSeriesAggregator,
    global_net,
    month_calendar,
    summarize_week,
)
from ledger.services.storage import (
    AuditStorageInterface,
    CategoryStorageInterface,
    ClosureStorageInterface,
    InMemoryAuditStorage,
    InMemoryCategoryStorage,
    InMemoryClosureStorage,
    InMemoryProfileStorage,
    InMemoryTransactionStorage,
    ProfileStorageInterface,
    TransactionStorageInterface,
    call_store,
)
from ledger.transactions import TransactionService
from ledger.validation import TransactionValidator
from ledger.wallet import WalletLedger

logger = structlog.get_logger("ledger.orchestrator")


class LedgerFlow:
    """
    Orchestrates every user-facing ledger action.

    Write flows:
    - create_transaction / delete_transaction
    - close_week / reopen_week
    - update_ratio_limit
    - add_category / delete_category

    Read flows work on a snapshot loaded from storage and are pure
    computations from there on.
    """

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        closure_storage: ClosureStorageInterface,
        profile_storage: ProfileStorageInterface,
        category_storage: Optional[CategoryStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[TransactionValidator] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings().ledger
        self._timeout = timeout or settings.store_timeout_seconds
        self._default_ratio = settings.default_ratio_limit

        self._transactions = transaction_storage
        self._closures = closure_storage
        self._profiles = profile_storage
        self._categories = category_storage or InMemoryCategoryStorage()
        self._audit_logger = audit_logger
        self._validator = validator or TransactionValidator()

        self._wallet = WalletLedger(profile_storage, audit_logger, self._timeout)
        self._transaction_service = TransactionService(
            transaction_storage,
            self._wallet,
            audit_logger,
            self._validator,
            self._timeout,
        )
        self._closure_engine = ClosureEngine(
            transaction_storage,
            closure_storage,
            self._wallet,
            audit_logger,
            self._timeout,
        )

    async def _call(self, awaitable, operation: str):
        return await call_store(awaitable, operation=operation, timeout=self._timeout)

    # -------------------------------------------------------------------------
    # Profile
    # -------------------------------------------------------------------------

    async def load_profile(self) -> FinanceProfile:
        """Stored profile, or defaults with empty wallets for a new user."""
        profile = await self._call(self._profiles.get_profile(), "get_profile")
        if profile is None:
            return FinanceProfile(ratio_limit=self._default_ratio)
        return profile

    async def update_ratio_limit(
        self,
        ratio_limit: int,
        correlation_id: Optional[UUID] = None,
    ) -> FinanceProfile:
        """
        Change the share of income budgeted for expenses.

        Existing closures keep the allocation they were computed with.

        Raises:
            ValidationError: Unless 1 <= ratio_limit <= 100
        """
        correlation_id = correlation_id or create_correlation_id()
        TransactionValidator.validate_ratio_limit(ratio_limit)

        profile = await self.load_profile()
        saved = await self._call(self._profiles.save_ratio_limit(ratio_limit), "save_ratio_limit")
        if not saved:
            raise PersistenceError("save_ratio_limit was not acknowledged")

        if self._audit_logger:
            await self._audit_logger.log_ratio_limit_updated(
                old_value=profile.ratio_limit,
                new_value=ratio_limit,
                correlation_id=correlation_id,
            )
        return profile.model_copy(update={"ratio_limit": ratio_limit})

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def create_transaction(
        self,
        draft: TransactionDraft,
        correlation_id: Optional[UUID] = None,
        today: Optional[date] = None,
    ) -> TransactionOutcome:
        profile = await self.load_profile()
        return await self._transaction_service.create_transaction(
            draft, profile, correlation_id=correlation_id, today=today
        )

    async def delete_transaction(
        self,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> TransactionOutcome:
        profile = await self.load_profile()
        return await self._transaction_service.delete_transaction(
            transaction_id, profile, correlation_id=correlation_id
        )

    async def all_transactions(self) -> list[Transaction]:
        return await self._call(self._transactions.list_transactions(), "list_transactions")

    # -------------------------------------------------------------------------
    # Weekly closures
    # -------------------------------------------------------------------------

    async def close_week(
        self,
        week_id: int,
        month: int,
        year: int,
        correlation_id: Optional[UUID] = None,
    ) -> ClosureOutcome:
        profile = await self.load_profile()
        return await self._closure_engine.close_week(
            week_id, month, year, profile, correlation_id=correlation_id
        )

    async def reopen_week(
        self,
        week_id: int,
        month: int,
        year: int,
        correlation_id: Optional[UUID] = None,
    ) -> ClosureOutcome:
        profile = await self.load_profile()
        return await self._closure_engine.reopen_week(
            week_id, month, year, profile, correlation_id=correlation_id
        )

    async def preview_closure(self, week_id: int, month: int, year: int) -> ClosureAllocation:
        profile = await self.load_profile()
        return await self._closure_engine.preview(week_id, month, year, profile)

    async def week_board(
        self,
        month: int,
        year: int,
        today: Optional[date] = None,
    ) -> list[WeekStatus]:
        """Natural weeks of the month with their closure status."""
        return await self._closure_engine.week_statuses(month, year, today)

    async def week_summary(self, week_id: int, month: int, year: int) -> FlowTotals:
        week = find_week(week_id, month, year)
        start, end = week.date_bounds(month, year)
        transactions = await self._call(
            self._transactions.list_transactions(date_from=start, date_to=end),
            "list_transactions",
        )
        return summarize_week(transactions, week, month, year)

    # -------------------------------------------------------------------------
    # Read-side views
    # -------------------------------------------------------------------------

    async def chart(
        self,
        range_start: date,
        range_end: date,
        granularity: Granularity,
    ) -> list[PeriodRecord]:
        """Balance series for the chart. Needs the full history for the seed."""
        transactions = await self.all_transactions()
        return TimeSeriesAggregator().aggregate(transactions, range_start, range_end, granularity)

    async def explore(
        self,
        query: TransactionQuery,
        today: Optional[date] = None,
    ) -> list[Transaction]:
        transactions = await self.all_transactions()
        return TransactionFilter(today).filter(transactions, query)

    async def calendar(self, month: int, year: int) -> list[CalendarCell]:
        transactions = await self.all_transactions()
        return month_calendar(transactions, month, year)

    async def global_net(self) -> Decimal:
        return global_net(await self.all_transactions())

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    async def add_category(
        self,
        name: str,
        icon: str = "category",
        color: str = "gray",
        correlation_id: Optional[UUID] = None,
    ) -> FinanceCategory:
        correlation_id = correlation_id or create_correlation_id()
        category = FinanceCategory(name=name, icon=icon, color=color)
        saved = await self._call(self._categories.save_category(category), "save_category")
        if not saved:
            raise PersistenceError("save_category was not acknowledged")

        if self._audit_logger:
            await self._audit_logger.log_category_created(
                category_id=category.id,
                name=category.name,
                correlation_id=correlation_id,
            )
        return category

    async def list_categories(self) -> list[FinanceCategory]:
        return await self._call(self._categories.list_categories(), "list_categories")

    async def delete_category(
        self,
        category_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Transactions keep their category name after the category is gone."""
        correlation_id = correlation_id or create_correlation_id()
        deleted = await self._call(self._categories.delete_category(category_id), "delete_category")
        if not deleted:
            raise NotFoundError(f"Category not found: {category_id}")

        if self._audit_logger:
            await self._audit_logger.log_category_deleted(
                category_id=category_id,
                correlation_id=correlation_id,
            )


def create_in_memory_flow(
    audit_storage: Optional[AuditStorageInterface] = None,
) -> LedgerFlow:
    """A LedgerFlow backed entirely by process memory."""
    return LedgerFlow(
        transaction_storage=InMemoryTransactionStorage(),
        closure_storage=InMemoryClosureStorage(),
        profile_storage=InMemoryProfileStorage(),
        category_storage=InMemoryCategoryStorage(),
        audit_logger=AuditLogger(audit_storage or InMemoryAuditStorage()),
    )


def create_app_components(
    use_storage: bool = True,
) -> LedgerFlow:
    """
    Factory function to create the application flow.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to run entirely in memory.

    Returns:
        LedgerFlow wired to Google Sheets when configured, else in memory
    """
    if not use_storage:
        return create_in_memory_flow()

    try:
        # Imported here so gspread is only needed when sheets are used
        from ledger.services.storage.google_sheets import (
            GoogleSheetsAuditStorage,
            GoogleSheetsCategoryStorage,
            GoogleSheetsClient,
            GoogleSheetsClosureStorage,
            GoogleSheetsProfileStorage,
            GoogleSheetsTransactionStorage,
        )

        client = GoogleSheetsClient()
    except Exception as e:
        # Storage not configured - continue in memory
        logger.warning("storage_not_configured", error=str(e))
        return create_in_memory_flow()

    return LedgerFlow(
        transaction_storage=GoogleSheetsTransactionStorage(client),
        closure_storage=GoogleSheetsClosureStorage(client),
        profile_storage=GoogleSheetsProfileStorage(client),
        category_storage=GoogleSheetsCategoryStorage(client),
        audit_logger=AuditLogger(GoogleSheetsAuditStorage(client)),
    )
