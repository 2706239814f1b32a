"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the initial storage backend because:
1. The user can view the ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (the domain layer orders writes and compensates)
- Limited query capabilities (we filter in Python)

Every sheet carries a user_id column; each storage object only reads and
writes rows of the configured user.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from ledger.config import get_settings
from ledger.models.audit import AuditEvent, AuditEventType, AuditSeverity
from ledger.models.finance import (
    FinanceCategory,
    FinanceProfile,
    Transaction,
    TransactionType,
    WalletState,
    WeeklyClosure,
    utcnow,
)
from ledger.services.storage.interface import (
    AuditStorageInterface,
    CategoryStorageInterface,
    ClosureStorageInterface,
    ConnectionError,
    ProfileStorageInterface,
    StorageError,
    TransactionStorageInterface,
)


TRANSACTION_COLUMNS = [
    "id",
    "user_id",
    "type",
    "amount",
    "category",
    "description",
    "date",
    "created_at",
]

CLOSURE_COLUMNS = [
    "id",
    "user_id",
    "week_number",
    "month",
    "year",
    "net_amount",
    "assigned_expenses",
    "assigned_investments",
    "created_at",
]

PROFILE_COLUMNS = [
    "user_id",
    "ratio_limit",
    "wallet_expenses",
    "wallet_investments",
    "updated_at",
]

CATEGORY_COLUMNS = [
    "id",
    "user_id",
    "name",
    "icon",
    "color",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _cell(row: list, index: int, default: str = "") -> str:
    """Read a cell, tolerating short rows."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for connecting.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @property
    def user_id(self) -> str:
        return self._settings.user_id

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_sheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get or create a worksheet with the given header row."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.transactions_sheet_name, TRANSACTION_COLUMNS)

    def get_closures_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.closures_sheet_name, CLOSURE_COLUMNS)

    def get_profile_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.profile_sheet_name, PROFILE_COLUMNS, rows=100)

    def get_categories_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.categories_sheet_name, CATEGORY_COLUMNS, rows=200)

    def get_audit_sheet(self) -> gspread.Worksheet:
        # More rows for audit log
        return self.get_sheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


class _UserRowsMixin:
    """Row lookup helpers shared by the per-user storages."""

    _client: GoogleSheetsClient

    def _user_rows(self, sheet: gspread.Worksheet) -> list[tuple[int, list]]:
        """Return (sheet_row_number, row) pairs owned by the configured user."""
        all_rows = sheet.get_all_values()
        return [
            (idx, row)
            for idx, row in enumerate(all_rows[1:], start=2)  # row 1 is header
            if row and row[0] and _cell(row, 1) == self._client.user_id
        ]

    def _delete_by_id(self, sheet: gspread.Worksheet, record_id: UUID) -> bool:
        for idx, row in self._user_rows(sheet):
            if row[0] == str(record_id):
                sheet.delete_rows(idx)
                return True
        return False


class GoogleSheetsTransactionStorage(_UserRowsMixin, TransactionStorageInterface):
    """
    Google Sheets implementation of the transaction ledger.

    One transaction per row, amounts stored as decimal strings.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _transaction_to_row(self, tx: Transaction) -> list:
        return [
            str(tx.id),
            self._client.user_id,
            tx.type.value,
            str(tx.amount),
            tx.category,
            tx.description,
            tx.date.isoformat(),
            tx.created_at.isoformat(),
        ]

    def _row_to_transaction(self, row: list) -> Transaction:
        return Transaction(
            id=UUID(_cell(row, 0)),
            type=TransactionType(_cell(row, 2)),
            amount=Decimal(_cell(row, 3)),
            category=_cell(row, 4),
            description=_cell(row, 5),
            date=date.fromisoformat(_cell(row, 6)),
            created_at=datetime.fromisoformat(_cell(row, 7)),
        )

    async def save_transaction(self, transaction: Transaction) -> bool:
        try:
            sheet = self._client.get_transactions_sheet()
            sheet.append_row(self._transaction_to_row(transaction), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def get_transaction_by_id(self, transaction_id: UUID) -> Optional[Transaction]:
        try:
            sheet = self._client.get_transactions_sheet()
            for _, row in self._user_rows(sheet):
                if row[0] == str(transaction_id):
                    return self._row_to_transaction(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get transaction: {e}")

    async def delete_transaction(self, transaction_id: UUID) -> bool:
        try:
            return self._delete_by_id(self._client.get_transactions_sheet(), transaction_id)
        except Exception as e:
            raise StorageError(f"Failed to delete transaction: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def list_transactions(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        tx_type: Optional[TransactionType] = None,
        category: Optional[str] = None,
        ascending: bool = False,
    ) -> list[Transaction]:
        try:
            sheet = self._client.get_transactions_sheet()
            transactions = []
            for _, row in self._user_rows(sheet):
                tx = self._row_to_transaction(row)

                if date_from and tx.date < date_from:
                    continue
                if date_to and tx.date > date_to:
                    continue
                if tx_type and tx.type != tx_type:
                    continue
                if category is not None and tx.category != category:
                    continue

                transactions.append(tx)

            transactions.sort(key=lambda t: t.date, reverse=not ascending)
            return transactions
        except Exception as e:
            raise StorageError(f"Failed to list transactions: {e}")


class GoogleSheetsClosureStorage(_UserRowsMixin, ClosureStorageInterface):
    """Google Sheets implementation of weekly closure storage."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _closure_to_row(self, closure: WeeklyClosure) -> list:
        return [
            str(closure.id),
            self._client.user_id,
            closure.week_number,
            closure.month,
            closure.year,
            str(closure.net_amount),
            str(closure.assigned_expenses),
            str(closure.assigned_investments),
            closure.created_at.isoformat(),
        ]

    def _row_to_closure(self, row: list) -> WeeklyClosure:
        return WeeklyClosure(
            id=UUID(_cell(row, 0)),
            week_number=int(_cell(row, 2)),
            month=int(_cell(row, 3)),
            year=int(_cell(row, 4)),
            net_amount=Decimal(_cell(row, 5, "0")),
            assigned_expenses=Decimal(_cell(row, 6, "0")),
            assigned_investments=Decimal(_cell(row, 7, "0")),
            created_at=datetime.fromisoformat(_cell(row, 8)),
        )

    async def save_closure(self, closure: WeeklyClosure) -> bool:
        try:
            sheet = self._client.get_closures_sheet()
            sheet.append_row(self._closure_to_row(closure), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to save closure: {e}")

    async def find_closure(
        self,
        week_number: int,
        month: int,
        year: int,
    ) -> Optional[WeeklyClosure]:
        for closure in await self.list_closures(month=month, year=year):
            if closure.week_number == week_number:
                return closure
        return None

    async def delete_closure(self, closure_id: UUID) -> bool:
        try:
            return self._delete_by_id(self._client.get_closures_sheet(), closure_id)
        except Exception as e:
            raise StorageError(f"Failed to delete closure: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def list_closures(
        self,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> list[WeeklyClosure]:
        try:
            sheet = self._client.get_closures_sheet()
            closures = []
            for _, row in self._user_rows(sheet):
                closure = self._row_to_closure(row)
                if month is not None and closure.month != month:
                    continue
                if year is not None and closure.year != year:
                    continue
                closures.append(closure)

            closures.sort(key=lambda c: (c.year, c.month, c.week_number))
            return closures
        except Exception as e:
            raise StorageError(f"Failed to list closures: {e}")


class GoogleSheetsProfileStorage(ProfileStorageInterface):
    """
    Google Sheets implementation of the settings store.

    One row per user: ratio limit and both wallet balances.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _find_row(self, sheet: gspread.Worksheet) -> tuple[Optional[int], Optional[list]]:
        for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
            if row and row[0] == self._client.user_id:
                return idx, row
        return None, None

    def _write(self, profile: FinanceProfile) -> None:
        sheet = self._client.get_profile_sheet()
        idx, _ = self._find_row(sheet)
        new_row = [
            self._client.user_id,
            profile.ratio_limit,
            str(profile.wallet.expenses),
            str(profile.wallet.investments),
            utcnow().isoformat(),
        ]
        if idx is None:
            sheet.append_row(new_row, value_input_option="RAW")
        else:
            # One range write so the wallet never lands half-updated
            sheet.update(
                range_name=f"A{idx}:E{idx}",
                values=[new_row],
                value_input_option="RAW",
            )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def get_profile(self) -> Optional[FinanceProfile]:
        try:
            sheet = self._client.get_profile_sheet()
            _, row = self._find_row(sheet)
            if row is None:
                return None
            ratio = int(_cell(row, 1, "0"))
            return FinanceProfile(
                ratio_limit=ratio or get_settings().ledger.default_ratio_limit,
                wallet=WalletState(
                    expenses=Decimal(_cell(row, 2, "0")),
                    investments=Decimal(_cell(row, 3, "0")),
                ),
            )
        except Exception as e:
            raise StorageError(f"Failed to read profile: {e}")

    async def save_wallet(self, wallet: WalletState) -> bool:
        try:
            current = await self.get_profile() or FinanceProfile(
                ratio_limit=get_settings().ledger.default_ratio_limit
            )
            self._write(current.with_wallet(wallet))
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save wallet: {e}")

    async def save_ratio_limit(self, ratio_limit: int) -> bool:
        try:
            current = await self.get_profile() or FinanceProfile()
            self._write(current.model_copy(update={"ratio_limit": ratio_limit}))
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save ratio limit: {e}")


class GoogleSheetsCategoryStorage(_UserRowsMixin, CategoryStorageInterface):
    """Google Sheets implementation of category storage."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    async def save_category(self, category: FinanceCategory) -> bool:
        try:
            sheet = self._client.get_categories_sheet()
            sheet.append_row(
                [
                    str(category.id),
                    self._client.user_id,
                    category.name,
                    category.icon,
                    category.color,
                ],
                value_input_option="RAW",
            )
            return True
        except Exception as e:
            raise StorageError(f"Failed to save category: {e}")

    async def list_categories(self) -> list[FinanceCategory]:
        try:
            sheet = self._client.get_categories_sheet()
            return [
                FinanceCategory(
                    id=UUID(_cell(row, 0)),
                    name=_cell(row, 2),
                    icon=_cell(row, 3, "category"),
                    color=_cell(row, 4, "gray"),
                )
                for _, row in self._user_rows(sheet)
            ]
        except Exception as e:
            raise StorageError(f"Failed to list categories: {e}")

    async def delete_category(self, category_id: UUID) -> bool:
        try:
            return self._delete_by_id(self._client.get_categories_sheet(), category_id)
        except Exception as e:
            raise StorageError(f"Failed to delete category: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        return AuditEvent(
            event_id=UUID(_cell(row, 0)),
            timestamp=datetime.fromisoformat(_cell(row, 1)),
            event_type=AuditEventType(_cell(row, 2)),
            severity=AuditSeverity(_cell(row, 3)),
            entity_type=_cell(row, 4) or None,
            entity_id=UUID(_cell(row, 5)) if _cell(row, 5) else None,
            correlation_id=UUID(_cell(row, 6)) if _cell(row, 6) else None,
            description=_cell(row, 7),
            details=json.loads(_cell(row, 8)) if _cell(row, 8) else {},
            error_message=_cell(row, 9) or None,
            is_user_action=_cell(row, 10).lower() == "true",
        )

    def _all_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        return [
            self._row_to_event(row)
            for row in sheet.get_all_values()[1:]
            if row and row[0]
        ]

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        try:
            events = [e for e in self._all_events() if e.correlation_id == correlation_id]
            events.sort(key=lambda e: e.timestamp)
            return events
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        try:
            events = [
                e for e in self._all_events()
                if e.entity_type == entity_type and e.entity_id == entity_id
            ]
            events.sort(key=lambda e: e.timestamp)
            return events
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        try:
            events = self._all_events()
            events.sort(key=lambda e: e.timestamp, reverse=True)
            return events[:limit]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
