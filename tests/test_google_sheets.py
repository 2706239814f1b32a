"""
Tests for the Google Sheets backend.

No network: the spreadsheet client is replaced by an in-memory fake that
exposes the few worksheet methods the storages call.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from conftest import make_tx
from ledger.models.audit import AuditEventBuilder
from ledger.models.finance import FinanceCategory, WalletState, WeeklyClosure
from ledger.services.storage import StorageError
from ledger.services.storage.google_sheets import (
    CLOSURE_COLUMNS,
    TRANSACTION_COLUMNS,
    GoogleSheetsAuditStorage,
    GoogleSheetsCategoryStorage,
    GoogleSheetsClosureStorage,
    GoogleSheetsProfileStorage,
    GoogleSheetsTransactionStorage,
)


class FakeWorksheet:
    def __init__(self, header):
        self.rows = [list(header)]

    def get_all_values(self):
        return [[str(v) for v in row] for row in self.rows]

    def append_row(self, row, value_input_option=None):
        self.rows.append(list(row))

    def delete_rows(self, index):
        del self.rows[index - 1]

    def update(self, range_name=None, values=None, value_input_option=None):
        # "A{n}:E{n}" ranges only
        start, _ = range_name.split(":")
        index = int(start[1:])
        row = self.rows[index - 1]
        row.extend([""] * (len(values[0]) - len(row)))
        row[: len(values[0])] = list(values[0])


class RejectingWorksheet(FakeWorksheet):
    """Every range update fails, as on a quota error."""

    def update(self, range_name=None, values=None, value_input_option=None):
        raise RuntimeError("quota exceeded")


class FakeSheetsClient:
    def __init__(self, user_id="alice"):
        self.user_id = user_id
        self.transactions = FakeWorksheet(TRANSACTION_COLUMNS)
        self.closures = FakeWorksheet(CLOSURE_COLUMNS)
        self.profile = FakeWorksheet(["user_id", "ratio_limit"])
        self.categories = FakeWorksheet(["id", "user_id"])
        self.audit = FakeWorksheet(["event_id"])

    def get_transactions_sheet(self):
        return self.transactions

    def get_closures_sheet(self):
        return self.closures

    def get_profile_sheet(self):
        return self.profile

    def get_categories_sheet(self):
        return self.categories

    def get_audit_sheet(self):
        return self.audit


@pytest.fixture
def client():
    return FakeSheetsClient()


class TestTransactionSheet:

    @pytest.mark.asyncio
    async def test_round_trip(self, client):
        storage = GoogleSheetsTransactionStorage(client)
        tx = make_tx("expense", "42.50", date(2024, 2, 13), "Supermarket", "food")

        assert await storage.save_transaction(tx)
        loaded = await storage.get_transaction_by_id(tx.id)

        assert loaded.amount == Decimal("42.50")
        assert loaded.date == date(2024, 2, 13)
        assert loaded.category == "food"

    @pytest.mark.asyncio
    async def test_rows_of_other_users_are_invisible(self, client):
        mine = GoogleSheetsTransactionStorage(client)
        other_client = FakeSheetsClient(user_id="bob")
        other_client.transactions = client.transactions
        theirs = GoogleSheetsTransactionStorage(other_client)

        await mine.save_transaction(make_tx("income", "10", date(2024, 2, 1)))
        await theirs.save_transaction(make_tx("income", "99", date(2024, 2, 1)))

        assert [tx.amount for tx in await mine.list_transactions()] == [Decimal("10")]

    @pytest.mark.asyncio
    async def test_list_filters_and_orders(self, client):
        storage = GoogleSheetsTransactionStorage(client)
        for day in (5, 1, 9):
            await storage.save_transaction(make_tx("income", "1", date(2024, 2, day)))

        rows = await storage.list_transactions(
            date_from=date(2024, 2, 2), date_to=date(2024, 2, 9), ascending=True
        )
        assert [tx.date.day for tx in rows] == [5, 9]

    @pytest.mark.asyncio
    async def test_delete(self, client):
        storage = GoogleSheetsTransactionStorage(client)
        tx = make_tx("income", "1", date(2024, 2, 1))
        await storage.save_transaction(tx)

        assert await storage.delete_transaction(tx.id)
        assert not await storage.delete_transaction(tx.id)
        assert len(client.transactions.rows) == 1


class TestClosureSheet:

    @pytest.mark.asyncio
    async def test_find_closure(self, client):
        storage = GoogleSheetsClosureStorage(client)
        closure = WeeklyClosure(
            week_number=2,
            month=2,
            year=2024,
            net_amount=Decimal("400"),
            assigned_expenses=Decimal("0"),
            assigned_investments=Decimal("500"),
        )
        await storage.save_closure(closure)

        found = await storage.find_closure(2, 2, 2024)
        assert found.id == closure.id
        assert found.assigned_investments == Decimal("500")
        assert await storage.find_closure(3, 2, 2024) is None


class TestProfileSheet:

    @pytest.mark.asyncio
    async def test_missing_profile(self, client):
        assert await GoogleSheetsProfileStorage(client).get_profile() is None

    @pytest.mark.asyncio
    async def test_save_wallet_then_ratio(self, client):
        storage = GoogleSheetsProfileStorage(client)

        await storage.save_wallet(WalletState(expenses=Decimal("12.5"), investments=Decimal("-3")))
        await storage.save_ratio_limit(45)
        profile = await storage.get_profile()

        assert profile.ratio_limit == 45
        assert profile.wallet.expenses == Decimal("12.5")
        assert profile.wallet.investments == Decimal("-3")
        assert len(client.profile.rows) == 2

    @pytest.mark.asyncio
    async def test_zero_ratio_falls_back_to_default(self, client):
        client.profile.rows.append(["alice", "0", "1", "2", ""])

        profile = await GoogleSheetsProfileStorage(client).get_profile()

        assert profile.ratio_limit == 30

    @pytest.mark.asyncio
    async def test_failed_wallet_write_leaves_stored_row_untouched(self, client):
        client.profile = RejectingWorksheet(["user_id", "ratio_limit"])
        client.profile.rows.append(["alice", "30", "100", "100", ""])
        storage = GoogleSheetsProfileStorage(client)

        with pytest.raises(StorageError):
            await storage.save_wallet(
                WalletState(expenses=Decimal("400"), investments=Decimal("800"))
            )

        profile = await storage.get_profile()
        assert profile.wallet == WalletState(
            expenses=Decimal("100"), investments=Decimal("100")
        )


class TestCategoryAndAuditSheets:

    @pytest.mark.asyncio
    async def test_categories(self, client):
        storage = GoogleSheetsCategoryStorage(client)
        category = FinanceCategory(name="Food", icon="restaurant", color="orange")

        await storage.save_category(category)
        [loaded] = await storage.list_categories()

        assert loaded.name == "Food"
        assert loaded.icon == "restaurant"
        assert await storage.delete_category(category.id)

    @pytest.mark.asyncio
    async def test_audit_events_by_correlation(self, client):
        from uuid import uuid4

        storage = GoogleSheetsAuditStorage(client)
        correlation_id = uuid4()
        event = AuditEventBuilder.ratio_limit_updated(30, 40, correlation_id)
        event.timestamp = datetime(2024, 2, 1, tzinfo=timezone.utc)

        await storage.append_event(event)
        await storage.append_event(AuditEventBuilder.ratio_limit_updated(40, 50, uuid4()))

        [loaded] = await storage.get_events_by_correlation_id(correlation_id)
        assert loaded.event_id == event.event_id
        assert loaded.details == event.details
