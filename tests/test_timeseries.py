"""
Tests for the chart time series.
"""

from datetime import date
from decimal import Decimal

from conftest import make_tx
from ledger.models.finance import Granularity
from ledger.reports import TimeSeriesAggregator
from ledger.reports.timeseries import fixed_day_blocks, initial_balance, moving_averages


class TestDayGranularity:
    """Tests for day buckets."""

    def test_cumulative_balance(self):
        """Income 100 on day 1 and expense 40 on day 3 -> [100, 100, 60]."""
        transactions = [
            make_tx("income", "100", date(2024, 3, 1)),
            make_tx("expense", "40", date(2024, 3, 3)),
        ]

        records = TimeSeriesAggregator(window=5).aggregate(
            transactions, date(2024, 3, 1), date(2024, 3, 3), Granularity.DAY
        )

        assert [r.cumulative_balance for r in records] == [
            Decimal("100"), Decimal("100"), Decimal("60"),
        ]
        assert [r.label for r in records] == ["1", "2", "3"]
        assert [r.period_net for r in records] == [
            Decimal("100"), Decimal("0"), Decimal("-40"),
        ]

    def test_balance_is_seeded_with_history(self):
        transactions = [
            make_tx("income", "500", date(2024, 2, 20)),
            make_tx("investment", "200", date(2024, 2, 25)),
            make_tx("expense", "50", date(2024, 3, 2)),
        ]

        records = TimeSeriesAggregator(window=5).aggregate(
            transactions, date(2024, 3, 1), date(2024, 3, 2), Granularity.DAY
        )

        assert [r.cumulative_balance for r in records] == [Decimal("300"), Decimal("250")]

    def test_flows_per_day(self):
        transactions = [
            make_tx("income", "10", date(2024, 3, 1)),
            make_tx("expense", "3", date(2024, 3, 1)),
            make_tx("investment", "2", date(2024, 3, 1)),
        ]

        [record] = TimeSeriesAggregator(window=5).aggregate(
            transactions, date(2024, 3, 1), date(2024, 3, 1), Granularity.DAY
        )

        assert record.income == Decimal("10")
        assert record.expense == Decimal("3")
        assert record.investment == Decimal("2")
        assert record.period_net == Decimal("5")

    def test_transactions_after_range_are_ignored(self):
        transactions = [make_tx("income", "10", date(2024, 3, 9))]

        records = TimeSeriesAggregator(window=5).aggregate(
            transactions, date(2024, 3, 1), date(2024, 3, 2), Granularity.DAY
        )

        assert all(r.cumulative_balance == Decimal("0") for r in records)

    def test_inverted_range_is_empty(self):
        records = TimeSeriesAggregator(window=5).aggregate(
            [], date(2024, 3, 5), date(2024, 3, 1), Granularity.DAY
        )
        assert records == []


class TestMovingAverage:
    """Tests for the trailing moving average."""

    def test_first_average_equals_first_balance(self):
        transactions = [make_tx("income", "100", date(2024, 3, 1))]

        records = TimeSeriesAggregator(window=5).aggregate(
            transactions, date(2024, 3, 1), date(2024, 3, 7), Granularity.DAY
        )

        assert records[0].moving_average == records[0].cumulative_balance

    def test_window_of_five(self):
        transactions = [
            make_tx("income", str(10 * (i + 1)), date(2024, 3, i + 1))
            for i in range(7)
        ]

        records = TimeSeriesAggregator(window=5).aggregate(
            transactions, date(2024, 3, 1), date(2024, 3, 7), Granularity.DAY
        )
        balances = [r.cumulative_balance for r in records]

        assert records[4].moving_average == sum(balances[0:5]) / 5
        assert records[6].moving_average == sum(balances[2:7]) / 5

    def test_window_shrinks_at_start(self):
        values = [Decimal("100"), Decimal("100"), Decimal("60")]

        assert moving_averages(values, 5) == [
            Decimal("100"),
            Decimal("100"),
            Decimal("260") / 3,
        ]


class TestWeekGranularity:
    """Fixed 7-day blocks, independent of natural weeks."""

    def test_blocks_start_at_range_start(self):
        blocks = fixed_day_blocks(date(2024, 2, 1), date(2024, 2, 20))

        assert [(start, end) for _, start, end in blocks] == [
            (date(2024, 2, 1), date(2024, 2, 7)),
            (date(2024, 2, 8), date(2024, 2, 14)),
            (date(2024, 2, 15), date(2024, 2, 20)),
        ]
        assert [label for label, _, _ in blocks] == ["W1", "W2", "W3"]

    def test_week_sums(self):
        """Feb 3 and Feb 5 share a block although they are in different natural weeks."""
        transactions = [
            make_tx("income", "100", date(2024, 2, 3)),
            make_tx("expense", "30", date(2024, 2, 5)),
            make_tx("expense", "20", date(2024, 2, 11)),
        ]

        records = TimeSeriesAggregator(window=5).aggregate(
            transactions, date(2024, 2, 3), date(2024, 2, 16), Granularity.WEEK
        )

        assert [r.period_net for r in records] == [Decimal("70"), Decimal("-20")]
        assert [r.cumulative_balance for r in records] == [Decimal("70"), Decimal("50")]


class TestMonthGranularity:
    """Tests for calendar month buckets."""

    def test_month_labels_and_sums(self):
        transactions = [
            make_tx("income", "100", date(2024, 1, 20)),
            make_tx("expense", "40", date(2024, 2, 10)),
            make_tx("income", "5", date(2024, 3, 31)),
        ]

        records = TimeSeriesAggregator(window=5).aggregate(
            transactions, date(2024, 1, 1), date(2024, 3, 15), Granularity.MONTH
        )

        assert [r.label for r in records] == ["Jan 24", "Feb 24", "Mar 24"]
        assert [r.period_net for r in records] == [
            Decimal("100"), Decimal("-40"), Decimal("5"),
        ]
        assert records[-1].end == date(2024, 3, 31)

    def test_month_sums_whole_month(self):
        """A mid-month start still sums the full first month."""
        transactions = [make_tx("expense", "10", date(2024, 1, 3))]

        records = TimeSeriesAggregator(window=5).aggregate(
            transactions, date(2024, 1, 15), date(2024, 1, 31), Granularity.MONTH
        )

        assert records[0].start == date(2024, 1, 1)
        assert records[0].expense == Decimal("10")

    def test_year_boundary(self):
        records = TimeSeriesAggregator(window=5).aggregate(
            [], date(2023, 12, 10), date(2024, 1, 5), Granularity.MONTH
        )
        assert [r.label for r in records] == ["Dec 23", "Jan 24"]


class TestInitialBalance:
    def test_signs(self):
        transactions = [
            make_tx("income", "100", date(2024, 1, 1)),
            make_tx("expense", "30", date(2024, 1, 2)),
            make_tx("investment", "20", date(2024, 1, 3)),
            make_tx("income", "999", date(2024, 1, 10)),
        ]
        assert initial_balance(transactions, date(2024, 1, 10)) == Decimal("50")
