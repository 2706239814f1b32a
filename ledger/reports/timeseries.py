"""
Time-Series Aggregation

Buckets transactions into day, week or month periods over a date range
and computes, per period:
- income / expense / investment sums and the period net
- a cumulative balance seeded with everything before the range
- a trailing moving average of that balance

DESIGN DECISION: "week" here means fixed 7-day blocks counted from the
range start, NOT the Sunday-ending natural weeks used for closures. The
two schemes are kept apart on purpose; charts and closures each depend
on their own definition.

Everything in this module is pure: same input, same output, no I/O.
"""

import bisect
import math
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from ledger.config import get_settings
from ledger.models.finance import Granularity, PeriodRecord, Transaction
from ledger.periods.weeks import days_in_month
from ledger.reports.summaries import summarize

MONTH_LABELS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]

# (label, start, end) - both bounds inclusive
Period = tuple[str, date, date]


def day_periods(range_start: date, range_end: date) -> list[Period]:
    """One period per calendar day."""
    periods = []
    current = range_start
    while current <= range_end:
        periods.append((str(current.day), current, current))
        current += timedelta(days=1)
    return periods


def fixed_day_blocks(range_start: date, range_end: date, size: int = 7) -> list[Period]:
    """
    Consecutive blocks of `size` days starting at range_start.

    The last block is cut at range_end. Labels follow the block's
    position within its month (W1 for days 1-7, W2 for 8-14, ...).
    """
    periods = []
    current = range_start
    while current <= range_end:
        end = min(current + timedelta(days=size - 1), range_end)
        periods.append((f"W{math.ceil(current.day / 7)}", current, end))
        current += timedelta(days=size)
    return periods


def month_periods(range_start: date, range_end: date) -> list[Period]:
    """
    One period per calendar month overlapping the range.

    Periods span the whole month, so transactions before range_start in
    the first month are included in that month's sums.
    """
    periods = []
    current = range_start.replace(day=1)
    while current <= range_end:
        end = current.replace(day=days_in_month(current.month, current.year))
        label = f"{MONTH_LABELS[current.month - 1]} {current.year % 100:02d}"
        periods.append((label, current, end))
        current = end + timedelta(days=1)
    return periods


def initial_balance(transactions: Iterable[Transaction], range_start: date) -> Decimal:
    """Net of every transaction strictly before range_start."""
    return sum(
        (tx.signed_amount for tx in transactions if tx.date < range_start),
        Decimal("0"),
    )


def moving_averages(values: list[Decimal], window: int) -> list[Decimal]:
    """
    Trailing mean over up to `window` values ending at each index.

    The window shrinks near the start; it is never padded.
    """
    averages = []
    for i in range(len(values)):
        chunk = values[max(0, i - window + 1):i + 1]
        averages.append(sum(chunk, Decimal("0")) / len(chunk))
    return averages


class TimeSeriesAggregator:
    """
    Builds the chart series for a date range and granularity.

    Usage:
        aggregator = TimeSeriesAggregator()
        records = aggregator.aggregate(transactions, start, end, Granularity.DAY)
    """

    def __init__(self, window: Optional[int] = None):
        self._window = window or get_settings().ledger.moving_average_window

    def periods(
        self,
        range_start: date,
        range_end: date,
        granularity: Granularity,
    ) -> list[Period]:
        if granularity == Granularity.DAY:
            return day_periods(range_start, range_end)
        if granularity == Granularity.WEEK:
            return fixed_day_blocks(range_start, range_end)
        return month_periods(range_start, range_end)

    def aggregate(
        self,
        transactions: Iterable[Transaction],
        range_start: date,
        range_end: date,
        granularity: Granularity,
    ) -> list[PeriodRecord]:
        """
        Aggregate transactions into ordered period records.

        An inverted range (start after end) yields an empty series.
        """
        transactions = list(transactions)
        periods = self.periods(range_start, range_end, Granularity(granularity))
        if not periods:
            return []

        # Periods are contiguous, so a bisect on start dates finds the bucket
        starts = [start for _, start, _ in periods]
        last_end = periods[-1][2]
        buckets: list[list[Transaction]] = [[] for _ in periods]
        for tx in transactions:
            if tx.date < starts[0] or tx.date > last_end:
                continue
            buckets[bisect.bisect_right(starts, tx.date) - 1].append(tx)

        running = initial_balance(transactions, range_start)
        rows = []
        for (label, start, end), bucket in zip(periods, buckets):
            totals = summarize(bucket)
            running += totals.net
            rows.append((label, start, end, totals, running))

        averages = moving_averages([row[4] for row in rows], self._window)

        return [
            PeriodRecord(
                label=label,
                start=start,
                end=end,
                income=totals.income,
                expense=totals.expense,
                investment=totals.investment,
                period_net=totals.net,
                cumulative_balance=balance,
                moving_average=average,
            )
            for (label, start, end, totals, balance), average in zip(rows, averages)
        ]
