"""
Flow Summaries

Small, pure helpers that total transactions by type. They back the week
summary cards, the global balance, and the month calendar grid.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable

from ledger.models.finance import (
    CalendarCell,
    CalendarCellType,
    FlowTotals,
    Transaction,
    TransactionType,
    WeekRange,
)
from ledger.periods.weeks import days_in_month

CALENDAR_CELLS = 42  # 6 rows x 7 days, Monday first


def summarize(transactions: Iterable[Transaction]) -> FlowTotals:
    """Sum amounts by type."""
    income = expense = investment = Decimal("0")
    for tx in transactions:
        if tx.type == TransactionType.INCOME:
            income += tx.amount
        elif tx.type == TransactionType.EXPENSE:
            expense += tx.amount
        else:
            investment += tx.amount
    return FlowTotals(income=income, expense=expense, investment=investment)


def in_range(tx: Transaction, start: date, end: date) -> bool:
    return start <= tx.date <= end


def summarize_week(
    transactions: Iterable[Transaction],
    week: WeekRange,
    month: int,
    year: int,
) -> FlowTotals:
    """Totals for one natural week of a month."""
    start, end = week.date_bounds(month, year)
    return summarize(tx for tx in transactions if in_range(tx, start, end))


def global_net(transactions: Iterable[Transaction]) -> Decimal:
    """All-time income minus expenses minus investments."""
    return summarize(transactions).net


def month_calendar(
    transactions: Iterable[Transaction],
    month: int,
    year: int,
) -> list[CalendarCell]:
    """
    Build the Monday-first month grid.

    Leading cells show the tail of the previous month, trailing cells the
    start of the next one, so the grid always has 42 cells. Only cells of
    the month itself carry totals.
    """
    first = date(year, month, 1)
    last_day = days_in_month(month, year)

    by_day: dict[date, list[Transaction]] = {}
    for tx in transactions:
        if tx.date.year == year and tx.date.month == month:
            by_day.setdefault(tx.date, []).append(tx)

    cells = []

    leading = first.weekday()
    for offset in range(leading, 0, -1):
        prev = first - timedelta(days=offset)
        cells.append(CalendarCell(day=prev.day, cell_type=CalendarCellType.PREV))

    for day in range(1, last_day + 1):
        current = date(year, month, day)
        cells.append(CalendarCell(
            day=day,
            cell_type=CalendarCellType.CURRENT,
            date=current,
            totals=summarize(by_day.get(current, [])),
        ))

    for day in range(1, CALENDAR_CELLS - len(cells) + 1):
        cells.append(CalendarCell(day=day, cell_type=CalendarCellType.NEXT))

    return cells
