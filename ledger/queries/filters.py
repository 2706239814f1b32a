"""
Transaction Filter

DESIGN DECISION: Filtering is DETERMINISTIC and pure.
A TransactionQuery is turned into a list of predicates; a transaction is
kept only if every active predicate accepts it. Absent criteria add no
predicate, so removing a criterion can never shrink the result.

Sorting is stable: ties keep their input order.
"""

from datetime import date, timedelta
from typing import Callable, Iterable, Optional

from ledger.models.finance import (
    DateWindow,
    SortKey,
    Transaction,
    TransactionQuery,
    TransactionType,
)
from ledger.periods.weeks import find_week

Predicate = Callable[[Transaction], bool]

TYPE_NAMES = {t.value for t in TransactionType}
ALL = "all"


def date_bounds(query: TransactionQuery, today: date) -> Optional[tuple[date, date]]:
    """Inclusive date bounds for the query's window, or None for no window."""
    window = query.date_window
    if window is None:
        return None
    if window == DateWindow.TODAY:
        return today, today
    if window == DateWindow.LAST_7D:
        return today - timedelta(days=6), today
    if window == DateWindow.LAST_30D:
        return today - timedelta(days=29), today
    if window == DateWindow.CUSTOM:
        return query.custom_start, query.custom_end
    week = find_week(query.week_id, query.month, query.year)
    return week.date_bounds(query.month, query.year)


def build_predicates(query: TransactionQuery, today: date) -> list[Predicate]:
    predicates: list[Predicate] = []

    if query.text:
        needle = query.text.lower()
        predicates.append(lambda tx: needle in tx.description.lower())

    if query.category and query.category != ALL:
        category = query.category
        if category in TYPE_NAMES:
            tx_type = TransactionType(category)
            predicates.append(lambda tx: tx.type == tx_type)
        else:
            predicates.append(lambda tx: tx.category == category)

    bounds = date_bounds(query, today)
    if bounds is not None:
        start, end = bounds
        predicates.append(lambda tx: start <= tx.date <= end)

    return predicates


SORT_KEYS = {
    SortKey.DATE_ASC: (lambda tx: tx.date.isoformat(), False),
    SortKey.DATE_DESC: (lambda tx: tx.date.isoformat(), True),
    SortKey.AMOUNT_ASC: (lambda tx: tx.amount, False),
    SortKey.AMOUNT_DESC: (lambda tx: tx.amount, True),
}


class TransactionFilter:
    """
    Filters and sorts an in-memory snapshot of transactions.

    Usage:
        tx_filter = TransactionFilter()
        rows = tx_filter.filter(transactions, TransactionQuery(text="rent"))
    """

    def __init__(self, today: Optional[date] = None):
        self._today = today

    def filter(
        self,
        transactions: Iterable[Transaction],
        query: TransactionQuery,
    ) -> list[Transaction]:
        """
        Apply every active criterion of `query`, then sort.

        Raises:
            ValidationError: A week window names a week the month lacks
        """
        predicates = build_predicates(query, self._today or date.today())
        matched = [tx for tx in transactions if all(p(tx) for p in predicates)]

        key, reverse = SORT_KEYS[query.sort_by]
        return sorted(matched, key=key, reverse=reverse)
