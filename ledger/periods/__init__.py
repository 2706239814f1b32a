"""Period partitioning package."""

from ledger.periods.weeks import days_in_month, find_week, partition_month, week_of

__all__ = ["days_in_month", "find_week", "partition_month", "week_of"]
