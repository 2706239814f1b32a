"""Read-side reports package."""

from ledger.reports.summaries import global_net, month_calendar, summarize, summarize_week
from ledger.reports.timeseries import TimeSeriesAggregator, fixed_day_blocks

__all__ = [
    "TimeSeriesAggregator",
    "fixed_day_blocks",
    "global_net",
    "month_calendar",
    "summarize",
    "summarize_week",
]
