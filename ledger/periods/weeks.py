"""
Natural Week Partitioning

A month is split into "natural weeks": contiguous day ranges that end on
a Sunday, except the last one which ends on the month's last day. The
first week is usually short (from the 1st to the first Sunday).

Example - February 2024 starts on a Thursday:
    1: 1-4, 2: 5-11, 3: 12-18, 4: 19-25, 5: 26-29

These are the weeks that get closed by the ClosureEngine. The chart's
week buckets are a different, fixed 7-day scheme (see reports.timeseries).
"""

import calendar
from datetime import date

from ledger.errors import ValidationError
from ledger.models.finance import WeekRange

SUNDAY = 6  # date.weekday()


def days_in_month(month: int, year: int) -> int:
    return calendar.monthrange(year, month)[1]


def _check_month(month: int, year: int) -> None:
    if not 1 <= month <= 12:
        raise ValidationError(f"Month must be between 1 and 12, got {month}")
    if year < 1:
        raise ValidationError(f"Invalid year: {year}")


def partition_month(month: int, year: int) -> list[WeekRange]:
    """
    Split a month into natural weeks ending on Sundays.

    Pure function of (month, year). The result covers [1, days_in_month]
    exactly once, ranges are ordered and ids are dense from 1.
    """
    _check_month(month, year)
    last_day = days_in_month(month, year)

    ranges = []
    current = 1
    week_id = 1
    while current <= last_day:
        weekday = date(year, month, current).weekday()
        end = min(current + (SUNDAY - weekday), last_day)
        ranges.append(WeekRange(id=week_id, start_day=current, end_day=end))
        current = end + 1
        week_id += 1

    return ranges


def find_week(week_id: int, month: int, year: int) -> WeekRange:
    """
    Look up one natural week by its id.

    Raises:
        ValidationError: If the month has no week with that id
    """
    for week in partition_month(month, year):
        if week.id == week_id:
            return week
    raise ValidationError(
        f"Week {week_id} does not exist in {year}-{month:02d}"
    )


def week_of(day: date) -> WeekRange:
    """Return the natural week containing `day`."""
    for week in partition_month(day.month, day.year):
        if week.contains(day.day):
            return week
    # partition_month always covers the whole month
    raise AssertionError(f"No natural week contains {day}")
