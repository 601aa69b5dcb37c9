"""
Time Window Utilities

Helper functions for trailing windows (90-day default, 180-day trend)
and calendar-month bucketing.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import List, Tuple

from finsight.ingest.schema import Transaction

DAYS_PER_MONTH = 30


def to_date(value) -> date:
    """Convert datetime, ISO string or date to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        return datetime.strptime(value[:10], '%Y-%m-%d').date()
    return value


def get_date_range(days: int, as_of=None) -> Tuple[date, date]:
    """
    Get start and end dates for a trailing window.

    Args:
        days: Number of days in the window
        as_of: End date of the window (defaults to today)

    Returns:
        Tuple of (start_date, end_date), both inclusive
    """
    end_date = to_date(as_of) if as_of is not None else date.today()
    start_date = end_date - timedelta(days=days)
    return start_date, end_date


def filter_transactions_by_window(
    transactions: List[Transaction],
    days: int,
    as_of=None
) -> List[Transaction]:
    """Transactions dated inside the trailing window."""
    start_date, end_date = get_date_range(days, as_of)
    return [t for t in transactions if start_date <= to_date(t.date) <= end_date]


def window_months(days: int) -> float:
    """Window length expressed in 30-day months."""
    return days / DAYS_PER_MONTH


def month_key(value) -> Tuple[int, int]:
    """(year, month) bucket for a date."""
    d = to_date(value)
    return d.year, d.month


def next_month(key: Tuple[int, int]) -> Tuple[int, int]:
    year, month = key
    return (year + 1, 1) if month == 12 else (year, month + 1)


def month_end(year: int, month: int) -> datetime:
    """Last instant of a calendar month."""
    ny, nm = next_month((year, month))
    return datetime(ny, nm, 1) - timedelta(microseconds=1)


def recent_months(count: int, as_of=None) -> List[Tuple[int, int]]:
    """The `count` most recent calendar months ending with as_of's month, oldest first."""
    _, end_date = get_date_range(0, as_of)
    year, month = end_date.year, end_date.month
    months = []
    for _ in range(count):
        months.append((year, month))
        year, month = (year - 1, 12) if month == 1 else (year, month - 1)
    months.reverse()
    return months


def months_before(value, months: int) -> date:
    """Same day `months` calendar months earlier, clamped to that month's length."""
    d = to_date(value)
    year, month_index = divmod(d.year * 12 + d.month - 1 - months, 12)
    day = min(d.day, calendar.monthrange(year, month_index + 1)[1])
    return date(year, month_index + 1, day)
