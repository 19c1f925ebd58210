"""Calendar arithmetic for monthly payment schedules"""

from calendar import monthrange
from datetime import date, datetime


def as_date(value: date) -> date:
    """Drop the time component of a datetime, pass dates through unchanged"""
    if isinstance(value, datetime):
        return value.date()
    return value


def add_months(start: date, months: int, day: int) -> date:
    """
    Date `months` calendar months after `start`'s month, on `day`.

    Clamp policy: if `day` does not exist in the target month (day 31 in
    April, day 30 in February) the date falls on the month's last day.
    The month index is always counted from `start`, so a short month never
    drags later payments earlier.

    Example:
        add_months(date(2024, 1, 31), 1, 31) -> date(2024, 2, 29)
        add_months(date(2024, 1, 31), 2, 31) -> date(2024, 3, 31)
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    last_day = monthrange(year, month)[1]
    return date(year, month, min(max(day, 1), last_day))


def month_key(value: date) -> int:
    """YYYYMM identifier for the calendar month of `value` (July 2024 -> 202407)"""
    return value.year * 100 + value.month


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start's month to end's month, ignoring days"""
    return (end.year - start.year) * 12 + (end.month - start.month)
