"""Date manipulation utilities"""

from datetime import date, datetime
from typing import Tuple

from dateutil.relativedelta import relativedelta


def to_date(value: date | datetime) -> date:
    """Drop any time-of-day component so it never affects bucketing"""
    if isinstance(value, datetime):
        return value.date()
    return value


def add_months(from_date: date, months: int) -> date:
    """Advance by calendar months, clipping the day to the target month's length"""
    return from_date + relativedelta(months=months)


def previous_month(year: int, month: int) -> Tuple[int, int]:
    """(year, month) of the calendar month before the given one"""
    if month == 1:
        return year - 1, 12
    return year, month - 1


def in_month(value: date | datetime, year: int, month: int) -> bool:
    """True when the date falls in the given calendar month"""
    d = to_date(value)
    return d.year == year and d.month == month
