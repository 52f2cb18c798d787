"""Date manipulation utilities"""

import calendar
from datetime import date


def months_between(start: date, end: date) -> int:
    """Calendar month difference from start to end, ignoring the day of month"""
    return (end.year - start.year) * 12 + (end.month - start.month)


def add_months(from_date: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month's length"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(from_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)
