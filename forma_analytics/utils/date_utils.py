"""Date manipulation utilities"""

import calendar
from datetime import date, timedelta
from typing import List, Tuple


def generate_date_range(start: date, end: date) -> List[date]:
    """Generate list of dates from start to end (inclusive), empty if end < start"""
    days = (end - start).days + 1
    return [start + timedelta(days=i) for i in range(days)]


def inclusive_day_span(start: date, end: date) -> int:
    """Number of calendar days covered by start..end, counting both ends"""
    return (end - start).days + 1


def shift_month(year: int, month: int, offset: int) -> Tuple[int, int]:
    """Move (year, month) by offset months, rolling over year boundaries"""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last calendar day of a month"""
    return date(year, month, 1), date(year, month, days_in_month(year, month))
