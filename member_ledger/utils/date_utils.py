"""Date manipulation utilities"""

import calendar
import re
from datetime import date, datetime, time
from typing import Optional, Tuple

_ISO_DATE_PREFIX = re.compile(r"^\s*(\d{4})-(\d{1,2})-(\d{1,2})(?!\d)")

END_OF_DAY = time(23, 59, 59, 999000)


def parse_record_date(value) -> Optional[date]:
    """
    Extract the calendar date from a stored record date.

    Accepts `date`/`datetime` objects and ISO strings; anything after the
    `YYYY-MM-DD` prefix (a time component, a timezone) is ignored.
    Returns None when no valid calendar date can be read.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    match = _ISO_DATE_PREFIX.match(value)
    if match is None:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def month_index(value: date) -> int:
    """Comparable index of a year-month (year * 12 + month)"""
    return value.year * 12 + value.month


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def shift_month(year: int, month: int, offset: int) -> Tuple[int, int]:
    """Move a (year, month) pair by `offset` calendar months"""
    zero_based = year * 12 + (month - 1) + offset
    return zero_based // 12, zero_based % 12 + 1


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """Day 1 00:00 and last calendar day 23:59:59.999 of a month"""
    start = datetime(year, month, 1)
    end = datetime.combine(date(year, month, days_in_month(year, month)), END_OF_DAY)
    return start, end
