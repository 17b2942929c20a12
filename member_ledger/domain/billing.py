"""Billing window calculation for the monthly returns cycle"""

import re
from datetime import date, datetime, time
from typing import Optional

from member_ledger.domain.exceptions import InvalidWindowError
from member_ledger.domain.models import BillingWindow
from member_ledger.utils.date_utils import END_OF_DAY, month_bounds, shift_month

# Returns for the previous month are finalized on this day of the month
BILLING_ANCHOR_DAY = 2

WINDOW_KINDS = {"current": 0, "next": 1, "previous": -1}

_MONTH_KEY = re.compile(r"^(\d{4})-(\d{1,2})$")


def format_month_key(year: int, month: int) -> str:
    return f"{year}-{month:02d}"


def _window_for_offset(reference: Optional[date], offset: int) -> BillingWindow:
    reference = reference or date.today()
    year, month = shift_month(reference.year, reference.month, offset)
    start, end = month_bounds(year, month)
    return BillingWindow(start=start, end=end)


def current_month_window(reference: Optional[date] = None) -> BillingWindow:
    """Day 1 00:00 to the last calendar day 23:59:59.999 of the reference month"""
    return _window_for_offset(reference, 0)


def next_month_window(reference: Optional[date] = None) -> BillingWindow:
    """Calendar month following the reference month"""
    return _window_for_offset(reference, 1)


def previous_month_window(reference: Optional[date] = None) -> BillingWindow:
    """
    Calendar month before the reference month.

    Carries a `YYYY-MM` month key that callers use to make sure monthly
    returns are generated once per month.
    """
    window = _window_for_offset(reference, -1)
    return BillingWindow(
        start=window.start,
        end=window.end,
        month_key=format_month_key(window.start.year, window.start.month),
    )


def month_window(month_key: str) -> BillingWindow:
    """Window for an explicit `YYYY-MM` month key"""
    match = _MONTH_KEY.match(month_key.strip()) if month_key else None
    if match is None:
        raise InvalidWindowError(f"Invalid month key: {month_key!r}")

    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1:
        raise InvalidWindowError(f"Invalid month key: {month_key!r}")

    start, end = month_bounds(year, month)
    return BillingWindow(start=start, end=end, month_key=format_month_key(year, month))


def compute_billing_window(kind: str, reference: Optional[date] = None) -> BillingWindow:
    """Resolve a window by kind: "current", "next" or "previous" """
    if kind not in WINDOW_KINDS:
        raise InvalidWindowError(f"Unknown billing window kind: {kind!r}")
    if kind == "previous":
        return previous_month_window(reference)
    return _window_for_offset(reference, WINDOW_KINDS[kind])


def is_billing_anchor_day(reference: Optional[date] = None) -> bool:
    """True on the day monthly returns are finalized (2nd of the month)"""
    reference = reference or date.today()
    return reference.day == BILLING_ANCHOR_DAY


def date_range_window(start: date, end: date) -> BillingWindow:
    """Window from explicit dates; the anchor month is the one `start` falls in"""
    if end < start:
        raise InvalidWindowError(f"Window end {end} is before start {start}")
    return BillingWindow(start=datetime.combine(start, time.min), end=datetime.combine(end, END_OF_DAY))
