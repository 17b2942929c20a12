"""Unit tests for billing window calculation"""

import pytest
from datetime import date, datetime

from member_ledger.domain.billing import (
    compute_billing_window,
    current_month_window,
    date_range_window,
    is_billing_anchor_day,
    month_window,
    next_month_window,
    previous_month_window,
)
from member_ledger.domain.exceptions import InvalidWindowError


def test_current_window_spans_whole_calendar_month():
    window = current_month_window(date(2024, 1, 15))

    assert window.start == datetime(2024, 1, 1)
    assert window.end == datetime(2024, 1, 31, 23, 59, 59, 999000)


def test_leap_year_february():
    """Test window ends on the 29th in a leap year"""
    assert current_month_window(date(2024, 2, 10)).end.date() == date(2024, 2, 29)
    assert current_month_window(date(2023, 2, 10)).end.date() == date(2023, 2, 28)


def test_next_window_rolls_over_year():
    window = next_month_window(date(2023, 12, 31))

    assert window.start == datetime(2024, 1, 1)
    assert window.end.date() == date(2024, 1, 31)


def test_previous_window_rolls_back_year_and_carries_month_key():
    window = previous_month_window(date(2024, 1, 2))

    assert window.start == datetime(2023, 12, 1)
    assert window.end.date() == date(2023, 12, 31)
    assert window.month_key == "2023-12"


def test_current_and_next_windows_have_no_month_key():
    assert current_month_window(date(2024, 5, 5)).month_key is None
    assert next_month_window(date(2024, 5, 5)).month_key is None


def test_compute_billing_window_by_kind():
    reference = date(2024, 6, 20)

    assert compute_billing_window("current", reference) == current_month_window(reference)
    assert compute_billing_window("next", reference) == next_month_window(reference)
    assert compute_billing_window("previous", reference).month_key == "2024-05"


def test_compute_billing_window_rejects_unknown_kind():
    with pytest.raises(InvalidWindowError):
        compute_billing_window("weekly", date(2024, 6, 20))


def test_month_window_from_key():
    window = month_window("2024-02")

    assert window.start == datetime(2024, 2, 1)
    assert window.end.date() == date(2024, 2, 29)
    assert window.month_key == "2024-02"


def test_month_window_pads_single_digit_month():
    assert month_window("2024-3").month_key == "2024-03"


@pytest.mark.parametrize("month_key", ["2024-13", "2024-00", "January", "", "2024/01"])
def test_month_window_rejects_bad_keys(month_key):
    with pytest.raises(InvalidWindowError):
        month_window(month_key)


def test_anchor_day_is_the_second():
    assert is_billing_anchor_day(date(2024, 3, 2))
    assert not is_billing_anchor_day(date(2024, 3, 1))
    assert not is_billing_anchor_day(date(2024, 3, 3))


def test_date_range_window_covers_whole_end_day():
    window = date_range_window(date(2024, 1, 5), date(2024, 1, 20))

    assert window.start == datetime(2024, 1, 5)
    assert window.end == datetime(2024, 1, 20, 23, 59, 59, 999000)


def test_date_range_window_rejects_reversed_dates():
    with pytest.raises(InvalidWindowError):
        date_range_window(date(2024, 1, 20), date(2024, 1, 5))
