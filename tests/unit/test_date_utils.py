"""Unit tests for date helpers"""

from datetime import date
from forma_analytics.utils.date_utils import (
    days_in_month,
    generate_date_range,
    inclusive_day_span,
    month_bounds,
    shift_month,
)


def test_date_range_is_inclusive():
    days = generate_date_range(date(2026, 2, 27), date(2026, 3, 2))

    assert days == [date(2026, 2, 27), date(2026, 2, 28), date(2026, 3, 1), date(2026, 3, 2)]


def test_date_range_empty_when_reversed():
    assert generate_date_range(date(2026, 3, 2), date(2026, 3, 1)) == []


def test_inclusive_day_span():
    assert inclusive_day_span(date(2026, 1, 1), date(2026, 1, 1)) == 1
    assert inclusive_day_span(date(2026, 1, 1), date(2026, 1, 30)) == 30


def test_shift_month_across_years():
    assert shift_month(2026, 1, -1) == (2025, 12)
    assert shift_month(2026, 1, -2) == (2025, 11)
    assert shift_month(2025, 12, 1) == (2026, 1)
    assert shift_month(2026, 6, 0) == (2026, 6)


def test_days_in_month_handles_leap_years():
    assert days_in_month(2024, 2) == 29
    assert days_in_month(2026, 2) == 28
    assert month_bounds(2026, 4) == (date(2026, 4, 1), date(2026, 4, 30))
