"""Unit tests for the spending trend analyzer"""

import pytest
from datetime import date
from decimal import Decimal
from forma_analytics.domain.models import TransactionType, TrendDirection, TrendTransaction
from forma_analytics.domain.trends import (
    calculate_monthly_spending_by_category,
    calculate_percent_change,
    calculate_spending_trends,
    calculate_three_month_average,
    determine_trend,
    is_unusual_spending,
)


def txn(amount, day: date, category_id: str = "food", category_name: str = "Food",
        type: TransactionType = TransactionType.EXPENSE) -> TrendTransaction:
    return TrendTransaction(
        amount=Decimal(str(amount)),
        transaction_date=day,
        type=type,
        category_id=category_id,
        category_name=category_name,
    )


def test_monthly_grouping_counts_only_target_month_expenses():
    transactions = [
        txn(100, date(2026, 3, 1)),
        txn(50, date(2026, 3, 31)),
        txn(70, date(2026, 2, 28)),
        txn(2000, date(2026, 3, 15), "salary", "Salary", TransactionType.INCOME),
        txn(30, date(2026, 3, 10), "fun", "Fun"),
    ]

    categories = calculate_monthly_spending_by_category(transactions, 2026, 3)

    assert set(categories) == {"food", "fun"}
    assert categories["food"].amount == Decimal("150")
    assert categories["food"].transaction_count == 2
    assert categories["fun"].category_name == "Fun"


def test_three_month_average_counts_empty_months_as_zero():
    """Only one month with spending still divides by 3"""
    transactions = [txn(300, date(2026, 3, 5))]

    assert calculate_three_month_average(transactions, "food", 2026, 3) == Decimal("100")


def test_three_month_average_rolls_over_year_boundary():
    """January looks back to November and December of the previous year"""
    transactions = [
        txn(100, date(2025, 11, 10)),
        txn(200, date(2025, 12, 10)),
        txn(300, date(2026, 1, 10)),
        txn(999, date(2025, 10, 10)),  # outside the window
    ]

    assert calculate_three_month_average(transactions, "food", 2026, 1) == Decimal("200")


@pytest.mark.parametrize(
    "current, previous, expected",
    [
        (Decimal("150"), Decimal("100"), Decimal("50")),
        (Decimal("50"), Decimal("100"), Decimal("-50")),
        (Decimal("100"), Decimal("0"), Decimal("100")),
        (Decimal("0"), Decimal("0"), Decimal("0")),
        (Decimal("0"), Decimal("80"), Decimal("-100")),
    ],
)
def test_percent_change(current: Decimal, previous: Decimal, expected: Decimal):
    assert calculate_percent_change(current, previous) == expected


@pytest.mark.parametrize(
    "percent, expected",
    [
        (Decimal("5.01"), TrendDirection.INCREASING),
        (Decimal("5"), TrendDirection.STABLE),
        (Decimal("0"), TrendDirection.STABLE),
        (Decimal("-5"), TrendDirection.STABLE),
        (Decimal("-5.01"), TrendDirection.DECREASING),
    ],
)
def test_trend_direction_thresholds(percent: Decimal, expected: TrendDirection):
    assert determine_trend(percent) == expected


def test_unusual_spending_needs_a_baseline():
    """A zero trailing average never flags a category"""
    assert is_unusual_spending(Decimal("500"), Decimal("0")) is False
    assert is_unusual_spending(Decimal("150"), Decimal("100")) is False  # exactly 50%
    assert is_unusual_spending(Decimal("151"), Decimal("100")) is True
    assert is_unusual_spending(Decimal("49"), Decimal("100")) is True


def test_spike_after_steady_months_is_unusual():
    """300, 300, 300 then 1000 → flagged unusual and increasing"""
    transactions = [
        txn(300, date(2026, 1, 15)),
        txn(300, date(2026, 2, 15)),
        txn(300, date(2026, 3, 15)),
        txn(1000, date(2026, 4, 15)),
    ]

    result = calculate_spending_trends(transactions, 2026, 4)

    (trend,) = result.trends
    assert trend.current_month == Decimal("1000")
    assert trend.previous_month == Decimal("300")
    assert trend.three_month_average == pytest.approx(Decimal("533.33"), abs=Decimal("0.01"))
    assert trend.trend == TrendDirection.INCREASING
    assert trend.is_unusual is True
    assert result.unusual_categories == (trend,)


def test_new_category_reports_full_increase():
    transactions = [txn(80, date(2026, 4, 2), "pets", "Pets")]

    result = calculate_spending_trends(transactions, 2026, 4)

    (trend,) = result.trends
    assert trend.previous_month == 0
    assert trend.percent_change == Decimal("100")
    assert trend.trend == TrendDirection.INCREASING


def test_category_only_in_previous_month_is_reported():
    transactions = [
        txn(200, date(2026, 3, 10), "travel", "Travel"),
        txn(50, date(2026, 4, 1)),
    ]

    result = calculate_spending_trends(transactions, 2026, 4)

    travel = next(t for t in result.trends if t.category_id == "travel")
    assert travel.current_month == 0
    assert travel.transaction_count == 0
    assert travel.percent_change == Decimal("-100")
    assert travel.trend == TrendDirection.DECREASING


def test_trends_sorted_with_top_three():
    transactions = [
        txn(100, date(2026, 4, 1), "a", "A"),
        txn(400, date(2026, 4, 1), "b", "B"),
        txn(300, date(2026, 4, 1), "c", "C"),
        txn(200, date(2026, 4, 1), "d", "D"),
    ]

    result = calculate_spending_trends(transactions, 2026, 4)

    assert [t.category_id for t in result.trends] == ["b", "c", "d", "a"]
    assert [t.category_id for t in result.top_categories] == ["b", "c", "d"]
    assert result.total_current_month == Decimal("1000")


def test_totals_and_overall_change():
    transactions = [
        txn(100, date(2026, 3, 5), "a", "A"),
        txn(100, date(2026, 3, 5), "b", "B"),
        txn(300, date(2026, 4, 5), "a", "A"),
    ]

    result = calculate_spending_trends(transactions, 2026, 4)

    assert result.total_previous_month == Decimal("200")
    assert result.total_current_month == Decimal("300")
    assert result.overall_percent_change == Decimal("50")
    assert result.average_daily_spending == Decimal("10")  # 300 / 30 days in April


def test_average_daily_uses_leap_february():
    transactions = [txn(290, date(2024, 2, 10))]

    result = calculate_spending_trends(transactions, 2024, 2)

    assert result.average_daily_spending == Decimal("10")


def test_january_compares_against_previous_december():
    transactions = [
        txn(400, date(2025, 12, 20)),
        txn(200, date(2026, 1, 20)),
    ]

    result = calculate_spending_trends(transactions, 2026, 1)

    (trend,) = result.trends
    assert trend.previous_month == Decimal("400")
    assert trend.percent_change == Decimal("-50")


def test_no_transactions():
    result = calculate_spending_trends([], 2026, 4)

    assert result.trends == ()
    assert result.top_categories == ()
    assert result.unusual_categories == ()
    assert result.total_current_month == 0
    assert result.overall_percent_change == 0
    assert result.average_daily_spending == 0
