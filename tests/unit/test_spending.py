"""Unit tests for the average daily spending estimator"""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from forma_analytics.domain.models import Confidence, SpendingTransaction, TransactionType
from forma_analytics.domain.spending import (
    calculate_average_daily_spending,
    calculate_median,
    determine_confidence,
)

BASE_DATE = date(2026, 1, 1)


def expense(amount, day: int = 0) -> SpendingTransaction:
    return SpendingTransaction(
        amount=Decimal(str(amount)),
        transaction_date=BASE_DATE + timedelta(days=day),
        type=TransactionType.EXPENSE,
    )


def income(amount, day: int = 0) -> SpendingTransaction:
    return SpendingTransaction(
        amount=Decimal(str(amount)),
        transaction_date=BASE_DATE + timedelta(days=day),
        type=TransactionType.INCOME,
    )


def daily_expenses(days: int, amount=100):
    return [expense(amount, day) for day in range(days)]


def test_thirty_days_of_equal_spending():
    """30 daily expenses of 100 → average 100, high confidence"""
    result = calculate_average_daily_spending(daily_expenses(30))

    assert result.average_daily_spending == Decimal("100")
    assert result.confidence == Confidence.HIGH
    assert result.days_analyzed == 30
    assert result.transactions_included == 30
    assert result.transactions_excluded == 0
    assert result.total_spending == Decimal("3000")


def test_excludes_one_time_large_purchase():
    """14 days of 100/day plus 5000 on day 15 → outlier excluded"""
    transactions = daily_expenses(14) + [expense(5000, 14)]

    result = calculate_average_daily_spending(transactions)

    assert result.transactions_excluded == 1
    assert result.transactions_included == 14
    assert result.days_analyzed == 15
    assert result.total_spending == Decimal("1400")
    assert result.average_daily_spending == pytest.approx(Decimal("93.33"), abs=Decimal("0.01"))
    assert result.confidence == Confidence.MEDIUM


def test_amount_exactly_at_threshold_is_kept():
    """Boundary: amount == median * threshold stays in the baseline"""
    transactions = daily_expenses(20) + [expense(300, 20)]

    result = calculate_average_daily_spending(transactions)

    assert result.median_amount == Decimal("100")
    assert result.transactions_excluded == 0
    assert result.transactions_included == 21


def test_amount_just_above_threshold_is_excluded():
    transactions = daily_expenses(20) + [expense("300.01", 20)]

    result = calculate_average_daily_spending(transactions)

    assert result.transactions_excluded == 1
    assert result.total_spending == Decimal("2000")


def test_custom_outlier_threshold():
    transactions = daily_expenses(20) + [expense(250, 20)]

    assert calculate_average_daily_spending(transactions).transactions_excluded == 0
    assert calculate_average_daily_spending(transactions, outlier_threshold=2).transactions_excluded == 1


def test_only_expenses_are_counted():
    transactions = daily_expenses(14) + [income(3000, 0), income(3000, 13)]

    result = calculate_average_daily_spending(transactions)

    assert result.transactions_included == 14
    assert result.total_spending == Decimal("1400")


def test_included_plus_excluded_equals_expense_count():
    transactions = daily_expenses(20) + [expense(900, 5), expense(1200, 10), expense(5, 15), income(5000, 3)]

    result = calculate_average_daily_spending(transactions)

    assert result.transactions_included + result.transactions_excluded == 23
    assert result.transactions_excluded == 2


@pytest.mark.parametrize(
    "days, expected",
    [
        (1, Confidence.NONE),
        (13, Confidence.NONE),
        (14, Confidence.MEDIUM),
        (29, Confidence.MEDIUM),
        (30, Confidence.HIGH),
        (90, Confidence.HIGH),
    ],
)
def test_confidence_by_days_analyzed(days: int, expected: Confidence):
    result = calculate_average_daily_spending(daily_expenses(days))

    assert result.days_analyzed == days
    assert result.confidence == expected
    assert determine_confidence(days) == expected


def test_short_history_keeps_all_transactions():
    """Under 14 days no outliers are excluded, even obvious ones"""
    transactions = daily_expenses(10) + [expense(5000, 5)]

    result = calculate_average_daily_spending(transactions)

    assert result.confidence == Confidence.NONE
    assert result.transactions_excluded == 0
    assert result.transactions_included == 11
    assert result.average_daily_spending == Decimal("600")  # 6000 / 10 days


def test_days_counted_across_gaps():
    """Span runs first to last expense, inclusive"""
    transactions = [expense(100, 0), expense(100, 15), expense(100, 29)]

    result = calculate_average_daily_spending(transactions)

    assert result.days_analyzed == 30
    assert result.average_daily_spending == Decimal("10")


def test_single_day_of_transactions():
    transactions = [expense(100), expense(150), expense(200)]

    result = calculate_average_daily_spending(transactions)

    assert result.days_analyzed == 1
    assert result.confidence == Confidence.NONE
    assert result.average_daily_spending == Decimal("450")


def test_empty_transaction_list():
    result = calculate_average_daily_spending([])

    assert result.average_daily_spending == 0
    assert result.confidence == Confidence.NONE
    assert result.days_analyzed == 0
    assert result.transactions_included == 0
    assert result.transactions_excluded == 0
    assert result.total_spending == 0
    assert result.median_amount == 0


def test_only_income_transactions():
    result = calculate_average_daily_spending([income(1000, day) for day in range(20)])

    assert result.confidence == Confidence.NONE
    assert result.transactions_included == 0
    assert result.days_analyzed == 0


def test_all_transactions_outliers_falls_back_with_low_confidence():
    """Threshold below 1x median leaves nothing; keep everything, confidence low"""
    result = calculate_average_daily_spending(daily_expenses(14), outlier_threshold=Decimal("0.5"))

    assert result.transactions_included == 14
    assert result.transactions_excluded == 0
    assert result.confidence == Confidence.LOW
    assert result.average_daily_spending == Decimal("100")


def test_zero_amount_transactions_are_included():
    transactions = daily_expenses(13) + [expense(0, 13), expense(0, 14)]

    result = calculate_average_daily_spending(transactions)

    assert result.transactions_included == 15
    assert result.average_daily_spending == pytest.approx(Decimal("86.67"), abs=Decimal("0.01"))


def test_median_even_and_odd():
    assert calculate_median([Decimal(1), Decimal(3), Decimal(2)]) == Decimal(2)
    assert calculate_median([Decimal(100), Decimal(100), Decimal(200), Decimal(50)]) == Decimal(100)
    assert calculate_median([Decimal(1), Decimal(2)]) == Decimal("1.5")
    assert calculate_median([]) == 0
