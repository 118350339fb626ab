"""Category spending trends - month-over-month changes and unusual spending"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List

from forma_analytics.domain.models import (
    SpendingTrend,
    SpendingTrendsResult,
    TransactionType,
    TrendDirection,
    TrendTransaction,
)
from forma_analytics.utils.date_utils import days_in_month, shift_month

TREND_THRESHOLD_PERCENT = Decimal(5)
UNUSUAL_DEVIATION = Decimal("0.5")
TRAILING_MONTHS = 3
TOP_CATEGORY_COUNT = 3

ZERO = Decimal(0)
HUNDRED = Decimal(100)


@dataclass
class CategorySpending:
    """Running per-category total for one month"""

    category_id: str
    category_name: str
    amount: Decimal
    transaction_count: int


def calculate_monthly_spending_by_category(
    transactions: Iterable[TrendTransaction],
    year: int,
    month: int,
) -> Dict[str, CategorySpending]:
    """Group one month's expenses by category, keyed by category_id"""
    categories: Dict[str, CategorySpending] = {}

    for txn in transactions:
        if txn.type != TransactionType.EXPENSE:
            continue
        if txn.transaction_date.year != year or txn.transaction_date.month != month:
            continue

        existing = categories.get(txn.category_id)
        if existing:
            existing.amount += Decimal(txn.amount)
            existing.transaction_count += 1
        else:
            categories[txn.category_id] = CategorySpending(
                category_id=txn.category_id,
                category_name=txn.category_name,
                amount=Decimal(txn.amount),
                transaction_count=1,
            )

    return categories


def calculate_three_month_average(
    transactions: Iterable[TrendTransaction],
    category_id: str,
    end_year: int,
    end_month: int,
) -> Decimal:
    """
    Average monthly spend for a category over the target month and the two before it.

    Months without spending count as 0 rather than being skipped.
    """
    months = {shift_month(end_year, end_month, -offset) for offset in range(TRAILING_MONTHS)}

    total = sum(
        (
            Decimal(t.amount)
            for t in transactions
            if t.type == TransactionType.EXPENSE
            and t.category_id == category_id
            and (t.transaction_date.year, t.transaction_date.month) in months
        ),
        ZERO,
    )
    return total / TRAILING_MONTHS


def calculate_percent_change(current: Decimal, previous: Decimal) -> Decimal:
    """Percent change from previous; a new category (previous 0) reports 100"""
    if previous > 0:
        return (current - previous) / previous * HUNDRED
    if current > 0:
        return HUNDRED
    return ZERO


def determine_trend(percent_change: Decimal) -> TrendDirection:
    if percent_change > TREND_THRESHOLD_PERCENT:
        return TrendDirection.INCREASING
    if percent_change < -TREND_THRESHOLD_PERCENT:
        return TrendDirection.DECREASING
    return TrendDirection.STABLE


def is_unusual_spending(current_amount: Decimal, three_month_average: Decimal) -> bool:
    """More than 50% away from the trailing average; no baseline means not unusual"""
    if three_month_average == 0:
        return False
    deviation = abs(current_amount - three_month_average) / three_month_average
    return deviation > UNUSUAL_DEVIATION


def calculate_spending_trends(
    transactions: Iterable[TrendTransaction],
    year: int,
    month: int,
) -> SpendingTrendsResult:
    """
    Analyze category spending for a month against the previous month.

    Every category with expenses in either month gets a trend entry with
    its 3-month trailing average, percent change, direction and an unusual
    flag. Entries are sorted by current-month spend, highest first.
    """
    transactions = list(transactions)

    current = calculate_monthly_spending_by_category(transactions, year, month)
    prev_year, prev_month = shift_month(year, month, -1)
    previous = calculate_monthly_spending_by_category(transactions, prev_year, prev_month)

    # Current month categories first, then ones that only appear last month
    category_ids = list(current) + [cid for cid in previous if cid not in current]

    trends: List[SpendingTrend] = []
    for category_id in category_ids:
        current_cat = current.get(category_id)
        previous_cat = previous.get(category_id)

        current_amount = current_cat.amount if current_cat else ZERO
        previous_amount = previous_cat.amount if previous_cat else ZERO
        category_name = (current_cat or previous_cat).category_name

        three_month_average = calculate_three_month_average(transactions, category_id, year, month)
        percent_change = calculate_percent_change(current_amount, previous_amount)

        trends.append(
            SpendingTrend(
                category_id=category_id,
                category_name=category_name,
                current_month=current_amount,
                previous_month=previous_amount,
                three_month_average=three_month_average,
                percent_change=percent_change,
                trend=determine_trend(percent_change),
                is_unusual=is_unusual_spending(current_amount, three_month_average),
                transaction_count=current_cat.transaction_count if current_cat else 0,
            )
        )

    trends.sort(key=lambda t: t.current_month, reverse=True)

    total_current = sum((t.current_month for t in trends), ZERO)
    total_previous = sum((t.previous_month for t in trends), ZERO)

    return SpendingTrendsResult(
        trends=tuple(trends),
        total_current_month=total_current,
        total_previous_month=total_previous,
        overall_percent_change=calculate_percent_change(total_current, total_previous),
        top_categories=tuple(trends[:TOP_CATEGORY_COUNT]),
        unusual_categories=tuple(t for t in trends if t.is_unusual),
        average_daily_spending=total_current / days_in_month(year, month),
    )
