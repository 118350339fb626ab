"""Average daily spending estimator with outlier exclusion"""

import statistics
from decimal import Decimal
from typing import Iterable, List, Sequence, Union

from forma_analytics.domain.models import (
    AverageDailySpendingResult,
    Confidence,
    SpendingTransaction,
    TransactionType,
)
from forma_analytics.utils.date_utils import inclusive_day_span

DEFAULT_OUTLIER_THRESHOLD = Decimal(3)
MINIMUM_DAYS = 14
HIGH_CONFIDENCE_DAYS = 30

ZERO = Decimal(0)


def calculate_median(values: Sequence[Decimal]) -> Decimal:
    """Median of values, 0 for an empty sequence"""
    if not values:
        return ZERO
    return Decimal(statistics.median(values))


def determine_confidence(days: int) -> Confidence:
    """
    Map the analyzed day span to a confidence level.

    - < 14 days:  none
    - 14-29 days: medium
    - 30+ days:   high
    """
    if days < MINIMUM_DAYS:
        return Confidence.NONE
    if days < HIGH_CONFIDENCE_DAYS:
        return Confidence.MEDIUM
    return Confidence.HIGH


def calculate_average_daily_spending(
    transactions: Iterable[SpendingTransaction],
    outlier_threshold: Union[int, Decimal] = DEFAULT_OUTLIER_THRESHOLD,
) -> AverageDailySpendingResult:
    """
    Calculate a robust daily spending baseline from historical transactions.

    Requirements:
    - Only expense transactions are considered
    - Fewer than 14 days of history: every expense counts, confidence is none
    - Otherwise expenses above median * outlier_threshold are treated as
      one-time purchases and left out of the total (amount equal to the
      threshold is kept)
    - If every expense would be excluded, all are kept and confidence is low

    The day span runs from the earliest to the latest expense, inclusive,
    so gaps without spending still count as days.

    Example:
        14 days at 100/day plus a 5000 purchase on day 15
        median = 100, threshold = 300 → 5000 excluded
        average = 1400 / 15 = 93.33, confidence medium
    """
    expenses: List[SpendingTransaction] = [
        t for t in transactions if t.type == TransactionType.EXPENSE
    ]

    if not expenses:
        return AverageDailySpendingResult(
            average_daily_spending=ZERO,
            confidence=Confidence.NONE,
            days_analyzed=0,
            transactions_included=0,
            transactions_excluded=0,
            total_spending=ZERO,
            median_amount=ZERO,
        )

    dates = [t.transaction_date for t in expenses]
    days_analyzed = inclusive_day_span(min(dates), max(dates))
    amounts = [Decimal(t.amount) for t in expenses]
    median_amount = calculate_median(amounts)

    # Too little history to trust outlier exclusion
    if days_analyzed < MINIMUM_DAYS:
        total_spending = sum(amounts, ZERO)
        return AverageDailySpendingResult(
            average_daily_spending=total_spending / days_analyzed,
            confidence=determine_confidence(days_analyzed),
            days_analyzed=days_analyzed,
            transactions_included=len(expenses),
            transactions_excluded=0,
            total_spending=total_spending,
            median_amount=median_amount,
        )

    threshold = median_amount * Decimal(str(outlier_threshold))
    included = [amount for amount in amounts if amount <= threshold]

    if not included:
        # No low-amount reference point; keep everything but flag it
        total_spending = sum(amounts, ZERO)
        return AverageDailySpendingResult(
            average_daily_spending=total_spending / days_analyzed,
            confidence=Confidence.LOW,
            days_analyzed=days_analyzed,
            transactions_included=len(expenses),
            transactions_excluded=0,
            total_spending=total_spending,
            median_amount=median_amount,
        )

    total_spending = sum(included, ZERO)

    return AverageDailySpendingResult(
        average_daily_spending=total_spending / days_analyzed,
        confidence=determine_confidence(days_analyzed),
        days_analyzed=days_analyzed,
        transactions_included=len(included),
        transactions_excluded=len(expenses) - len(included),
        total_spending=total_spending,
        median_amount=median_amount,
    )
