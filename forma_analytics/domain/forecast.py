"""Daily cash-flow forecast engine - projects balances with conservative spending"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from forma_analytics.domain.models import (
    Confidence,
    DailyBalanceBreakdown,
    DailyForecast,
    ForecastResult,
    PlannedTransaction,
    RiskLevel,
    SpendingTransaction,
    TransactionType,
    UserSettings,
)
from forma_analytics.domain.spending import calculate_average_daily_spending
from forma_analytics.utils.date_utils import generate_date_range

CONSERVATIVE_MULTIPLIER = Decimal("1.1")

HIGH_CONFIDENCE_HORIZON_DAYS = 14
MEDIUM_CONFIDENCE_HORIZON_DAYS = 30

_CONFIDENCE_RANK = {
    Confidence.LOW: 0,
    Confidence.MEDIUM: 1,
    Confidence.HIGH: 2,
}

ZERO = Decimal(0)


def determine_risk_level(
    balance: Decimal,
    settings: UserSettings,
    estimated_daily_spending: Decimal,
) -> RiskLevel:
    """
    Classify an end-of-day balance against the user's thresholds.

    - danger:  balance < minimum_safe_balance
    - warning: balance < minimum_safe_balance + buffer_days * daily spending
    - safe:    otherwise
    """
    minimum = Decimal(settings.minimum_safe_balance)
    warning_threshold = minimum + estimated_daily_spending * settings.safety_buffer_days

    if balance < minimum:
        return RiskLevel.DANGER
    if balance < warning_threshold:
        return RiskLevel.WARNING
    return RiskLevel.SAFE


def determine_forecast_confidence(days_ahead: int, spending_confidence: Confidence) -> Confidence:
    """Decay confidence with distance, capped by the baseline's own confidence"""
    if days_ahead > MEDIUM_CONFIDENCE_HORIZON_DAYS:
        distance_tier = Confidence.LOW
    elif days_ahead > HIGH_CONFIDENCE_HORIZON_DAYS:
        distance_tier = Confidence.MEDIUM
    else:
        distance_tier = Confidence.HIGH

    baseline = spending_confidence if spending_confidence in _CONFIDENCE_RANK else Confidence.LOW
    return min(distance_tier, baseline, key=_CONFIDENCE_RANK.__getitem__)


def _group_planned_by_date(
    planned_transactions: Iterable[PlannedTransaction],
) -> Dict[date, Tuple[Decimal, Decimal]]:
    """Sum planned (income, expenses) per date"""
    income: Dict[date, Decimal] = defaultdict(lambda: ZERO)
    expenses: Dict[date, Decimal] = defaultdict(lambda: ZERO)

    for planned in planned_transactions:
        if planned.type == TransactionType.INCOME:
            income[planned.planned_date] += Decimal(planned.amount)
        elif planned.type == TransactionType.EXPENSE:
            expenses[planned.planned_date] += Decimal(planned.amount)

    return {day: (income[day], expenses[day]) for day in set(income) | set(expenses)}


def calculate_daily_forecast(
    current_balance: Decimal,
    historical_transactions: Iterable[SpendingTransaction],
    planned_transactions: Iterable[PlannedTransaction],
    start_date: date,
    end_date: date,
    settings: UserSettings,
) -> ForecastResult:
    """
    Project the account balance for every day from start_date to end_date.

    Flow:
    1. Estimate the daily spending baseline from history
    2. Stop with an empty, hidden forecast when the baseline has no confidence
    3. Inflate the baseline by 10% so projections err toward lower balances
    4. Walk each date: start from yesterday's ending balance, add planned
       income, subtract planned expenses and the daily spending estimate
    5. Classify risk on the ending balance and decay confidence with distance

    An end_date before start_date yields an empty series.
    """
    spending = calculate_average_daily_spending(historical_transactions)

    if spending.confidence == Confidence.NONE:
        return ForecastResult(
            should_display=False,
            spending_confidence=Confidence.NONE,
            average_daily_spending=ZERO,
            forecasts=(),
        )

    estimated_daily_spending = spending.average_daily_spending * CONSERVATIVE_MULTIPLIER
    planned_by_date = _group_planned_by_date(planned_transactions)

    forecasts: List[DailyForecast] = []
    running_balance = Decimal(current_balance)

    for day in generate_date_range(start_date, end_date):
        planned_income, planned_expenses = planned_by_date.get(day, (ZERO, ZERO))

        starting_balance = running_balance
        ending_balance = starting_balance + planned_income - planned_expenses - estimated_daily_spending

        forecasts.append(
            DailyForecast(
                date=day,
                projected_balance=ending_balance,
                risk_level=determine_risk_level(ending_balance, settings, estimated_daily_spending),
                confidence=determine_forecast_confidence((day - start_date).days, spending.confidence),
                breakdown=DailyBalanceBreakdown(
                    starting_balance=starting_balance,
                    planned_income=planned_income,
                    planned_expenses=planned_expenses,
                    estimated_daily_spending=estimated_daily_spending,
                    ending_balance=ending_balance,
                ),
            )
        )

        running_balance = ending_balance

    # Low-confidence baselines are computed but not shown
    should_display = spending.confidence in (Confidence.HIGH, Confidence.MEDIUM)

    return ForecastResult(
        should_display=should_display,
        spending_confidence=spending.confidence,
        average_daily_spending=spending.average_daily_spending,
        forecasts=tuple(forecasts),
    )
