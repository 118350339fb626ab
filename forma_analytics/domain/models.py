"""Domain models - immutable dataclasses for transactions and analytics results"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Tuple


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class Confidence(str, Enum):
    """How much history backs an estimate"""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class RiskLevel(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    DANGER = "danger"


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


@dataclass(frozen=True)
class SpendingTransaction:
    """Posted transaction used for the spending baseline"""

    amount: Decimal
    transaction_date: date
    type: TransactionType


@dataclass(frozen=True)
class TrendTransaction:
    """Posted transaction tagged with its category"""

    amount: Decimal
    transaction_date: date
    type: TransactionType
    category_id: str
    category_name: str


@dataclass(frozen=True)
class PlannedTransaction:
    """Scheduled, not-yet-posted transaction"""

    amount: Decimal
    planned_date: date
    type: TransactionType
    description: str = "Planned transaction"


@dataclass(frozen=True)
class UserSettings:
    """User-defined safety thresholds"""

    minimum_safe_balance: Decimal
    safety_buffer_days: int = 7


@dataclass(frozen=True)
class AverageDailySpendingResult:
    """Output of the daily spending estimator"""

    average_daily_spending: Decimal
    confidence: Confidence
    days_analyzed: int
    transactions_included: int
    transactions_excluded: int
    total_spending: Decimal
    median_amount: Decimal


@dataclass(frozen=True)
class DailyBalanceBreakdown:
    starting_balance: Decimal
    planned_income: Decimal
    planned_expenses: Decimal
    estimated_daily_spending: Decimal
    ending_balance: Decimal


@dataclass(frozen=True)
class DailyForecast:
    """Projected end-of-day balance for a single date"""

    date: date
    projected_balance: Decimal
    risk_level: RiskLevel
    confidence: Confidence
    breakdown: DailyBalanceBreakdown


@dataclass(frozen=True)
class ForecastResult:
    """Day-by-day projection plus the baseline it was built from"""

    should_display: bool
    spending_confidence: Confidence
    average_daily_spending: Decimal
    forecasts: Tuple[DailyForecast, ...]


@dataclass(frozen=True)
class PaymentRisk:
    """Affordability of a single upcoming planned expense"""

    transaction: PlannedTransaction
    days_until: int
    projected_balance_at_date: Decimal
    balance_after_payment: Decimal
    risk_level: RiskLevel
    recommendation: str
    can_afford: bool


@dataclass(frozen=True)
class SpendingTrend:
    """Month-over-month spending for one category"""

    category_id: str
    category_name: str
    current_month: Decimal
    previous_month: Decimal
    three_month_average: Decimal
    percent_change: Decimal
    trend: TrendDirection
    is_unusual: bool
    transaction_count: int


@dataclass(frozen=True)
class SpendingTrendsResult:
    trends: Tuple[SpendingTrend, ...]
    total_current_month: Decimal
    total_previous_month: Decimal
    overall_percent_change: Decimal
    top_categories: Tuple[SpendingTrend, ...]
    unusual_categories: Tuple[SpendingTrend, ...]
    average_daily_spending: Decimal
