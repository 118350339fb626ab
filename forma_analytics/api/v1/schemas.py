"""Pydantic schemas for API responses"""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List

from pydantic import BaseModel, ConfigDict

from forma_analytics.domain.models import Confidence, RiskLevel, TransactionType, TrendDirection


class _FromDomain(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class BalanceBreakdownSchema(_FromDomain):
    starting_balance: Decimal
    planned_income: Decimal
    planned_expenses: Decimal
    estimated_daily_spending: Decimal
    ending_balance: Decimal


class DailyForecastSchema(_FromDomain):
    """Projected balance for a single day"""

    date: date
    projected_balance: Decimal
    risk_level: RiskLevel
    confidence: Confidence
    breakdown: BalanceBreakdownSchema


class PlannedTransactionSchema(_FromDomain):
    amount: Decimal
    planned_date: date
    type: TransactionType
    description: str


class PaymentRiskSchema(_FromDomain):
    """Affordability of an upcoming planned expense"""

    transaction: PlannedTransactionSchema
    days_until: int
    projected_balance_at_date: Decimal
    balance_after_payment: Decimal
    risk_level: RiskLevel
    recommendation: str
    can_afford: bool


class UserSettingsSchema(_FromDomain):
    minimum_safe_balance: Decimal
    safety_buffer_days: int


class ForecastMetadata(BaseModel):
    calculated_at: datetime
    should_display: bool


class ForecastResponse(BaseModel):
    """Response for GET /v1/forecast/{workspace_id}/{account_id}"""

    daily_forecasts: List[DailyForecastSchema]
    payment_risks: List[PaymentRiskSchema]
    average_daily_spending: Decimal
    spending_confidence: Confidence
    current_balance: Decimal
    user_settings: UserSettingsSchema
    metadata: ForecastMetadata


class CacheInvalidationResponse(BaseModel):
    success: bool
    entries_cleared: int


class SpendingTrendSchema(_FromDomain):
    category_id: str
    category_name: str
    current_month: Decimal
    previous_month: Decimal
    three_month_average: Decimal
    percent_change: Decimal
    trend: TrendDirection
    is_unusual: bool
    transaction_count: int


class SpendingTrendsResponse(_FromDomain):
    """Response for GET /v1/trends/{workspace_id}"""

    trends: List[SpendingTrendSchema]
    total_current_month: Decimal
    total_previous_month: Decimal
    overall_percent_change: Decimal
    top_categories: List[SpendingTrendSchema]
    unusual_categories: List[SpendingTrendSchema]
    average_daily_spending: Decimal


class CacheStatsSchema(_FromDomain):
    size: int
    hits: int
    misses: int
    hit_rate: int
    total_operations: int


class ErrorCountSchema(_FromDomain):
    category: str
    operation: str
    count: int


class ErrorSummarySchema(_FromDomain):
    total_errors: int
    errors_by_category: Dict[str, int]
    recent_errors: List[ErrorCountSchema]


class HealthStatusSchema(_FromDomain):
    status: str
    issues: List[str]


class SystemMetricsResponse(_FromDomain):
    """Response for GET /v1/monitoring/metrics"""

    timestamp: str
    cache: CacheStatsSchema
    errors: ErrorSummarySchema
    health: HealthStatusSchema
