"""
Forecast service - fetches account data and runs the analytics engine with caching.

Includes monitoring on every call:
- performance tracking for fetches and calculations
- error tracking for failures
- cache hit/miss counters exposed to the metrics collector
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Protocol

from forma_analytics.config import settings
from forma_analytics.domain.exceptions import DomainException, ForecastCalculationError
from forma_analytics.domain.forecast import calculate_daily_forecast
from forma_analytics.domain.models import (
    ForecastResult,
    PaymentRisk,
    PlannedTransaction,
    RiskLevel,
    SpendingTransaction,
    SpendingTrendsResult,
    TrendTransaction,
    UserSettings,
)
from forma_analytics.domain.payment_risk import assess_payment_risks
from forma_analytics.domain.trends import calculate_spending_trends
from forma_analytics.infrastructure.observability.collector import CacheStats
from forma_analytics.infrastructure.observability.errors import (
    ErrorCategory,
    error_tracker,
    with_error_tracking_sync,
)
from forma_analytics.infrastructure.observability.logging import logger
from forma_analytics.infrastructure.observability.metrics import (
    forecast_cache_hits_counter,
    forecast_cache_misses_counter,
    record_forecast,
)
from forma_analytics.infrastructure.observability.performance import (
    track_performance,
    track_performance_sync,
)
from forma_analytics.utils.date_utils import month_bounds, shift_month


class TransactionSource(Protocol):
    """Where account data comes from (see TransactionClient)"""

    async def get_historical_transactions(
        self, workspace_id: str, account_id: str, since: date
    ) -> List[SpendingTransaction]: ...

    async def get_planned_transactions(
        self, workspace_id: str, account_id: str, start_date: date, end_date: date
    ) -> List[PlannedTransaction]: ...

    async def get_categorized_transactions(
        self, workspace_id: str, start_date: date, end_date: date
    ) -> List[TrendTransaction]: ...

    async def get_user_settings(self, workspace_id: str) -> UserSettings: ...

    async def get_current_balance(self, workspace_id: str, account_id: str) -> Decimal: ...


@dataclass(frozen=True)
class ForecastOptions:
    start_date: date
    end_date: date
    # Override the stored user settings when given
    minimum_safe_balance: Optional[Decimal] = None
    safety_buffer_days: Optional[int] = None


@dataclass(frozen=True)
class CompleteForecast:
    forecast: ForecastResult
    payment_risks: List[PaymentRisk]
    current_balance: Decimal
    user_settings: UserSettings


@dataclass
class _CacheEntry:
    data: CompleteForecast
    expires_at: float


@dataclass
class _CacheCounters:
    hits: int = 0
    misses: int = 0
    total_operations: int = 0


class ForecastService:
    """
    Calculates forecasts and spending trends for workspace accounts.

    Forecasts are cached in memory per (workspace, account, date range)
    for forecast_cache_ttl_seconds. Call invalidate_cache() when the
    account's transactions change.
    """

    def __init__(
        self,
        source: TransactionSource,
        ttl_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source = source
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.forecast_cache_ttl_seconds
        self._clock = clock
        self._cache: Dict[str, _CacheEntry] = {}
        self._counters = _CacheCounters()

    # Cache management

    @staticmethod
    def _cache_key(workspace_id: str, account_id: str, options: ForecastOptions) -> str:
        return f"{workspace_id}:{account_id}:{options.start_date.isoformat()}:{options.end_date.isoformat()}"

    def _get_from_cache(self, key: str) -> Optional[CompleteForecast]:
        entry = self._cache.get(key)

        if entry and self._clock() < entry.expires_at:
            self._counters.hits += 1
            forecast_cache_hits_counter.inc()
            logger.debug("Cache hit for forecast", key=key, cache_hit_rate=self._hit_rate())
            return entry.data

        if entry:
            del self._cache[key]
            logger.debug("Cache entry expired", key=key)

        self._counters.misses += 1
        forecast_cache_misses_counter.inc()
        logger.debug("Cache miss for forecast", key=key, cache_hit_rate=self._hit_rate())
        return None

    def _set_cache(self, key: str, data: CompleteForecast) -> None:
        self._cache[key] = _CacheEntry(data=data, expires_at=self._clock() + self.ttl_seconds)
        logger.debug("Forecast cached", key=key, cache_size=len(self._cache), ttl_seconds=self.ttl_seconds)

    def _hit_rate(self) -> int:
        total = self._counters.hits + self._counters.misses
        return round(self._counters.hits / total * 100) if total > 0 else 0

    def get_cache_stats(self) -> CacheStats:
        return CacheStats(
            size=len(self._cache),
            hits=self._counters.hits,
            misses=self._counters.misses,
            hit_rate=self._hit_rate(),
            total_operations=self._counters.total_operations,
        )

    def invalidate_cache(self, workspace_id: str, account_id: str) -> int:
        """Drop every cached forecast for an account; returns entries removed"""
        prefix = f"{workspace_id}:{account_id}:"
        keys = [k for k in self._cache if k.startswith(prefix)]
        for key in keys:
            del self._cache[key]

        if keys:
            logger.info("Cache invalidated", workspace_id=workspace_id, account_id=account_id)
        return len(keys)

    def invalidate_workspace_cache(self, workspace_id: str) -> int:
        prefix = f"{workspace_id}:"
        keys = [k for k in self._cache if k.startswith(prefix)]
        for key in keys:
            del self._cache[key]

        if keys:
            logger.info("Workspace cache invalidated", workspace_id=workspace_id, entries_cleared=len(keys))
        return len(keys)

    def clear_cache(self) -> None:
        size = len(self._cache)
        self._cache.clear()

        if size > 0:
            logger.info("All cache cleared", entries_cleared=size)

    # Calculations

    async def get_forecast(
        self,
        workspace_id: str,
        account_id: str,
        options: ForecastOptions,
    ) -> CompleteForecast:
        """
        Get the daily forecast and payment risks for an account.

        Flow:
        1. Serve from cache when a fresh entry exists
        2. Fetch history, planned rows, settings and balance concurrently
        3. Run the forecast engine and, when displayable, payment risk assessment
        4. Cache and return

        Raises:
            TransactionSourceError / InvalidTransactionDataError: source failures, unchanged
            ForecastCalculationError: any other failure while calculating
        """
        self._counters.total_operations += 1

        return await track_performance(
            "get_forecast",
            lambda: self._calculate_forecast(workspace_id, account_id, options),
            {"workspace_id": workspace_id, "account_id": account_id},
        )

    async def _calculate_forecast(
        self,
        workspace_id: str,
        account_id: str,
        options: ForecastOptions,
    ) -> CompleteForecast:
        key = self._cache_key(workspace_id, account_id, options)
        cached = self._get_from_cache(key)
        if cached:
            logger.info("Forecast served from cache", workspace_id=workspace_id, account_id=account_id)
            return cached

        logger.info(
            "Calculating new forecast",
            workspace_id=workspace_id,
            account_id=account_id,
            start_date=options.start_date.isoformat(),
            end_date=options.end_date.isoformat(),
        )

        try:
            since = date.today() - timedelta(days=settings.historical_lookback_days)
            historical, planned, stored_settings, current_balance = await asyncio.gather(
                self.source.get_historical_transactions(workspace_id, account_id, since),
                self.source.get_planned_transactions(
                    workspace_id, account_id, options.start_date, options.end_date
                ),
                self.source.get_user_settings(workspace_id),
                self.source.get_current_balance(workspace_id, account_id),
            )

            user_settings = UserSettings(
                minimum_safe_balance=(
                    options.minimum_safe_balance
                    if options.minimum_safe_balance is not None
                    else stored_settings.minimum_safe_balance
                ),
                safety_buffer_days=options.safety_buffer_days or stored_settings.safety_buffer_days,
            )

            forecast = track_performance_sync(
                "calculate_daily_forecast",
                lambda: calculate_daily_forecast(
                    current_balance,
                    historical,
                    planned,
                    options.start_date,
                    options.end_date,
                    user_settings,
                ),
                {"historical_count": len(historical), "planned_count": len(planned)},
            )
            record_forecast(forecast)

            logger.info(
                "Forecast calculated",
                workspace_id=workspace_id,
                account_id=account_id,
                should_display=forecast.should_display,
                confidence=forecast.spending_confidence.value,
                forecast_days=len(forecast.forecasts),
                danger_days=sum(1 for f in forecast.forecasts if f.risk_level == RiskLevel.DANGER),
            )

            payment_risks: List[PaymentRisk] = []
            if forecast.should_display and forecast.forecasts:
                payment_risks = assess_payment_risks(
                    planned,
                    forecast.forecasts,
                    forecast.forecasts[0].breakdown.estimated_daily_spending,
                    user_settings.safety_buffer_days,
                )

            result = CompleteForecast(
                forecast=forecast,
                payment_risks=payment_risks,
                current_balance=current_balance,
                user_settings=user_settings,
            )

        except DomainException:
            # Already tracked where the source failed
            raise
        except Exception as e:
            error_tracker.track_error(
                ErrorCategory.CALCULATION,
                "get_forecast",
                e,
                workspace_id=workspace_id,
                account_id=account_id,
            )
            raise ForecastCalculationError(f"Forecast calculation failed: {e}") from e

        self._set_cache(key, result)
        return result

    async def get_spending_trends(self, workspace_id: str, year: int, month: int) -> SpendingTrendsResult:
        """Category trends for a month, using the month and the two before it"""
        window_start, _ = month_bounds(*shift_month(year, month, -2))
        _, window_end = month_bounds(year, month)

        async def run() -> SpendingTrendsResult:
            transactions = await self.source.get_categorized_transactions(workspace_id, window_start, window_end)
            return with_error_tracking_sync(
                ErrorCategory.CALCULATION,
                "calculate_spending_trends",
                lambda: calculate_spending_trends(transactions, year, month),
                workspace_id=workspace_id,
            )

        return await track_performance(
            "get_spending_trends",
            run,
            {"workspace_id": workspace_id, "year": year, "month": month},
        )
