"""Prometheus metrics for monitoring forecast output, operation latency and errors"""

from prometheus_client import Counter, Histogram

from forma_analytics.domain.models import ForecastResult

# Forecast metrics
forecast_counter = Counter(
    "forma_forecast_total",
    "Total forecasts calculated",
    ["confidence", "displayed"],  # high | medium | low | none, true | false
)

forecast_risk_days_counter = Counter(
    "forma_forecast_risk_days_total",
    "Projected forecast days by risk level",
    ["risk_level"],  # safe | warning | danger
)

# Forecast cache
forecast_cache_hits_counter = Counter(
    "forma_forecast_cache_hits_total",
    "Forecasts served from cache",
)

forecast_cache_misses_counter = Counter(
    "forma_forecast_cache_misses_total",
    "Forecast cache misses",
)

# Operation metrics
operation_duration_histogram = Histogram(
    "forma_operation_duration_seconds",
    "Duration of tracked operations",
    ["operation"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)

tracked_errors_counter = Counter(
    "forma_tracked_errors_total",
    "Errors captured by the error tracker",
    ["category", "operation"],
)

# Transaction source metrics
source_fetch_failures_counter = Counter(
    "transaction_source_failures_total",
    "Failed transaction source calls",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_forecast(result: ForecastResult) -> None:
    """Record forecast metrics for monitoring baseline quality and projected risk"""
    forecast_counter.labels(
        confidence=result.spending_confidence.value,
        displayed=str(result.should_display).lower(),
    ).inc()

    for day in result.forecasts:
        forecast_risk_days_counter.labels(risk_level=day.risk_level.value).inc()
