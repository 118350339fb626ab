"""Dependency injection for FastAPI endpoints"""

from typing import Optional

from fastapi import Depends, Request

from forma_analytics.infrastructure.clients.transactions import TransactionClient
from forma_analytics.infrastructure.observability.collector import MetricsCollector
from forma_analytics.infrastructure.observability.errors import error_tracker
from forma_analytics.services.forecast_service import ForecastService

_forecast_service: Optional[ForecastService] = None


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_transaction_client() -> TransactionClient:
    """Provide transaction source client instance"""
    return TransactionClient()


def get_forecast_service() -> ForecastService:
    """Provide the process-wide forecast service (its cache outlives requests)"""
    global _forecast_service
    if _forecast_service is None:
        _forecast_service = ForecastService(get_transaction_client())
    return _forecast_service


def get_metrics_collector(service: ForecastService = Depends(get_forecast_service)) -> MetricsCollector:
    """Provide a metrics collector reading the shared error tracker and forecast cache"""
    return MetricsCollector(tracker=error_tracker, cache_source=service)
