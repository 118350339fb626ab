"""GET /v1/monitoring/metrics - system metrics snapshot"""

from fastapi import APIRouter, Depends

from forma_analytics.api.dependencies import get_metrics_collector
from forma_analytics.api.v1.schemas import SystemMetricsResponse
from forma_analytics.infrastructure.observability.collector import MetricsCollector

router = APIRouter()


@router.get("/monitoring/metrics", response_model=SystemMetricsResponse)
def get_system_metrics(collector: MetricsCollector = Depends(get_metrics_collector)):
    """Error counters, forecast cache stats and the derived health verdict"""
    return SystemMetricsResponse.model_validate(collector.collect_metrics())
