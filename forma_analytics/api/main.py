"""FastAPI application factory"""

from fastapi import Depends, FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from forma_analytics.api.dependencies import get_metrics_collector
from forma_analytics.api.middleware import RequestIDMiddleware, MetricsMiddleware
from forma_analytics.api.v1 import forecast, monitoring, trends
from forma_analytics.infrastructure.observability.collector import MetricsCollector
from forma_analytics.infrastructure.observability.logging import setup_logging
from forma_analytics.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Forma Analytics",
        description="Spending baseline, balance forecast and spending trend service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check(collector: MetricsCollector = Depends(get_metrics_collector)):
        health = collector.collect_metrics().health
        return {
            "status": "ok",
            "service": settings.service_name,
            "health": health.status,
            "issues": health.issues,
        }

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(forecast.router, prefix="/v1", tags=["forecast"])
    app.include_router(trends.router, prefix="/v1", tags=["trends"])
    app.include_router(monitoring.router, prefix="/v1", tags=["monitoring"])

    return app


app = create_app()
