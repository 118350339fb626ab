"""Performance tracking for analytics operations"""

import functools
import inspect
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from forma_analytics.infrastructure.observability.logging import StructuredLogger, logger as default_logger
from forma_analytics.infrastructure.observability.metrics import operation_duration_histogram

T = TypeVar("T")

SLOW_OPERATION_MS = 2000
NOTABLE_OPERATION_MS = 1000


@dataclass
class PerformanceMetrics:
    operation_name: str
    duration_ms: int
    timestamp: str
    context: Dict[str, Any] = field(default_factory=dict)


class PerformanceTracker:
    """
    Measures wall-clock duration of one operation.

    Usage:
        tracker = PerformanceTracker("calculate_forecast", {"account_id": account_id})
        ...
        tracker.end(success=True)

    or as a context manager, which records success/failure on exit.
    Severity of the log entry depends on duration:
    > 2000ms warn, > 1000ms info, otherwise debug.
    """

    def __init__(
        self,
        operation_name: str,
        context: Optional[Dict[str, Any]] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        self.operation_name = operation_name
        self.context = dict(context or {})
        self._logger = logger or default_logger
        self._start = time.perf_counter()

    def end(self, /, **additional_context: Any) -> PerformanceMetrics:
        elapsed = time.perf_counter() - self._start
        duration_ms = round(elapsed * 1000)

        metrics = PerformanceMetrics(
            operation_name=self.operation_name,
            duration_ms=duration_ms,
            timestamp=datetime.now(timezone.utc).isoformat(),
            context={**self.context, **additional_context},
        )

        operation_duration_histogram.labels(operation=self.operation_name).observe(elapsed)

        log_context = {**metrics.context, "duration_ms": duration_ms}

        if duration_ms > SLOW_OPERATION_MS:
            self._logger.warn(f"Slow operation detected: {self.operation_name}", **log_context)
        elif duration_ms > NOTABLE_OPERATION_MS:
            self._logger.info(f"Operation completed: {self.operation_name}", **log_context)
        else:
            self._logger.debug(f"Operation completed: {self.operation_name}", **log_context)

        return metrics

    def __enter__(self) -> "PerformanceTracker":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc is None:
            self.end(success=True)
        else:
            self.end(success=False, error=str(exc))


def track_performance_sync(
    operation_name: str,
    operation: Callable[[], T],
    context: Optional[Dict[str, Any]] = None,
) -> T:
    """Run a sync operation, always recording its duration"""
    with PerformanceTracker(operation_name, context):
        return operation()


async def track_performance(
    operation_name: str,
    operation: Callable[[], Awaitable[T]],
    context: Optional[Dict[str, Any]] = None,
) -> T:
    """Await an async operation, always recording its duration"""
    with PerformanceTracker(operation_name, context):
        return await operation()


def tracked(operation_name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator form of track_performance for sync and async callables"""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                return await track_performance(operation_name, lambda: func(*args, **kwargs))

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            return track_performance_sync(operation_name, lambda: func(*args, **kwargs))

        return wrapper

    return decorator
