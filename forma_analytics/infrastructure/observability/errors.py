"""Error tracking - process-wide error counters with threshold alerts"""

import functools
import inspect
import threading
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, TypeVar

from forma_analytics.config import settings
from forma_analytics.infrastructure.observability.logging import StructuredLogger, logger as default_logger
from forma_analytics.infrastructure.observability.metrics import tracked_errors_counter

T = TypeVar("T")


class ErrorCategory(str, Enum):
    DATA_FETCH = "data_fetch"
    CALCULATION = "calculation"
    VALIDATION = "validation"
    CACHE = "cache"
    UNKNOWN = "unknown"


ErrorKey = Tuple[str, str]  # (category, operation)


class ErrorTracker:
    """
    Counts errors per (category, operation) for the lifetime of the process.

    Every tracked error is logged; once a key's count reaches the threshold
    each further occurrence also logs a separate "threshold exceeded" entry.
    Counts are only cleared by reset_counts().
    """

    def __init__(self, threshold: Optional[int] = None, logger: Optional[StructuredLogger] = None):
        self.threshold = threshold if threshold is not None else settings.error_alert_threshold
        self._logger = logger or default_logger
        self._counts: Dict[ErrorKey, int] = {}
        self._lock = threading.Lock()

    def track_error(
        self,
        category: ErrorCategory,
        operation: str,
        error: BaseException,
        /,
        **context: Any,
    ) -> int:
        """Record one occurrence and return the updated count for its key"""
        category_name = ErrorCategory(category).value
        key = (category_name, operation)

        with self._lock:
            count = self._counts.get(key, 0) + 1
            self._counts[key] = count

        tracked_errors_counter.labels(category=category_name, operation=operation).inc()

        log_context = {**context, "category": category_name, "error_count": count}
        self._logger.error(f"Error in {operation}", error, **log_context)

        if count >= self.threshold:
            self._logger.error(
                f"Error threshold exceeded for {category_name}:{operation}",
                category=category_name,
                operation=operation,
                error_count=count,
                threshold=self.threshold,
            )

        return count

    def get_error_count(self, category: ErrorCategory, operation: str) -> int:
        return self._counts.get((ErrorCategory(category).value, operation), 0)

    def get_all_error_counts(self) -> Dict[ErrorKey, int]:
        """Snapshot copy of all counters"""
        with self._lock:
            return dict(self._counts)

    def reset_counts(self) -> None:
        with self._lock:
            self._counts.clear()

    def get_error_rate(self, category: ErrorCategory, operation: str, total_operations: int) -> float:
        """Error percentage for an operation given how many times it ran"""
        if total_operations <= 0:
            return 0.0
        return self.get_error_count(category, operation) / total_operations * 100


error_tracker = ErrorTracker()


def with_error_tracking_sync(
    category: ErrorCategory,
    operation: str,
    fn: Callable[[], T],
    /,
    tracker: Optional[ErrorTracker] = None,
    **context: Any,
) -> T:
    """Run fn, tracking and re-raising any exception unchanged"""
    try:
        return fn()
    except Exception as e:
        (tracker or error_tracker).track_error(category, operation, e, **context)
        raise


async def with_error_tracking(
    category: ErrorCategory,
    operation: str,
    fn: Callable[[], Awaitable[T]],
    /,
    tracker: Optional[ErrorTracker] = None,
    **context: Any,
) -> T:
    """Await fn, tracking and re-raising any exception unchanged"""
    try:
        return await fn()
    except Exception as e:
        (tracker or error_tracker).track_error(category, operation, e, **context)
        raise


def error_tracked(category: ErrorCategory, operation: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator form of with_error_tracking for sync and async callables"""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                return await with_error_tracking(category, operation, lambda: func(*args, **kwargs))

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            return with_error_tracking_sync(category, operation, lambda: func(*args, **kwargs))

        return wrapper

    return decorator
