"""Metrics collector - aggregates error counters and cache stats into a health snapshot"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol

from forma_analytics.infrastructure.observability.errors import ErrorCategory, ErrorTracker, error_tracker

RECENT_ERROR_LIMIT = 10
LOW_HIT_RATE_PERCENT = 50
MIN_OPERATIONS_FOR_HIT_RATE = 10
DEGRADED_ERROR_RATE_PERCENT = 1
UNHEALTHY_ERROR_RATE_PERCENT = 5


@dataclass
class CacheStats:
    size: int = 0
    hits: int = 0
    misses: int = 0
    hit_rate: int = 0  # percent
    total_operations: int = 0


class CacheStatsSource(Protocol):
    def get_cache_stats(self) -> CacheStats: ...


@dataclass
class ErrorCount:
    category: str
    operation: str
    count: int


@dataclass
class ErrorSummary:
    total_errors: int
    errors_by_category: Dict[str, int]
    recent_errors: List[ErrorCount]


@dataclass
class HealthStatus:
    status: str  # healthy | degraded | unhealthy
    issues: List[str] = field(default_factory=list)


@dataclass
class SystemMetrics:
    timestamp: str
    cache: CacheStats
    errors: ErrorSummary
    health: HealthStatus


class MetricsCollector:
    """Builds on-demand system snapshots for the monitoring endpoint"""

    def __init__(
        self,
        tracker: Optional[ErrorTracker] = None,
        cache_source: Optional[CacheStatsSource] = None,
    ):
        self.tracker = tracker or error_tracker
        self.cache_source = cache_source

    def _cache_stats(self) -> CacheStats:
        if self.cache_source is None:
            return CacheStats()
        return self.cache_source.get_cache_stats()

    def collect_metrics(self) -> SystemMetrics:
        cache_stats = self._cache_stats()
        error_counts = self.tracker.get_all_error_counts()

        total_errors = 0
        errors_by_category: Dict[str, int] = {}
        recent_errors: List[ErrorCount] = []

        for (category, operation), count in error_counts.items():
            total_errors += count
            errors_by_category[category] = errors_by_category.get(category, 0) + count
            recent_errors.append(ErrorCount(category=category, operation=operation, count=count))

        recent_errors.sort(key=lambda e: e.count, reverse=True)

        return SystemMetrics(
            timestamp=datetime.now(timezone.utc).isoformat(),
            cache=cache_stats,
            errors=ErrorSummary(
                total_errors=total_errors,
                errors_by_category=errors_by_category,
                recent_errors=recent_errors[:RECENT_ERROR_LIMIT],
            ),
            health=self.determine_health(cache_stats, error_counts, total_errors),
        )

    def determine_health(self, cache_stats: CacheStats, error_counts: Dict, total_errors: int) -> HealthStatus:
        """
        Derive a coarse health verdict.

        - degraded:  cache hit rate < 50% (after 10+ operations) or error rate > 1%
        - unhealthy: error rate > 5% or any single (category, operation) count >= threshold
        """
        issues: List[str] = []
        status = "healthy"

        if cache_stats.hit_rate < LOW_HIT_RATE_PERCENT and cache_stats.total_operations > MIN_OPERATIONS_FOR_HIT_RATE:
            issues.append(f"Low cache hit rate: {cache_stats.hit_rate}%")
            status = "degraded"

        error_rate = (
            total_errors / cache_stats.total_operations * 100
            if cache_stats.total_operations > 0
            else 0.0
        )

        if error_rate > UNHEALTHY_ERROR_RATE_PERCENT:
            issues.append(f"High error rate: {error_rate:.1f}%")
            status = "unhealthy"
        elif error_rate > DEGRADED_ERROR_RATE_PERCENT:
            issues.append(f"Elevated error rate: {error_rate:.1f}%")
            if status == "healthy":
                status = "degraded"

        for (category, operation), count in error_counts.items():
            if count >= self.tracker.threshold:
                issues.append(f"High error count for {category}:{operation}: {count}")
                status = "unhealthy"

        return HealthStatus(status=status, issues=issues)

    def get_error_rate(self, category: ErrorCategory, operation: str, total_operations: int) -> float:
        return self.tracker.get_error_rate(category, operation, total_operations)

    def reset_metrics(self) -> None:
        """Clear error counters and the cache source (tests and manual resets)"""
        self.tracker.reset_counts()
        clear = getattr(self.cache_source, "clear_cache", None)
        if clear is not None:
            clear()
