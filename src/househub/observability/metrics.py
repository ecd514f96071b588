"""Prometheus metrics for HouseHub.

Provides metrics collection and exposure:
- Cache metrics (hits, misses by reason, errors, latency, invalidations)
- Event metrics (published, failed)

Usage:
    from househub.observability.metrics import get_metrics

    metrics = get_metrics()
    metrics.cache_hits_total.labels(kind="task").inc()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import REGISTRY, Counter, Histogram, generate_latest

from househub.config import settings

logger = logging.getLogger(__name__)


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics."""

    # Cache metrics
    cache_hits_total: Any = None
    cache_misses_total: Any = None
    cache_errors_total: Any = None
    cache_operation_duration_seconds: Any = None
    cache_invalidations_total: Any = None

    # Event metrics
    events_published_total: Any = None
    events_failed_total: Any = None

    _initialized: bool = field(default=False, repr=False)
    _registry: Any = field(default=None, repr=False)

    def initialize(self) -> None:
        """Initialize Prometheus metrics."""
        if self._initialized:
            return

        if not settings.enable_metrics:
            logger.info("Metrics are disabled")
            self._initialized = True
            return

        self._registry = REGISTRY

        self.cache_hits_total = Counter(
            "househub_cache_hits_total",
            "Cache hits",
            ["kind"],
        )

        self.cache_misses_total = Counter(
            "househub_cache_misses_total",
            "Cache misses",
            ["kind", "reason"],
        )

        self.cache_errors_total = Counter(
            "househub_cache_errors_total",
            "Cache store errors and timeouts",
            ["operation"],
        )

        self.cache_operation_duration_seconds = Histogram(
            "househub_cache_operation_duration_seconds",
            "Cache operation latency in seconds",
            ["operation"],
            buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.5),
        )

        self.cache_invalidations_total = Counter(
            "househub_cache_invalidations_total",
            "Cache keys deleted by invalidation",
        )

        self.events_published_total = Counter(
            "househub_events_published_total",
            "Total events published",
            ["module", "action"],
        )

        self.events_failed_total = Counter(
            "househub_events_failed_total",
            "Events that could not be published",
            ["module", "action"],
        )

        self._initialized = True
        logger.info("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if not settings.enable_metrics or self._registry is None:
            return b"# Metrics disabled\n"
        return generate_latest(self._registry)


# Global metrics registry
metrics_registry = MetricsRegistry()


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry


def _kind_of(key: str) -> str:
    # househub:{kind}:{id}[:{relation}]
    parts = key.split(":")
    if len(parts) == 4:
        return parts[3]
    if len(parts) == 3:
        return parts[1]
    return "unknown"


def record_cache_hit(key: str) -> None:
    """Record cache hit."""
    metrics = get_metrics()
    if metrics.cache_hits_total:
        metrics.cache_hits_total.labels(kind=_kind_of(key)).inc()


def record_cache_miss(key: str, reason: str) -> None:
    """Record cache miss.

    Args:
        key: Cache key that missed
        reason: Why it missed (absent, corrupt, unavailable)
    """
    metrics = get_metrics()
    if metrics.cache_misses_total:
        metrics.cache_misses_total.labels(kind=_kind_of(key), reason=reason).inc()


def record_cache_error(operation: str) -> None:
    """Record a cache store failure or timeout."""
    metrics = get_metrics()
    if metrics.cache_errors_total:
        metrics.cache_errors_total.labels(operation=operation).inc()


def record_cache_operation(operation: str, duration: float) -> None:
    """Record cache operation duration.

    Args:
        operation: Cache operation (get, set, delete)
        duration: Operation duration in seconds
    """
    metrics = get_metrics()
    if metrics.cache_operation_duration_seconds:
        metrics.cache_operation_duration_seconds.labels(operation=operation).observe(duration)


def record_invalidations(count: int) -> None:
    metrics = get_metrics()
    if metrics.cache_invalidations_total:
        metrics.cache_invalidations_total.inc(count)


def record_event_published(module: str, action: str) -> None:
    """Record event publication.

    Args:
        module: Event module (TASK, BILL, ...)
        action: Event action (CREATED, MARKED_PAYED, ...)
    """
    metrics = get_metrics()
    if metrics.events_published_total:
        metrics.events_published_total.labels(module=module, action=action).inc()


def record_event_failed(module: str, action: str) -> None:
    """Record an event that was dropped because publishing failed."""
    metrics = get_metrics()
    if metrics.events_failed_total:
        metrics.events_failed_total.labels(module=module, action=action).inc()
