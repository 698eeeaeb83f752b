"""
Metrics Collection with Prometheus.

Exposes token exchange metrics for monitoring.
"""

import time
from enum import Enum

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram, Info

from fcm_bridge.config import settings


class MetricLabels(str, Enum):
    """Standard metric label names."""

    OUTCOME = "outcome"
    ENVIRONMENT = "environment"


class ExchangeMetrics:
    """
    Centralized metrics for fcm-bridge.

    Covers:
    - Exchanges (rate, outcome by error kind)
    - Exchange duration
    - Exchanges in flight
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Initialize all Prometheus metrics."""
        self.service_info = Info(
            "fcm_bridge_service",
            "Service information",
            registry=registry,
        )
        self.service_info.info(
            {
                "version": settings.service_version,
                "service_name": settings.service_name,
            }
        )

        self.exchanges_total = Counter(
            "fcm_bridge_exchanges_total",
            "Total APNS to FCM token exchanges",
            [MetricLabels.OUTCOME.value, MetricLabels.ENVIRONMENT.value],
            registry=registry,
        )

        self.exchange_duration_seconds = Histogram(
            "fcm_bridge_exchange_duration_seconds",
            "Token exchange duration in seconds",
            [MetricLabels.ENVIRONMENT.value],
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
            registry=registry,
        )

        self.exchanges_in_progress = Gauge(
            "fcm_bridge_exchanges_in_progress",
            "Number of token exchanges currently awaiting the transport",
            registry=registry,
        )

    def record_exchange(self, outcome: str, environment: str, duration: float) -> None:
        """Record a completed exchange."""
        if not settings.metrics_enabled:
            return
        self.exchanges_total.labels(outcome=outcome, environment=environment).inc()
        self.exchange_duration_seconds.labels(environment=environment).observe(duration)


# Global metrics instance
metrics = ExchangeMetrics()


class track_exchange:
    """
    Context manager for tracking one exchange.

    Usage:
        with track_exchange("development") as tracker:
            outcome = ...
            tracker.set_outcome(outcome.label)
    """

    def __init__(self, environment: str, recorder: ExchangeMetrics | None = None) -> None:
        self.environment = environment
        self.recorder = recorder or metrics
        self.outcome = "aborted"
        self.start_time: float = 0.0

    def set_outcome(self, outcome: str) -> None:
        self.outcome = outcome

    def __enter__(self) -> "track_exchange":
        self.start_time = time.monotonic()
        self.recorder.exchanges_in_progress.inc()
        return self

    def __exit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        duration = time.monotonic() - self.start_time
        self.recorder.record_exchange(self.outcome, self.environment, duration)
        self.recorder.exchanges_in_progress.dec()

