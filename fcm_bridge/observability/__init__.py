"""
Observability module - Logging, Metrics, and Tracing.
"""

from fcm_bridge.observability.logging import setup_logging
from fcm_bridge.observability.metrics import metrics
from fcm_bridge.observability.tracing import setup_tracing

__all__ = [
    "setup_logging",
    "metrics",
    "setup_tracing",
]
