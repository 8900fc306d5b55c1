"""
Grant Ledger Metrics Module

Prometheus-compatible metrics for monitoring.
"""

from .collector import (
    Counter,
    Gauge,
    Histogram,
    LabeledCounter,
    LedgerMetricsCollector,
    MetricsRegistry,
)

__all__ = [
    "Counter",
    "Gauge",
    "Histogram",
    "LabeledCounter",
    "LedgerMetricsCollector",
    "MetricsRegistry",
]
