"""
Grant Ledger Metrics Collector

Pure-Python Prometheus exposition format implementation.
No external dependency on ``prometheus_client``; the text format is
generated directly.

Metric types:
    - Counter       : monotonically increasing (e.g. proposals created)
    - LabeledCounter: counter split by one label (e.g. rejections per code)
    - Gauge         : can go up and down (e.g. proposal count)
    - Histogram     : operation latencies with configurable buckets
"""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


# ---------------------------------------------------------------------------
# Metric primitives
# ---------------------------------------------------------------------------

@dataclass
class Counter:
    """Monotonically increasing counter."""
    name: str
    help: str = ""
    _value: float = 0.0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def inc(self, amount: float = 1.0) -> None:
        if amount < 0:
            raise ValueError("Counter can only be incremented")
        with self._lock:
            self._value += amount

    @property
    def value(self) -> float:
        return self._value

    def expose(self) -> str:
        lines = []
        if self.help:
            lines.append(f"# HELP {self.name} {self.help}")
        lines.append(f"# TYPE {self.name} counter")
        lines.append(f"{self.name} {self._value}")
        return "\n".join(lines)


@dataclass
class LabeledCounter:
    """Counter with one label dimension."""
    name: str
    label: str
    help: str = ""
    _values: Dict[str, float] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def inc(self, label_value: str, amount: float = 1.0) -> None:
        if amount < 0:
            raise ValueError("Counter can only be incremented")
        with self._lock:
            self._values[label_value] = self._values.get(label_value, 0.0) + amount

    def value(self, label_value: str) -> float:
        return self._values.get(label_value, 0.0)

    @property
    def total(self) -> float:
        return sum(self._values.values())

    def expose(self) -> str:
        lines = []
        if self.help:
            lines.append(f"# HELP {self.name} {self.help}")
        lines.append(f"# TYPE {self.name} counter")
        for label_value in sorted(self._values):
            lines.append(f'{self.name}{{{self.label}="{label_value}"}} {self._values[label_value]}')
        return "\n".join(lines)


@dataclass
class Gauge:
    """Gauge that can go up and down."""
    name: str
    help: str = ""
    _value: float = 0.0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def set(self, value: float) -> None:
        with self._lock:
            self._value = value

    def inc(self, amount: float = 1.0) -> None:
        with self._lock:
            self._value += amount

    @property
    def value(self) -> float:
        return self._value

    def expose(self) -> str:
        lines = []
        if self.help:
            lines.append(f"# HELP {self.name} {self.help}")
        lines.append(f"# TYPE {self.name} gauge")
        lines.append(f"{self.name} {self._value}")
        return "\n".join(lines)


# Ledger operations are in-memory; buckets are in seconds
DEFAULT_BUCKETS: Tuple[float, ...] = (
    0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1,
)


@dataclass
class Histogram:
    """Histogram with configurable buckets."""
    name: str
    help: str = ""
    buckets: Tuple[float, ...] = DEFAULT_BUCKETS
    _bucket_counts: Dict[float, int] = field(default_factory=dict, repr=False)
    _sum: float = 0.0
    _count: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self):
        if not self._bucket_counts:
            self._bucket_counts = {b: 0 for b in self.buckets}

    def observe(self, value: float) -> None:
        with self._lock:
            self._sum += value
            self._count += 1
            # Only the smallest matching bucket; expose() accumulates
            for b in sorted(self.buckets):
                if value <= b:
                    self._bucket_counts[b] += 1
                    break

    @property
    def count(self) -> int:
        return self._count

    @property
    def sum(self) -> float:
        return self._sum

    def expose(self) -> str:
        lines = []
        if self.help:
            lines.append(f"# HELP {self.name} {self.help}")
        lines.append(f"# TYPE {self.name} histogram")

        cumulative = 0
        for b in sorted(self.buckets):
            cumulative += self._bucket_counts.get(b, 0)
            lines.append(f'{self.name}_bucket{{le="{b}"}} {cumulative}')

        lines.append(f'{self.name}_bucket{{le="+Inf"}} {self._count}')
        lines.append(f"{self.name}_sum {self._sum}")
        lines.append(f"{self.name}_count {self._count}")
        return "\n".join(lines)


_METRIC_TYPES = (Counter, LabeledCounter, Gauge, Histogram)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class MetricsRegistry:
    """
    Central registry holding all metrics.

    Provides ``expose()`` to render all metrics in Prometheus text format.
    """

    def __init__(self):
        self._metrics: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def register(self, metric: Any) -> None:
        with self._lock:
            if metric.name in self._metrics:
                raise ValueError(f"Metric already registered: {metric.name}")
            self._metrics[metric.name] = metric

    def get(self, name: str) -> Optional[Any]:
        return self._metrics.get(name)

    @property
    def metric_count(self) -> int:
        return len(self._metrics)

    def expose(self) -> str:
        parts: List[str] = []
        with self._lock:
            for metric in self._metrics.values():
                parts.append(metric.expose())
        return "\n\n".join(parts) + "\n"


# ---------------------------------------------------------------------------
# Ledger collector
# ---------------------------------------------------------------------------

class LedgerMetricsCollector:
    """
    Pre-configured metrics for a proposal ledger.

    One collector per ledger; the ledger updates it as operations commit.
    """

    def __init__(self):
        self.registry = MetricsRegistry()

        # --- Proposal metrics ---
        self.proposal_count = Gauge(
            "grantledger_proposal_count",
            "Proposals ever created",
        )
        self.proposals_created = Counter(
            "grantledger_proposals_created_total",
            "Total proposals created",
        )
        self.proposals_approved = Counter(
            "grantledger_proposals_approved_total",
            "Total proposals finalized as approved",
        )
        self.proposals_rejected = Counter(
            "grantledger_proposals_rejected_total",
            "Total proposals finalized as rejected",
        )

        # --- Voting metrics ---
        self.votes_cast = Counter(
            "grantledger_votes_cast_total",
            "Total votes recorded",
        )

        # --- Fee metrics ---
        self.fee_collected = Counter(
            "grantledger_fee_collected_total",
            "Sum of proposal fees transferred to the governance contract",
        )

        # --- Operation metrics ---
        self.operations_rejected = LabeledCounter(
            "grantledger_operations_rejected_total",
            "code",
            "Rejected operations by error code",
        )
        self.operation_latency = Histogram(
            "grantledger_operation_seconds",
            "Ledger operation latency in seconds",
        )

        for attr_name in dir(self):
            attr = getattr(self, attr_name)
            if isinstance(attr, _METRIC_TYPES):
                self.registry.register(attr)

    def expose(self) -> str:
        """Render all metrics in Prometheus text exposition format."""
        return self.registry.expose()
