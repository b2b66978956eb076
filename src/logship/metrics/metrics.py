"""
Async-first shipping metrics.

Implements minimal Prometheus-compatible counters and a latency histogram
for the shipper. In-memory counters are always tracked so tests can assert
on them; exporters are only created when metrics are enabled.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Histogram


@dataclass
class ShipperMetrics:
    """Captured runtime metrics for quick assertions in tests."""

    batches_shipped: int = 0
    events_shipped: int = 0
    shipment_failures: int = 0
    failures_by_stage: dict[str, int] = field(default_factory=dict)
    streams_created: int = 0
    groups_created: int = 0
    token_resets: int = 0
    events_rejected: int = 0


class MetricsCollector:
    """Container-scoped async metrics collector."""

    def __init__(self, *, enabled: bool = False) -> None:
        self._enabled = bool(enabled)
        self._lock = asyncio.Lock()
        self._state = ShipperMetrics()

        self._c_batches: Any | None = None
        self._c_events: Any | None = None
        self._c_failures: Any | None = None
        self._c_created: Any | None = None
        self._c_token_resets: Any | None = None
        self._c_rejected: Any | None = None
        self._h_shipment_latency: Any | None = None
        self._registry: CollectorRegistry | None = None

        if self._enabled:
            # Isolated registry to avoid global duplication in tests
            self._registry = CollectorRegistry()
            self._c_batches = Counter(
                "logship_batches_shipped_total",
                "Total number of batches appended to a stream",
                registry=self._registry,
            )
            self._c_events = Counter(
                "logship_events_shipped_total",
                "Total number of log events appended to a stream",
                registry=self._registry,
            )
            self._c_failures = Counter(
                "logship_shipment_failures_total",
                "Total number of shipments that failed terminally",
                ["stage"],
                registry=self._registry,
            )
            self._c_created = Counter(
                "logship_resources_created_total",
                "Groups and streams created on demand",
                ["resource"],
                registry=self._registry,
            )
            self._c_token_resets = Counter(
                "logship_sequence_token_resets_total",
                "Sequence tokens dropped on stream rollover or append failure",
                registry=self._registry,
            )
            self._c_rejected = Counter(
                "logship_events_rejected_total",
                "Events dropped by the destination from an accepted append",
                registry=self._registry,
            )
            self._h_shipment_latency = Histogram(
                "logship_shipment_seconds",
                "Latency of a complete shipment",
                buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
                registry=self._registry,
            )

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def registry(self) -> CollectorRegistry | None:
        """Expose the isolated Prometheus registry when enabled."""
        return self._registry

    async def record_batch_shipped(
        self, *, batch_size: int, latency_seconds: float | None = None
    ) -> None:
        async with self._lock:
            self._state.batches_shipped += 1
            self._state.events_shipped += batch_size
        if not self._enabled:
            return
        if self._c_batches is not None:
            self._c_batches.inc()
        if self._c_events is not None:
            self._c_events.inc(batch_size)
        if latency_seconds is not None and self._h_shipment_latency is not None:
            self._h_shipment_latency.observe(latency_seconds)

    async def record_shipment_failed(self, *, stage: str | None = None) -> None:
        label = stage or "unknown"
        async with self._lock:
            self._state.shipment_failures += 1
            self._state.failures_by_stage[label] = (
                self._state.failures_by_stage.get(label, 0) + 1
            )
        if self._enabled and self._c_failures is not None:
            self._c_failures.labels(stage=label).inc()

    async def record_stream_created(self) -> None:
        async with self._lock:
            self._state.streams_created += 1
        if self._enabled and self._c_created is not None:
            self._c_created.labels(resource="stream").inc()

    async def record_group_created(self) -> None:
        async with self._lock:
            self._state.groups_created += 1
        if self._enabled and self._c_created is not None:
            self._c_created.labels(resource="group").inc()

    async def record_token_reset(self) -> None:
        async with self._lock:
            self._state.token_resets += 1
        if self._enabled and self._c_token_resets is not None:
            self._c_token_resets.inc()

    async def record_events_rejected(self, count: int) -> None:
        async with self._lock:
            self._state.events_rejected += count
        if self._enabled and self._c_rejected is not None:
            self._c_rejected.inc(count)

    async def snapshot(self) -> ShipperMetrics:
        async with self._lock:
            return ShipperMetrics(
                batches_shipped=self._state.batches_shipped,
                events_shipped=self._state.events_shipped,
                shipment_failures=self._state.shipment_failures,
                failures_by_stage=dict(self._state.failures_by_stage),
                streams_created=self._state.streams_created,
                groups_created=self._state.groups_created,
                token_resets=self._state.token_resets,
                events_rejected=self._state.events_rejected,
            )
