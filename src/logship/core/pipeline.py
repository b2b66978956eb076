"""
Accumulator-to-shipper wiring with pipeline-level resilience.

Every flushed batch becomes its own shipment task; shipments are not
serialized, so a slow append never holds back the next batch. A failed
shipment is reported (diagnostics, metrics, optional ``on_error``) and the
pipeline keeps accepting and shipping later batches. That is the only
retry at this level: the failed batch itself is not resent.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable

from ..metrics.metrics import MetricsCollector
from . import diagnostics
from .accumulator import BatchAccumulator
from .errors import ShipmentError
from .events import Batch
from .shipper import Shipper

ErrorCallback = Callable[[ShipmentError, Batch], Awaitable[None] | None]


class ShippingPipeline:
    """Feeds debounced batches to a ``Shipper`` as concurrent shipments."""

    def __init__(
        self,
        *,
        shipper: Shipper,
        debounce_seconds: float,
        max_concurrent_shipments: int | None = None,
        metrics: MetricsCollector | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self._shipper = shipper
        self._metrics = metrics
        self._on_error = on_error
        self._accumulator = BatchAccumulator(
            debounce_seconds=debounce_seconds, on_batch=self._dispatch
        )
        self._semaphore = (
            asyncio.Semaphore(max_concurrent_shipments)
            if max_concurrent_shipments
            else None
        )
        self._inflight: set[asyncio.Task[None]] = set()
        self._counters: dict[str, int] = {
            "submitted": 0,
            "batches": 0,
            "shipped": 0,
            "failed": 0,
        }
        self._last_error: ShipmentError | None = None

    @property
    def shipper(self) -> Shipper:
        return self._shipper

    @property
    def accumulator(self) -> BatchAccumulator:
        return self._accumulator

    @property
    def counters(self) -> dict[str, int]:
        return dict(self._counters)

    @property
    def last_error(self) -> ShipmentError | None:
        return self._last_error

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    def submit(self, value: Any, timestamp: int | None = None) -> None:
        """Accept a raw value; must run on the pipeline's loop."""
        self._accumulator.offer(value, timestamp)
        self._counters["submitted"] += 1

    async def drain(self) -> None:
        """Flush buffered entries and wait for every in-flight shipment."""
        self._accumulator.flush()
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    def close(self) -> None:
        self._accumulator.close()

    def _dispatch(self, batch: Batch) -> None:
        self._counters["batches"] += 1
        task = asyncio.get_running_loop().create_task(self._run_shipment(batch))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _run_shipment(self, batch: Batch) -> None:
        try:
            if self._semaphore is not None:
                async with self._semaphore:
                    await self._shipper.ship(batch)
            else:
                await self._shipper.ship(batch)
        except ShipmentError as exc:
            await self._handle_failure(exc, batch)
            return
        except Exception as exc:
            wrapped = ShipmentError(
                f"unexpected error shipping batch: {exc}",
                stage="unknown",
                batch_size=len(batch),
                cause=exc,
            )
            await self._handle_failure(wrapped, batch)
            return
        self._counters["shipped"] += 1

    async def _handle_failure(self, exc: ShipmentError, batch: Batch) -> None:
        self._counters["failed"] += 1
        self._last_error = exc
        diagnostics.warn(
            "pipeline",
            "shipment failed",
            stage=exc.stage,
            stream=exc.stream_name,
            batch_id=batch.batch_id,
            batch_size=len(batch),
            error_type=type(exc.cause).__name__ if exc.cause else None,
            error=str(exc.cause or exc),
        )
        if self._metrics is not None:
            try:
                await self._metrics.record_shipment_failed(stage=exc.stage)
            except Exception:
                pass
        if self._on_error is None:
            return
        try:
            result = self._on_error(exc, batch)
            if inspect.isawaitable(result):
                await result
        except Exception as cb_exc:
            diagnostics.warn(
                "pipeline",
                "on_error callback failed",
                error_type=type(cb_exc).__name__,
                error=str(cb_exc),
            )


__all__ = ["ErrorCallback", "ShippingPipeline"]
