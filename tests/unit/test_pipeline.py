from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any

import pytest

from logship.core.errors import ShipmentError, StreamClientError
from logship.core.events import Batch
from logship.core.pipeline import ShippingPipeline
from logship.core.shipper import Shipper
from logship.metrics.metrics import MetricsCollector
from logship.testing import FakeStreamClient


def _pipeline(
    client: FakeStreamClient,
    *,
    debounce: float = 0.02,
    metrics: MetricsCollector | None = None,
    on_error: Any = None,
    max_concurrent: int | None = None,
) -> ShippingPipeline:
    shipper = Shipper(
        client=client,
        group_name="g",
        salt="s",
        clock=lambda: datetime(2024, 3, 1, 12, 0),
        metrics=metrics,
    )
    return ShippingPipeline(
        shipper=shipper,
        debounce_seconds=debounce,
        max_concurrent_shipments=max_concurrent,
        metrics=metrics,
        on_error=on_error,
    )


@pytest.mark.asyncio
async def test_debounced_submissions_ship_as_one_batch() -> None:
    client = FakeStreamClient()
    pipeline = _pipeline(client, debounce=0.05)
    pipeline.submit("a", 1)
    await asyncio.sleep(0.01)
    pipeline.submit("b", 2)
    await asyncio.sleep(0.15)
    await pipeline.drain()

    appends = client.calls_for("append_events")
    assert len(appends) == 1
    assert appends[0]["logEvents"] == [
        {"message": "a", "timestamp": 1},
        {"message": "b", "timestamp": 2},
    ]
    assert pipeline.counters == {
        "submitted": 2,
        "batches": 1,
        "shipped": 1,
        "failed": 0,
    }


@pytest.mark.asyncio
async def test_drain_flushes_pending_entries() -> None:
    client = FakeStreamClient()
    pipeline = _pipeline(client, debounce=10.0)
    pipeline.submit("pending")
    await pipeline.drain()
    assert client.appended_messages == ["pending"]
    assert pipeline.inflight == 0


@pytest.mark.asyncio
async def test_failed_shipment_does_not_stop_later_batches(
    captured_diagnostics: list[dict[str, Any]],
) -> None:
    client = FakeStreamClient(append_outcomes=[StreamClientError("boom")])
    metrics = MetricsCollector()
    pipeline = _pipeline(client, metrics=metrics)

    pipeline.submit("lost")
    await pipeline.drain()
    pipeline.submit("delivered")
    await pipeline.drain()

    assert client.appended_messages == ["lost", "delivered"]
    assert pipeline.counters["failed"] == 1
    assert pipeline.counters["shipped"] == 1
    assert isinstance(pipeline.last_error, ShipmentError)
    assert pipeline.last_error.stage == "append"
    snap = await metrics.snapshot()
    assert snap.shipment_failures == 1
    assert snap.failures_by_stage == {"append": 1}
    warning = next(p for p in captured_diagnostics if p["component"] == "pipeline")
    assert warning["message"] == "shipment failed"
    assert warning["stage"] == "append"
    assert warning["error"] == "boom"


@pytest.mark.asyncio
async def test_on_error_receives_failure_and_batch() -> None:
    seen: list[tuple[ShipmentError, Batch]] = []
    client = FakeStreamClient(create_stream_outcomes=[StreamClientError("denied")])
    pipeline = _pipeline(client, on_error=lambda exc, batch: seen.append((exc, batch)))
    pipeline.submit("x")
    await pipeline.drain()
    assert len(seen) == 1
    assert seen[0][0].stage == "create_stream"
    assert [e.message for e in seen[0][1]] == ["x"]


@pytest.mark.asyncio
async def test_async_on_error_is_awaited() -> None:
    seen: list[str] = []

    async def on_error(exc: ShipmentError, batch: Batch) -> None:
        await asyncio.sleep(0)
        seen.append(exc.stage)

    client = FakeStreamClient(append_outcomes=[StreamClientError("x")])
    pipeline = _pipeline(client, on_error=on_error)
    pipeline.submit("x")
    await pipeline.drain()
    assert seen == ["append"]


@pytest.mark.asyncio
async def test_failing_on_error_callback_is_contained(
    captured_diagnostics: list[dict[str, Any]],
) -> None:
    def on_error(exc: ShipmentError, batch: Batch) -> None:
        raise RuntimeError("callback broke")

    client = FakeStreamClient(append_outcomes=[StreamClientError("x")])
    pipeline = _pipeline(client, on_error=on_error)
    pipeline.submit("x")
    await pipeline.drain()
    assert any(
        p["message"] == "on_error callback failed" for p in captured_diagnostics
    )


@pytest.mark.asyncio
async def test_unexpected_shipper_error_is_wrapped() -> None:
    client = FakeStreamClient()
    pipeline = _pipeline(client)

    async def _explode(batch: Batch) -> None:
        raise KeyError("bug")

    pipeline.shipper.ship = _explode  # type: ignore[method-assign]
    pipeline.submit("x")
    await pipeline.drain()
    assert pipeline.last_error is not None
    assert pipeline.last_error.stage == "unknown"
    assert isinstance(pipeline.last_error.cause, KeyError)


@pytest.mark.asyncio
async def test_shipments_run_concurrently() -> None:
    client = FakeStreamClient(delay_seconds=0.1)
    pipeline = _pipeline(client)
    pipeline.submit("one")
    pipeline.accumulator.flush()
    pipeline.submit("two")
    pipeline.accumulator.flush()
    await asyncio.sleep(0.02)
    assert pipeline.inflight == 2
    await pipeline.drain()
    assert sorted(client.appended_messages) == ["one", "two"]


@pytest.mark.asyncio
async def test_max_concurrent_shipments_bounds_inflight_work() -> None:
    active = 0
    peak = 0
    client = FakeStreamClient()
    pipeline = _pipeline(client, max_concurrent=1)
    original = pipeline.shipper.ship

    async def _tracking(batch: Batch) -> str | None:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        try:
            await asyncio.sleep(0.02)
            return await original(batch)
        finally:
            active -= 1

    pipeline.shipper.ship = _tracking  # type: ignore[method-assign]
    for i in range(3):
        pipeline.submit(str(i))
        pipeline.accumulator.flush()
    await pipeline.drain()
    assert peak == 1
    assert client.appended_messages == ["0", "1", "2"]
