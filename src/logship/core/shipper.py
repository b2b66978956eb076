"""
Batch shipper and sequence-token state machine.

Each shipment walks ``RESOLVE_STREAM -> (ENSURE_STREAM)? -> APPEND`` and
ends either with the batch appended or a ``ShipmentError``:

1. Resolve the hourly stream name. A different name than last time drops
   the held sequence token.
2. Without a token, create the stream first. If the group is missing,
   create it and retry stream creation exactly once.
3. Append with the held token (omitted when none is held). Success stores
   the returned token; any failure clears it.
   Events the destination accepted the call for but dropped are reported
   as a diagnostic, not as a failure.

Only the append stage clears the token on failure. A shipment is never
retried here; recovering from a failed shipment is the pipeline's job.
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any, Callable, Mapping

from ..clients.base import (
    AppendRequest,
    AppendResponse,
    CreateGroupRequest,
    CreateStreamRequest,
    StreamClient,
)
from ..metrics.metrics import MetricsCollector
from . import diagnostics
from .errors import ShipmentError, is_already_exists, is_resource_missing
from .events import Batch
from .identity import StreamIdentity, current_stream_name, generate_salt


class Shipper:
    """Owns the append cursor and ships batches to the current stream."""

    def __init__(
        self,
        *,
        client: StreamClient,
        group_name: str,
        salt: str | None = None,
        clock: Callable[[], datetime] = datetime.now,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._client = client
        self._group_name = group_name
        self._salt = salt or generate_salt()
        self._clock = clock
        self._metrics = metrics
        self._identity = StreamIdentity()

    @property
    def group_name(self) -> str:
        return self._group_name

    @property
    def salt(self) -> str:
        return self._salt

    @property
    def identity(self) -> StreamIdentity:
        return self._identity

    @property
    def sequence_token(self) -> str | None:
        return self._identity.sequence_token

    async def resolve_stream_name(self) -> str:
        """Compute the current stream name, resetting the token on rollover."""
        name = current_stream_name(self._clock(), self._salt)
        had_token = self._identity.sequence_token is not None
        previous = self._identity.name
        if self._identity.observe(name) and previous is not None:
            diagnostics.debug(
                "shipper",
                "stream rolled over",
                previous_stream=previous,
                stream=name,
            )
            if had_token and self._metrics is not None:
                await self._metrics.record_token_reset()
        return name

    async def ship(self, batch: Batch) -> str | None:
        """Append ``batch`` to the current stream.

        Returns the new sequence token. Raises ``ShipmentError`` when the
        shipment fails terminally.
        """
        if not batch:
            return self._identity.sequence_token
        start = time.perf_counter()
        stream_name = await self.resolve_stream_name()
        if self._identity.sequence_token is None:
            await self._ensure_stream(stream_name, batch)
        token = await self._append(stream_name, batch)
        if self._metrics is not None:
            await self._metrics.record_batch_shipped(
                batch_size=len(batch),
                latency_seconds=time.perf_counter() - start,
            )
        return token

    async def _ensure_stream(self, stream_name: str, batch: Batch) -> None:
        request = CreateStreamRequest(
            group_name=self._group_name, stream_name=stream_name
        )
        try:
            await self._create_stream(request)
            return
        except Exception as exc:
            if is_already_exists(exc):
                return
            if not is_resource_missing(exc):
                raise ShipmentError(
                    f"failed to create stream {stream_name!r}",
                    stage="create_stream",
                    stream_name=stream_name,
                    batch_size=len(batch),
                    cause=exc,
                ) from exc

        await self._create_group(stream_name, batch)
        try:
            await self._create_stream(request)
        except Exception as exc:
            if is_already_exists(exc):
                return
            raise ShipmentError(
                f"failed to create stream {stream_name!r} after creating group",
                stage="create_stream",
                stream_name=stream_name,
                batch_size=len(batch),
                cause=exc,
            ) from exc

    async def _create_stream(self, request: CreateStreamRequest) -> None:
        await self._client.create_stream(request)
        if self._metrics is not None:
            await self._metrics.record_stream_created()

    async def _create_group(self, stream_name: str, batch: Batch) -> None:
        diagnostics.debug(
            "shipper", "log group missing, creating it", group=self._group_name
        )
        try:
            await self._client.create_group(
                CreateGroupRequest(group_name=self._group_name)
            )
        except Exception as exc:
            if is_already_exists(exc):
                return
            raise ShipmentError(
                f"failed to create group {self._group_name!r}",
                stage="create_group",
                stream_name=stream_name,
                batch_size=len(batch),
                cause=exc,
            ) from exc
        if self._metrics is not None:
            await self._metrics.record_group_created()

    async def _append(self, stream_name: str, batch: Batch) -> str | None:
        request = AppendRequest(
            group_name=self._group_name,
            stream_name=stream_name,
            entries=batch.entries,
            sequence_token=self._identity.sequence_token,
        )
        try:
            response = await self._client.append_events(request)
        except Exception as exc:
            had_token = self._identity.sequence_token is not None
            self._identity.clear_token()
            if had_token and self._metrics is not None:
                await self._metrics.record_token_reset()
            raise ShipmentError(
                f"failed to append {len(batch)} events to {stream_name!r}",
                stage="append",
                stream_name=stream_name,
                batch_size=len(batch),
                cause=exc,
            ) from exc

        result = _as_response(response)
        next_token = result.next_sequence_token
        # A rollover while this append was in flight owns the cell now
        if self._identity.name == stream_name:
            self._identity.set_token(next_token)
        if result.rejected_info:
            await self._report_rejected(stream_name, batch, result)
        return next_token

    async def _report_rejected(
        self, stream_name: str, batch: Batch, response: AppendResponse
    ) -> None:
        count = response.rejected_count(len(batch))
        diagnostics.warn(
            "shipper",
            "events rejected",
            stream=stream_name,
            rejected=count,
            batch_size=len(batch),
            rejected_info=dict(response.rejected_info),
        )
        if self._metrics is not None:
            await self._metrics.record_events_rejected(count)


def _as_response(
    response: AppendResponse | Mapping[str, Any] | None,
) -> AppendResponse:
    if isinstance(response, AppendResponse):
        return response
    return AppendResponse.from_params(response)


__all__ = ["Shipper"]
