"""
Quiescence-based batching.

Entries are buffered until no new submission has arrived for the debounce
window, then the whole buffer is handed off as one ``Batch``. This is a
trailing-edge debounce: a steady stream of submissions spaced closer than
the window keeps postponing the flush. That trades latency for larger
batches and is intentional; callers that need a bound should ``flush()``.

Timestamps never decrease across submissions: an entry stamped earlier than
its predecessor (a caller thread that stamped first but was scheduled
later) is raised to the previous timestamp. The destination only accepts
appends whose events are in ascending time order.

The accumulator is loop-affine: ``submit``/``offer``/``flush`` must be
called on the event loop thread that drives it.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any, Callable

from .events import Batch, LogEntry, now_ms
from .formatter import format_message


class BatchAccumulator:
    """Buffers entries and emits a batch after ``debounce_seconds`` of quiet."""

    def __init__(
        self,
        *,
        debounce_seconds: float,
        on_batch: Callable[[Batch], None],
        formatter: Callable[[Any], str] = format_message,
    ) -> None:
        if debounce_seconds < 0:
            raise ValueError("debounce_seconds must be >= 0")
        self._debounce_seconds = debounce_seconds
        self._on_batch = on_batch
        self._formatter = formatter
        self._buffer: list[LogEntry] = []
        self._timer: asyncio.TimerHandle | None = None
        self._last_timestamp = 0

    @property
    def debounce_seconds(self) -> float:
        return self._debounce_seconds

    @property
    def is_accumulating(self) -> bool:
        return bool(self._buffer)

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def offer(self, value: Any, timestamp: int | None = None) -> LogEntry:
        """Format a raw value and submit it."""
        entry = LogEntry(
            message=self._formatter(value),
            timestamp=now_ms() if timestamp is None else timestamp,
        )
        return self.submit(entry)

    def submit(self, entry: LogEntry) -> LogEntry:
        """Buffer ``entry`` and restart the quiet timer; returns what was buffered."""
        if entry.timestamp < self._last_timestamp:
            entry = replace(entry, timestamp=self._last_timestamp)
        self._last_timestamp = entry.timestamp
        self._buffer.append(entry)
        self._rearm()
        return entry

    def flush(self) -> Batch | None:
        """Emit whatever is buffered right now, bypassing the timer."""
        self._cancel_timer()
        return self._emit()

    def close(self) -> None:
        self._cancel_timer()

    def _rearm(self) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._debounce_seconds, self._on_quiet)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_quiet(self) -> None:
        self._timer = None
        self._emit()

    def _emit(self) -> Batch | None:
        if not self._buffer:
            return None
        buffered, self._buffer = self._buffer, []
        batch = Batch.of(buffered)
        self._on_batch(batch)
        return batch


__all__ = ["BatchAccumulator"]
