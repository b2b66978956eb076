"""
Public intake surface: ``StreamLogger.log(value)``.

The logger validates its options at construction and starts its pipeline
immediately. Inside a running event loop it attaches to that loop;
otherwise it runs a private loop in a daemon thread. ``log`` is
fire-and-forget from any thread: it stamps the submission time and hands
the raw value to the pipeline, which formats and batches it.
"""

from __future__ import annotations

import asyncio
import threading
import types
from datetime import datetime
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..clients.base import StreamClient
from ..metrics.metrics import MetricsCollector
from . import diagnostics
from .errors import ConfigError
from .events import now_ms
from .pipeline import ErrorCallback, ShippingPipeline
from .settings import DEFAULT_DEBOUNCE_TIME_MS, ShipperSettings
from .shipper import Shipper

_CLIENT_METHODS = ("append_events", "create_stream", "create_group")


class StreamLoggerConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)  # fmt: skip

    client: Any
    log_group_name: str
    debounce_time_ms: int = Field(default=DEFAULT_DEBOUNCE_TIME_MS, ge=0)
    max_concurrent_shipments: int | None = Field(default=None, ge=1)
    stream_salt: str | None = None

    @field_validator("client")
    @classmethod
    def _check_client(cls, value: Any) -> Any:
        missing = [
            name for name in _CLIENT_METHODS if not callable(getattr(value, name, None))
        ]
        if missing:
            raise ValueError("stream client must implement " + ", ".join(missing))
        return value

    @field_validator("log_group_name")
    @classmethod
    def _check_group_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("log_group_name must not be empty")
        return value


def parse_logger_config(
    config: StreamLoggerConfig | dict[str, Any] | None, **kwargs: Any
) -> StreamLoggerConfig:
    """Merge ``config`` and keyword overrides, raising ``ConfigError``."""
    if isinstance(config, StreamLoggerConfig) and not kwargs:
        return config
    data: dict[str, Any] = {}
    if isinstance(config, StreamLoggerConfig):
        # Iterate fields directly; model_dump would convert the client
        data.update(dict(config))
    elif config is not None:
        data.update(config)
    data.update(kwargs)
    if data.get("client") is None:
        raise ConfigError("no stream client provided")
    if not data.get("log_group_name"):
        raise ConfigError("no log_group_name provided")
    try:
        return StreamLoggerConfig(**data)
    except ValidationError as exc:
        raise ConfigError(f"invalid logger configuration: {exc}", cause=exc) from exc


class StreamLogger:
    """Batches log values and ships them to hourly log streams."""

    def __init__(
        self,
        config: StreamLoggerConfig | dict[str, Any] | None = None,
        *,
        metrics: MetricsCollector | None = None,
        on_error: ErrorCallback | None = None,
        clock: Callable[[], datetime] = datetime.now,
        auto_start: bool = True,
        **kwargs: Any,
    ) -> None:
        cfg = parse_logger_config(config, **kwargs)
        self._config = cfg
        self._metrics = metrics
        self._shipper = Shipper(
            client=cfg.client,
            group_name=cfg.log_group_name,
            salt=cfg.stream_salt,
            clock=clock,
            metrics=metrics,
        )
        self._pipeline = ShippingPipeline(
            shipper=self._shipper,
            debounce_seconds=cfg.debounce_time_ms / 1000.0,
            max_concurrent_shipments=cfg.max_concurrent_shipments,
            metrics=metrics,
            on_error=on_error,
        )
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_thread_id: int | None = None
        self._thread: threading.Thread | None = None
        self._start_lock = threading.Lock()
        self._closed = False
        self._pending_drains: list[asyncio.Task[None]] = []
        if auto_start:
            self.start()

    @classmethod
    def from_settings(
        cls,
        client: StreamClient,
        settings: ShipperSettings | None = None,
        **kwargs: Any,
    ) -> StreamLogger:
        settings = settings or ShipperSettings()
        metrics = kwargs.pop("metrics", None)
        if metrics is None and settings.enable_metrics:
            metrics = MetricsCollector(enabled=True)
        options: dict[str, Any] = {
            "client": client,
            "log_group_name": settings.log_group_name,
            "debounce_time_ms": settings.debounce_time_ms,
            "max_concurrent_shipments": settings.max_concurrent_shipments,
        }
        options.update(kwargs)
        return cls(metrics=metrics, **options)

    @property
    def config(self) -> StreamLoggerConfig:
        return self._config

    @property
    def pipeline(self) -> ShippingPipeline:
        return self._pipeline

    @property
    def shipper(self) -> Shipper:
        return self._shipper

    @property
    def metrics(self) -> MetricsCollector | None:
        return self._metrics

    @property
    def in_thread_mode(self) -> bool:
        return self._thread is not None

    @property
    def is_started(self) -> bool:
        return self._loop is not None

    def start(self) -> None:
        with self._start_lock:
            if self._loop is not None:
                return
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                self._start_thread()
                return
            self._loop = loop
            self._loop_thread_id = threading.get_ident()

    def _start_thread(self) -> None:
        loop = asyncio.new_event_loop()
        ready = threading.Event()

        def _run() -> None:
            asyncio.set_event_loop(loop)
            loop.call_soon(ready.set)
            try:
                loop.run_forever()
            finally:
                loop.close()

        thread = threading.Thread(target=_run, name="logship-pipeline", daemon=True)
        self._loop = loop
        self._thread = thread
        thread.start()
        ready.wait()
        self._loop_thread_id = thread.ident

    def log(self, value: Any) -> None:
        """Queue ``value`` for shipment. Never blocks and never raises."""
        timestamp = now_ms()
        if self._closed:
            diagnostics.warn(
                "logger",
                "log after close dropped",
                _rate_limit_key="log-after-close",
            )
            return
        if self._loop is None:
            self.start()
        loop = self._loop
        assert loop is not None
        try:
            if threading.get_ident() == self._loop_thread_id and loop.is_running():
                self._pipeline.submit(value, timestamp)
            else:
                loop.call_soon_threadsafe(self._pipeline.submit, value, timestamp)
        except RuntimeError as exc:
            # Loop already closed or not running in this thread
            diagnostics.warn(
                "logger",
                "log dropped, pipeline loop unavailable",
                error=str(exc),
                _rate_limit_key="log-loop-unavailable",
            )

    async def stop_and_drain(self) -> None:
        """Ship everything buffered and wait for in-flight shipments."""
        self._closed = True
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        if self._thread is not None:
            fut = asyncio.run_coroutine_threadsafe(self._drain_and_close(), loop)
            await asyncio.wrap_future(fut)
            self._stop_thread()
            return
        if asyncio.get_running_loop() is loop:
            await self._drain_and_close()
        else:
            fut = asyncio.run_coroutine_threadsafe(self._drain_and_close(), loop)
            await asyncio.wrap_future(fut)

    def close(self, timeout: float | None = None) -> None:
        """Synchronous counterpart of ``stop_and_drain``.

        Called from the pipeline's own loop thread this cannot block, so the
        drain is scheduled as a task instead. If that loop has already
        stopped, the drain runs to completion on it right here.
        """
        self._closed = True
        loop = self._loop
        if loop is None:
            return
        if threading.get_ident() == self._loop_thread_id and loop.is_running():
            task = loop.create_task(self._drain_and_close())
            self._pending_drains.append(task)
            task.add_done_callback(self._pending_drains.remove)
            return
        if loop.is_closed():
            return
        if not loop.is_running():
            # A stopped loop would never pick up a threadsafe submission
            if self._thread is None and threading.get_ident() == self._loop_thread_id:
                loop.run_until_complete(self._drain_and_close())
            return
        fut = asyncio.run_coroutine_threadsafe(self._drain_and_close(), loop)
        fut.result(timeout)
        if self._thread is not None:
            self._stop_thread(timeout)

    async def _drain_and_close(self) -> None:
        await self._pipeline.drain()
        self._pipeline.close()

    def _stop_thread(self, timeout: float | None = None) -> None:
        thread, loop = self._thread, self._loop
        if thread is None or loop is None:
            return
        if not loop.is_closed():
            loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout)

    async def __aenter__(self) -> StreamLogger:
        self.start()
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc: BaseException | None,
        _tb: types.TracebackType | None,
    ) -> None:
        await self.stop_and_drain()


__all__ = ["StreamLogger", "StreamLoggerConfig", "parse_logger_config"]
