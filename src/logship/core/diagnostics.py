"""
Structured internal diagnostics.

Non-fatal problems inside the pipeline (failed shipments, dropped
submissions, contained callback errors) are reported here instead of being
raised into application code. Output is one JSON object per line on stderr
and is disabled unless ``LOGSHIP_INTERNAL_LOGGING_ENABLED`` is true.
"""

from __future__ import annotations

import sys
import threading
import time
from typing import Any, Callable

import orjson

# Cached at first use; tests reset it through the root conftest
_internal_logging_enabled: bool | None = None
_writer: Callable[[dict[str, Any]], None] | None = None
_rate_limit_lock = threading.Lock()
_rate_limit_last: dict[str, float] = {}
RATE_LIMIT_INTERVAL_SECONDS = 5.0


def _enabled() -> bool:
    global _internal_logging_enabled
    if _internal_logging_enabled is None:
        try:
            from .settings import ShipperSettings

            _internal_logging_enabled = bool(
                ShipperSettings().internal_logging_enabled
            )
        except Exception:
            _internal_logging_enabled = False
    return _internal_logging_enabled


def _default_writer(payload: dict[str, Any]) -> None:
    data = orjson.dumps(payload, default=str)
    sys.stderr.write(data.decode("utf-8") + "\n")
    sys.stderr.flush()


def _allowed(key: str | None) -> bool:
    if key is None:
        return True
    now = time.monotonic()
    with _rate_limit_lock:
        last = _rate_limit_last.get(key)
        if last is not None and now - last < RATE_LIMIT_INTERVAL_SECONDS:
            return False
        _rate_limit_last[key] = now
    return True


def emit(
    level: str,
    component: str,
    message: str,
    *,
    _rate_limit_key: str | None = None,
    **fields: Any,
) -> None:
    if not _enabled() or not _allowed(_rate_limit_key):
        return
    payload: dict[str, Any] = {
        "timestamp": time.time(),
        "level": level,
        "logger": "logship",
        "component": component,
        "message": message,
    }
    payload.update(fields)
    try:
        (_writer or _default_writer)(payload)
    except Exception:
        # Diagnostics must never break the pipeline
        pass


def warn(component: str, message: str, **fields: Any) -> None:
    emit("WARN", component, message, **fields)


def debug(component: str, message: str, **fields: Any) -> None:
    emit("DEBUG", component, message, **fields)


def set_writer_for_tests(writer: Callable[[dict[str, Any]], None] | None) -> None:
    """Route diagnostics to ``writer`` and force them on (tests only)."""
    global _writer, _internal_logging_enabled
    _writer = writer
    _internal_logging_enabled = True if writer is not None else None


def _reset_for_tests() -> None:
    global _writer, _internal_logging_enabled
    _writer = None
    _internal_logging_enabled = None
    with _rate_limit_lock:
        _rate_limit_last.clear()


__all__ = ["debug", "emit", "set_writer_for_tests", "warn"]
