"""
Conversion of arbitrary log values into transmittable text.

Text passes through untouched. Exceptions are rendered as a structured
diagnostic (type, message, frames, formatted stack). Everything else is
pretty-printed JSON via orjson with a two-space indent.
"""

from __future__ import annotations

import traceback
from typing import Any

import orjson

from . import diagnostics

_JSON_OPTIONS = orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS
_MAX_CAUSE_DEPTH = 5


def serialize_exception(
    exc: BaseException,
    *,
    max_frames: int = 50,
    max_stack_chars: int = 20_000,
    _depth: int = 0,
) -> dict[str, Any]:
    """Build a deterministic mapping describing ``exc`` and its traceback.

    Keys follow the ``error.*`` convention: ``error.type``,
    ``error.message``, ``error.frames`` (innermost last) and
    ``error.stack``. Explicit causes are nested under ``error.cause``.
    """
    te = traceback.TracebackException(
        type(exc), exc, exc.__traceback__, capture_locals=False
    )
    frames = [
        {
            "file": frame.filename,
            "line": frame.lineno,
            "function": frame.name,
            "code": frame.line,
        }
        for frame in list(te.stack)[-max_frames:]
    ]
    stack = "".join(te.format(chain=False))
    data: dict[str, Any] = {
        "error.type": type(exc).__name__,
        "error.message": str(exc),
        "error.frames": frames,
        "error.stack": stack[:max_stack_chars],
    }
    cause = exc.__cause__
    if cause is None and not exc.__suppress_context__:
        cause = exc.__context__
    if cause is not None and _depth < _MAX_CAUSE_DEPTH:
        data["error.cause"] = serialize_exception(
            cause,
            max_frames=max_frames,
            max_stack_chars=max_stack_chars,
            _depth=_depth + 1,
        )
    return data


def _default(obj: Any) -> Any:
    if isinstance(obj, BaseException):
        return serialize_exception(obj)
    if hasattr(obj, "model_dump"):
        return obj.model_dump(exclude_none=True)
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return bytes(obj).decode("utf-8", errors="replace")
    return str(obj)


def format_message(value: Any) -> str:
    """Return the text payload to ship for ``value``."""
    if isinstance(value, str):
        return value
    if isinstance(value, BaseException):
        value = serialize_exception(value)
    try:
        return orjson.dumps(value, default=_default, option=_JSON_OPTIONS).decode(
            "utf-8"
        )
    except (orjson.JSONEncodeError, TypeError) as exc:
        diagnostics.warn(
            "formatter",
            "value not JSON serializable, using repr",
            value_type=type(value).__name__,
            error=str(exc),
            _rate_limit_key="format",
        )
        return repr(value)


__all__ = ["format_message", "serialize_exception"]
