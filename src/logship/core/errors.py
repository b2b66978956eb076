"""
Error taxonomy for the shipping pipeline.

All library errors derive from ``LogshipError`` and carry a category plus an
optional cause. Client adapters translate destination failures into the
``StreamClientError`` family so the shipper can tell a missing resource apart
from every other failure without knowing which SDK produced it.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    CONFIG = "config"
    STREAM = "stream"
    NETWORK = "network"
    SYSTEM = "system"


class LogshipError(Exception):
    """Base class for errors raised by logship."""

    default_category = ErrorCategory.SYSTEM

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        cause: BaseException | None = None,
        **context: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.cause = cause
        self.context: dict[str, Any] = dict(context)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if self.context:
            data["context"] = dict(self.context)
        if self.cause is not None:
            data["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return data


class ConfigError(LogshipError):
    """A required construction option is missing or invalid."""

    default_category = ErrorCategory.CONFIG


class StreamClientError(LogshipError):
    """Failure reported by the remote log-stream client."""

    default_category = ErrorCategory.STREAM

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        category: ErrorCategory | None = None,
        cause: BaseException | None = None,
        **context: Any,
    ) -> None:
        super().__init__(message, category=category, cause=cause, **context)
        self.code = code


class ResourceMissingError(StreamClientError):
    """The target group or stream does not exist."""

    def __init__(
        self,
        message: str = "resource not found",
        *,
        code: str | None = "ResourceNotFoundException",
        category: ErrorCategory | None = None,
        cause: BaseException | None = None,
        **context: Any,
    ) -> None:
        super().__init__(
            message, code=code, category=category, cause=cause, **context
        )


class ResourceAlreadyExistsError(StreamClientError):
    """The group or stream being created is already present."""

    def __init__(
        self,
        message: str = "resource already exists",
        *,
        code: str | None = "ResourceAlreadyExistsException",
        category: ErrorCategory | None = None,
        cause: BaseException | None = None,
        **context: Any,
    ) -> None:
        super().__init__(
            message, code=code, category=category, cause=cause, **context
        )


class ShipmentError(LogshipError):
    """Terminal outcome of a single batch shipment."""

    default_category = ErrorCategory.STREAM

    def __init__(
        self,
        message: str,
        *,
        stage: str,
        stream_name: str | None = None,
        batch_size: int = 0,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            message,
            cause=cause,
            stage=stage,
            stream_name=stream_name,
            batch_size=batch_size,
        )
        self.stage = stage
        self.stream_name = stream_name
        self.batch_size = batch_size

    @property
    def code(self) -> str | None:
        return getattr(self.cause, "code", None)


def error_code(exc: BaseException) -> str | None:
    """Best-effort extraction of a destination error code."""
    code = getattr(exc, "code", None)
    if isinstance(code, str) and code:
        return code
    return None


def is_resource_missing(exc: BaseException) -> bool:
    if isinstance(exc, ResourceMissingError):
        return True
    return error_code(exc) == "ResourceNotFoundException"


def is_already_exists(exc: BaseException) -> bool:
    if isinstance(exc, ResourceAlreadyExistsError):
        return True
    return error_code(exc) == "ResourceAlreadyExistsException"
