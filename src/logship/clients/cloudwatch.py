"""
AWS CloudWatch Logs adapter for ``StreamClient``.

boto3 is synchronous, so each call runs in a worker thread via
``asyncio.to_thread``. botocore ``ClientError`` codes are translated into
the logship error family.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.errors import (
    ErrorCategory,
    ResourceAlreadyExistsError,
    ResourceMissingError,
    StreamClientError,
)
from ..core.settings import ShipperSettings
from .base import (
    AppendRequest,
    AppendResponse,
    CreateGroupRequest,
    CreateStreamRequest,
)


def translate_client_error(exc: ClientError, *, operation: str) -> StreamClientError:
    error = exc.response.get("Error", {})
    code = error.get("Code") or None
    message = error.get("Message") or str(exc)
    if code == "ResourceNotFoundException":
        return ResourceMissingError(message, cause=exc, operation=operation)
    if code == "ResourceAlreadyExistsException":
        return ResourceAlreadyExistsError(message, cause=exc, operation=operation)
    return StreamClientError(message, code=code, cause=exc, operation=operation)


class CloudWatchStreamClient:
    """``StreamClient`` backed by a boto3 ``logs`` client."""

    name = "cloudwatch"

    def __init__(self, client: Any = None, *, region: str | None = None) -> None:
        if client is None:
            client = boto3.client("logs", region_name=region)
        self._client = client

    @classmethod
    def from_settings(
        cls, settings: ShipperSettings | None = None
    ) -> CloudWatchStreamClient:
        settings = settings or ShipperSettings()
        return cls(region=settings.region)

    async def _call(self, operation: str, fn: Callable[..., Any], **params: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, **params)
        except ClientError as exc:
            raise translate_client_error(exc, operation=operation) from exc
        except BotoCoreError as exc:
            raise StreamClientError(
                str(exc),
                category=ErrorCategory.NETWORK,
                cause=exc,
                operation=operation,
            ) from exc

    async def append_events(self, request: AppendRequest) -> AppendResponse:
        response = await self._call(
            "put_log_events", self._client.put_log_events, **request.to_params()
        )
        return AppendResponse.from_params(response)

    async def create_stream(self, request: CreateStreamRequest) -> None:
        await self._call(
            "create_log_stream", self._client.create_log_stream, **request.to_params()
        )

    async def create_group(self, request: CreateGroupRequest) -> None:
        await self._call(
            "create_log_group", self._client.create_log_group, **request.to_params()
        )


__all__ = ["CloudWatchStreamClient", "translate_client_error"]
