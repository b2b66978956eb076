"""
logship - batch application log messages into append-only log streams.

Provides ``StreamLogger`` for direct construction and ``get_logger()`` for
environment-configured CloudWatch Logs shipping.
"""

from __future__ import annotations

from typing import Any

from ._version import __version__
from .clients.base import StreamClient
from .core.errors import (
    ConfigError,
    LogshipError,
    ResourceAlreadyExistsError,
    ResourceMissingError,
    ShipmentError,
    StreamClientError,
)
from .core.formatter import format_message
from .core.logger import StreamLogger, StreamLoggerConfig
from .core.settings import ShipperSettings

__all__ = [
    "ConfigError",
    "LogshipError",
    "ResourceAlreadyExistsError",
    "ResourceMissingError",
    "ShipmentError",
    "ShipperSettings",
    "StreamClient",
    "StreamClientError",
    "StreamLogger",
    "StreamLoggerConfig",
    "VERSION",
    "__version__",
    "format_message",
    "get_logger",
]

VERSION = __version__


def get_logger(
    client: StreamClient | None = None,
    *,
    settings: ShipperSettings | None = None,
    **kwargs: Any,
) -> StreamLogger:
    """Return a started ``StreamLogger`` configured from the environment.

    @docs:examples
    ```python
    from logship import get_logger

    # LOGSHIP_LOG_GROUP_NAME=/my-app and AWS credentials in the environment
    logger = get_logger()
    logger.log("service started")
    logger.log({"event": "login", "user": 42})
    logger.close()
    ```

    @docs:notes
    - Without ``client`` a boto3-backed CloudWatch Logs client is created
      using ``LOGSHIP_REGION``
    - Keyword arguments override settings (e.g. ``debounce_time_ms=1000``)
    """
    settings = settings or ShipperSettings()
    if client is None:
        from .clients.cloudwatch import CloudWatchStreamClient

        client = CloudWatchStreamClient.from_settings(settings)
    return StreamLogger.from_settings(client, settings, **kwargs)
