from __future__ import annotations

from .base import (
    AppendRequest,
    AppendResponse,
    CreateGroupRequest,
    CreateStreamRequest,
    StreamClient,
)

__all__ = [
    "AppendRequest",
    "AppendResponse",
    "CreateGroupRequest",
    "CreateStreamRequest",
    "StreamClient",
]
