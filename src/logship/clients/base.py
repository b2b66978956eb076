"""
Interface to the remote append-only log-stream service.

Requests mirror the CloudWatch Logs parameter names so adapters can forward
``to_params()`` unchanged. Clients report failures by raising
``StreamClientError`` subclasses; ``ResourceMissingError`` is the
"ResourceNotFoundException" condition.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

from ..core.events import LogEntry


@dataclass(frozen=True)
class AppendRequest:
    group_name: str
    stream_name: str
    entries: Sequence[LogEntry]
    sequence_token: str | None = None

    def to_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "logGroupName": self.group_name,
            "logStreamName": self.stream_name,
            "logEvents": [entry.to_event() for entry in self.entries],
        }
        # Absent and empty tokens mean different things to the destination
        if self.sequence_token is not None:
            params["sequenceToken"] = self.sequence_token
        return params


@dataclass(frozen=True)
class AppendResponse:
    next_sequence_token: str | None = None
    rejected_info: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_params(cls, response: Mapping[str, Any] | None) -> AppendResponse:
        response = response or {}
        return cls(
            next_sequence_token=response.get("nextSequenceToken"),
            rejected_info=dict(response.get("rejectedLogEventsInfo") or {}),
        )

    def rejected_count(self, batch_size: int) -> int:
        """Number of events in the appended batch the destination dropped."""
        info = self.rejected_info
        rejected: set[int] = set()
        for key in ("tooOldLogEventEndIndex", "expiredLogEventEndIndex"):
            if info.get(key) is not None:
                rejected.update(range(min(int(info[key]), batch_size)))
        if info.get("tooNewLogEventStartIndex") is not None:
            rejected.update(range(int(info["tooNewLogEventStartIndex"]), batch_size))
        return len(rejected)


@dataclass(frozen=True)
class CreateStreamRequest:
    group_name: str
    stream_name: str

    def to_params(self) -> dict[str, Any]:
        return {"logGroupName": self.group_name, "logStreamName": self.stream_name}


@dataclass(frozen=True)
class CreateGroupRequest:
    group_name: str

    def to_params(self) -> dict[str, Any]:
        return {"logGroupName": self.group_name}


@runtime_checkable
class StreamClient(Protocol):
    """Async client for the three primitive stream operations."""

    async def append_events(
        self, request: AppendRequest
    ) -> AppendResponse:  # pragma: no cover - structural protocol
        ...

    async def create_stream(
        self, request: CreateStreamRequest
    ) -> None:  # pragma: no cover - structural protocol
        ...

    async def create_group(
        self, request: CreateGroupRequest
    ) -> None:  # pragma: no cover - structural protocol
        ...


__all__ = [
    "AppendRequest",
    "AppendResponse",
    "CreateGroupRequest",
    "CreateStreamRequest",
    "StreamClient",
]
