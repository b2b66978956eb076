"""
Log entry and batch value types.
"""

from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Sequence

_batch_ids = itertools.count(1)


def now_ms() -> int:
    """Wall-clock time in integer milliseconds since the epoch."""
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class LogEntry:
    """A formatted message stamped with its submission time."""

    message: str
    timestamp: int

    def to_event(self) -> dict[str, Any]:
        return {"message": self.message, "timestamp": self.timestamp}


@dataclass(frozen=True)
class Batch(Sequence[LogEntry]):
    """Ordered, immutable group of entries flushed together.

    Order is submission order; the destination expects it to be preserved.
    """

    entries: tuple[LogEntry, ...]
    batch_id: int = field(default_factory=lambda: next(_batch_ids))

    @classmethod
    def of(cls, entries: Iterable[LogEntry]) -> Batch:
        return cls(entries=tuple(entries))

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(self.entries)

    def __getitem__(self, index: Any) -> Any:
        return self.entries[index]


__all__ = ["Batch", "LogEntry", "now_ms"]
