"""
Stream identity: hourly stream names and the append cursor they own.

A stream name is derived from the local wall-clock hour plus a salt that is
fixed for the lifetime of the process, so everything logged during the same
hour lands in the same stream. The sequence token is only meaningful for the
stream that issued it, so observing a new name drops the held token.
"""

from __future__ import annotations

import secrets
from datetime import datetime


def current_stream_name(now: datetime, salt: str) -> str:
    """Return the stream name for ``now``'s hour bucket.

    Format is ``{day}/{month}/{year}-{hour}-00-{salt}`` where ``month`` is
    zero-based and no field is zero-padded.
    """
    return f"{now.day}/{now.month - 1}/{now.year}-{now.hour}-00-{salt}"


def generate_salt() -> str:
    """Random per-instance discriminator for stream names."""
    return secrets.token_hex(6)


class StreamIdentity:
    """Last observed stream name plus the sequence token issued for it.

    Single-writer cell: only the shipper that owns it reads or replaces the
    token. Concurrent shipments follow last-writer-wins; a rejected token is
    cleared by the append failure path and the next shipment starts over.
    """

    __slots__ = ("_name", "_token")

    def __init__(self) -> None:
        self._name: str | None = None
        self._token: str | None = None

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def sequence_token(self) -> str | None:
        return self._token

    def observe(self, name: str) -> bool:
        """Record ``name`` as current; returns True when it rolled over.

        A rollover resets the held token.
        """
        if name == self._name:
            return False
        self._name = name
        self._token = None
        return True

    def set_token(self, token: str | None) -> None:
        self._token = token or None

    def clear_token(self) -> None:
        self._token = None

    def __repr__(self) -> str:
        return (
            f"StreamIdentity(name={self._name!r}, "
            f"has_token={self._token is not None})"
        )


__all__ = ["StreamIdentity", "current_stream_name", "generate_salt"]
