"""
Testing utilities for logship.

Example:
    from logship.testing import FakeStreamClient
    from logship.core.errors import ResourceMissingError

    client = FakeStreamClient(create_stream_outcomes=[ResourceMissingError()])
"""

from .clients import FakeStreamClient, RecordedCall

__all__ = ["FakeStreamClient", "RecordedCall"]
