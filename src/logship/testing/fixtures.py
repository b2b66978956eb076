"""
Pytest fixtures for logship tests.

Registered from the root ``conftest.py`` via ``pytest_plugins``.
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

import pytest

from ..core import diagnostics
from .clients import FakeStreamClient


@pytest.fixture
def fake_client() -> FakeStreamClient:
    return FakeStreamClient()


@pytest.fixture
def captured_diagnostics() -> Generator[list[dict[str, Any]], None, None]:
    """Enable diagnostics and collect every emitted payload."""
    captured: list[dict[str, Any]] = []
    diagnostics.set_writer_for_tests(captured.append)
    yield captured
    diagnostics._reset_for_tests()
