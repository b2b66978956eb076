from __future__ import annotations

import json
from typing import Any

import pytest

from logship.core import diagnostics


def test_disabled_by_default_emits_nothing(capsys: pytest.CaptureFixture[str]) -> None:
    diagnostics.warn("pipeline", "ignored")
    assert capsys.readouterr().err == ""


def test_enabled_via_environment_writes_json_line(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("LOGSHIP_INTERNAL_LOGGING_ENABLED", "true")
    diagnostics.warn("shipper", "stream rolled over", stream="s")
    payload = json.loads(capsys.readouterr().err.strip())
    assert payload["level"] == "WARN"
    assert payload["component"] == "shipper"
    assert payload["message"] == "stream rolled over"
    assert payload["stream"] == "s"


def test_rate_limit_key_suppresses_repeats(
    captured_diagnostics: list[dict[str, Any]],
) -> None:
    for _ in range(3):
        diagnostics.warn("logger", "dropped", _rate_limit_key="drop")
    diagnostics.debug("logger", "other")
    assert [p["message"] for p in captured_diagnostics] == ["dropped", "other"]
    assert captured_diagnostics[1]["level"] == "DEBUG"


def test_writer_errors_are_contained() -> None:
    def _broken(payload: dict[str, Any]) -> None:
        raise OSError("stderr closed")

    diagnostics.set_writer_for_tests(_broken)
    diagnostics.warn("pipeline", "still fine")
