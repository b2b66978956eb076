from __future__ import annotations

import pytest
from pydantic import ValidationError

from logship.core.settings import ShipperSettings


def test_defaults() -> None:
    settings = ShipperSettings()
    assert settings.debounce_time_ms == 5000
    assert settings.max_concurrent_shipments is None
    assert settings.enable_metrics is False
    assert settings.internal_logging_enabled is False


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOGSHIP_LOG_GROUP_NAME", "  /svc/api  ")
    monkeypatch.setenv("LOGSHIP_REGION", "us-west-2")
    monkeypatch.setenv("LOGSHIP_MAX_CONCURRENT_SHIPMENTS", "4")
    settings = ShipperSettings()
    assert settings.log_group_name == "/svc/api"
    assert settings.region == "us-west-2"
    assert settings.max_concurrent_shipments == 4


def test_blank_group_name_becomes_none() -> None:
    assert ShipperSettings(log_group_name="  ").log_group_name is None


def test_invalid_values_rejected() -> None:
    with pytest.raises(ValidationError):
        ShipperSettings(debounce_time_ms=-1)
    with pytest.raises(ValidationError):
        ShipperSettings(max_concurrent_shipments=0)
