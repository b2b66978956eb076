"""
Environment-driven configuration for logship using Pydantic v2 Settings.

Construction-time options for a single logger live in
``logship.core.logger.StreamLoggerConfig``; this module covers the values
that are usually supplied by the deployment environment.
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import (  # type: ignore[import-not-found]
    BaseSettings,
    SettingsConfigDict,
)

DEFAULT_DEBOUNCE_TIME_MS = 5000


class ShipperSettings(BaseSettings):
    """Top-level settings read from ``LOGSHIP_*`` environment variables."""

    log_group_name: str | None = Field(
        default=None,
        description="Destination log group; required before a logger is built",
    )
    debounce_time_ms: int = Field(
        default=DEFAULT_DEBOUNCE_TIME_MS,
        ge=0,
        description="Quiescence window in milliseconds before a batch is flushed",
    )
    max_concurrent_shipments: int | None = Field(
        default=None,
        ge=1,
        description="Optional cap on in-flight shipments; unbounded when unset",
    )
    region: str | None = Field(
        default=None,
        description="AWS region for the CloudWatch Logs client",
    )
    enable_metrics: bool = Field(
        default=False,
        description="Enable Prometheus-compatible metrics",
    )
    # Structured internal diagnostics for non-fatal errors
    internal_logging_enabled: bool = Field(
        default=False,
        description="Emit JSON diagnostics to stderr for internal errors",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOGSHIP_",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("log_group_name")
    @classmethod
    def _strip_group_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None


__all__ = ["DEFAULT_DEBOUNCE_TIME_MS", "ShipperSettings"]
