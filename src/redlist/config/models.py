"""Configuration models for redlist-pi.

This module contains the Pydantic models describing the application configuration.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

DEFAULT_VIEW_LIMIT = 10


def parse_view_limit(value: Any) -> int:
    """Parse a view limit, falling back to the default for anything but a positive integer.

    Accepts ints and numeric strings (surrounding whitespace allowed). Missing,
    non-numeric, zero or negative values all yield ``DEFAULT_VIEW_LIMIT``.
    """
    if isinstance(value, bool) or value is None:
        return DEFAULT_VIEW_LIMIT
    if isinstance(value, int):
        parsed = value
    else:
        try:
            parsed = int(str(value).strip())
        except ValueError:
            return DEFAULT_VIEW_LIMIT
    return parsed if parsed > 0 else DEFAULT_VIEW_LIMIT


class LoggingConfig(BaseModel):
    """Structlog-based logging configuration."""

    level: str = "INFO"
    json_logs: bool | None = None  # None = auto-detect based on environment
    include_caller: bool = False  # Include file:line info (useful for debugging)
    extra_fields: dict[str, str] = Field(default_factory=lambda: {"service": "redlist-pi"})


class RedListConfig(BaseModel):
    """Configuration settings for the redlist-pi application."""

    # Catalog service
    api_url: str  # Base URL of the catalog API
    token: str  # API token passed as a query parameter
    request_timeout: float = 30.0  # Seconds, applied by the HTTP client

    # Display
    view_limit: int = DEFAULT_VIEW_LIMIT  # Bounds every list and the measures fan-out

    # Logging settings
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("api_url", "token")
    @classmethod
    def validate_required(cls, v: str) -> str:
        """Reject blank connection settings."""
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Ensure the base URL ends with a slash so endpoint paths join cleanly."""
        return v if v.endswith("/") else f"{v}/"

    @field_validator("view_limit", mode="before")
    @classmethod
    def validate_view_limit(cls, v: Any) -> int:
        return parse_view_limit(v)
