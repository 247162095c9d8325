"""
Pydantic configuration models for comicgeeks.

These models provide type-safe configuration with validation for:
- Retrieval client settings (origin, timeouts, retries, caches)
- Listing filters and their defaults
- Logging
"""

from __future__ import annotations

from datetime import date
from enum import IntEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from ..normalize import parsing


DEFAULT_SITE_URL = "https://leagueofcomicgeeks.com"


# =============================================================================
# Enums
# =============================================================================


class ComicFormat(IntEnum):
    """Format codes understood by the listing endpoint."""

    ISSUE = 1
    VARIANT = 2
    TRADE_PAPERBACK = 3
    HARDCOVER = 4
    DIGITAL_CHAPTER = 5
    ANNUAL = 6


DEFAULT_FORMATS = [
    ComicFormat.ISSUE,
    ComicFormat.TRADE_PAPERBACK,
    ComicFormat.HARDCOVER,
    ComicFormat.DIGITAL_CHAPTER,
    ComicFormat.ANNUAL,
]


# =============================================================================
# Listing Filters
# =============================================================================


class ComicFilters(BaseModel):
    """Query filters for the listing endpoint.

    Merge rule: a field the caller sets explicitly replaces the default
    wholesale (lists are replaced, not concatenated); fields left unset
    keep their defaults. ``release_date=None`` means "today" at request time.
    """

    addons: int = Field(
        default=1,
        ge=0,
        description="Include add-on data in the listing fragment",
    )
    list_name: str = Field(
        default="releases",
        description="Listing type (query key 'list')",
    )
    order: str = Field(
        default="alpha-asc",
        description="Sort order",
    )
    formats: list[ComicFormat] = Field(
        default_factory=lambda: list(DEFAULT_FORMATS),
        description="Format codes (query key 'format[]')",
    )
    publishers: list[int] = Field(
        default_factory=list,
        description="Publisher ids (query key 'publisher[]'); empty means all",
    )
    date_type: str = Field(
        default="week",
        description="Date window the listing covers",
    )
    release_date: date | None = Field(
        default=None,
        description="Reference date (query key 'date'); None resolves to today (UTC)",
    )

    def merged_over(self, defaults: ComicFilters) -> ComicFilters:
        """Return ``defaults`` with this instance's explicitly set fields applied."""
        return defaults.model_copy(update=self.model_dump(exclude_unset=True), deep=True)

    def to_query(self, today: date | None = None) -> list[tuple[str, str]]:
        """Render as ordered query pairs, repeating array keys."""
        resolved = self.release_date or today or parsing.utc_today()

        params: list[tuple[str, str]] = [
            ("addons", str(self.addons)),
            ("list", self.list_name),
            ("order", self.order),
        ]
        params.extend(("format[]", str(int(fmt))) for fmt in self.formats)
        params.extend(("publisher[]", str(publisher)) for publisher in self.publishers)
        params.append(("date_type", self.date_type))
        params.append(("date", resolved.isoformat()))
        return params


# =============================================================================
# Client Configuration
# =============================================================================


class ClientConfig(BaseModel):
    """Retrieval client settings."""

    base_url: str = Field(
        default=DEFAULT_SITE_URL,
        description="Origin requests are sent to",
    )
    display_url: str | None = Field(
        default=None,
        description="Origin used for URLs in extracted entities (defaults to base_url)",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300.0,
        description="Upper bound for a single request attempt",
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum attempts per request, including the first",
    )
    backoff_base_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Wait before retry k is backoff_base_seconds * 2^k",
    )
    cache_ttl_seconds: float = Field(
        default=4 * 24 * 60 * 60,
        ge=0,
        description="Lifetime of cached detail pages",
    )
    use_session: bool = Field(
        default=False,
        description="Bootstrap a session cookie and send it with detail requests",
    )
    session_ttl_seconds: float = Field(
        default=30 * 60,
        ge=0,
        description="Lifetime of the cached session credential",
    )
    user_agent: str = Field(
        default="LOCG-API/1.0.0",
        description="User-Agent for detail and session requests",
    )
    listing_user_agent: str = Field(
        default="LOCG-API/1.0.1",
        description="User-Agent for listing requests",
    )

    @field_validator("base_url", "display_url")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str | None:
        """Store origins without a trailing slash."""
        if v is None:
            return v
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v

    @model_validator(mode="after")
    def default_display_url(self) -> ClientConfig:
        """Fall back to the fetch origin for display URLs."""
        if not self.display_url:
            self.display_url = self.base_url
        return self

    @property
    def public_url(self) -> str:
        return self.display_url or self.base_url


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    file: Path | None = Field(
        default=None,
        description="Log file path",
    )
    json_format: bool = Field(
        default=True,
        description="Use JSON format for file logs",
    )
    rich_console: bool = Field(
        default=True,
        description="Use Rich for console output",
    )

    @field_validator("level")
    @classmethod
    def valid_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


# =============================================================================
# Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """Root application configuration.

    This is the main configuration object loaded from app.yaml.
    """

    client: ClientConfig = Field(default_factory=ClientConfig)
    filters: ComicFilters = Field(default_factory=ComicFilters)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def to_yaml_dict(self) -> dict[str, Any]:
        """Plain data suitable for writing back to YAML."""
        return self.model_dump(mode="json", exclude_none=True)
