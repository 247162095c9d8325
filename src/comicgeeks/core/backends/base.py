"""
Retrieval base classes and data structures.

Defines what the retrieval client returns. Errors live in core.fetch.errors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetailPage:
    """Raw detail page markup and the URL it was fetched from."""

    html: str
    url: str


class ListingConfigurator(BaseModel):
    """Echo of the query the listing endpoint actually ran.

    Only the fields the client reads are modeled; the rest are ignored.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    list_name: str | None = Field(default=None, alias="list")
    order: str | None = None
    date_type: str | None = None
    date: str | None = None
    formats: list[str] = Field(default_factory=list, alias="format")
    page: int | None = None
    per_page: int | None = None
    result_count: int | None = None


class ComicsEnvelope(BaseModel):
    """JSON envelope returned by the listing endpoint.

    ``list_html`` holds the HTML fragment with the actual issues. The
    configurator is only an echo of the query, so a configurator that
    does not fit the model is dropped instead of failing the listing.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    list_html: str = Field(default="", alias="list")
    count: int = 0
    statbar: str = ""
    configurator: ListingConfigurator | None = None
    filters_publishers: str = ""

    @field_validator("configurator", mode="wrap")
    @classmethod
    def lenient_configurator(
        cls, value: Any, handler: ValidatorFunctionWrapHandler
    ) -> ListingConfigurator | None:
        try:
            return handler(value)
        except ValidationError:
            logger.debug("Ignoring listing configurator with unexpected shape")
            return None
