"""Retrieval clients for listing and detail pages."""

from __future__ import annotations

from typing import Any

from ..config.models import ClientConfig
from .base import ComicsEnvelope, DetailPage, ListingConfigurator
from .http_backend import BLOCKED_STATUS_CODES, ComicGeeksClient
from .session_backend import SessionComicGeeksClient


def create_client(config: ClientConfig | None = None, **kwargs: Any) -> ComicGeeksClient:
    """Build the client variant the configuration asks for.

    Args:
        config: Client settings; ``use_session`` selects the credentialed client
        **kwargs: Passed through to the client constructor

    Returns:
        ComicGeeksClient or SessionComicGeeksClient
    """
    config = config or ClientConfig()
    if config.use_session:
        return SessionComicGeeksClient(config, **kwargs)
    return ComicGeeksClient(config, **kwargs)


__all__ = [
    # Result types
    "ComicsEnvelope",
    "DetailPage",
    "ListingConfigurator",
    # Clients
    "BLOCKED_STATUS_CODES",
    "ComicGeeksClient",
    "SessionComicGeeksClient",
    "create_client",
]
