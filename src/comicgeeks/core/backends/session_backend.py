"""
Credentialed retrieval client.

Bootstraps a session cookie from the site root, caches it for a short
time, and attaches it to every detail request. A blocked response while
a credential is in use invalidates it and triggers exactly one more
attempt with a fresh credential.
"""

from __future__ import annotations

import logging
from typing import Any

from ..fetch.cache import TTLCache
from ..fetch.errors import BlockedError
from ..fetch.retries import retry_async
from .base import DetailPage
from .http_backend import ComicGeeksClient

logger = logging.getLogger(__name__)


SESSION_KEY = "session"


class SessionComicGeeksClient(ComicGeeksClient):
    """ComicGeeksClient that sends a bootstrapped session cookie."""

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._sessions: TTLCache[str] = TTLCache(
            self.config.session_ttl_seconds,
            clock=self._clock,
            name="session-cache",
        )

    @property
    def sessions(self) -> TTLCache[str]:
        return self._sessions

    async def get_credential(self) -> str | None:
        """Return the cached credential, bootstrapping one when absent."""
        credential = self._sessions.get(SESSION_KEY)
        if credential is not None:
            return credential

        credential = await self._bootstrap_session()
        if credential:
            self._sessions.set(SESSION_KEY, credential)
        return credential

    def invalidate_session(self) -> None:
        """Forget the cached credential and any cookies the client stored."""
        self._sessions.invalidate(SESSION_KEY)
        if self._client is not None:
            self._client.cookies.clear()

    async def _bootstrap_session(self) -> str | None:
        """GET the site root and collect the cookies it sets.

        Returns:
            A Cookie header value, or None when the site set no cookies
        """
        url = f"{self.config.base_url}/"
        headers = {
            "User-Agent": self.config.user_agent,
            "Accept": "text/html",
        }

        async def attempt():
            logger.info(f"Bootstrapping session from {url}", extra={"url": url})
            return await self._request(url, headers=headers)

        response = await retry_async(
            attempt,
            config=self.retry_config,
            sleep=self._sleep,
            context=url,
        )

        pairs = [f"{name}={value}" for name, value in response.cookies.items()]
        if not pairs:
            logger.warning(f"Session bootstrap at {url} returned no cookies")
            return None
        return "; ".join(pairs)

    async def _fetch_detail(self, url: str, headers: dict[str, str] | None = None) -> DetailPage:
        credential = await self.get_credential()
        try:
            return await super()._fetch_detail(url, _with_cookie(headers, credential))
        except BlockedError as e:
            if not credential:
                raise
            logger.warning(
                f"HTTP {e.status_code} with session credential, refreshing once: {url}",
                extra={"url": url},
            )

        self.invalidate_session()
        credential = await self.get_credential()
        return await super()._fetch_detail(url, _with_cookie(headers, credential))


def _with_cookie(headers: dict[str, str] | None, credential: str | None) -> dict[str, str]:
    merged = dict(headers or {})
    if credential:
        merged["Cookie"] = credential
    return merged
