"""
HTTP retrieval client using httpx.

Fetches listing envelopes and detail pages with:
- A hard per-attempt timeout
- Classified retries with exponential backoff
- A time-boxed in-memory cache for detail pages
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import date
from typing import Any, Awaitable, Callable

import httpx
from pydantic import ValidationError

from ..config.models import ClientConfig, ComicFilters
from ..fetch.cache import TTLCache
from ..fetch.errors import BlockedError, HttpStatusError, ResponseFormatError
from ..fetch.retries import RetryConfig, bounded_attempt, retry_async
from ..normalize.parsing import ComicReference
from .base import ComicsEnvelope, DetailPage

logger = logging.getLogger(__name__)


LISTING_PATH = "/comic/get_comics"

# Status codes that indicate blocking
BLOCKED_STATUS_CODES = {403, 406, 418, 451}

SleepFunc = Callable[[float], Awaitable[Any]]


class ComicGeeksClient:
    """Retrieval client for listing and detail pages.

    Each instance owns its own detail cache, so independent clients
    never share state. Use as an async context manager or call
    ``close()`` when done.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        default_filters: ComicFilters | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFunc = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the client.

        Args:
            config: Client settings (defaults apply when omitted)
            default_filters: Listing filters callers' filters merge over
            transport: httpx transport override (tests use MockTransport)
            sleep: Backoff sleep coroutine (injectable for tests)
            clock: Time source for cache expiry (injectable for tests)
        """
        self.config = config or ClientConfig()
        self.default_filters = default_filters or ComicFilters()
        self.retry_config = RetryConfig(
            max_attempts=self.config.max_attempts,
            backoff_base=self.config.backoff_base_seconds,
            timeout=self.config.timeout_seconds,
        )

        self._transport = transport
        self._sleep = sleep
        self._clock = clock
        self._client: httpx.AsyncClient | None = None
        self._cache: TTLCache[DetailPage] = TTLCache(
            self.config.cache_ttl_seconds,
            clock=clock,
            name="detail-cache",
        )

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def cache(self) -> TTLCache[DetailPage]:
        return self._cache

    def _ensure_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=httpx.Timeout(self.config.timeout_seconds),
                follow_redirects=True,
                transport=self._transport,
                limits=httpx.Limits(
                    max_connections=20,
                    max_keepalive_connections=10,
                ),
            )
        return self._client

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    def build_listing_params(
        self,
        filters: ComicFilters | None = None,
        today: date | None = None,
    ) -> list[tuple[str, str]]:
        """Merge caller filters over the defaults and render query pairs."""
        merged = filters.merged_over(self.default_filters) if filters else self.default_filters
        return merged.to_query(today)

    async def get_comics(self, filters: ComicFilters | None = None) -> ComicsEnvelope:
        """Fetch the listing envelope for a filter set.

        Args:
            filters: Filters merged over the client's defaults

        Returns:
            Parsed envelope; its ``list_html`` holds the listing fragment

        Raises:
            NetworkError: Transport failure after all retries
            HttpStatusError: Non-2xx response
            ResponseFormatError: Body was not a JSON object
        """
        params = self.build_listing_params(filters)
        url = str(httpx.URL(self.config.base_url + LISTING_PATH, params=params))
        headers = {
            "Accept": "application/json",
            "User-Agent": self.config.listing_user_agent,
        }

        async def attempt() -> httpx.Response:
            logger.info(f"Fetching comics: {url}")
            return await self._request(url, headers=headers)

        try:
            response = await retry_async(
                attempt,
                config=self.retry_config,
                sleep=self._sleep,
                context=url,
            )
        except Exception as e:
            logger.error(f"Error fetching comics from {url}: {e}")
            raise

        try:
            payload = response.json()
        except ValueError as e:
            raise ResponseFormatError(
                f"Listing response was not JSON: {e}",
                url=url,
                status_code=response.status_code,
                cause=e,
            ) from e

        if not isinstance(payload, dict):
            raise ResponseFormatError(
                f"Listing response was {type(payload).__name__}, expected an object",
                url=url,
                status_code=response.status_code,
            )

        try:
            return ComicsEnvelope.model_validate(payload)
        except ValidationError as e:
            raise ResponseFormatError(
                "Listing envelope had unexpected field types",
                url=url,
                status_code=response.status_code,
                cause=e,
            ) from e

    # -------------------------------------------------------------------------
    # Detail pages
    # -------------------------------------------------------------------------

    async def get_comic_detail(
        self,
        comic_id: int,
        slug: str,
        variant_id: str | None = None,
    ) -> DetailPage:
        """Fetch a detail page, serving from cache while fresh.

        Args:
            comic_id: Numeric comic id
            slug: Title slug from the comic URL
            variant_id: Optional variant id (``?variant=``)

        Returns:
            DetailPage with the raw HTML and the URL fetched

        Raises:
            NetworkError: Transport failure after all retries
            HttpStatusError: Non-2xx response
        """
        reference = ComicReference(comic_id=comic_id, slug=slug, variant_id=variant_id or None)
        key = reference.cache_key

        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key}", extra={"cache_key": key})
            return cached

        url = f"{self.config.base_url}{reference.path}"
        try:
            page = await self._fetch_detail(url)
        except Exception as e:
            logger.error(f"Error fetching comic {url}: {e}", extra={"comic_id": comic_id, "url": url})
            raise

        self._cache.set(key, page)
        return page

    def _detail_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.config.user_agent,
            "Accept": "*/*",
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        }

    async def _fetch_detail(self, url: str, headers: dict[str, str] | None = None) -> DetailPage:
        """Fetch one detail page through the retry policy (no caching)."""
        request_headers = {**self._detail_headers(), **(headers or {})}

        async def attempt() -> DetailPage:
            logger.info(f"Fetching comic: {url}", extra={"url": url})
            response = await self._request(url, headers=request_headers)
            html = response.text
            logger.info(f"Fetched {len(html)} characters from {url}", extra={"url": url})
            return DetailPage(html=html, url=url)

        return await retry_async(
            attempt,
            config=self.retry_config,
            sleep=self._sleep,
            context=url,
        )

    # -------------------------------------------------------------------------
    # Single attempt
    # -------------------------------------------------------------------------

    async def _request(self, url: str, headers: dict[str, str] | None = None) -> httpx.Response:
        """Issue one GET bounded by the request timeout.

        Raises:
            NetworkError: Transport failure or timeout (retryable)
            HttpStatusError: Non-2xx response (not retryable)
        """
        client = self._ensure_client()

        response = await bounded_attempt(
            lambda: client.get(url, headers=headers),
            timeout=self.config.timeout_seconds,
            url=url,
        )
        self._check_status(response, url)
        return response

    def _check_status(self, response: httpx.Response, url: str) -> None:
        """Raise for non-2xx responses."""
        if response.is_success:
            return

        status = response.status_code
        reason = response.reason_phrase
        logger.error(f"HTTP {status} {reason} for {url}", extra={"url": url})

        error_cls = BlockedError if status in BLOCKED_STATUS_CODES else HttpStatusError
        raise error_cls(
            f"HTTP error! status: {status} {reason}".rstrip(),
            url=url,
            status_code=status,
            reason=reason,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "ComicGeeksClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
