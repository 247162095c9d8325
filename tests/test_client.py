"""Tests for the retrieval client."""

from datetime import date

import httpx
import orjson
import pytest

from comicgeeks.core.backends import ComicGeeksClient, SessionComicGeeksClient, create_client
from comicgeeks.core.config import ClientConfig, ComicFilters, ComicFormat
from comicgeeks.core.fetch.cache import DETAIL_CACHE_TTL_SECONDS
from comicgeeks.core.fetch.errors import BlockedError, HttpStatusError, NetworkError, ResponseFormatError

BASE_URL = "https://leagueofcomicgeeks.com"
DETAIL_PATH = "/comic/6731715/one-world-under-doom-6"


def envelope(list_html: str) -> bytes:
    return orjson.dumps({"list": list_html, "count": 2, "configurator": {"list": "releases", "page": 1}})


class TestListingParams:
    """Tests for listing query construction."""

    def test_defaults(self) -> None:
        """Test the default query pairs in order."""
        client = ComicGeeksClient(ClientConfig())
        params = client.build_listing_params(today=date(2025, 8, 6))

        assert params == [
            ("addons", "1"),
            ("list", "releases"),
            ("order", "alpha-asc"),
            ("format[]", "1"),
            ("format[]", "3"),
            ("format[]", "4"),
            ("format[]", "5"),
            ("format[]", "6"),
            ("date_type", "week"),
            ("date", "2025-08-06"),
        ]

    def test_caller_filters_replace_defaults(self) -> None:
        """Test that explicitly set fields win and lists are replaced wholesale."""
        client = ComicGeeksClient(ClientConfig())
        filters = ComicFilters(formats=[ComicFormat.ISSUE], publishers=[2, 12])
        params = client.build_listing_params(filters, today=date(2025, 8, 6))

        assert params.count(("format[]", "1")) == 1
        assert ("format[]", "3") not in params
        assert ("publisher[]", "2") in params
        assert ("publisher[]", "12") in params
        assert ("order", "alpha-asc") in params

    def test_client_default_filters(self) -> None:
        """Test that configured default filters are the merge base."""
        client = ComicGeeksClient(
            ClientConfig(),
            default_filters=ComicFilters(order="pulls-desc", publishers=[2]),
        )
        params = client.build_listing_params(ComicFilters(release_date=date(2025, 1, 1)))

        assert ("order", "pulls-desc") in params
        assert ("publisher[]", "2") in params
        assert ("date", "2025-01-01") in params


class TestGetComics:
    """Tests for ComicGeeksClient.get_comics."""

    @pytest.mark.asyncio
    async def test_returns_envelope(self, make_client, listing_html: str) -> None:
        """Test the JSON envelope is parsed and headers are sent."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=envelope(listing_html))

        async with make_client(handler) as client:
            result = await client.get_comics()

        assert result.list_html == listing_html
        assert result.count == 2
        assert result.configurator.list_name == "releases"

        request = seen[0]
        assert request.url.path == "/comic/get_comics"
        assert request.url.params.get_list("format[]") == ["1", "3", "4", "5", "6"]
        assert request.headers["accept"] == "application/json"
        assert request.headers["user-agent"] == "LOCG-API/1.0.1"

    @pytest.mark.asyncio
    async def test_status_error(self, make_client, fake_sleep) -> None:
        """Test that a non-2xx listing response raises without retrying."""
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(500)

        async with make_client(handler) as client:
            with pytest.raises(HttpStatusError) as exc_info:
                await client.get_comics()

        assert exc_info.value.status_code == 500
        assert calls == 1
        assert fake_sleep.calls == []

    @pytest.mark.asyncio
    async def test_invalid_json(self, make_client) -> None:
        """Test that a non-JSON body is a format error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>maintenance</html>")

        async with make_client(handler) as client:
            with pytest.raises(ResponseFormatError):
                await client.get_comics()

    @pytest.mark.asyncio
    async def test_non_object_json(self, make_client) -> None:
        """Test that a JSON array is a format error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"[]")

        async with make_client(handler) as client:
            with pytest.raises(ResponseFormatError):
                await client.get_comics()

    @pytest.mark.asyncio
    async def test_odd_configurator_ignored(self, make_client, listing_html: str) -> None:
        """Test that an unexpected configurator shape does not fail the listing."""
        body = orjson.dumps({"list": listing_html, "count": 2, "configurator": {"format": [1, 3], "page": ""}})

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=body)

        async with make_client(handler) as client:
            result = await client.get_comics()

        assert result.list_html == listing_html
        assert result.count == 2
        assert result.configurator is None

    @pytest.mark.asyncio
    async def test_list_field_still_checked(self, make_client) -> None:
        """Test that a non-string list fragment is still a format error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=orjson.dumps({"list": {"html": "<ul></ul>"}}))

        async with make_client(handler) as client:
            with pytest.raises(ResponseFormatError):
                await client.get_comics()

    @pytest.mark.asyncio
    async def test_listing_retried_on_network_error(self, make_client, fake_sleep, listing_html: str) -> None:
        """Test that transient listing failures are retried."""
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise httpx.ConnectError("Connection reset by peer", request=request)
            return httpx.Response(200, content=envelope(listing_html))

        async with make_client(handler) as client:
            result = await client.get_comics()

        assert result.count == 2
        assert calls == 2
        assert fake_sleep.calls == [1.0]


class TestGetComicDetail:
    """Tests for ComicGeeksClient.get_comic_detail."""

    @pytest.mark.asyncio
    async def test_fetch_and_headers(self, make_client, detail_html: str) -> None:
        """Test the detail URL, headers and returned page."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text=detail_html)

        async with make_client(handler) as client:
            page = await client.get_comic_detail(6731715, "one-world-under-doom-6")

        assert page.html == detail_html
        assert page.url == f"{BASE_URL}{DETAIL_PATH}"
        assert seen[0].headers["cache-control"] == "no-cache"
        assert seen[0].headers["user-agent"] == "LOCG-API/1.0.0"

    @pytest.mark.asyncio
    async def test_variant_query(self, make_client) -> None:
        """Test that the variant id is sent as a query parameter."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="<html></html>")

        async with make_client(handler) as client:
            page = await client.get_comic_detail(6731715, "one-world-under-doom-6", "8244122")

        assert seen[0].url.params["variant"] == "8244122"
        assert page.url == f"{BASE_URL}{DETAIL_PATH}?variant=8244122"

    @pytest.mark.asyncio
    async def test_cache_hit_skips_network(self, make_client) -> None:
        """Test that a fresh cached page is served without a second request."""
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, text="<html>v1</html>")

        async with make_client(handler) as client:
            first = await client.get_comic_detail(1, "x")
            second = await client.get_comic_detail(1, "x")

        assert calls == 1
        assert second == first

    @pytest.mark.asyncio
    async def test_variants_cached_separately(self, make_client) -> None:
        """Test that the variant id is part of the cache key."""
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, text="<html></html>")

        async with make_client(handler) as client:
            await client.get_comic_detail(1, "x")
            await client.get_comic_detail(1, "x", "2")

        assert calls == 2
        assert "1:x" in client.cache
        assert "1:x:2" in client.cache

    @pytest.mark.asyncio
    async def test_expired_entry_refetched_once(self, make_client, fake_clock) -> None:
        """Test that reading after the TTL triggers exactly one new request and overwrites."""
        bodies = iter(["<html>v1</html>", "<html>v2</html>"])
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, text=next(bodies))

        async with make_client(handler) as client:
            await client.get_comic_detail(1, "x")
            fake_clock.advance(DETAIL_CACHE_TTL_SECONDS + 1)
            refreshed = await client.get_comic_detail(1, "x")
            again = await client.get_comic_detail(1, "x")

        assert calls == 2
        assert refreshed.html == "<html>v2</html>"
        assert again.html == "<html>v2</html>"

    @pytest.mark.asyncio
    async def test_not_found_not_cached(self, make_client, fake_sleep) -> None:
        """Test that a 404 raises immediately and leaves the cache empty."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        async with make_client(handler) as client:
            with pytest.raises(HttpStatusError) as exc_info:
                await client.get_comic_detail(1, "missing")

        assert exc_info.value.status_code == 404
        assert str(exc_info.value).startswith("HTTP error! status: 404")
        assert len(client.cache) == 0
        assert fake_sleep.calls == []

    @pytest.mark.asyncio
    async def test_forbidden_is_blocked_error(self, make_client) -> None:
        """Test that 403 maps to BlockedError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403)

        async with make_client(handler) as client:
            with pytest.raises(BlockedError):
                await client.get_comic_detail(1, "x")

    @pytest.mark.asyncio
    async def test_dns_failures_retried_then_raised(self, make_client, fake_sleep) -> None:
        """Test that persistent DNS failures exhaust all attempts."""
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            raise httpx.ConnectError("getaddrinfo EAI_AGAIN leagueofcomicgeeks.com", request=request)

        async with make_client(handler) as client:
            with pytest.raises(NetworkError) as exc_info:
                await client.get_comic_detail(1, "x")

        assert exc_info.value.kind == NetworkError.DNS
        assert calls == 3
        assert fake_sleep.calls == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_clients_do_not_share_cache(self, make_client) -> None:
        """Test that each client owns its cache."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html></html>")

        async with make_client(handler) as first, make_client(handler) as second:
            await first.get_comic_detail(1, "x")
            assert "1:x" in first.cache
            assert "1:x" not in second.cache


class TestCreateClient:
    """Tests for the client factory."""

    def test_plain_client(self) -> None:
        """Test the default variant."""
        client = create_client(ClientConfig())
        assert type(client) is ComicGeeksClient

    def test_session_client(self) -> None:
        """Test that use_session selects the credentialed client."""
        client = create_client(ClientConfig(use_session=True))
        assert isinstance(client, SessionComicGeeksClient)
