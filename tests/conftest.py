"""Pytest configuration and fixtures."""

import logging
from datetime import date
from pathlib import Path
from typing import Callable, Iterator

import httpx
import pytest

from comicgeeks.core.backends import ComicGeeksClient, SessionComicGeeksClient
from comicgeeks.core.config import ClientConfig

FIXTURES_DIR = Path(__file__).parent / "fixtures"

BASE_URL = "https://leagueofcomicgeeks.com"
TODAY = date(2025, 8, 4)


class FakeSleep:
    """Records backoff delays instead of waiting."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.calls)


class FakeClock:
    """Manually advanced time source for cache expiry."""

    def __init__(self, start: float = 1_750_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def listing_html() -> str:
    """Listing fragment with one issue and one variant."""
    return (FIXTURES_DIR / "listing.html").read_text(encoding="utf-8")


@pytest.fixture
def detail_html() -> str:
    """Full detail page for One World Under Doom #6."""
    return (FIXTURES_DIR / "detail.html").read_text(encoding="utf-8")


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client_config() -> ClientConfig:
    return ClientConfig(base_url=BASE_URL)


@pytest.fixture
def make_client(
    client_config: ClientConfig,
    fake_sleep: FakeSleep,
    fake_clock: FakeClock,
) -> Callable[..., ComicGeeksClient]:
    """Build a client whose requests go to ``handler`` instead of the network."""

    def factory(
        handler: Callable[[httpx.Request], httpx.Response],
        *,
        session: bool = False,
        config: ClientConfig | None = None,
        **kwargs,
    ) -> ComicGeeksClient:
        client_cls = SessionComicGeeksClient if session else ComicGeeksClient
        return client_cls(
            config or client_config,
            transport=httpx.MockTransport(handler),
            sleep=fake_sleep,
            clock=fake_clock,
            **kwargs,
        )

    return factory


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Undo setup_logging() calls made by CLI runs."""
    yield
    logger = logging.getLogger("comicgeeks")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
