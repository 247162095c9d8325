"""
Comic service orchestrator.

Coordinates the retrieval and extraction workflow: fetch → normalize →
extract. Batch detail lookups settle every item and report failures
per item instead of failing the whole batch.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable

from comicgeeks.core.backends.http_backend import ComicGeeksClient
from comicgeeks.core.config.models import ComicFilters
from comicgeeks.core.extract.base import ExtractionResult
from comicgeeks.core.extract.details import DetailExtractor
from comicgeeks.core.extract.listing import ListingExtractor
from comicgeeks.core.extract.models import ComicDetails, ComicSummary
from comicgeeks.core.fetch.errors import RetrievalError
from comicgeeks.core.logging import get_contextual_logger
from comicgeeks.core.normalize.parsing import ComicReference


logger = logging.getLogger(__name__)

# Status reported for failures that carry no HTTP status
DEFAULT_FAILURE_STATUS = 500


@dataclass(frozen=True)
class DetailFailure:
    """Why one item of a batch could not be fetched."""

    comic_id: int
    slug: str
    variant_id: str | None
    status: int
    message: str

    @classmethod
    def from_exception(cls, reference: ComicReference, error: BaseException) -> "DetailFailure":
        status = getattr(error, "status_code", None) or DEFAULT_FAILURE_STATUS
        return cls(
            comic_id=reference.comic_id,
            slug=reference.slug,
            variant_id=reference.variant_id,
            status=status,
            message=str(error) or type(error).__name__,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "comicId": self.comic_id,
            "title": self.slug,
            "variantId": self.variant_id,
            "status": self.status,
            "error": self.message,
        }


@dataclass(frozen=True)
class DetailOutcome:
    """Settled result of one batch item: details or a failure, never both."""

    reference: ComicReference
    details: ComicDetails | None = None
    error: DetailFailure | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ComicService:
    """Fetch-and-extract facade over a retrieval client.

    Extracted URLs are absolutized against the client's display origin.
    """

    def __init__(
        self,
        client: ComicGeeksClient,
        *,
        base_url: str | None = None,
        today: date | None = None,
    ):
        self.client = client
        self.base_url = base_url or client.config.public_url
        self.listing_extractor = ListingExtractor(base_url=self.base_url, today=today)
        self.detail_extractor = DetailExtractor(base_url=self.base_url, today=today)

    async def releases(self, filters: ComicFilters | None = None) -> list[ComicSummary]:
        """Fetch a listing and extract its summaries.

        Raises:
            RetrievalError: When the listing cannot be fetched
        """
        envelope = await self.client.get_comics(filters)
        result = self.listing_extractor.extract(envelope.list_html)
        self._report(result, "listing")
        return result.value

    async def details(
        self,
        comic_id: int,
        slug: str,
        variant_id: str | None = None,
    ) -> ComicDetails:
        """Fetch a detail page and extract it.

        The fetched URL stands in for the canonical URL when the page
        has none.

        Raises:
            RetrievalError: When the page cannot be fetched
        """
        page = await self.client.get_comic_detail(comic_id, slug, variant_id)
        result = self.detail_extractor.extract(page.html, page.url)
        self._report(result, page.url, comic_id=comic_id)
        return result.value

    async def details_many(self, references: Iterable[ComicReference]) -> list[DetailOutcome]:
        """Fetch several detail pages concurrently and settle all of them.

        Args:
            references: Comics to fetch

        Returns:
            One outcome per reference, in input order
        """
        references = list(references)
        results = await asyncio.gather(
            *(self.details(ref.comic_id, ref.slug, ref.variant_id) for ref in references),
            return_exceptions=True,
        )

        outcomes: list[DetailOutcome] = []
        for reference, result in zip(references, results):
            if isinstance(result, ComicDetails):
                outcomes.append(DetailOutcome(reference=reference, details=result))
                continue
            if not isinstance(result, Exception):
                raise result

            if not isinstance(result, RetrievalError):
                logger.exception(
                    f"Unexpected error for comic {reference.comic_id}",
                    exc_info=result,
                    extra={"comic_id": reference.comic_id},
                )
            failure = DetailFailure.from_exception(reference, result)
            outcomes.append(DetailOutcome(reference=reference, error=failure))

        failed = sum(1 for outcome in outcomes if not outcome.ok)
        logger.info(f"Batch settled: {len(outcomes) - failed} ok, {failed} failed")
        return outcomes

    def _report(self, result: ExtractionResult[Any], source: str, comic_id: int | None = None) -> None:
        log = get_contextual_logger(__name__.removeprefix("comicgeeks."), comic_id=comic_id)
        if result.missing_anchors:
            log.debug(f"Missing anchors in {source}: {', '.join(result.missing_anchors)}")
        for warning in result.warnings:
            log.warning(f"{source}: {warning}")
