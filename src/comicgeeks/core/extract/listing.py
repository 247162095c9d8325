"""
Listing extraction for the weekly releases fragment.

The listing endpoint wraps an HTML fragment in JSON. Each issue is an
``li.issue`` inside ``#comic-list-issues``; identifiers and counters
live in data attributes, everything else in child nodes.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import replace
from datetime import date

from lxml.html import HtmlElement

from ..normalize.parsing import (
    extract_title_path,
    normalize_whitespace,
    parse_comic_date,
    parse_int,
    parse_price,
    strip_separator,
)
from .base import (
    DEFAULT_BASE_URL,
    ExtractionContext,
    ExtractionResult,
    Extractor,
    element_text,
    parse_document,
)
from .models import ComicSummary

logger = logging.getLogger(__name__)


ITEM_SELECTOR = "#comic-list-issues li.issue"
TITLE_LINK_SELECTOR = ".title a"
VARIANT_NAME_SELECTOR = ".variant-name"
COVER_IMAGE_SELECTOR = ".cover img"

TITLE_SEPARATOR = " – "


class ListingExtractor(Extractor[list[ComicSummary]]):
    """Extract ``ComicSummary`` entries from a listing fragment."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        today: date | None = None,
    ) -> None:
        """Initialize the listing extractor.

        Args:
            base_url: Site origin used to absolutize relative links
            today: Fallback for unparsable dates (defaults to the current date)
        """
        super().__init__(base_url=base_url)
        self.today = today

    @property
    def name(self) -> str:
        return "listing"

    def extract(self, html: str) -> ExtractionResult[list[ComicSummary]]:
        """Extract every issue in the listing.

        Args:
            html: Listing HTML (the envelope's ``list`` field)

        Returns:
            ExtractionResult whose value is the list of summaries
        """
        context = ExtractionContext(self.base_url)
        doc = parse_document(html)
        if doc is None:
            context.missing(ITEM_SELECTOR)
            return self._result([], context)

        comics: list[ComicSummary] = []
        for item in context.select(doc, ITEM_SELECTOR, track=True):
            try:
                comics.append(self._extract_item(item, context))
            except Exception as e:
                # A single malformed entry must not sink the listing
                context.warn(f"Skipped listing entry: {e}")

        logger.debug(f"Extracted {len(comics)} comics from listing")
        return self._result(comics, context)

    def _extract_item(self, item: HtmlElement, context: ExtractionContext) -> ComicSummary:
        """Build one summary from an ``li.issue`` node."""
        title, variant_name = self._extract_title(item, context)
        href = context.attr(item, TITLE_LINK_SELECTOR, "href")

        price_text = strip_separator(context.text(item, ".price"))

        summary = ComicSummary(
            id=parse_int(item.get("data-comic")),
            title=title,
            publisher=context.text(item, ".publisher"),
            date=parse_comic_date(context.text(item, ".date"), today=self.today),
            price=parse_price(price_text),
            cover_image=context.attr(item, COVER_IMAGE_SELECTOR, "data-src", "src"),
            url=context.url(href),
            pulls=parse_int(item.get("data-pulls")),
            community=parse_int(item.get("data-community")),
            title_path=extract_title_path(href),
        )

        parent_id = (item.get("data-parent") or "").strip()
        if parent_id and parent_id != "0":
            variant_id = (item.get("data-variant") or "").strip() or (item.get("data-comic") or "").strip()
            summary = replace(
                summary,
                variant_id=variant_id or None,
                parent_id=parent_id,
                variant_name=variant_name or None,
            )

        return summary

    def _extract_title(
        self,
        item: HtmlElement,
        context: ExtractionContext,
    ) -> tuple[str, str]:
        """Return the display title and the variant name, if any.

        The variant name sits in a span inside the title link. It is cut
        out of the base title and re-appended after an en-dash.
        """
        link = context.first(item, TITLE_LINK_SELECTOR)
        if link is None:
            return "", ""

        span = context.first(link, VARIANT_NAME_SELECTOR)
        if span is None:
            return element_text(link), ""

        variant_name = element_text(span)
        bare = copy.deepcopy(link)
        for node in bare.cssselect(VARIANT_NAME_SELECTOR):
            node.drop_tree()
        base_title = normalize_whitespace(bare.text_content())

        if not variant_name:
            return base_title, ""
        return f"{base_title}{TITLE_SEPARATOR}{variant_name}", variant_name


def extract_listing(
    html: str,
    *,
    base_url: str = DEFAULT_BASE_URL,
) -> list[ComicSummary]:
    """Extract comic summaries from a listing fragment.

    Args:
        html: Listing HTML
        base_url: Site origin used to absolutize relative links

    Returns:
        Summaries in document order (empty when nothing matched)
    """
    return ListingExtractor(base_url=base_url).extract(html).value
