"""
Detail page extraction.

Builds a ``ComicDetails`` from a full issue page. Every field has a
fallback chain ending in a default, so a page with missing sections
still yields an entity; the anchors that were absent are reported on
the ``ExtractionResult``.
"""

from __future__ import annotations

import copy
import logging
import re
from datetime import date
from typing import Any, Callable, TypeVar

from lxml.html import HtmlElement

from ..normalize.parsing import (
    extract_canonical_id,
    normalize_whitespace,
    parse_comic_date,
    parse_float,
    parse_int,
    parse_price,
)
from .base import (
    DEFAULT_BASE_URL,
    ExtractionContext,
    ExtractionResult,
    Extractor,
    element_text,
    parse_document,
)
from .credits import extract_characters, extract_creators, extract_stories, extract_variants
from .models import ComicDetails

logger = logging.getLogger(__name__)

T = TypeVar("T")


TITLE_SEPARATOR = " – "
FORMAT_SEPARATOR = "·"

_ISSUE_NUMBER = re.compile(r"#(\d+)")
_PAGES = re.compile(r"(\d+)\s*pages?", re.IGNORECASE)
_PRICE = re.compile(r"\$\s*\d[\d,]*(?:\.\d+)?")
_ICON_TOKEN = re.compile(r"^[a-z][a-z_]*\s+")

# Engagement counter label prefix -> field name
COUNTER_LABELS = {
    "pull": "pulls",
    "collect": "collected",
    "read": "read",
    "want": "wanted",
}

EMPTY_IDENTIFIERS = {"", "none", "n/a", "-"}


class DetailExtractor(Extractor[ComicDetails]):
    """Extract a ``ComicDetails`` entity from a detail page."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        today: date | None = None,
    ) -> None:
        """Initialize the detail extractor.

        Args:
            base_url: Site origin used to absolutize relative links
            today: Fallback for an unparsable release date
        """
        super().__init__(base_url=base_url)
        self.today = today

    @property
    def name(self) -> str:
        return "details"

    def extract(self, html: str, url: str | None = None) -> ExtractionResult[ComicDetails]:
        """Extract issue details.

        Args:
            html: Full detail page HTML
            url: URL the page was fetched from, used when the page has
                no canonical link

        Returns:
            ExtractionResult wrapping the best-effort ``ComicDetails``
        """
        context = ExtractionContext(self.base_url)
        doc = parse_document(html)
        if doc is None:
            context.warn("Detail page was empty or unparsable")

        def safe(label: str, fn: Callable[[], T], default: T) -> T:
            if doc is None:
                return default
            try:
                return fn()
            except Exception as e:
                context.warn(f"Failed to extract {label}: {e}")
                return default

        title = safe("title", lambda: self._title(doc, context), "")
        publisher, release_text = safe(
            "intro", lambda: self._intro(doc, context), ("", "")
        )
        canonical = safe("canonical url", lambda: self._canonical_url(doc, context), "")
        format_name, pages, price = safe(
            "format line", lambda: self._format_line(doc, context), ("", 0, 0.0)
        )
        blocks = safe("detail blocks", lambda: self._detail_blocks(doc, context), {})
        rating, rating_count, rating_text = safe(
            "rating", lambda: self._rating(doc, context), (0.0, 0, "")
        )
        counters = safe("counters", lambda: self._counters(doc, context), {})
        series_url, previous_url, next_url = safe(
            "series navigation", lambda: self._series_navigation(doc, context), ("", None, None)
        )

        details = ComicDetails(
            id=extract_canonical_id(canonical or url),
            title=title,
            issue_number=self._issue_number(title),
            publisher=publisher,
            description=safe("description", lambda: self._description(doc, context), ""),
            cover_date=blocks.get("cover_date", ""),
            release_date=parse_comic_date(release_text, today=self.today),
            pages=pages,
            price=price,
            format=format_name,
            upc=blocks.get("upc"),
            isbn=blocks.get("isbn"),
            distributor_sku=blocks.get("distributor_sku", ""),
            final_order_cutoff=blocks.get("final_order_cutoff", ""),
            cover_image=safe("cover image", lambda: self._cover_image(doc, context), ""),
            url=canonical or (url or ""),
            rating=rating,
            rating_count=rating_count,
            rating_text=rating_text,
            pulls=counters.get("pulls", 0),
            collected=counters.get("collected", 0),
            read=counters.get("read", 0),
            wanted=counters.get("wanted", 0),
            series_url=series_url,
            creators=safe("creators", lambda: extract_creators(doc, context), ()),
            characters=safe("characters", lambda: extract_characters(doc, context), ()),
            variants=safe("variants", lambda: extract_variants(doc, context), ()),
            stories=safe("stories", lambda: extract_stories(doc, context), ()),
            previous_issue_url=previous_url,
            next_issue_url=next_url,
        )

        return self._result(details, context)

    # -------------------------------------------------------------------------
    # Header
    # -------------------------------------------------------------------------

    def _title(self, doc: HtmlElement, context: ExtractionContext) -> str:
        """Main heading, with a ``small`` sub-heading joined by an en-dash."""
        heading = context.first(doc, "h1", track=True)
        if heading is None:
            return context.attr(doc, 'meta[property="og:title"]', "content")

        small = context.first(heading, "small")
        if small is None:
            return element_text(heading)

        subtitle = element_text(small)
        bare = copy.deepcopy(heading)
        for node in bare.cssselect("small"):
            node.drop_tree()
        main = normalize_whitespace(bare.text_content())
        if not subtitle:
            return main
        if not main:
            return subtitle
        return f"{main}{TITLE_SEPARATOR}{subtitle}"

    def _issue_number(self, title: str) -> str:
        match = _ISSUE_NUMBER.search(title)
        return match.group(1) if match else ""

    def _intro(self, doc: HtmlElement, context: ExtractionContext) -> tuple[str, str]:
        """Publisher (first intro link) and release-date text (last link)."""
        links = context.select(doc, ".header-intro a", track=True)
        if not links:
            return "", ""
        publisher = element_text(links[0])
        release_text = element_text(links[-1])
        return publisher, release_text

    def _canonical_url(self, doc: HtmlElement, context: ExtractionContext) -> str:
        href = context.attr(doc, 'link[rel="canonical"]', "href", track=True)
        if not href:
            href = context.attr(doc, 'meta[property="og:url"]', "content")
        return context.url(href) if href else ""

    def _description(self, doc: HtmlElement, context: ExtractionContext) -> str:
        paragraphs = [
            text
            for text in (element_text(p) for p in context.select(doc, ".listing-description p"))
            if text
        ]
        if paragraphs:
            return "\n".join(paragraphs)

        text = context.text(doc, ".listing-description", track=True)
        if text:
            return text
        return context.attr(doc, 'meta[name="description"]', "content")

    def _cover_image(self, doc: HtmlElement, context: ExtractionContext) -> str:
        image = context.attr(doc, ".cover-art img", "data-src", "src", track=True)
        if image:
            return context.url(image)
        return context.attr(doc, 'meta[property="og:image"]', "content")

    # -------------------------------------------------------------------------
    # Format / pages / price
    # -------------------------------------------------------------------------

    def _format_line(
        self,
        doc: HtmlElement,
        context: ExtractionContext,
    ) -> tuple[str, int, float]:
        """Parse "Comic · 32 pages · $4.99" into (format, pages, price)."""
        text = context.text(doc, ".format-line", track=True).replace("Â·", FORMAT_SEPARATOR)
        if not text:
            return "", 0, 0.0

        pages_match = _PAGES.search(text)
        price_match = _PRICE.search(text)

        pages = int(pages_match.group(1)) if pages_match else 0
        price = parse_price(price_match.group()) if price_match else 0.0

        if FORMAT_SEPARATOR in text:
            format_name = text.split(FORMAT_SEPARATOR, 1)[0].strip()
        else:
            format_name = _PRICE.sub("", _PAGES.sub("", text)).strip()

        return format_name, pages, price

    # -------------------------------------------------------------------------
    # Labeled detail blocks
    # -------------------------------------------------------------------------

    def _detail_blocks(self, doc: HtmlElement, context: ExtractionContext) -> dict[str, Any]:
        """Dispatch labeled name/value pairs onto detail fields."""
        fields: dict[str, Any] = {}

        for block in context.select(doc, ".details-addtl-block", track=True):
            label = context.text(block, ".name").rstrip(":").strip().lower()
            value = context.text(block, ".value")
            if not label:
                continue

            if label == "cover date":
                fields["cover_date"] = value
            elif label == "upc":
                fields["upc"] = _identifier(value)
            elif label == "isbn":
                fields["isbn"] = _identifier(value)
            elif label in {"distributor sku", "sku", "diamond id"}:
                fields["distributor_sku"] = value
            elif label in {"final order cutoff", "foc", "final order cutoff (foc)"}:
                fields["final_order_cutoff"] = _ICON_TOKEN.sub("", value, count=1)
            else:
                logger.debug(f"Ignoring detail block: {label}")

        return fields

    # -------------------------------------------------------------------------
    # Rating and engagement counters
    # -------------------------------------------------------------------------

    def _rating(
        self,
        doc: HtmlElement,
        context: ExtractionContext,
    ) -> tuple[float, int, str]:
        block = context.first(doc, ".comic-rating", track=True)
        if block is None:
            return 0.0, 0, ""
        return (
            parse_float(context.text(block, ".rating-score")),
            parse_int(context.text(block, ".rating-count")),
            context.text(block, ".rating-text"),
        )

    def _counters(self, doc: HtmlElement, context: ExtractionContext) -> dict[str, int]:
        """Read pulls/collected/read/wanted from labeled icon groups."""
        counters: dict[str, int] = {}

        for group in context.select(doc, ".comic-stats .stat-group", track=True):
            label = context.text(group, ".label").lower()
            if not label:
                icon = context.first(group, "i")
                icon_classes = (icon.get("class") or "") if icon is not None else ""
                label = " ".join(
                    cls[len("icon-"):] for cls in icon_classes.split() if cls.startswith("icon-")
                )

            field_name = next(
                (name for prefix, name in COUNTER_LABELS.items() if label.startswith(prefix)),
                None,
            )
            if field_name is None or field_name in counters:
                continue
            counters[field_name] = parse_int(context.text(group, ".count"))

        return counters

    # -------------------------------------------------------------------------
    # Series navigation
    # -------------------------------------------------------------------------

    def _series_navigation(
        self,
        doc: HtmlElement,
        context: ExtractionContext,
    ) -> tuple[str, str | None, str | None]:
        nav = context.first(doc, ".series-pagination", track=True)
        if nav is None:
            return "", None, None

        series = context.attr(nav, "a.series", "href")
        previous = context.attr(nav, "a.prev", "href")
        following = context.attr(nav, "a.next", "href")

        return (
            context.url(series) if series else "",
            context.url(previous) if previous else None,
            context.url(following) if following else None,
        )


def _identifier(value: str) -> str | None:
    """UPC/ISBN value, or None when the page shows a placeholder."""
    if value.strip().lower() in EMPTY_IDENTIFIERS:
        return None
    return value.strip()


def extract_details(
    html: str,
    *,
    url: str | None = None,
    base_url: str = DEFAULT_BASE_URL,
) -> ComicDetails:
    """Extract issue details from a detail page.

    Args:
        html: Full detail page HTML
        url: URL the page was fetched from (fallback canonical URL)
        base_url: Site origin used to absolutize relative links

    Returns:
        Best-effort ``ComicDetails``; never raises
    """
    return DetailExtractor(base_url=base_url).extract(html, url).value
