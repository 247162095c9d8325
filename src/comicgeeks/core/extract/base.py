"""
Extraction base classes and shared selector helpers.

Extraction never raises. Missing or unparsable fields fall back to
defaults; the anchors that could not be found are recorded on the
``ExtractionResult`` so markup drift shows up in tests and logs.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from lxml import html as lxml_html
from lxml.html import HtmlElement

from ..normalize.html import normalize_html
from ..normalize.parsing import absolute_url, normalize_whitespace

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BASE_URL = "https://leagueofcomicgeeks.com"


@dataclass
class ExtractionResult(Generic[T]):
    """Result of an extraction operation."""

    value: T

    # Structural anchors that matched nothing (markup drift signal)
    missing_anchors: list[str] = field(default_factory=list)

    # Non-fatal problems (unparsable values, dropped sub-entities)
    warnings: list[str] = field(default_factory=list)

    extraction_method: str | None = None

    @property
    def complete(self) -> bool:
        """True when every anchor the extractor looked for was present."""
        return not self.missing_anchors


class ExtractionContext:
    """Selector helpers bound to one document and one extraction run.

    Wraps lxml/cssselect so callers read fields without guarding every
    lookup, and records anchors that came back empty.
    """

    def __init__(self, base_url: str = DEFAULT_BASE_URL) -> None:
        self.base_url = base_url
        self.missing_anchors: list[str] = []
        self.warnings: list[str] = []

    def missing(self, anchor: str) -> None:
        """Record a structural anchor that matched nothing."""
        if anchor not in self.missing_anchors:
            self.missing_anchors.append(anchor)
            logger.debug(f"Structural anchor not found: {anchor}")

    def warn(self, message: str) -> None:
        self.warnings.append(message)
        logger.debug(message)

    def select(
        self,
        node: HtmlElement | None,
        selector: str,
        *,
        track: bool = False,
    ) -> list[HtmlElement]:
        """Select elements with a CSS selector, never raising."""
        if node is None:
            if track:
                self.missing(selector)
            return []
        try:
            elements = list(node.cssselect(selector))
        except Exception:
            elements = []
        if not elements and track:
            self.missing(selector)
        return elements

    def first(
        self,
        node: HtmlElement | None,
        selector: str,
        *,
        track: bool = False,
    ) -> HtmlElement | None:
        """Return the first element matching a selector, or None."""
        elements = self.select(node, selector, track=track)
        return elements[0] if elements else None

    def text(
        self,
        node: HtmlElement | None,
        selector: str | None = None,
        *,
        track: bool = False,
    ) -> str:
        """Whitespace-normalized text of a node (or of its first match)."""
        if selector is not None:
            node = self.first(node, selector, track=track)
        if node is None:
            return ""
        return element_text(node)

    def attr(
        self,
        node: HtmlElement | None,
        selector: str | None,
        *names: str,
        track: bool = False,
    ) -> str:
        """First non-empty attribute value out of ``names``."""
        if selector is not None:
            node = self.first(node, selector, track=track)
        if node is None:
            return ""
        for name in names:
            value = node.get(name)
            if value and value.strip():
                return value.strip()
        return ""

    def url(self, href: str | None) -> str:
        """Resolve a site-relative URL to absolute form."""
        return absolute_url(href, self.base_url)


def element_text(node: HtmlElement) -> str:
    """Whitespace-normalized text content of an element."""
    try:
        return normalize_whitespace(node.text_content())
    except Exception:
        return ""


def parse_document(markup: str, *, normalize: bool = True) -> HtmlElement | None:
    """Parse markup into an lxml tree, returning None for empty/bad input."""
    text = normalize_html(markup) if normalize else (markup or "")
    if not text.strip():
        return None
    try:
        return lxml_html.fromstring(text)
    except Exception as e:
        logger.debug(f"Failed to parse HTML: {e}")
        return None


class Extractor(ABC, Generic[T]):
    """Abstract base class for extraction strategies."""

    def __init__(self, *, base_url: str = DEFAULT_BASE_URL) -> None:
        """Initialize the extractor.

        Args:
            base_url: Site origin used to absolutize relative links
        """
        self.base_url = base_url

    @property
    @abstractmethod
    def name(self) -> str:
        """Extractor identifier."""
        pass

    @abstractmethod
    def extract(self, html: str) -> ExtractionResult[T]:
        """Extract an entity (or entities) from HTML content.

        Args:
            html: Raw HTML content

        Returns:
            ExtractionResult wrapping the best-effort value
        """
        pass

    def _result(self, value: T, context: ExtractionContext) -> ExtractionResult[T]:
        return ExtractionResult(
            value=value,
            missing_anchors=list(context.missing_anchors),
            warnings=list(context.warnings),
            extraction_method=self.name,
        )
