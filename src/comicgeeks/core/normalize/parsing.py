"""
Parsing utilities for normalizing scraped values.

Turns raw text fragments from catalog markup into typed values.
Every parser has a default-on-failure policy and never raises.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from urllib.parse import parse_qs, urlparse

import dateparser


# =============================================================================
# Price Parsing
# =============================================================================


_NON_PRICE_CHARS = re.compile(r"[^\d.]")
_LEADING_FLOAT = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def parse_price(value: str | None) -> float:
    """Parse a price string such as "$4.99" into a float.

    Everything except digits and the decimal point is stripped before
    parsing, so "$1,299.00" reads as 1299.0. Only the leading numeric
    run is used ("1.2.3" reads as 1.2).

    Args:
        value: Raw price text

    Returns:
        Parsed price, or 0.0 when nothing numeric remains
    """
    if not value or not value.strip():
        return 0.0

    cleaned = _NON_PRICE_CHARS.sub("", value)
    match = _LEADING_FLOAT.match(cleaned)
    if not match:
        return 0.0

    try:
        return float(match.group())
    except ValueError:
        return 0.0


# =============================================================================
# Date Parsing
# =============================================================================


_ORDINAL_SUFFIX = re.compile(r"(\d+)(st|nd|rd|th)\b", re.IGNORECASE)

# Fast-path formats seen on the site, tried before dateparser
_DATE_FORMATS = (
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%Y-%m-%d",
    "%m/%d/%Y",
)


def utc_today() -> date:
    """Current calendar date in UTC; the site's weeks are keyed on it."""
    return datetime.now(timezone.utc).date()


def strip_ordinal_suffixes(text: str) -> str:
    """Remove ordinal suffixes from day numbers ("Aug 6th" -> "Aug 6")."""
    return _ORDINAL_SUFFIX.sub(r"\1", text)


def parse_comic_date(value: str | None, *, today: date | None = None) -> date:
    """Parse a human date such as "Aug 6th, 2025".

    Args:
        value: Raw date text
        today: Fallback date (defaults to the current UTC date)

    Returns:
        Parsed date, or the fallback when the text is empty or unparsable
    """
    fallback = today or utc_today()
    if not value or not value.strip():
        return fallback

    text = " ".join(strip_ordinal_suffixes(value).split())
    text = text.replace("Sept ", "Sep ")

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    # Slower path for anything else ("Released 6 August 2025", "next Wednesday")
    try:
        parsed = dateparser.parse(
            text,
            settings={
                "DATE_ORDER": "MDY",
                "PREFER_DAY_OF_MONTH": "first",
                "RETURN_AS_TIMEZONE_AWARE": False,
            },
        )
    except Exception:
        parsed = None

    if parsed is None:
        return fallback
    return parsed.date()


# =============================================================================
# Integer Parsing
# =============================================================================


_DIGITS = re.compile(r"\d+")


def parse_int(value: str | int | None, default: int = 0) -> int:
    """Parse a non-negative integer from an attribute or counter text.

    Thousands separators are ignored ("1,234" -> 1234). The first run
    of digits wins, so "12 pages" reads as 12.

    Args:
        value: Raw attribute/text value
        default: Value returned when no digits are present

    Returns:
        Parsed integer or the default
    """
    if value is None:
        return default
    if isinstance(value, int):
        return value if value >= 0 else default

    text = value.replace(",", "").strip()
    match = _DIGITS.search(text)
    if not match:
        return default
    return int(match.group())


def parse_float(value: str | None, default: float = 0.0) -> float:
    """Parse a float such as a rating score ("4.3" -> 4.3)."""
    if not value:
        return default
    match = re.search(r"\d+(?:\.\d+)?", value.replace(",", ""))
    if not match:
        return default
    return float(match.group())


# =============================================================================
# URL / Slug Parsing
# =============================================================================


_TITLE_PATH = re.compile(r"^/comic/\d+/([^/]+)$")
_COMIC_PATH = re.compile(r"^/comic/(\d+)/([^/?#]+)/?$")
_CANONICAL_ID = re.compile(r"comic/(\d+)/")


def extract_title_path(url: str | None) -> str:
    """Extract the slug from a comic URL.

    "/comic/123456/original-sin-tp?variant=8244122" -> "original-sin-tp".
    Absolute URLs are accepted; only their path is inspected.

    Args:
        url: Comic URL or path

    Returns:
        The title slug, or "" when the URL is not a comic URL
    """
    if not url:
        return ""

    path = urlparse(url).path if "://" in url else url.split("?")[0].split("#")[0]
    match = _TITLE_PATH.match(path)
    return match.group(1) if match else ""


def extract_canonical_id(url: str | None) -> int:
    """Extract the numeric comic id from a URL containing "comic/<id>/"."""
    if not url:
        return 0
    match = _CANONICAL_ID.search(url)
    return int(match.group(1)) if match else 0


def extract_query_param(url: str | None, name: str) -> str | None:
    """Return the first value of a query parameter, if present."""
    if not url:
        return None
    values = parse_qs(urlparse(url).query).get(name)
    return values[0] if values else None


def absolute_url(url: str | None, base_url: str) -> str:
    """Resolve a site-relative URL against the site's base origin.

    Absolute URLs (and protocol-relative ones) are returned unchanged.
    """
    if not url:
        return ""
    url = url.strip()
    if url.startswith(("http://", "https://")):
        return url
    if url.startswith("//"):
        return f"https:{url}"
    base = base_url.rstrip("/")
    if not url.startswith("/"):
        url = "/" + url
    return f"{base}{url}"


@dataclass(frozen=True)
class ComicReference:
    """Identifies one detail page: comic id, slug and optional variant."""

    comic_id: int
    slug: str
    variant_id: str | None = None

    @property
    def cache_key(self) -> str:
        """Key under which the detail page is cached."""
        if self.variant_id:
            return f"{self.comic_id}:{self.slug}:{self.variant_id}"
        return f"{self.comic_id}:{self.slug}"

    @property
    def path(self) -> str:
        """Site path of the detail page, including the variant query."""
        path = f"/comic/{self.comic_id}/{self.slug}"
        if self.variant_id:
            path = f"{path}?variant={self.variant_id}"
        return path


def parse_comic_reference(value: str) -> ComicReference:
    """Parse a full comic URL or a "/comic/<id>/<slug>" path.

    Args:
        value: "https://leagueofcomicgeeks.com/comic/6731715/one-world-under-doom-6"
            or "/comic/6731715/one-world-under-doom-6?variant=8244122"

    Returns:
        ComicReference for the page

    Raises:
        ValueError: If the value is not a comic URL or path
    """
    text = (value or "").strip()
    parsed = urlparse(text)

    if parsed.scheme and parsed.scheme not in {"http", "https"}:
        raise ValueError(f"Not a comic URL: {value!r}")

    match = _COMIC_PATH.match(parsed.path)
    if not match:
        raise ValueError(
            f"Invalid comic path {value!r}; expected /comic/{{id}}/{{slug}}"
        )

    variant = parse_qs(parsed.query).get("variant")
    return ComicReference(
        comic_id=int(match.group(1)),
        slug=match.group(2),
        variant_id=variant[0] if variant else None,
    )


# =============================================================================
# Text Utilities
# =============================================================================


def normalize_whitespace(text: str | None) -> str:
    """Normalize whitespace in text."""
    if text is None:
        return ""
    return " ".join(text.split())


def strip_separator(text: str | None) -> str:
    """Remove the decorative middle-dot separator (and its mojibake form)."""
    if not text:
        return ""
    text = re.sub(r"\s*(?:Â·|·)\s*", " ", text)
    return normalize_whitespace(text)
