"""Value parsing and markup normalization."""

from .html import normalize_html
from .parsing import (
    ComicReference,
    absolute_url,
    extract_canonical_id,
    extract_query_param,
    extract_title_path,
    normalize_whitespace,
    parse_comic_date,
    parse_comic_reference,
    parse_float,
    parse_int,
    parse_price,
    strip_ordinal_suffixes,
    strip_separator,
    utc_today,
)

__all__ = [
    # Markup
    "normalize_html",
    # Parsing
    "ComicReference",
    "absolute_url",
    "extract_canonical_id",
    "extract_query_param",
    "extract_title_path",
    "normalize_whitespace",
    "parse_comic_date",
    "parse_comic_reference",
    "parse_float",
    "parse_int",
    "parse_price",
    "strip_ordinal_suffixes",
    "strip_separator",
    "utc_today",
]
