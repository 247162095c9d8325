"""Tests for value parsers."""

from datetime import date

import pytest

from comicgeeks.core.config import ComicFilters
from comicgeeks.core.normalize import parsing
from comicgeeks.core.normalize.parsing import (
    ComicReference,
    absolute_url,
    extract_canonical_id,
    extract_query_param,
    extract_title_path,
    parse_comic_date,
    parse_comic_reference,
    parse_float,
    parse_int,
    parse_price,
    strip_ordinal_suffixes,
    strip_separator,
)

TODAY = date(2025, 8, 4)


class TestParsePrice:
    """Tests for parse_price."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("$4.99", 4.99),
            ("  $ 4.99 USD", 4.99),
            ("$1,299.00", 1299.0),
            ("· $3.99", 3.99),
            ("4", 4.0),
        ],
    )
    def test_strips_non_numeric_characters(self, raw: str, expected: float) -> None:
        """Test that currency symbols and separators are ignored."""
        assert parse_price(raw) == expected

    def test_matches_digits_only_substring(self) -> None:
        """Test that interspersed characters yield the same value as the cleaned text."""
        assert parse_price("$1a2b.c5") == parse_price("12.5") == 12.5

    @pytest.mark.parametrize("raw", ["", "   ", "Free", "N/A", None])
    def test_non_numeric_is_zero(self, raw) -> None:
        """Test that empty or non-numeric input yields 0.0."""
        assert parse_price(raw) == 0.0

    def test_only_leading_number_used(self) -> None:
        """Test that a second decimal point ends the number."""
        assert parse_price("1.2.3") == 1.2


class TestParseComicDate:
    """Tests for parse_comic_date."""

    @pytest.mark.parametrize("suffix", ["st", "nd", "rd", "th"])
    def test_ordinal_suffix_ignored(self, suffix: str) -> None:
        """Test that ordinal suffixes do not change the parsed date."""
        day = {"st": 1, "nd": 2, "rd": 3, "th": 4}[suffix]
        with_suffix = parse_comic_date(f"Aug {day}{suffix}, 2025", today=TODAY)
        without_suffix = parse_comic_date(f"Aug {day}, 2025", today=TODAY)
        assert with_suffix == without_suffix == date(2025, 8, day)

    def test_full_month_name(self) -> None:
        """Test long month names."""
        assert parse_comic_date("September 17th, 2025", today=TODAY) == date(2025, 9, 17)

    def test_sept_abbreviation(self) -> None:
        """Test the four-letter September abbreviation."""
        assert parse_comic_date("Sept 3rd, 2025", today=TODAY) == date(2025, 9, 3)

    def test_iso_date(self) -> None:
        """Test ISO dates."""
        assert parse_comic_date("2025-08-06", today=TODAY) == date(2025, 8, 6)

    @pytest.mark.parametrize("raw", ["", "   ", None, "qqq zzz"])
    def test_unparsable_falls_back_to_today(self, raw) -> None:
        """Test that unparsable input yields the fallback date."""
        assert parse_comic_date(raw, today=TODAY) == TODAY

    def test_default_fallback_is_utc_date(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that the fallback and the listing query share the UTC date."""
        monkeypatch.setattr(parsing, "utc_today", lambda: date(2025, 12, 31))

        assert parse_comic_date("???") == date(2025, 12, 31)
        assert ComicFilters().to_query()[-1] == ("date", "2025-12-31")

    def test_strip_ordinal_suffixes(self) -> None:
        """Test suffix removal keeps the day number."""
        assert strip_ordinal_suffixes("Aug 21st, 2025") == "Aug 21, 2025"
        assert strip_ordinal_suffixes("1st 22nd 23rd 24th") == "1 22 23 24"


class TestParseNumbers:
    """Tests for parse_int and parse_float."""

    def test_thousands_separator(self) -> None:
        """Test that commas are ignored."""
        assert parse_int("1,482") == 1482

    def test_first_digit_run(self) -> None:
        """Test that trailing text is ignored."""
        assert parse_int("32 pages") == 32

    def test_default(self) -> None:
        """Test the default for missing digits."""
        assert parse_int("") == 0
        assert parse_int(None, default=-1) == -1
        assert parse_int("none", default=7) == 7

    def test_int_passthrough(self) -> None:
        """Test that integers are returned unchanged."""
        assert parse_int(12) == 12

    def test_parse_float(self) -> None:
        """Test rating scores."""
        assert parse_float("4.3") == 4.3
        assert parse_float("Rated 4.75 / 5") == 4.75
        assert parse_float("") == 0.0


class TestUrlHelpers:
    """Tests for URL and slug helpers."""

    def test_title_path_from_relative_url(self) -> None:
        """Test slug extraction from a site path."""
        assert extract_title_path("/comic/123456/original-sin-tp") == "original-sin-tp"

    def test_title_path_ignores_query(self) -> None:
        """Test that the variant query does not leak into the slug."""
        assert extract_title_path("/comic/123456/original-sin-tp?variant=99") == "original-sin-tp"

    def test_title_path_from_absolute_url(self) -> None:
        """Test slug extraction from an absolute URL."""
        url = "https://leagueofcomicgeeks.com/comic/123456/original-sin-tp"
        assert extract_title_path(url) == "original-sin-tp"

    @pytest.mark.parametrize("url", ["", None, "/comics/series/1/x", "/comic/abc/slug"])
    def test_title_path_non_comic(self, url) -> None:
        """Test that non-comic URLs yield an empty slug."""
        assert extract_title_path(url) == ""

    def test_canonical_id(self) -> None:
        """Test numeric id extraction."""
        assert extract_canonical_id("https://leagueofcomicgeeks.com/comic/6731715/x") == 6731715
        assert extract_canonical_id("https://leagueofcomicgeeks.com/") == 0

    def test_query_param(self) -> None:
        """Test query parameter lookup."""
        assert extract_query_param("/comic/1/x?variant=8244122", "variant") == "8244122"
        assert extract_query_param("/comic/1/x", "variant") is None

    def test_absolute_url(self) -> None:
        """Test relative, absolute and protocol-relative URLs."""
        base = "https://leagueofcomicgeeks.com"
        assert absolute_url("/comic/1/x", base) == f"{base}/comic/1/x"
        assert absolute_url("comic/1/x", base + "/") == f"{base}/comic/1/x"
        assert absolute_url("https://cdn.example.com/a.jpg", base) == "https://cdn.example.com/a.jpg"
        assert absolute_url("//cdn.example.com/a.jpg", base) == "https://cdn.example.com/a.jpg"
        assert absolute_url("", base) == ""

    def test_strip_separator(self) -> None:
        """Test middle-dot removal, including the mojibake form."""
        assert strip_separator(" · $4.99") == "$4.99"
        assert strip_separator("Â· $4.99") == "$4.99"


class TestComicReference:
    """Tests for ComicReference and parse_comic_reference."""

    def test_cache_key_without_variant(self) -> None:
        """Test the id:slug key."""
        assert ComicReference(123, "x-men-1").cache_key == "123:x-men-1"

    def test_cache_key_with_variant(self) -> None:
        """Test the id:slug:variant key."""
        assert ComicReference(123, "x-men-1", "456").cache_key == "123:x-men-1:456"

    def test_path(self) -> None:
        """Test the detail page path."""
        assert ComicReference(123, "x-men-1").path == "/comic/123/x-men-1"
        assert ComicReference(123, "x-men-1", "456").path == "/comic/123/x-men-1?variant=456"

    def test_parse_full_url(self) -> None:
        """Test parsing an absolute URL with a variant."""
        ref = parse_comic_reference(
            "https://leagueofcomicgeeks.com/comic/6731715/one-world-under-doom-6?variant=8244122"
        )
        assert ref == ComicReference(6731715, "one-world-under-doom-6", "8244122")

    def test_parse_path(self) -> None:
        """Test parsing a bare path."""
        ref = parse_comic_reference("/comic/6731715/one-world-under-doom-6")
        assert ref == ComicReference(6731715, "one-world-under-doom-6", None)

    @pytest.mark.parametrize(
        "value",
        ["", "/comics/series/1/x", "ftp://leagueofcomicgeeks.com/comic/1/x", "/comic/abc/x"],
    )
    def test_invalid_reference(self, value: str) -> None:
        """Test that non-comic input raises ValueError."""
        with pytest.raises(ValueError):
            parse_comic_reference(value)
