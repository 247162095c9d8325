"""
Markup normalization applied before structural parsing.

The listing endpoint returns its HTML inside a JSON string, so the
markup arrives with literal escape sequences, runs of blank lines and
entity-encoded quotes. ``normalize_html`` repairs those in one pass.

The pipeline is a single ordered pass, not an iterate-to-fixpoint
normalizer. Running it twice is harmless (entity unescaping and
whitespace collapsing are safe to repeat) but nothing beyond that is
promised.
"""

from __future__ import annotations

import re


_ESCAPED_LINE_BREAK = re.compile(r"\\r\\n|\\n|\\r")
_LINE_BREAK = re.compile(r"\r\n|\r")
_BLANK_LINES = re.compile(r"\n{2,}")
_SPACE_RUNS = re.compile(r" {2,}")
_BETWEEN_TAGS = re.compile(r">\s+<")
_TAG_THEN_CONTENT = re.compile(r">(?=[^\s<])")

_ENTITIES = (
    ("&amp;", "&"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&#039;", "'"),
    ("&apos;", "'"),
)


def normalize_html(markup: str | None) -> str:
    """Normalize raw markup for parsing.

    Steps, in order:

    1. literal ``\\r\\n`` / ``\\n`` escape sequences become newlines
    2. real CRLF / CR line breaks become ``\\n``
    3. runs of newlines collapse to one
    4. runs of spaces collapse to one
    5. leading/trailing whitespace is trimmed
    6. ampersand and quote entities are unescaped
    7. whitespace between adjacent tags is removed
    8. a single space is inserted after a tag that is directly
       followed by text; adjacent tags stay joined (``<b>x</b><i>y</i>``
       becomes ``<b> x</b><i> y</i>``), so step 7 is not undone

    Args:
        markup: Raw HTML (possibly ``None`` when a field was missing)

    Returns:
        Normalized HTML, or "" for empty input
    """
    if not markup or not isinstance(markup, str):
        return ""

    text = _ESCAPED_LINE_BREAK.sub("\n", markup)
    text = _LINE_BREAK.sub("\n", text)
    text = _BLANK_LINES.sub("\n", text)
    text = _SPACE_RUNS.sub(" ", text)
    text = text.strip()

    for entity, char in _ENTITIES:
        text = text.replace(entity, char)

    text = _BETWEEN_TAGS.sub("><", text)
    text = _TAG_THEN_CONTENT.sub("> ", text)

    return text
