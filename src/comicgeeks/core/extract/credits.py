"""
Sub-entity extraction: creators, characters, variants and stories.

Each extractor walks a structurally anchored group of nodes and keeps
an entry only when its identifying field is present. Relative links are
resolved against the context's base URL.
"""

from __future__ import annotations

import re

from lxml.html import HtmlElement

from ..normalize.parsing import extract_query_param, parse_int
from .base import ExtractionContext
from .models import (
    STORY_TYPES,
    UNKNOWN_STORY_TYPE,
    Character,
    Creator,
    CreatorSource,
    Story,
    Variant,
    dedupe_creators,
)


CREATOR_SELECTOR = ".creator"
CHARACTER_SELECTOR = ".character"
VARIANT_SELECTOR = ".variant"
STORY_SELECTOR = ".story"

# Enclosing section class -> creator source tag
CREATOR_SECTIONS = {
    "cover-credits": CreatorSource.COVER,
    "production-credits": CreatorSource.PRODUCTION,
}

# Longest keywords first so "Text Story" wins over "Story"
_STORY_KEYWORDS = sorted(STORY_TYPES, key=len, reverse=True)
_PAGE_COUNT = re.compile(r"(\d+)\s*(?:pages?|pgs?)\b", re.IGNORECASE)


def _classes(node: HtmlElement) -> set[str]:
    return set((node.get("class") or "").split())


def _nearest_ancestor(node: HtmlElement, class_names: set[str]) -> HtmlElement | None:
    """Closest ancestor carrying any of the given classes."""
    for ancestor in node.iterancestors():
        if _classes(ancestor) & class_names:
            return ancestor
    return None


def _inside_story(node: HtmlElement, root: HtmlElement) -> bool:
    """True when ``node`` sits in a story block below ``root``."""
    for ancestor in node.iterancestors():
        if ancestor is root:
            return False
        if "story" in _classes(ancestor):
            return True
    return False


# =============================================================================
# Creators
# =============================================================================


def _creator_source(node: HtmlElement) -> str:
    section = _nearest_ancestor(node, set(CREATOR_SECTIONS))
    if section is None:
        return CreatorSource.CREATOR
    for class_name in _classes(section):
        if class_name in CREATOR_SECTIONS:
            return CREATOR_SECTIONS[class_name]
    return CreatorSource.CREATOR


def _read_creator(
    node: HtmlElement,
    context: ExtractionContext,
    source: str,
) -> Creator | None:
    name = context.text(node, ".name a") or context.text(node, ".name")
    if not name:
        return None
    return Creator(
        name=name,
        role=context.text(node, ".role"),
        url=context.url(context.attr(node, ".name a", "href")),
        type=source,
    )


def extract_creators(root: HtmlElement, context: ExtractionContext) -> tuple[Creator, ...]:
    """Collect issue-level creator credits from every credits section.

    Credits inside story blocks belong to those stories and are skipped.
    The same person can be listed in more than one grouping, so the
    result is deduplicated on (name, role, url, type).
    """
    creators: list[Creator] = []
    for node in context.select(root, CREATOR_SELECTOR, track=True):
        if _inside_story(node, root):
            continue
        creator = _read_creator(node, context, _creator_source(node))
        if creator is not None:
            creators.append(creator)
    return dedupe_creators(creators)


# =============================================================================
# Characters
# =============================================================================


def _read_character(node: HtmlElement, context: ExtractionContext) -> Character | None:
    name = context.text(node, ".name a") or context.text(node, ".name")
    if not name:
        return None

    character_type = context.text(node, ".character-type")
    if not character_type:
        group = _nearest_ancestor(node, {"character-group"})
        character_type = context.text(group, ".group-title") if group is not None else ""

    return Character(
        name=name,
        url=context.url(context.attr(node, ".name a", "href")),
        real_name=context.text(node, ".real-name") or None,
        type=character_type or None,
    )


def extract_characters(root: HtmlElement, context: ExtractionContext) -> tuple[Character, ...]:
    """Collect issue-level characters, typed by their enclosing group."""
    characters: list[Character] = []
    for node in context.select(root, CHARACTER_SELECTOR, track=True):
        if _inside_story(node, root):
            continue
        character = _read_character(node, context)
        if character is not None:
            characters.append(character)
    return tuple(characters)


# =============================================================================
# Variants
# =============================================================================


def _read_variant(node: HtmlElement, context: ExtractionContext) -> Variant | None:
    href = context.attr(node, "a[href]", "href")
    image = context.first(node, "img")
    title = (
        context.text(node, ".variant-title")
        or context.attr(node, "a[href]", "title")
        or context.attr(image, None, "alt")
    )
    if not title or not href:
        return None

    group = _nearest_ancestor(node, {"variant-group"})
    category = context.text(group, ".variant-category") if group is not None else ""

    return Variant(
        id=parse_int(extract_query_param(href, "variant")),
        title=title,
        cover_image=context.attr(image, None, "data-src", "src"),
        url=context.url(href),
        category=category,
    )


def extract_variants(root: HtmlElement, context: ExtractionContext) -> tuple[Variant, ...]:
    """Collect alternate covers; entries without title and url are dropped."""
    variants: list[Variant] = []
    for node in context.select(root, VARIANT_SELECTOR, track=True):
        variant = _read_variant(node, context)
        if variant is None:
            context.warn("Dropped variant without title or url")
            continue
        variants.append(variant)
    return tuple(variants)


# =============================================================================
# Stories
# =============================================================================


def match_story_type(text: str) -> str:
    """Map free text onto the closed set of story types."""
    lowered = text.lower()
    for keyword in _STORY_KEYWORDS:
        if keyword.lower() in lowered:
            return keyword
    return UNKNOWN_STORY_TYPE


def _story_pages(node: HtmlElement, context: ExtractionContext, type_text: str) -> int | None:
    pages_text = context.text(node, ".story-pages")
    if pages_text:
        pages = parse_int(pages_text, default=-1)
        return pages if pages >= 0 else None
    match = _PAGE_COUNT.search(type_text)
    return int(match.group(1)) if match else None


def _read_story(node: HtmlElement, context: ExtractionContext) -> Story | None:
    title = context.text(node, ".story-title")
    if not title:
        return None

    type_text = context.text(node, ".story-type")

    creators = [
        creator
        for creator in (
            _read_creator(item, context, CreatorSource.CREATOR)
            for item in context.select(node, CREATOR_SELECTOR)
        )
        if creator is not None
    ]
    characters = [
        character
        for character in (
            _read_character(item, context)
            for item in context.select(node, CHARACTER_SELECTOR)
        )
        if character is not None
    ]

    return Story(
        title=title,
        type=match_story_type(type_text),
        pages=_story_pages(node, context, type_text),
        creators=dedupe_creators(creators),
        characters=tuple(characters),
    )


def extract_stories(root: HtmlElement, context: ExtractionContext) -> tuple[Story, ...]:
    """Collect stories with their own creators and characters."""
    stories: list[Story] = []
    for node in context.select(root, STORY_SELECTOR, track=True):
        story = _read_story(node, context)
        if story is None:
            context.warn("Dropped story without title")
            continue
        stories.append(story)
    return tuple(stories)
