"""
Typed entities produced by the extraction engine.

All entities are immutable value objects built once per extraction
call. ``to_dict`` renders the camelCase field names downstream JSON
consumers expect.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any


class CreatorSource:
    """Where on the page a creator credit was found."""

    CREATOR = "creator"
    COVER = "cover"
    PRODUCTION = "production"


STORY_TYPES = (
    "Story",
    "Front Matter",
    "Back Matter",
    "Cover Gallery",
    "Pin-Up",
    "Preview",
    "Reprint",
    "Text Story",
    "Letters",
)
UNKNOWN_STORY_TYPE = "Unknown"


@dataclass(frozen=True)
class Creator:
    """A creator credit (writer, artist, cover artist, editor...)."""

    name: str
    role: str
    url: str
    type: str = CreatorSource.CREATOR

    @property
    def dedup_key(self) -> tuple[str, str, str, str]:
        return (self.name, self.role, self.url, self.type)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "role": self.role, "url": self.url, "type": self.type}


@dataclass(frozen=True)
class Character:
    """A character appearing in the issue or in one story."""

    name: str
    url: str
    real_name: str | None = None
    type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "url": self.url}
        if self.real_name:
            data["realName"] = self.real_name
        if self.type:
            data["type"] = self.type
        return data


@dataclass(frozen=True)
class Variant:
    """An alternate-cover edition listed on the detail page."""

    id: int
    title: str
    cover_image: str
    url: str
    category: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "coverImage": self.cover_image,
            "url": self.url,
            "category": self.category,
        }


@dataclass(frozen=True)
class Story:
    """One story (or front/back matter) inside an issue."""

    title: str
    type: str = UNKNOWN_STORY_TYPE
    pages: int | None = None
    creators: tuple[Creator, ...] = ()
    characters: tuple[Character, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"title": self.title, "type": self.type}
        if self.pages is not None:
            data["pages"] = self.pages
        data["creators"] = [c.to_dict() for c in self.creators]
        data["characters"] = [c.to_dict() for c in self.characters]
        return data


@dataclass(frozen=True)
class ComicSummary:
    """One issue from a listing page."""

    id: int
    title: str
    publisher: str
    date: date
    price: float
    cover_image: str
    url: str
    pulls: int = 0
    community: int = 0
    title_path: str = ""
    variant_id: str | None = None
    parent_id: str | None = None
    variant_name: str | None = None

    @property
    def is_variant(self) -> bool:
        return self.parent_id is not None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "publisher": self.publisher,
            "date": self.date.isoformat(),
            "price": self.price,
            "coverImage": self.cover_image,
            "url": self.url,
            "pulls": self.pulls,
            "community": self.community,
            "titlePath": self.title_path,
        }
        if self.is_variant:
            data["variantId"] = self.variant_id
            data["parentId"] = self.parent_id
            data["variantName"] = self.variant_name
        return data


@dataclass(frozen=True)
class ComicDetails:
    """Everything the detail page says about one issue."""

    id: int
    title: str
    issue_number: str
    publisher: str
    description: str
    cover_date: str
    release_date: date
    pages: int
    price: float
    format: str
    upc: str | None
    isbn: str | None
    distributor_sku: str
    final_order_cutoff: str
    cover_image: str
    url: str
    rating: float = 0.0
    rating_count: int = 0
    rating_text: str = ""
    pulls: int = 0
    collected: int = 0
    read: int = 0
    wanted: int = 0
    series_url: str = ""
    creators: tuple[Creator, ...] = ()
    characters: tuple[Character, ...] = ()
    variants: tuple[Variant, ...] = ()
    stories: tuple[Story, ...] = ()
    previous_issue_url: str | None = None
    next_issue_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "issueNumber": self.issue_number,
            "publisher": self.publisher,
            "description": self.description,
            "coverDate": self.cover_date,
            "releaseDate": self.release_date.isoformat(),
            "pages": self.pages,
            "price": self.price,
            "format": self.format,
            "upc": self.upc,
            "isbn": self.isbn,
            "distributorSku": self.distributor_sku,
            "finalOrderCutoff": self.final_order_cutoff,
            "coverImage": self.cover_image,
            "url": self.url,
            "rating": self.rating,
            "ratingCount": self.rating_count,
            "ratingText": self.rating_text,
            "pulls": self.pulls,
            "collected": self.collected,
            "read": self.read,
            "wanted": self.wanted,
            "seriesUrl": self.series_url,
            "creators": [c.to_dict() for c in self.creators],
            "characters": [c.to_dict() for c in self.characters],
            "variants": [v.to_dict() for v in self.variants],
            "stories": [s.to_dict() for s in self.stories],
        }
        if self.previous_issue_url:
            data["previousIssueUrl"] = self.previous_issue_url
        if self.next_issue_url:
            data["nextIssueUrl"] = self.next_issue_url
        return data


def dedupe_creators(creators: list[Creator] | tuple[Creator, ...]) -> tuple[Creator, ...]:
    """Drop repeated creators, keeping first-seen order.

    Two credits are the same when name, role, url and source type all match.
    """
    seen: set[tuple[str, str, str, str]] = set()
    unique: list[Creator] = []
    for creator in creators:
        if creator.dedup_key in seen:
            continue
        seen.add(creator.dedup_key)
        unique.append(creator)
    return tuple(unique)

