"""Extraction engine: listing and detail markup to typed entities."""

from .base import DEFAULT_BASE_URL, ExtractionContext, ExtractionResult, Extractor
from .details import DetailExtractor, extract_details
from .listing import ListingExtractor, extract_listing
from .models import (
    Character,
    ComicDetails,
    ComicSummary,
    Creator,
    CreatorSource,
    Story,
    Variant,
    dedupe_creators,
)

__all__ = [
    "DEFAULT_BASE_URL",
    "ExtractionContext",
    "ExtractionResult",
    "Extractor",
    "DetailExtractor",
    "ListingExtractor",
    "extract_details",
    "extract_listing",
    # Entities
    "Character",
    "ComicDetails",
    "ComicSummary",
    "Creator",
    "CreatorSource",
    "Story",
    "Variant",
    "dedupe_creators",
]
