"""Orchestrator - fetch and extract coordination, batch settlement."""

from .service import ComicService, DetailFailure, DetailOutcome

__all__ = [
    "ComicService",
    "DetailFailure",
    "DetailOutcome",
]
