"""CLI command modules."""

from . import comics, config

__all__ = [
    "comics",
    "config",
]
