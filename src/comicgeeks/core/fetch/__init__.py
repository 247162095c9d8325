"""Fetch utilities - errors, retries, caching."""

from .cache import CacheEntry, TTLCache
from .errors import (
    BlockedError,
    HttpStatusError,
    NetworkError,
    ResponseFormatError,
    RetrievalError,
)
from .retries import RetryConfig, bounded_attempt, classify_error, is_retryable, retry_async

__all__ = [
    "CacheEntry",
    "TTLCache",
    "BlockedError",
    "HttpStatusError",
    "NetworkError",
    "ResponseFormatError",
    "RetrievalError",
    "RetryConfig",
    "bounded_attempt",
    "classify_error",
    "is_retryable",
    "retry_async",
]
