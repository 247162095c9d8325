"""
Retry utilities with tenacity.

Classifies failures as retryable or not and runs an async operation
under an exponential backoff policy. One attempt is one bounded I/O
operation; the backoff sleep between attempts is an explicit
suspension point.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from typing import Any, Awaitable, Callable, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .errors import NetworkError

logger = logging.getLogger(__name__)

T = TypeVar("T")


# Default retry configuration
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_BASE = 1.0  # seconds; waits are base * 2^k
DEFAULT_TIMEOUT = 30.0  # seconds per attempt

_DNS_MARKERS = (
    "eai_again",
    "enotfound",
    "getaddrinfo",
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
)
_TIMEOUT_MARKERS = ("timeout", "timed out", "etimedout", "aborted")
_CONNECTION_MARKERS = (
    "econnrefused",
    "econnreset",
    "epipe",
    "connection refused",
    "connection reset",
    "broken pipe",
)


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_base: float = DEFAULT_BACKOFF_BASE,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize retry configuration.

        Args:
            max_attempts: Maximum number of attempts (including the first)
            backoff_base: Wait before the k-th retry is base * 2^k seconds
            timeout: Upper bound for a single attempt in seconds
        """
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.timeout = timeout


def classify_error(error: BaseException) -> str | None:
    """Return the ``NetworkError`` kind for a transient failure, else None.

    HTTP status errors and everything not recognised as a DNS, timeout
    or connection failure are non-retryable.
    """
    if isinstance(error, NetworkError):
        return error.kind
    if isinstance(error, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
        return NetworkError.TIMEOUT
    if isinstance(error, socket.gaierror):
        return NetworkError.DNS
    if isinstance(error, httpx.ConnectError):
        message = str(error).lower()
        if any(marker in message for marker in _DNS_MARKERS):
            return NetworkError.DNS
        return NetworkError.CONNECTION
    if isinstance(error, (ConnectionResetError, ConnectionRefusedError, BrokenPipeError)):
        return NetworkError.CONNECTION
    if isinstance(error, (httpx.ReadError, httpx.WriteError, httpx.CloseError, httpx.RemoteProtocolError)):
        return NetworkError.FETCH_FAILED

    if isinstance(error, (httpx.TransportError, OSError)):
        message = str(error).lower()
        if any(marker in message for marker in _DNS_MARKERS):
            return NetworkError.DNS
        if any(marker in message for marker in _TIMEOUT_MARKERS):
            return NetworkError.TIMEOUT
        if any(marker in message for marker in _CONNECTION_MARKERS):
            return NetworkError.CONNECTION
        if "fetch failed" in message:
            return NetworkError.FETCH_FAILED

    return None


def is_retryable(error: BaseException) -> bool:
    """True for transient network failures."""
    return classify_error(error) is not None


async def bounded_attempt(
    coro_func: Callable[[], Awaitable[T]],
    *,
    timeout: float,
    url: str | None = None,
) -> T:
    """Run one attempt under a hard timeout.

    Transport failures are re-raised as ``NetworkError`` so the retry
    policy sees a single retryable type; other errors pass through.
    """
    try:
        return await asyncio.wait_for(coro_func(), timeout=timeout)
    except NetworkError:
        raise
    except asyncio.TimeoutError as e:
        raise NetworkError(
            f"Request timed out after {timeout:g}s",
            url=url,
            kind=NetworkError.TIMEOUT,
            cause=e,
        ) from e
    except Exception as e:
        kind = classify_error(e)
        if kind is None:
            raise
        raise NetworkError(
            f"{type(e).__name__}: {e}",
            url=url,
            kind=kind,
            cause=e,
        ) from e


async def retry_async(
    coro_func: Callable[..., Awaitable[T]],
    *args: Any,
    config: RetryConfig | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    context: str = "operation",
    **kwargs: Any,
) -> T:
    """Execute an async function with retry logic.

    Retries only failures ``is_retryable`` accepts, waiting
    ``backoff_base * 2^k`` seconds before the (k+1)-th retry. The last
    error propagates once attempts run out.

    Args:
        coro_func: Async function to call
        *args: Positional arguments
        config: Retry configuration
        sleep: Sleep coroutine (injectable for tests)
        context: Label used in log messages
        **kwargs: Keyword arguments

    Returns:
        Function result
    """
    if config is None:
        config = RetryConfig()

    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_exponential(multiplier=config.backoff_base, exp_base=2),
        retry=retry_if_exception(is_retryable),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    ):
        with attempt:
            number = attempt.retry_state.attempt_number
            if number > 1:
                logger.info(f"Retry attempt {number - 1}/{config.max_attempts - 1} for {context}")
            return await coro_func(*args, **kwargs)

    raise RuntimeError(f"Retry loop exited without result: {context}")  # pragma: no cover
