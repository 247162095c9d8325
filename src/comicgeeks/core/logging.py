"""
Logging for comicgeeks.

Console lines go through Rich and carry the comic id (and retry attempt,
when there is one) as a prefix. File lines are JSON with the same
context as top-level keys, so a log file can be filtered per comic or
per cache key.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson

if TYPE_CHECKING:
    from rich.console import Console


PACKAGE_LOGGER = "comicgeeks"

# Extra record attributes copied into JSON log lines
CONTEXT_FIELDS = ("comic_id", "url", "attempt", "cache_key")

LEVEL_STYLES = {
    logging.DEBUG: "dim",
    logging.INFO: "default",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "bold red",
}

PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def json_dumps(obj: Any) -> str:
    return orjson.dumps(obj, default=str).decode("utf-8")


def resolve_level(level: str | int) -> int:
    """Turn "debug", "INFO" or 10 into a logging level number.

    Raises:
        ValueError: For names logging does not know
    """
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


# =============================================================================
# Formatters and Handlers
# =============================================================================


class JSONFormatter(logging.Formatter):
    """One JSON object per record, comic context flattened in."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, getattr(record, key)) for key in CONTEXT_FIELDS if hasattr(record, key)
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json_dumps(entry)


class RichConsoleHandler(logging.Handler):
    """Prints records to a Rich console, prefixed with the comic they concern."""

    def __init__(self, console: "Console | None" = None, level: int = logging.INFO):
        super().__init__(level)
        if console is None:
            from rich.console import Console
            console = Console(stderr=True)
        self.console = console

    @staticmethod
    def prefix(record: logging.LogRecord) -> str:
        parts = []
        if hasattr(record, "comic_id"):
            parts.append(f"[cyan]\\[{record.comic_id}][/cyan]")
        if hasattr(record, "attempt"):
            parts.append(f"[magenta]#{record.attempt}[/magenta]")
        return " ".join(parts) + " " if parts else ""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            style = LEVEL_STYLES.get(record.levelno, "default")
            self.console.print(
                f"{self.prefix(record)}[{style}]{self.format(record)}[/{style}]",
                markup=True,
                highlight=False,
            )
            if record.exc_info:
                self.console.print_exception()
        except Exception:
            self.handleError(record)


def _console_handler(level: int, rich_console: bool) -> logging.Handler:
    if rich_console:
        handler: logging.Handler = RichConsoleHandler(level=level)
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
        handler.setLevel(level)
    return handler


def _file_handler(log_file: Path | str, json_format: bool) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


# =============================================================================
# Setup
# =============================================================================


def setup_logging(
    level: str | int = "INFO",
    log_file: Path | str | None = None,
    json_format: bool = True,
    rich_console: bool = True,
) -> logging.Logger:
    """Configure the package logger; calling it again replaces earlier handlers.

    Args:
        level: Console level name or number
        log_file: Optional file that receives every record from DEBUG up
        json_format: JSON lines in the file instead of plain text
        rich_console: Rich output on stderr instead of a plain stream

    Returns:
        The "comicgeeks" logger
    """
    threshold = resolve_level(level)

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    logger.addHandler(_console_handler(threshold, rich_console))
    if log_file:
        logger.addHandler(_file_handler(log_file, json_format))
        # The file sees DEBUG even when the console is quieter
        logger.setLevel(min(threshold, logging.DEBUG))
    else:
        logger.setLevel(threshold)

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Logger under the package namespace, e.g. get_logger("backends.http")."""
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}" if name else PACKAGE_LOGGER)


# =============================================================================
# Comic Context
# =============================================================================


class ContextualLogger(logging.LoggerAdapter):
    """Adapter that stamps each record with the comic being fetched or parsed.

    Values passed through ``extra=`` at the call site win over the
    adapter's own.
    """

    def __init__(
        self,
        logger: logging.Logger,
        comic_id: int | None = None,
        url: str | None = None,
    ):
        super().__init__(logger, {})
        self.comic_id = comic_id
        self.url = url

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        if self.comic_id is not None:
            extra.setdefault("comic_id", self.comic_id)
        if self.url:
            extra.setdefault("url", self.url)
        kwargs["extra"] = extra
        return msg, kwargs

    def with_context(
        self,
        comic_id: int | None = None,
        url: str | None = None,
    ) -> "ContextualLogger":
        return ContextualLogger(
            self.logger,
            comic_id=self.comic_id if comic_id is None else comic_id,
            url=url or self.url,
        )


def get_contextual_logger(
    name: str | None = None,
    comic_id: int | None = None,
    url: str | None = None,
) -> ContextualLogger:
    return ContextualLogger(get_logger(name), comic_id=comic_id, url=url)
