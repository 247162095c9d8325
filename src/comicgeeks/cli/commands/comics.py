"""
Comic commands: weekly releases, issue details, batch lookups.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

import orjson
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from comicgeeks.core.backends import create_client
from comicgeeks.core.config import AppConfig, ComicFilters, ComicFormat, ConfigError, load_app_config
from comicgeeks.core.extract.models import ComicDetails, ComicSummary
from comicgeeks.core.fetch.errors import RetrievalError
from comicgeeks.core.logging import setup_logging
from comicgeeks.core.normalize.parsing import ComicReference, parse_comic_reference
from comicgeeks.core.orchestrator import ComicService, DetailOutcome

console = Console()
err_console = Console(stderr=True)


def _load_app(ctx: typer.Context) -> AppConfig:
    """Load configuration from the path given on the root command and set up logging."""
    options = ctx.obj or {}
    try:
        config = load_app_config(options.get("config_path"))
    except ConfigError as e:
        err_console.print(f"[red]Invalid configuration:[/red] {e}")
        if e.details:
            err_console.print(f"[dim]{escape(e.details)}[/dim]")
        raise typer.Exit(1)

    try:
        setup_logging(
            level=options.get("log_level") or config.logging.level,
            log_file=config.logging.file,
            json_format=config.logging.json_format,
            rich_console=config.logging.rich_console,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level")
    return config


def _dump_json(data: Any) -> None:
    typer.echo(orjson.dumps(data, option=orjson.OPT_INDENT_2).decode("utf-8"))


def _build_filters(
    release_date: datetime | None,
    publishers: list[int] | None,
    formats: list[int] | None,
    list_name: str | None,
) -> ComicFilters:
    """Only options the user passed become explicit filter fields."""
    fields: dict[str, Any] = {}
    if release_date is not None:
        fields["release_date"] = release_date.date()
    if publishers:
        fields["publishers"] = publishers
    if formats:
        try:
            fields["formats"] = [ComicFormat(code) for code in formats]
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="--format")
    if list_name:
        fields["list_name"] = list_name
    return ComicFilters(**fields)


# =============================================================================
# Releases
# =============================================================================


def releases(
    ctx: typer.Context,
    release_date: Optional[datetime] = typer.Option(
        None,
        "--date",
        "-d",
        formats=["%Y-%m-%d"],
        help="Week containing this date (default: today)",
    ),
    publisher: Optional[List[int]] = typer.Option(
        None,
        "--publisher",
        "-p",
        help="Publisher id (repeatable)",
    ),
    format_code: Optional[List[int]] = typer.Option(
        None,
        "--format",
        "-f",
        help="Format code 1-6 (repeatable)",
    ),
    list_name: Optional[str] = typer.Option(
        None,
        "--list",
        help="Listing type (default: releases)",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print JSON instead of a table",
    ),
) -> None:
    """List the comics released in a week.

    Examples:
        comicgeeks releases
        comicgeeks releases --date 2025-06-04 --publisher 2 --json
    """
    config = _load_app(ctx)
    filters = _build_filters(release_date, publisher, format_code, list_name)

    try:
        comics = asyncio.run(_fetch_releases(config, filters))
    except RetrievalError as e:
        err_console.print(f"[red]Failed to fetch releases:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if as_json:
        _dump_json([comic.to_dict() for comic in comics])
        return

    _display_releases(comics)


async def _fetch_releases(config: AppConfig, filters: ComicFilters) -> list[ComicSummary]:
    async with create_client(config.client, default_filters=config.filters) as client:
        return await ComicService(client).releases(filters)


def _display_releases(comics: list[ComicSummary]) -> None:
    if not comics:
        console.print("[dim]No comics found for this week.[/dim]")
        return

    table = Table(title=f"Releases ({len(comics)})", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title", style="cyan", max_width=50, overflow="fold")
    table.add_column("Publisher", max_width=25)
    table.add_column("Date", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Pulls", justify="right")

    for comic in comics:
        table.add_row(
            str(comic.id),
            escape(comic.title),
            escape(comic.publisher),
            comic.date.isoformat(),
            f"${comic.price:.2f}",
            f"{comic.pulls:,}",
        )

    console.print(table)


# =============================================================================
# Details
# =============================================================================


def details(
    ctx: typer.Context,
    comic_id: int = typer.Argument(..., help="Numeric comic id"),
    slug: str = typer.Argument(..., help="Title slug from the comic URL"),
    variant: Optional[str] = typer.Option(
        None,
        "--variant",
        help="Variant id",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print JSON instead of a summary",
    ),
) -> None:
    """Show the details of one issue.

    Examples:
        comicgeeks details 6731715 one-world-under-doom-6
        comicgeeks details 6731715 one-world-under-doom-6 --variant 8244122 --json
    """
    config = _load_app(ctx)

    try:
        comic = asyncio.run(_fetch_details(config, comic_id, slug, variant))
    except RetrievalError as e:
        status = f" (HTTP {e.status_code})" if e.status_code else ""
        err_console.print(f"[red]Failed to fetch comic{status}:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if as_json:
        _dump_json(comic.to_dict())
        return

    _display_details(comic)


async def _fetch_details(
    config: AppConfig,
    comic_id: int,
    slug: str,
    variant: str | None,
) -> ComicDetails:
    async with create_client(config.client) as client:
        return await ComicService(client).details(comic_id, slug, variant)


def _display_details(comic: ComicDetails) -> None:
    lines = [
        f"[dim]Publisher:[/dim] {escape(comic.publisher)}",
        f"[dim]Released:[/dim] {comic.release_date.isoformat()}",
        f"[dim]Format:[/dim] {escape(comic.format)}  [dim]Pages:[/dim] {comic.pages}  [dim]Price:[/dim] ${comic.price:.2f}",
        f"[dim]Rating:[/dim] {comic.rating:g} ({comic.rating_count:,} ratings)",
        f"[dim]Pulls:[/dim] {comic.pulls:,}  [dim]Collected:[/dim] {comic.collected:,}",
        f"[dim]URL:[/dim] {escape(comic.url)}",
    ]
    if comic.description:
        lines += ["", escape(comic.description)]

    console.print(Panel.fit(
        "\n".join(lines),
        title=f"[bold]{escape(comic.title)}[/bold]",
        border_style="cyan",
    ))

    if comic.creators:
        table = Table(title="Creators", show_header=True, header_style="bold magenta")
        table.add_column("Name", style="cyan")
        table.add_column("Role")
        table.add_column("Credit", style="dim")
        for creator in comic.creators:
            table.add_row(escape(creator.name), escape(creator.role), creator.type)
        console.print(table)

    if comic.variants:
        console.print(f"[dim]{len(comic.variants)} variant cover(s)[/dim]")


# =============================================================================
# Batch
# =============================================================================


def batch(
    ctx: typer.Context,
    references: Optional[List[str]] = typer.Argument(
        None,
        help="Comic URLs or /comic/<id>/<slug> paths",
    ),
    input_file: Optional[Path] = typer.Option(
        None,
        "--input",
        "-i",
        help="File with one comic URL or path per line",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print JSON instead of a table",
    ),
) -> None:
    """Fetch many issues at once; failures are reported per issue.

    Examples:
        comicgeeks batch /comic/6731715/one-world-under-doom-6 /comic/6731716/x-men-1
        comicgeeks batch --input comics.txt --json
    """
    values = list(references or [])
    if input_file:
        try:
            text = input_file.read_text(encoding="utf-8")
        except OSError as e:
            err_console.print(f"[red]Cannot read {input_file}:[/red] {e}")
            raise typer.Exit(1)
        values += [line.strip() for line in text.splitlines() if line.strip() and not line.startswith("#")]

    if not values:
        err_console.print("[red]Give at least one comic URL or --input FILE[/red]")
        raise typer.Exit(1)

    try:
        parsed = [parse_comic_reference(value) for value in values]
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="REFERENCES")

    config = _load_app(ctx)
    outcomes = asyncio.run(_fetch_batch(config, parsed))

    if as_json:
        _dump_json({
            "results": [o.details.to_dict() for o in outcomes if o.details is not None],
            "errors": [o.error.to_dict() for o in outcomes if o.error is not None],
        })
    else:
        _display_batch(outcomes)

    if any(not outcome.ok for outcome in outcomes):
        raise typer.Exit(1)


async def _fetch_batch(config: AppConfig, references: list[ComicReference]) -> list[DetailOutcome]:
    async with create_client(config.client) as client:
        return await ComicService(client).details_many(references)


def _display_batch(outcomes: list[DetailOutcome]) -> None:
    table = Table(title=f"Batch ({len(outcomes)})", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Result", justify="center")
    table.add_column("Title / Error", max_width=60, overflow="fold")

    for outcome in outcomes:
        if outcome.details is not None:
            table.add_row(
                str(outcome.reference.comic_id),
                "[green]OK[/green]",
                escape(outcome.details.title),
            )
        elif outcome.error is not None:
            table.add_row(
                str(outcome.reference.comic_id),
                f"[red]{outcome.error.status}[/red]",
                escape(outcome.error.message),
            )

    console.print(table)
