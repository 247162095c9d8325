"""
comicgeeks CLI - Main entry point.

Browse weekly comic releases and issue details from League of Comic
Geeks in the terminal.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.traceback import install as install_rich_traceback

from comicgeeks import __app_name__, __version__
from comicgeeks.core.config import ConfigError, write_default_config
from comicgeeks.core.config.loader import DEFAULT_CONFIG_PATH

# LOCG_FETCH_URL / LOCG_DISPLAY_URL may live in .env
load_dotenv()

# Unhandled errors print with Rich, without locals
install_rich_traceback(show_locals=False, width=120)

console = Console()
err_console = Console(stderr=True)

# Create main app
app = typer.Typer(
    name=__app_name__,
    help="Weekly comic releases and issue details from League of Comic Geeks",
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Handle --version before any command runs."""
    if value:
        console.print(f"{__app_name__} version {__version__}", highlight=False)
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help=f"Configuration file (default: {DEFAULT_CONFIG_PATH})",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Override the configured log level",
    ),
) -> None:
    """comicgeeks - Comic release and issue lookup."""
    ctx.obj = {"config_path": config, "log_level": log_level}


# =============================================================================
# Import and register subcommand modules
# =============================================================================

from .commands import comics, config as config_commands  # noqa: E402

app.command("releases")(comics.releases)
app.command("details")(comics.details)
app.command("batch")(comics.batch)
app.add_typer(config_commands.app, name="config", help="Inspect and validate configuration")


# =============================================================================
# Init Command
# =============================================================================


@app.command()
def init(
    path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--path",
        help="Where to write the configuration",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Replace an existing file",
    ),
) -> None:
    """Write a default configuration file.

    The file lists every client, filter and logging setting with its
    default value.
    """
    try:
        written = write_default_config(path, force=force)
    except ConfigError as e:
        err_console.print(f"[red]{e}[/red] (use --force to overwrite)")
        raise typer.Exit(1)

    console.print()
    console.print(Panel.fit(
        "[bold green]OK - configuration written![/bold green]\n\n"
        f"Created:\n"
        f"  - [cyan]{written}[/cyan] - Application configuration\n\n"
        "Next steps:\n"
        "  1. This week's releases: [yellow]comicgeeks releases[/yellow]\n"
        "  2. One issue: [yellow]comicgeeks details <id> <slug>[/yellow]\n"
        "  3. Override the site origin with [yellow]LOCG_FETCH_URL[/yellow] if needed",
        title="[bold]comicgeeks init[/bold]",
        border_style="green",
    ))


# =============================================================================
# Entry Point
# =============================================================================


def run() -> None:
    """Console-script entry point."""
    app()


if __name__ == "__main__":
    run()
