"""
Configuration commands for inspecting and validating app.yaml.
"""

from __future__ import annotations

from pathlib import Path

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax

from comicgeeks.core.config import ConfigError, load_app_config, validate_config_file
from comicgeeks.core.config.loader import DEFAULT_CONFIG_PATH

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Inspect and validate configuration",
    no_args_is_help=True,
)


@app.command("validate")
def validate_config(
    path: Path = typer.Argument(
        DEFAULT_CONFIG_PATH,
        help="Configuration file to check",
    ),
) -> None:
    """Check a configuration file without running anything."""
    errors = validate_config_file(path)

    if errors:
        err_console.print(f"[red]{len(errors)} problem(s) in {path}:[/red]")
        for error in errors:
            err_console.print(f"  - {escape(error)}")
        raise typer.Exit(1)

    console.print(f"[green]OK[/green] {path} is valid")


@app.command("show")
def show_config(
    ctx: typer.Context,
) -> None:
    """Print the effective configuration (file, environment and defaults)."""
    options = ctx.obj or {}
    try:
        config = load_app_config(options.get("config_path"))
    except ConfigError as e:
        err_console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(1)

    rendered = yaml.safe_dump(config.to_yaml_dict(), sort_keys=False)
    console.print(Syntax(rendered, "yaml"))
