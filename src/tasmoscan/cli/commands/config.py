from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console

from tasmoscan.cli.helpers import load_settings_or_exit, resolve_config_path_or_exit
from tasmoscan.config import Settings, render_settings_toml, write_settings

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show_config() -> None:
    """Show current configuration."""
    settings = load_settings_or_exit()
    path, exists = resolve_config_path_or_exit(allow_missing=True)

    source = str(path) if exists else "defaults"
    typer.echo(f"Config source: {source}")
    typer.echo(render_settings_toml(settings))


@app.command("init")
def init_config(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing config file"),
    ] = False,
) -> None:
    """Write a config file with default values."""
    console = Console()

    config_path, config_exists = resolve_config_path_or_exit(allow_missing=True)
    if config_exists and not force:
        console.print(f"[dim]Config exists:[/dim] {config_path}")
        return

    write_settings(Settings(), config_path)
    action = "Overwrote" if config_exists else "Created"
    console.print(f"[green]✓[/green] {action} config: {config_path}")
