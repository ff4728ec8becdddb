from __future__ import annotations

from typing import Annotated

import typer

from tasmoscan.utils.logging import setup_logging

from .commands import config as config_cmd
from .commands.mock import register as register_mock
from .commands.scan import register as register_scan

app = typer.Typer(
    help="tasmoscan - find and update Tasmota devices", no_args_is_help=True
)

app.add_typer(config_cmd.app, name="config", help="Show or create the config file")

register_scan(app)
register_mock(app)


@app.callback(invoke_without_command=True)
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", help="Show version and exit"),
    ] = False,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level", help="DEBUG, INFO, WARNING or ERROR (default: $LOGLEVEL)"
        ),
    ] = None,
) -> None:
    """tasmoscan CLI."""
    setup_logging(log_level)

    if version:
        from importlib.metadata import version as get_version

        typer.echo(f"tasmoscan version {get_version('tasmoscan')}")
        raise typer.Exit()
