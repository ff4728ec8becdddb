from __future__ import annotations

import asyncio

import typer
from rich.console import Console

from tasmoscan.core import run_mock_device


def register(app: typer.Typer) -> None:
    @app.command()
    def mock(
        name: str = typer.Option("mock-plug-1", "--name", "-n", help="Device name"),
        firmware: str = typer.Option(
            "9.1.0", "--firmware", help="Firmware version to report"
        ),
        variant: str = typer.Option(
            "tasmota", "--variant", help="Firmware build variant to report"
        ),
        port: int = typer.Option(8080, "--port", "-p", help="Port to listen on"),
        host: str = typer.Option("0.0.0.0", "--host", help="Address to bind to"),
        password: str = typer.Option(
            "", "--password", help="Require this web admin password"
        ),
    ) -> None:
        """Run a mock Tasmota device for development."""
        console = Console()
        console.print(
            f"Starting mock device '{name}' ({firmware}({variant})) on {host}:{port}..."
        )
        console.print("Press Ctrl+C to stop.\n")

        try:
            asyncio.run(
                run_mock_device(
                    name=name,
                    firmware_version=firmware,
                    firmware_variant=variant,
                    port=port,
                    host=host,
                    password=password,
                )
            )
        except KeyboardInterrupt:
            console.print("\n[green]Mock device stopped.[/green]")
