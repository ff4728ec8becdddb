from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Iterable

import typer
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from tasmoscan.cli.helpers import load_settings_or_exit
from tasmoscan.config import Settings
from tasmoscan.core import (
    GithubReleaseFeed,
    HttpTransport,
    ReleaseFeed,
    ScanReport,
    run_daemon,
    scan_and_update,
)
from tasmoscan.errors import InvalidRangeError, ReferenceVersionError
from tasmoscan.models import Device

logger = logging.getLogger(__name__)


def apply_overrides(
    settings: Settings,
    cidr: str | None = None,
    password: str | None = None,
    update: bool | None = None,
    ota_url: str | None = None,
    timeout: float | None = None,
    parallel: int | None = None,
    daemon: bool | None = None,
) -> Settings:
    """Return settings with the given command line values layered on top."""

    def _changes(**values: object) -> dict[str, object]:
        return {key: value for key, value in values.items() if value is not None}

    return settings.model_copy(
        update={
            "scanning": settings.scanning.model_copy(
                update=_changes(cidr=cidr, timeout=timeout, parallel_scans=parallel)
            ),
            "device": settings.device.model_copy(update=_changes(password=password)),
            "updates": settings.updates.model_copy(
                update=_changes(enabled=update, ota_url=ota_url)
            ),
            "daemon": settings.daemon.model_copy(update=_changes(enabled=daemon)),
        }
    )


def render_device_table(devices: Iterable[Device]) -> Table:
    table = Table()
    table.add_column("IP", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Version")
    table.add_column("Variant")
    table.add_column("Status", style="yellow")

    for device in devices:
        table.add_row(
            str(device.address),
            device.name,
            device.firmware_version,
            device.firmware_variant,
            "outdated" if device.outdated else "",
        )
    return table


def print_report(console: Console, report: ScanReport) -> None:
    if not report.devices:
        console.print(f"No Tasmota devices found in {report.cidr}.")
        return

    console.print(render_device_table(report.devices))
    console.print(
        f"\n[green]Found {len(report.devices)} device(s)[/green], "
        f"{len(report.outdated)} older than {report.reference_version}"
    )
    for error in report.version_errors:
        console.print(f"[yellow]![/yellow] {error}")
    for result in report.updates:
        mark = "[green]✓[/green]" if result.ok else "[red]✗[/red]"
        console.print(
            f"{mark} {result.device.name} ({result.device.address}) <- {result.ota_url}"
        )


async def run_once(
    settings: Settings, console: Console, feed: ReleaseFeed
) -> ScanReport:
    async with HttpTransport(
        timeout=settings.scanning.timeout, limit=settings.scanning.parallel_scans
    ) as transport:
        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as progress:
            task_id = progress.add_task(
                f"Scanning {settings.scanning.cidr}", total=None
            )

            def _on_progress(done: int, total: int) -> None:
                progress.update(task_id, completed=done, total=total)

            report = await scan_and_update(
                settings, transport, feed, on_progress=_on_progress
            )
    print_report(console, report)
    return report


async def run_forever(settings: Settings, console: Console, feed: ReleaseFeed) -> int:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    return await run_daemon(
        lambda: run_once(settings, console, feed),
        settings.daemon.interval_hours,
        stop,
    )


def scan(
    cidr: str | None = typer.Argument(
        None,
        help="Network to scan (e.g., 192.168.0.0/24). Uses config default if omitted.",
    ),
    password: str | None = typer.Option(
        None, "--password", help="Web admin password of the devices"
    ),
    update: bool = typer.Option(
        False, "--update", help="Trigger OTA updates for outdated devices"
    ),
    ota_url: str | None = typer.Option(
        None, "--ota-url", help="Base URL of the firmware binaries"
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", min=0.1, help="Request timeout in seconds"
    ),
    parallel: int | None = typer.Option(
        None, "--parallel", min=1, max=1024, help="Number of concurrent probes"
    ),
    daemon: bool = typer.Option(
        False, "--daemon", help="Repeat the scan at the configured interval"
    ),
) -> None:
    """Scan a network for Tasmota devices and report outdated firmware."""
    console = Console()

    settings = apply_overrides(
        load_settings_or_exit(),
        cidr=cidr,
        password=password,
        update=update or None,
        ota_url=ota_url,
        timeout=timeout,
        parallel=parallel,
        daemon=daemon or None,
    )
    if cidr is None:
        console.print(f"Using network from config: {settings.scanning.cidr}")

    logger.info(
        "Scan settings: timeout=%.2fs, parallel_scans=%d, updates=%s",
        settings.scanning.timeout,
        settings.scanning.parallel_scans,
        settings.updates.enabled,
    )
    feed = GithubReleaseFeed()
    try:
        if settings.daemon.enabled:
            asyncio.run(run_forever(settings, console, feed))
        else:
            asyncio.run(run_once(settings, console, feed))
    except (InvalidRangeError, ReferenceVersionError) as exc:
        logger.error("%s", exc)
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc


def register(app: typer.Typer) -> None:
    app.command()(scan)
