from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import semver

from tasmoscan.config import Settings
from tasmoscan.errors import ReferenceVersionError, VersionParseError
from tasmoscan.models import Device

from .addresses import expand_range
from .scanner import ProgressCallback, scan_network
from .transport import Transport
from .updater import UpdateResult, update_devices
from .versions import ReleaseFeed, fetch_reference_version, reconcile_devices

logger = logging.getLogger(__name__)


@dataclass
class ScanReport:
    cidr: str
    reference_version: semver.Version
    devices: list[Device]
    version_errors: list[VersionParseError] = field(default_factory=list)
    updates: list[UpdateResult] = field(default_factory=list)

    @property
    def outdated(self) -> list[Device]:
        return [device for device in self.devices if device.outdated]


async def scan_and_update(
    settings: Settings,
    transport: Transport,
    feed: ReleaseFeed,
    on_progress: ProgressCallback | None = None,
) -> ScanReport:
    """One complete run: expand, check upstream, scan, reconcile, update.

    InvalidRangeError and ReferenceVersionError end the run; everything that
    goes wrong for a single address or device is absorbed along the way.
    """
    addresses = expand_range(settings.scanning.cidr)
    reference = await fetch_reference_version(feed, transport)

    devices = await scan_network(addresses, settings, transport, on_progress)
    version_errors = reconcile_devices(devices, reference)
    report = ScanReport(
        cidr=addresses.cidr,
        reference_version=reference,
        devices=devices,
        version_errors=version_errors,
    )
    logger.info(
        "%d of %d devices are older than %s",
        len(report.outdated),
        len(devices),
        reference,
    )

    if settings.updates.enabled:
        report.updates = await update_devices(devices, settings, transport)
    else:
        logger.info(
            "Not updating any devices. Set TASMOSCAN_DOUPDATES=true "
            "or pass --update to enable automatic updates."
        )
    return report


async def run_daemon(
    run_once: Callable[[], Awaitable[object]],
    interval_hours: float,
    stop: asyncio.Event,
) -> int:
    """Call run_once every interval_hours until stop is set; returns the run count.

    A failed upstream version lookup only skips that run.
    """
    interval = interval_hours * 3600
    runs = 0
    while not stop.is_set():
        try:
            await run_once()
        except ReferenceVersionError as exc:
            logger.error("Scan skipped: %s", exc)
        runs += 1

        next_run = datetime.now() + timedelta(seconds=interval)
        logger.info("Next scan at: %s", next_run.strftime("%Y-%m-%d %H:%M:%S"))
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval)
        except TimeoutError:
            continue

    logger.info("Daemon stopped after %d runs", runs)
    return runs
