from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from ipaddress import IPv4Address

from tasmoscan.config import Settings
from tasmoscan.errors import IncompatibleDeviceError, ProbeError, ProbeFailure
from tasmoscan.models import Device

from .addresses import AddressRange
from .prober import probe_device
from .transport import Transport

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of probing one address: a device or the reason there is none."""

    address: IPv4Address
    device: Device | None = None
    error: ProbeFailure | None = None

    @property
    def ok(self) -> bool:
        return self.device is not None


async def check_device(
    address: IPv4Address, transport: Transport, password: str = ""
) -> ProbeOutcome:
    logger.debug("Checking %s", address)
    try:
        device = await probe_device(address, transport, password)
    except ProbeError as exc:
        logger.debug("No device at %s: %s", address, exc)
        return ProbeOutcome(address, error=exc)
    except IncompatibleDeviceError as exc:
        logger.debug("Ignoring incompatible device at %s: %s", address, exc)
        return ProbeOutcome(address, error=exc)
    logger.info(
        "Found device '%s' at %s (%s/%s)",
        device.name,
        address,
        device.firmware_version,
        device.firmware_variant,
    )
    return ProbeOutcome(address, device=device)


def sort_devices(devices: Iterable[Device]) -> list[Device]:
    return sorted(devices, key=lambda device: device.sort_key)


async def scan_network(
    addresses: AddressRange,
    settings: Settings,
    transport: Transport,
    on_progress: ProgressCallback | None = None,
) -> list[Device]:
    """Probe every address in the range and return the devices, sorted by address.

    Addresses that time out, refuse the connection or answer with something
    other than a Tasmota status are left out of the result.
    """
    total = len(addresses)
    worker_count = min(settings.scanning.parallel_scans, total)
    password = settings.device.password
    logger.info(
        "Starting scan of %d addresses (%s, %d workers)",
        total,
        addresses.cidr or f"{addresses.first}-{addresses.last}",
        worker_count,
    )

    pending: asyncio.Queue[IPv4Address | None] = asyncio.Queue(
        maxsize=worker_count * 4
    )
    outcomes: asyncio.Queue[ProbeOutcome] = asyncio.Queue()

    async def _producer() -> None:
        for address in addresses:
            await pending.put(address)
        for _ in range(worker_count):
            await pending.put(None)

    async def _worker() -> None:
        while True:
            address = await pending.get()
            if address is None:
                return
            await outcomes.put(await check_device(address, transport, password))

    async def _collector() -> list[Device]:
        found: list[Device] = []
        absent = incompatible = 0
        for done in range(1, total + 1):
            outcome = await outcomes.get()
            if outcome.device is not None:
                found.append(outcome.device)
            elif isinstance(outcome.error, IncompatibleDeviceError):
                incompatible += 1
            else:
                absent += 1
            if on_progress is not None:
                on_progress(done, total)
        logger.info(
            "Scan complete: %d devices found, %d incompatible, %d without answer",
            len(found),
            incompatible,
            absent,
        )
        return found

    collector = asyncio.create_task(_collector())
    tasks = [asyncio.create_task(_producer())]
    tasks.extend(asyncio.create_task(_worker()) for _ in range(worker_count))
    completed = False
    try:
        results = await asyncio.gather(collector, *tasks)
        completed = True
    finally:
        if not completed:
            for task in (collector, *tasks):
                if not task.done():
                    task.cancel()
            await asyncio.gather(collector, *tasks, return_exceptions=True)

    return sort_devices(results[0])
