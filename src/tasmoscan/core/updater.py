from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from urllib.parse import quote

from tasmoscan.config import Settings
from tasmoscan.errors import TransportError, UpdateStepError
from tasmoscan.models import Device

from .prober import build_command_url
from .transport import Transport

logger = logging.getLogger(__name__)

FIRMWARE_FAMILY = "tasmota"
DEFAULT_VARIANT = "tasmota"


@dataclass
class UpdateResult:
    device: Device
    ota_url: str
    errors: list[UpdateStepError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def ota_base_url(ota_url: str, family: str = FIRMWARE_FAMILY) -> str:
    return f"{ota_url}{family}"


def ota_url_command(ota_url: str) -> str:
    return f"OtaUrl%20{quote(ota_url, safe=':/')}"


def build_ota_url(base: str, variant: str) -> str:
    """Binary URL for a variant; the default build has no suffix."""
    if variant == DEFAULT_VARIANT:
        return f"{base}.bin"
    return f"{base}-{variant}.bin"


async def update_device(
    device: Device, ota_url: str, transport: Transport, password: str = ""
) -> UpdateResult:
    """Point the device at ota_url and trigger the upgrade.

    Both requests are always sent; failures are recorded on the result.
    """
    result = UpdateResult(device=device, ota_url=ota_url)
    logger.info("Updating %s (%s) from URL: %s", device.name, device.address, ota_url)

    steps = (
        ("OtaUrl", ota_url_command(ota_url)),
        ("Upgrade", "Upgrade%201"),
    )
    for step, command in steps:
        url = build_command_url(str(device.address), command, password)
        try:
            await transport.get(url)
        except TransportError as exc:
            error = UpdateStepError(device.address, step, exc)
            logger.warning("%s", error)
            result.errors.append(error)
    return result


async def update_devices(
    devices: Iterable[Device], settings: Settings, transport: Transport
) -> list[UpdateResult]:
    base = ota_base_url(settings.updates.ota_url)
    results: list[UpdateResult] = []
    for device in devices:
        if not device.outdated:
            continue
        ota_url = build_ota_url(base, device.firmware_variant)
        results.append(
            await update_device(device, ota_url, transport, settings.device.password)
        )
    logger.info(
        "Sent updates to %d devices (%d with errors)",
        len(results),
        sum(1 for result in results if not result.ok),
    )
    return results
