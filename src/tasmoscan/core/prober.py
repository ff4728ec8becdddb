from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from ipaddress import IPv4Address
from urllib.parse import quote

from tasmoscan.errors import IncompatibleDeviceError, ProbeError, TransportError
from tasmoscan.models import Device

from .transport import Transport

logger = logging.getLogger(__name__)

STATUS_COMMAND = "Status%200"

# "9.1.0(tasmota)" -> ("9.1.0", "tasmota")
FIRMWARE_PATTERN = re.compile(r"^(?P<version>[^()]+)\((?P<variant>[^()]+)\)$")


@dataclass(frozen=True)
class DeviceStatus:
    name: str
    firmware_version: str
    firmware_variant: str


def password_query(password: str) -> str:
    if not password:
        return ""
    return f"user=admin&password={quote(password, safe='')}&"


def build_command_url(host: str, command: str, password: str = "") -> str:
    return f"http://{host}/cm?{password_query(password)}cmnd={command}"


def build_status_url(host: str, password: str = "") -> str:
    return build_command_url(host, STATUS_COMMAND, password)


def parse_firmware_version(value: str) -> tuple[str, str]:
    """Split a firmware string like ``9.1.0(sensors)`` into version and variant.

    Raises ValueError when the string does not have that shape.
    """
    match = FIRMWARE_PATTERN.match(value.strip())
    if match is None:
        raise ValueError(f"Unrecognised firmware string: {value!r}")
    return match.group("version"), match.group("variant")


def parse_status(body: str) -> DeviceStatus:
    """Extract name and firmware from a ``Status 0`` response body.

    Raises ValueError if the body is not a Tasmota status document.
    """
    try:
        data = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Response is not JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("Response is not a JSON object")

    firmware = data.get("StatusFWR")
    raw_version = firmware.get("Version") if isinstance(firmware, dict) else None
    if not isinstance(raw_version, str):
        raise ValueError("Response has no StatusFWR.Version")
    version, variant = parse_firmware_version(raw_version)

    status = data.get("Status")
    name = status.get("DeviceName") if isinstance(status, dict) else None
    return DeviceStatus(
        name=name if isinstance(name, str) else "",
        firmware_version=version,
        firmware_variant=variant,
    )


async def probe_device(
    address: IPv4Address, transport: Transport, password: str = ""
) -> Device:
    """Ask one address for its status and build a Device from the answer.

    Raises ProbeError if nothing answers and IncompatibleDeviceError if the
    answer is not a Tasmota status document.
    """
    url = build_status_url(str(address), password)
    try:
        body = await transport.get(url)
    except TransportError as exc:
        raise ProbeError(address, exc.reason) from exc

    try:
        status = parse_status(body)
    except ValueError as exc:
        raise IncompatibleDeviceError(address, str(exc)) from exc

    return Device(
        address=address,
        name=status.name,
        firmware_version=status.firmware_version,
        firmware_variant=status.firmware_variant,
    )
