from __future__ import annotations

from .addresses import AddressRange, expand_range
from .mock_device import MockTasmotaDevice, run_mock_device
from .prober import (
    build_command_url,
    build_status_url,
    parse_firmware_version,
    parse_status,
    password_query,
    probe_device,
)
from .runner import ScanReport, run_daemon, scan_and_update
from .scanner import ProbeOutcome, check_device, scan_network, sort_devices
from .transport import HttpTransport, Transport
from .updater import UpdateResult, build_ota_url, update_device, update_devices
from .versions import (
    GithubReleaseFeed,
    ReleaseFeed,
    check_device_version,
    fetch_reference_version,
    parse_version,
    reconcile_devices,
)

__all__ = [
    "AddressRange",
    "GithubReleaseFeed",
    "HttpTransport",
    "MockTasmotaDevice",
    "ProbeOutcome",
    "ReleaseFeed",
    "ScanReport",
    "Transport",
    "UpdateResult",
    "build_command_url",
    "build_ota_url",
    "build_status_url",
    "check_device",
    "check_device_version",
    "expand_range",
    "fetch_reference_version",
    "parse_firmware_version",
    "parse_status",
    "parse_version",
    "password_query",
    "probe_device",
    "reconcile_devices",
    "run_daemon",
    "run_mock_device",
    "scan_and_update",
    "scan_network",
    "sort_devices",
    "update_device",
    "update_devices",
]
