"""tasmoscan - find Tasmota devices, flag outdated firmware and trigger OTA updates."""

from __future__ import annotations

from importlib.metadata import version

from .config import ScanningConfig, Settings, get_settings
from .errors import (
    IncompatibleDeviceError,
    InvalidRangeError,
    ProbeError,
    ReferenceVersionError,
    TasmoscanError,
    UpdateStepError,
    VersionParseError,
)
from .models import Device

__all__ = [
    "Device",
    "IncompatibleDeviceError",
    "InvalidRangeError",
    "ProbeError",
    "ReferenceVersionError",
    "ScanningConfig",
    "Settings",
    "TasmoscanError",
    "UpdateStepError",
    "VersionParseError",
    "__version__",
    "get_settings",
]

__version__ = version("tasmoscan")
