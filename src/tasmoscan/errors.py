"""Error types raised by the scan pipeline."""

from __future__ import annotations

from ipaddress import IPv4Address


class TasmoscanError(Exception):
    """Base class for all tasmoscan errors."""


class InvalidRangeError(TasmoscanError, ValueError):
    def __init__(self, cidr: str, reason: str = "") -> None:
        message = f"Invalid network range: {cidr!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.cidr = cidr


class TransportError(TasmoscanError):
    """An HTTP GET failed: timeout, connection error or non-2xx status."""

    def __init__(self, url: str, reason: str, status: int | None = None) -> None:
        super().__init__(f"GET {url} failed: {reason}")
        self.url = url
        self.reason = reason
        self.status = status


class ProbeFailure(TasmoscanError):
    """A single address did not yield a device."""

    def __init__(self, address: IPv4Address, message: str) -> None:
        super().__init__(f"{address}: {message}")
        self.address = address


class ProbeError(ProbeFailure):
    """Nothing usable answered at the address."""


class IncompatibleDeviceError(ProbeFailure):
    """Something answered, but not with a Tasmota status document."""


class ReferenceVersionError(TasmoscanError):
    """The latest upstream version could not be determined."""


class VersionParseError(TasmoscanError, ValueError):
    def __init__(self, version: str, address: IPv4Address | None = None) -> None:
        where = f" reported by {address}" if address is not None else ""
        super().__init__(f"Cannot parse firmware version {version!r}{where}")
        self.version = version
        self.address = address


class UpdateStepError(TasmoscanError):
    def __init__(self, address: IPv4Address, step: str, cause: Exception) -> None:
        super().__init__(f"{address}: {step} failed: {cause}")
        self.address = address
        self.step = step
        self.cause = cause
