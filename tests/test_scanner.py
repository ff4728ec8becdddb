from __future__ import annotations

import asyncio
from ipaddress import IPv4Address

import pytest

from conftest import DEVICE_A, DEVICE_B, FakeTransport
from tasmoscan.config import ScanningConfig, Settings
from tasmoscan.core import check_device, expand_range, scan_network, sort_devices
from tasmoscan.errors import IncompatibleDeviceError, ProbeError
from tasmoscan.models import Device


def _settings(parallel_scans: int = 64) -> Settings:
    return Settings(scanning=ScanningConfig(parallel_scans=parallel_scans))


def _responders() -> dict[str, object]:
    return {
        "10.0.0.5": DEVICE_B,
        "10.0.0.1": DEVICE_A,
        "10.0.0.3": {"Status": {"DeviceName": "C"}, "StatusFWR": {"Version": "9.1.0(DE)"}},
        "10.0.0.4": "<html>not a tasmota</html>",
    }


def test_scan_keeps_only_valid_responders_sorted():
    transport = FakeTransport(_responders())

    devices = asyncio.run(
        scan_network(expand_range("10.0.0.0/29"), _settings(), transport)
    )

    assert [str(device.address) for device in devices] == [
        "10.0.0.1",
        "10.0.0.3",
        "10.0.0.5",
    ]
    assert [device.name for device in devices] == ["A", "C", "B"]
    assert len(transport.requests) == 8


def test_scan_is_stable_regardless_of_completion_order():
    addresses = expand_range("10.0.0.0/29")
    fast_last = {"10.0.0.1": 0.03, "10.0.0.3": 0.02, "10.0.0.5": 0.0}
    fast_first = {"10.0.0.1": 0.0, "10.0.0.3": 0.02, "10.0.0.5": 0.03}

    first = asyncio.run(
        scan_network(addresses, _settings(), FakeTransport(_responders(), fast_last))
    )
    second = asyncio.run(
        scan_network(addresses, _settings(), FakeTransport(_responders(), fast_first))
    )

    assert [device.model_dump() for device in first] == [
        device.model_dump() for device in second
    ]


def test_scan_reports_progress_for_every_address():
    calls: list[tuple[int, int]] = []

    asyncio.run(
        scan_network(
            expand_range("10.0.0.0/29"),
            _settings(parallel_scans=3),
            FakeTransport(_responders()),
            on_progress=lambda done, total: calls.append((done, total)),
        )
    )

    assert calls == [(done, 8) for done in range(1, 9)]


def test_scan_respects_worker_limit():
    class CountingTransport(FakeTransport):
        def __init__(self) -> None:
            super().__init__(_responders())
            self.in_flight = 0
            self.max_in_flight = 0

        async def get(self, url: str) -> str:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
            try:
                await asyncio.sleep(0.001)
                return await super().get(url)
            finally:
                self.in_flight -= 1

    transport = CountingTransport()
    devices = asyncio.run(
        scan_network(expand_range("10.0.0.0/28"), _settings(parallel_scans=2), transport)
    )

    assert transport.max_in_flight <= 2
    assert len(transport.requests) == 16
    assert len(devices) == 3


def test_single_address_range():
    devices = asyncio.run(
        scan_network(
            expand_range("10.0.0.1/32"), _settings(), FakeTransport(_responders())
        )
    )
    assert [device.name for device in devices] == ["A"]


def test_unexpected_worker_error_propagates():
    transport = FakeTransport({"10.0.0.2": RuntimeError("boom")})

    with pytest.raises(RuntimeError, match="boom"):
        asyncio.run(scan_network(expand_range("10.0.0.0/30"), _settings(), transport))


def test_check_device_outcomes():
    transport = FakeTransport(_responders())

    found = asyncio.run(check_device(IPv4Address("10.0.0.1"), transport))
    absent = asyncio.run(check_device(IPv4Address("10.0.0.2"), transport))
    foreign = asyncio.run(check_device(IPv4Address("10.0.0.4"), transport))

    assert found.ok and found.device is not None and found.error is None
    assert not absent.ok and isinstance(absent.error, ProbeError)
    assert not foreign.ok and isinstance(foreign.error, IncompatibleDeviceError)


def test_sort_devices_is_numeric():
    devices = [
        Device(address="10.0.0.10", firmware_version="1.0.0", firmware_variant="x"),
        Device(address="10.0.0.9", firmware_version="1.0.0", firmware_variant="x"),
        Device(address="9.255.255.255", firmware_version="1.0.0", firmware_variant="x"),
    ]

    assert [str(device.address) for device in sort_devices(devices)] == [
        "9.255.255.255",
        "10.0.0.9",
        "10.0.0.10",
    ]
