from __future__ import annotations

import asyncio
from ipaddress import IPv4Address

import pytest

from conftest import DEVICE_A, FakeTransport
from tasmoscan.core import (
    build_command_url,
    build_status_url,
    parse_firmware_version,
    parse_status,
    password_query,
    probe_device,
)
from tasmoscan.errors import IncompatibleDeviceError, ProbeError, ProbeFailure

STATUS_BODY = """
    {
        "Status": {
            "DeviceName": "Steckdose Schlafzimmer TV"
        },
        "StatusFWR": {
            "Version": "9.1.0(tasmota)"
        }
    }"""


def test_build_status_url():
    assert build_status_url("testhost", "") == "http://testhost/cm?cmnd=Status%200"
    assert (
        build_status_url("testhost", "test")
        == "http://testhost/cm?user=admin&password=test&cmnd=Status%200"
    )


def test_build_command_url():
    assert (
        build_command_url("10.0.0.5", "Upgrade%201", "pw")
        == "http://10.0.0.5/cm?user=admin&password=pw&cmnd=Upgrade%201"
    )


def test_password_query():
    assert password_query("test") == "user=admin&password=test&"
    assert password_query("") == ""


def test_password_is_percent_encoded():
    assert password_query("pa#ss&x+y%") == "user=admin&password=pa%23ss%26x%2By%25&"
    assert build_status_url("h", "a b/c") == (
        "http://h/cm?user=admin&password=a%20b%2Fc&cmnd=Status%200"
    )


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("9.1.0(tasmota)", ("9.1.0", "tasmota")),
        ("2.0.0(sensors)", ("2.0.0", "sensors")),
        ("8.5.1(DE)", ("8.5.1", "DE")),
        ("12.5.0.3(tasmota32)", ("12.5.0.3", "tasmota32")),
    ],
)
def test_parse_firmware_version(value: str, expected: tuple[str, str]):
    assert parse_firmware_version(value) == expected


@pytest.mark.parametrize(
    "value", ["test", "", "9.1.0", "(tasmota)", "9.1.0()", "9.1.0(tasmota)x"]
)
def test_parse_firmware_version_rejects_other_shapes(value: str):
    with pytest.raises(ValueError):
        parse_firmware_version(value)


def test_parse_status():
    status = parse_status(STATUS_BODY)
    assert status.name == "Steckdose Schlafzimmer TV"
    assert status.firmware_version == "9.1.0"
    assert status.firmware_variant == "tasmota"


def test_parse_status_without_name():
    status = parse_status('{"StatusFWR": {"Version": "9.1.0(lite)"}}')
    assert status.name == ""
    assert status.firmware_variant == "lite"


@pytest.mark.parametrize(
    "body",
    [
        "<html>router login</html>",
        "[]",
        '{"Status": {"DeviceName": "x"}}',
        '{"StatusFWR": {"Version": 9}}',
        '{"StatusFWR": {"Version": "unknown"}}',
    ],
)
def test_parse_status_rejects_foreign_documents(body: str):
    with pytest.raises(ValueError):
        parse_status(body)


def test_probe_device_builds_device():
    transport = FakeTransport({"10.0.0.1": DEVICE_A})

    device = asyncio.run(probe_device(IPv4Address("10.0.0.1"), transport))

    assert device.address == IPv4Address("10.0.0.1")
    assert device.name == "A"
    assert device.firmware_version == "1.0.0"
    assert device.firmware_variant == "tasmota"
    assert device.outdated is False
    assert transport.requests == ["http://10.0.0.1/cm?cmnd=Status%200"]


def test_probe_device_sends_password():
    transport = FakeTransport({"10.0.0.1": DEVICE_A})

    asyncio.run(probe_device(IPv4Address("10.0.0.1"), transport, password="s3cret"))

    assert transport.requests == [
        "http://10.0.0.1/cm?user=admin&password=s3cret&cmnd=Status%200"
    ]


def test_probe_device_without_answer():
    transport = FakeTransport()

    with pytest.raises(ProbeError) as excinfo:
        asyncio.run(probe_device(IPv4Address("10.0.0.9"), transport))

    assert excinfo.value.address == IPv4Address("10.0.0.9")
    assert isinstance(excinfo.value, ProbeFailure)


def test_probe_device_incompatible_answer():
    transport = FakeTransport({"10.0.0.9": "<html>printer</html>"})

    with pytest.raises(IncompatibleDeviceError) as excinfo:
        asyncio.run(probe_device(IPv4Address("10.0.0.9"), transport))

    assert excinfo.value.address == IPv4Address("10.0.0.9")
