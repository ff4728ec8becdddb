from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from ipaddress import IPv4Address
from typing import Protocol

import semver

from tasmoscan.errors import ReferenceVersionError, TransportError, VersionParseError
from tasmoscan.models import Device

from .transport import Transport

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
TASMOTA_OWNER = "arendst"
TASMOTA_REPOSITORY = "Tasmota"

_TAG_PREFIX = re.compile(r"^[^0-9]+")


class ReleaseFeed(Protocol):
    async def latest_tag(self, transport: Transport) -> str: ...


def strip_version_prefix(tag: str) -> str:
    """``v14.3.0`` -> ``14.3.0``"""
    return _TAG_PREFIX.sub("", tag.strip())


def parse_version(value: str, address: IPv4Address | None = None) -> semver.Version:
    """Parse a plain ``MAJOR.MINOR.PATCH`` version.

    Pre-release or build suffixes, missing components and leading zeros are
    all rejected with VersionParseError.
    """
    try:
        version = semver.Version.parse(value)
    except (TypeError, ValueError) as exc:
        raise VersionParseError(value, address) from exc
    if version.prerelease or version.build:
        raise VersionParseError(value, address)
    return version


@dataclass(frozen=True)
class GithubReleaseFeed:
    """Tag of the latest published release of a GitHub repository."""

    owner: str = TASMOTA_OWNER
    repository: str = TASMOTA_REPOSITORY
    api_url: str = GITHUB_API_URL

    @property
    def release_url(self) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repository}/releases/latest"

    async def latest_tag(self, transport: Transport) -> str:
        data = await transport.get_json(self.release_url)
        tag = data.get("tag_name") if isinstance(data, dict) else None
        if not isinstance(tag, str) or not tag.strip():
            raise ReferenceVersionError(f"No release tag found at {self.release_url}")
        return tag


async def fetch_reference_version(
    feed: ReleaseFeed, transport: Transport
) -> semver.Version:
    try:
        tag = await feed.latest_tag(transport)
    except TransportError as exc:
        raise ReferenceVersionError(
            f"Getting the current firmware version failed: {exc}"
        ) from exc

    try:
        version = parse_version(strip_version_prefix(tag))
    except VersionParseError as exc:
        raise ReferenceVersionError(
            f"Latest release tag {tag!r} is not a version"
        ) from exc
    logger.info("Latest firmware release: %s", version)
    return version


def check_device_version(reference: semver.Version, device: Device) -> bool:
    """Flag the device as outdated if it runs an older version than reference."""
    device_version = parse_version(device.firmware_version, device.address)
    device.outdated = device_version < reference
    return device.outdated


def reconcile_devices(
    devices: Iterable[Device], reference: semver.Version
) -> list[VersionParseError]:
    errors: list[VersionParseError] = []
    for device in devices:
        try:
            check_device_version(reference, device)
        except VersionParseError as exc:
            logger.warning("Skipping version check: %s", exc)
            errors.append(exc)
    return errors
