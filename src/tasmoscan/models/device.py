from __future__ import annotations

from ipaddress import IPv4Address

from pydantic import BaseModel, Field


class Device(BaseModel):
    """A Tasmota device found by a scan."""

    model_config = {"extra": "forbid", "validate_assignment": True}

    address: IPv4Address
    name: str = ""
    firmware_version: str = Field(min_length=1)
    firmware_variant: str = Field(min_length=1)
    outdated: bool = False

    @property
    def sort_key(self) -> int:
        return int(self.address)
