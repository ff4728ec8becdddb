from __future__ import annotations

import ipaddress
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from ipaddress import IPv4Address

from tasmoscan.errors import InvalidRangeError

logger = logging.getLogger(__name__)

ALL_ONES = 0xFFFFFFFF


@dataclass(frozen=True)
class AddressRange:
    """Closed interval of IPv4 addresses, iterated in ascending order.

    Iteration is lazy and can be repeated; every address including the
    network and broadcast address is part of the range.
    """

    start: int
    finish: int
    cidr: str = ""

    @property
    def first(self) -> IPv4Address:
        return IPv4Address(self.start)

    @property
    def last(self) -> IPv4Address:
        return IPv4Address(self.finish)

    def __len__(self) -> int:
        return self.finish - self.start + 1

    def __iter__(self) -> Iterator[IPv4Address]:
        for value in range(self.start, self.finish + 1):
            yield IPv4Address(value)

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, IPv4Address):
            return False
        return self.start <= int(item) <= self.finish


def expand_range(cidr: str) -> AddressRange:
    """Turn a CIDR string such as ``192.168.0.0/24`` into an AddressRange."""
    text = cidr.strip()
    if "/" not in text:
        raise InvalidRangeError(cidr, "missing prefix length")
    try:
        network = ipaddress.IPv4Network(text, strict=False)
    except ValueError as exc:
        raise InvalidRangeError(cidr, str(exc)) from exc

    mask = int(network.netmask)
    start = int(network.network_address) & mask
    finish = start | (~mask & ALL_ONES)
    logger.debug("Expanded %s to %s - %s", cidr, IPv4Address(start), IPv4Address(finish))
    return AddressRange(start=start, finish=finish, cidr=str(network))
