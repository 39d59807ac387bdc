"""Subnet-to-value mapping used by configuration values."""

from __future__ import annotations

import ipaddress
from typing import Any, Iterator, Mapping

from pydantic_core import core_schema

_MAPPED_V4 = ipaddress.IPv6Network("::ffff:0:0/96")


def _to_v6_network(key: str | ipaddress.IPv4Network | ipaddress.IPv6Network) -> ipaddress.IPv6Network:
    """Parse a subnet, storing IPv4 subnets as IPv4-mapped IPv6 subnets."""
    network = ipaddress.ip_network(key) if isinstance(key, str) else key
    if isinstance(network, ipaddress.IPv4Network):
        mapped = ipaddress.IPv6Address(f"::ffff:{network.network_address}")
        return ipaddress.IPv6Network((mapped, 96 + network.prefixlen))
    return network


def _to_v6_address(address: str | ipaddress.IPv4Address | ipaddress.IPv6Address) -> ipaddress.IPv6Address:
    address = ipaddress.ip_address(address) if isinstance(address, str) else address
    if isinstance(address, ipaddress.IPv4Address):
        return ipaddress.IPv6Address(f"::ffff:{address}")
    return address


def _display(network: ipaddress.IPv6Network) -> str:
    if network.prefixlen >= 96 and network.subnet_of(_MAPPED_V4):
        v4 = network.network_address.ipv4_mapped
        return f"{v4}/{network.prefixlen - 96}"
    return str(network)


class SubnetMap:
    """
    Immutable mapping from subnets to values with longest-prefix lookup.

    Built from a mapping of CIDR strings to values, or from a single value
    which then applies to every address (``::/0``).
    """

    def __init__(self, entries: Mapping[Any, Any] | None = None):
        self._entries: dict[ipaddress.IPv6Network, Any] = {}
        for key, value in (entries or {}).items():
            self._entries[_to_v6_network(key)] = value

    @classmethod
    def from_value(cls, value: Any) -> "SubnetMap":
        """Build a map from a configuration value (a mapping or a default)."""
        if isinstance(value, SubnetMap):
            return value
        if isinstance(value, Mapping):
            return cls({str(k): v for k, v in value.items()})
        return cls({"::/0": value})

    def lookup(self, address: str | ipaddress.IPv4Address | ipaddress.IPv6Address) -> Any:
        """Return the value of the most specific subnet containing address, or None."""
        ip = _to_v6_address(address)
        best = None
        for network, value in self._entries.items():
            if ip in network and (best is None or network.prefixlen > best[0].prefixlen):
                best = (network, value)
        return best[1] if best else None

    def to_dict(self) -> dict[str, Any]:
        """Return the entries keyed by CIDR strings, ordered by subnet."""
        return {_display(n): self._entries[n] for n in sorted(self._entries)}

    def __iter__(self) -> Iterator[str]:
        return iter(self.to_dict())

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SubnetMap):
            return NotImplemented
        return self._entries == other._entries

    def __str__(self) -> str:
        items = ", ".join(f"{k}: {v}" for k, v in self.to_dict().items())
        return "{" + items + "}"

    def __repr__(self) -> str:
        return f"SubnetMap({self.to_dict()!r})"

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type, handler):
        return core_schema.no_info_plain_validator_function(
            cls.from_value,
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda m: m.to_dict()
            ),
        )
