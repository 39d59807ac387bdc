"""Default formatters for types whose internals are not worth diffing."""

from __future__ import annotations

import ipaddress
from datetime import date, datetime, time
from types import MappingProxyType
from typing import Any, Callable, Mapping

from .subnetmap import SubnetMap

# Rendered through their canonical string form instead of being walked.
DEFAULT_FORMATTERS: Mapping[type, Callable[[Any], str]] = MappingProxyType({
    ipaddress.IPv4Address: str,
    ipaddress.IPv6Address: str,
    ipaddress.IPv4Network: str,
    ipaddress.IPv6Network: str,
    ipaddress.IPv4Interface: str,
    ipaddress.IPv6Interface: str,
    datetime: str,
    date: str,
    time: str,
    SubnetMap: str,
})
