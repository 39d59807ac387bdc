"""Utility functions for svcprobe."""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Any


def parse_duration(duration_str: str) -> timedelta:
    """
    Parse a duration string like '100ms', '5s', '1m', '1h' into a timedelta.

    A bare number is read as seconds.

    Args:
        duration_str: Duration string (e.g., '0.5', '100ms', '5s', '2m')

    Returns:
        timedelta object
    """
    if not duration_str:
        return timedelta(0)

    pattern = r'^(\d+(?:\.\d+)?)\s*(ms|[smh])?$'
    match = re.match(pattern, duration_str.strip().lower())

    if not match:
        raise ValueError(f"Invalid duration format: {duration_str}")

    value = float(match.group(1))
    unit = match.group(2) or 's'

    if unit == 'ms':
        return timedelta(milliseconds=value)
    elif unit == 's':
        return timedelta(seconds=value)
    elif unit == 'm':
        return timedelta(minutes=value)
    elif unit == 'h':
        return timedelta(hours=value)

    raise ValueError(f"Unknown duration unit: {unit}")


def coerce_bool(value: str | None) -> bool:
    """Read an environment-style boolean."""
    if value is None:
        return False
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def is_numeric(value: Any) -> bool:
    """Check if a value is numeric (int or float)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def build_path(parent_path: str, key: str | int) -> str:
    """Build a JSONPath from parent path and key."""
    if isinstance(key, int) and not isinstance(key, bool):
        return f"{parent_path}[{key}]"
    else:
        # Handle special characters in key names
        if re.match(r'^[a-zA-Z_][a-zA-Z0-9_]*$', str(key)):
            return f"{parent_path}.{key}"
        else:
            return f"{parent_path}['{key}']"


def get_type_name(value: Any) -> str:
    """Get a friendly type name for a value."""
    if value is None:
        return "null"
    elif isinstance(value, bool):
        return "boolean"
    elif isinstance(value, int):
        return "integer"
    elif isinstance(value, float):
        return "number"
    elif isinstance(value, str):
        return "string"
    elif isinstance(value, (list, tuple)):
        return "array"
    elif isinstance(value, dict):
        return "object"
    else:
        return type(value).__name__


def values_equal(got: Any, want: Any) -> bool:
    """Check if two values are equal (handles type coercion for numbers)."""
    if type(got) == type(want):
        return got == want

    # Handle numeric comparison (int vs float)
    if is_numeric(got) and is_numeric(want):
        return float(got) == float(want)

    return got == want


def join_host_port(host: str, port: str | int) -> str:
    """Join a host and a port, bracketing IPv6 literals."""
    if ':' in host and not host.startswith('['):
        return f"[{host}]:{port}"
    return f"{host}:{port}"
