"""
Harness configuration.

Controls whether unreachable dependencies fail or skip tests, the short mode,
and the timeouts used by the network probes.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from .exceptions import ConfigurationError
from .models import RetryPolicy
from .utils import coerce_bool, parse_duration

DEFAULT_MANDATORY_ENV = "CI_FUNCTIONAL_TESTS"


def _default_resolve_policy() -> RetryPolicy:
    # One short lookup per DNS candidate.
    return RetryPolicy(attempt_timeout=0.1, deadline=0.1, interval=0.0)


def _default_connect_policy() -> RetryPolicy:
    return RetryPolicy(attempt_timeout=1.0, deadline=1.0, interval=0.1)


def _env_seconds(variable: str, default: float) -> float:
    raw = os.getenv(variable)
    if raw is None or raw.strip() == "":
        return default
    try:
        return parse_duration(raw).total_seconds()
    except ValueError as e:
        raise ConfigurationError(variable, raw, str(e)) from e


@dataclass
class ProbeConfig:
    """Configuration for the probes and harnesses."""

    # Name of the environment variable that makes dependency checks mandatory
    mandatory_env: str = DEFAULT_MANDATORY_ENV

    # Skip tests needing real external services
    short: bool = False

    # Timeouts (seconds)
    http_timeout: float = 10.0
    resolve_policy: RetryPolicy = field(default_factory=_default_resolve_policy)
    connect_policy: RetryPolicy = field(default_factory=_default_connect_policy)

    def is_mandatory(self) -> bool:
        """Dependencies are mandatory when the flag variable is set and non-empty."""
        return os.getenv(self.mandatory_env, "") != ""

    @classmethod
    def from_env(cls) -> "ProbeConfig":
        """Load config from environment variables."""
        resolve_timeout = _env_seconds("SVCPROBE_RESOLVE_TIMEOUT", 0.1)
        connect_deadline = _env_seconds("SVCPROBE_CONNECT_DEADLINE", 1.0)
        retry_interval = _env_seconds("SVCPROBE_RETRY_INTERVAL", 0.1)
        return cls(
            mandatory_env=os.getenv("SVCPROBE_MANDATORY_ENV") or DEFAULT_MANDATORY_ENV,
            short=coerce_bool(os.getenv("SVCPROBE_SHORT")),
            http_timeout=_env_seconds("SVCPROBE_HTTP_TIMEOUT", 10.0),
            resolve_policy=RetryPolicy(
                attempt_timeout=resolve_timeout,
                deadline=resolve_timeout,
                interval=0.0,
            ),
            connect_policy=RetryPolicy(
                attempt_timeout=connect_deadline,
                deadline=connect_deadline,
                interval=retry_interval,
            ),
        )


# Global default config instance
_config: ProbeConfig | None = None


def get_config() -> ProbeConfig:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = ProbeConfig.from_env()
    return _config


def reset_config() -> None:
    """Forget the global config so the next call reloads the environment."""
    global _config
    _config = None
