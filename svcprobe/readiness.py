"""
Readiness checks for external services (Kafka, ClickHouse, ...).

A service is looked up under several DNS names, for example its
docker-compose service name and then localhost. Timeouts are short: the
services are expected to be already running, either started manually or by
CI, which checks them for readiness first.
"""

from __future__ import annotations

import logging
import socket
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

import pytest

from .config import ProbeConfig, get_config
from .models import RetryPolicy
from .utils import join_host_port

logger = logging.getLogger(__name__)


def _unavailable(name: str, reason: str, config: ProbeConfig) -> None:
    """Fail or skip, depending on whether the dependency is mandatory."""
    if config.is_mandatory():
        pytest.fail(f"{name} {reason} ({config.mandatory_env} is set)", pytrace=False)
    pytest.skip(f"{name} {reason} ({config.mandatory_env} is not set)")


def resolve(host: str, timeout: float) -> bool:
    """Check that a name resolves within the timeout."""
    executor = ThreadPoolExecutor(max_workers=1)
    try:
        future = executor.submit(socket.getaddrinfo, host, None)
        future.result(timeout=timeout)
        return True
    except (OSError, FutureTimeoutError) as e:
        logger.debug("cannot resolve %s: %r", host, e)
        return False
    finally:
        # A lookup stuck past its timeout is left to finish on its own.
        executor.shutdown(wait=False)


def resolve_first(dns_candidates: list[str], policy: RetryPolicy) -> Optional[str]:
    """Return the first candidate that resolves, trying each once in order."""
    for candidate in dns_candidates:
        if resolve(candidate, policy.attempt_timeout):
            return candidate
    return None


def wait_for_connection(host: str, port: str | int, policy: RetryPolicy, mandatory: bool = False) -> Optional[Exception]:
    """
    Try to open a TCP connection until it succeeds or the deadline passes.

    Returns:
        None on success, the last connection error otherwise
    """
    deadline = time.monotonic() + policy.deadline
    last_error: Optional[Exception] = None
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return last_error or TimeoutError(f"no attempt before deadline to {host}:{port}")
        try:
            with socket.create_connection((host, int(port)), timeout=min(policy.attempt_timeout, remaining)):
                return None
        except OSError as e:
            last_error = e
            if mandatory:
                logger.warning("connect to %s error:\n%r", join_host_port(host, port), e)
        if deadline - time.monotonic() <= 0:
            return last_error
        time.sleep(policy.interval)


def check_external_service(
    name: str,
    dns_candidates: list[str],
    port: str | int,
    *,
    config: Optional[ProbeConfig] = None,
    short: Optional[bool] = None,
) -> str:
    """
    Check that an external service is reachable and return its "host:port".

    When it is not, the test fails if the mandatory environment variable is
    set and is skipped otherwise. In short mode, the test is always skipped.
    """
    config = config or get_config()
    if config.short if short is None else short:
        pytest.skip(f"Skip test with real {name} in short mode")
    mandatory = config.is_mandatory()

    found = resolve_first(dns_candidates, config.resolve_policy)
    if found is None:
        _unavailable(name, "cannot be resolved", config)

    error = wait_for_connection(found, port, config.connect_policy, mandatory=mandatory)
    if error is not None:
        if mandatory:
            logger.error("%s: last connection error:\n%r", name, error)
        _unavailable(name, "is not running", config)

    server = join_host_port(found, port)
    logger.info("%s is ready at %s", name, server)
    return server
