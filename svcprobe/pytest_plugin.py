"""
pytest plugin exposing the probes as fixtures.

Enable it from a conftest.py:

    pytest_plugins = ["svcprobe.pytest_plugin"]
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable

import pytest

from .config import ProbeConfig
from .lifecycle import guard_lifecycle
from .readiness import check_external_service


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("svcprobe")
    group.addoption(
        "--short",
        action="store_true",
        dest="svcprobe_short",
        help="Skip tests that need real external services.",
    )


@pytest.fixture(scope="session")
def probe_config(pytestconfig: pytest.Config) -> ProbeConfig:
    """Probe configuration from the environment, with --short applied."""
    config = ProbeConfig.from_env()
    if pytestconfig.getoption("svcprobe_short"):
        config = replace(config, short=True)
    return config


@pytest.fixture
def check_service(probe_config: ProbeConfig) -> Callable[..., str]:
    """
    Check an external service with the session configuration.

    Usage:
        def test_kafka(check_service):
            broker = check_service("kafka", ["kafka", "localhost"], 9092)
    """
    def check(name: str, dns_candidates: list[str], port: str | int) -> str:
        return check_external_service(name, dns_candidates, port, config=probe_config)
    return check


@pytest.fixture
def start_stop(request: pytest.FixtureRequest) -> Callable[[Any], Any]:
    """
    Start a component now and stop it when the test ends.

    Usage:
        def test_worker(start_stop):
            worker = start_stop(Worker())
    """
    def guard(component: Any) -> Any:
        guard_lifecycle(component, request.addfinalizer)
        return component
    return guard
