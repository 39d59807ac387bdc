"""Start components for a test and stop them on cleanup."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator

import pytest

from .models import Startable, Stoppable

logger = logging.getLogger(__name__)


def guard_lifecycle(component: Any, add_cleanup: Callable[[Callable[[], None]], Any]) -> Callable[[], None]:
    """
    Start a component if it can be started, and register its stop.

    Args:
        component: Any object; `start()` and `stop()` are used when present
        add_cleanup: Registers the stop action, e.g. `request.addfinalizer`

    Returns:
        The registered stop action (it runs at most once)
    """
    if isinstance(component, Startable) and callable(component.start):
        try:
            component.start()
        except Exception as e:
            pytest.fail(f"Start() error:\n{e!r}", pytrace=False)
        logger.info("started %s", type(component).__name__)

    stopped = False

    def stop() -> None:
        nonlocal stopped
        if stopped:
            return
        stopped = True
        if not (isinstance(component, Stoppable) and callable(component.stop)):
            return
        try:
            component.stop()
        except Exception as e:
            pytest.fail(f"Stop() error:\n{e!r}", pytrace=False)
        logger.info("stopped %s", type(component).__name__)

    add_cleanup(stop)
    return stop


@contextmanager
def start_stop(component: Any) -> Iterator[Any]:
    """
    Context-manager form of `guard_lifecycle`.

    Usage:
        with start_stop(Worker()) as worker:
            ...
    """
    cleanups: list[Callable[[], None]] = []
    guard_lifecycle(component, cleanups.append)
    try:
        yield component
    finally:
        for cleanup in cleanups:
            cleanup()
