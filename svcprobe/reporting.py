"""Failure reporting for a single test case on top of pytest outcomes."""

from __future__ import annotations

import logging

import pytest

logger = logging.getLogger(__name__)


class CaseReport:
    """
    Collects the outcome of one case.

    `error()` records a failure and lets the case continue, `fatal()` stops
    the case immediately. Recorded failures are raised together when the
    `with` block ends, or prepended to a fatal message.

    Usage:
        with CaseReport("GET /api/v0/info") as report:
            if response.status_code != 200:
                report.error("got status code ...")
    """

    def __init__(self, name: str):
        self.name = name
        self.errors: list[str] = []

    def error(self, message: str) -> None:
        logger.warning("%s: %s", self.name, message)
        self.errors.append(message)

    def fatal(self, message: str) -> None:
        messages = self.errors + [message]
        pytest.fail(self._format(messages), pytrace=False)

    def _format(self, messages: list[str]) -> str:
        return f"{self.name}:\n" + "\n".join(messages)

    def __enter__(self) -> "CaseReport":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None and self.errors:
            pytest.fail(self._format(self.errors), pytrace=False)
        return False


def run_isolated(names_and_calls) -> None:
    """
    Run several cases one after the other, then fail listing those that failed.

    A failing or skipped case does not stop the following ones.
    """
    failures: list[str] = []
    for name, call in names_and_calls:
        try:
            call()
        except pytest.skip.Exception as e:
            logger.info("%s: skipped: %s", name, e)
        except pytest.fail.Exception as e:
            failures.append(f"--- {name}\n{e}")
    if failures:
        pytest.fail("\n".join(failures), pytrace=False)
