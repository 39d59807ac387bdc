"""Configuration decode checks, directly and after a YAML round trip."""

from __future__ import annotations

from typing import Iterable, Optional

import pytest
import yaml

from .decoder import ConfigDecoder, yaml_roundtrip
from .differ import diff
from .exceptions import ConfigDecodeError
from .models import DecodeCase, DiffOption
from .reporting import CaseReport, run_isolated


def case_title(case: DecodeCase, from_yaml: bool) -> str:
    if from_yaml:
        return f"{case.description} (from YAML)"
    return case.description


def decode_params(cases: Iterable[DecodeCase]) -> list:
    """
    Expand each case into a direct run and a YAML round-trip run.

    The round-trip run is left out when the case has no configuration
    factory.
    """
    params = []
    for case in cases:
        for from_yaml in (False, True):
            if from_yaml and case.configuration is None:
                continue
            params.append(pytest.param(case, from_yaml, id=case_title(case, from_yaml)))
    return params


def parametrize_decode(cases: Iterable[DecodeCase]):
    """
    Parametrize a test over a decode case table.

    Usage:
        @parametrize_decode(CASES)
        def test_decode(case, from_yaml):
            check_configuration_decode(case, from_yaml)
    """
    return pytest.mark.parametrize("case, from_yaml", decode_params(cases))


def check_configuration_decode(
    case: DecodeCase,
    from_yaml: bool,
    *options: DiffOption,
    decoder: Optional[ConfigDecoder] = None,
) -> None:
    """Decode a case's configuration onto a fresh initial value and compare."""
    decoder = decoder or ConfigDecoder()

    with CaseReport(case_title(case, from_yaml)) as report:
        configuration = case.configuration() if case.configuration is not None else None
        if from_yaml:
            try:
                configuration = yaml_roundtrip(configuration)
            except yaml.YAMLError as e:
                report.fatal(f"YAML round trip error:\n{e}")

        got = case.initial()
        error: Optional[ConfigDecodeError] = None
        try:
            decoder.decode(configuration, got)
        except ConfigDecodeError as e:
            error = e

        if error is not None and not case.error:
            report.fatal(f"Decode() error:\n{error}")
        elif error is None and case.error:
            report.error("Decode() did not error")

        # A decode error already reported supersedes the value comparison.
        if error is None:
            difference = diff(got, case.expected, *options)
            if difference:
                report.fatal(f"Decode() (-got, +want):\n{difference}")


def check_configuration_decodes(cases: Iterable[DecodeCase], *options: DiffOption) -> None:
    """Run a whole decode case table in one test, isolating each run."""
    runs = []
    for case in cases:
        for from_yaml in (False, True):
            if from_yaml and case.configuration is None:
                continue
            runs.append((
                case_title(case, from_yaml),
                lambda case=case, from_yaml=from_yaml: check_configuration_decode(case, from_yaml, *options),
            ))
    run_isolated(runs)
