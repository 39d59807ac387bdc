"""HTTP endpoint checks against a running service."""

from __future__ import annotations

import contextlib
import json
import logging
from typing import Iterable, Optional

import httpx
import pytest

from .config import get_config
from .differ import diff
from .exceptions import CaseDefinitionError
from .models import EndpointCase
from .reporting import CaseReport, run_isolated
from .utils import join_host_port

logger = logging.getLogger(__name__)

ServerAddress = str | tuple[str, int]


def base_url(server_addr: ServerAddress) -> str:
    """Build the base URL of a service from its address."""
    if isinstance(server_addr, tuple):
        host, port = server_addr[0], server_addr[1]
        return f"http://{join_host_port(host, port)}"
    return f"http://{server_addr}"


def build_request(client: httpx.Client, server_addr: ServerAddress, case: EndpointCase) -> httpx.Request:
    """Build the request described by a case."""
    method = case.effective_method
    url = f"{base_url(server_addr)}{case.url}"
    headers = httpx.Headers()
    content = None
    if case.json_input is not None:
        content = json.dumps(case.json_input).encode("utf-8")
        headers["Content-Type"] = "application/json"
    # Explicit headers win over the JSON content type.
    for name, value in (case.headers or {}).items():
        headers[name] = value
    return client.build_request(method, url, headers=headers, content=content)


def check_http_endpoint(
    server_addr: ServerAddress,
    case: EndpointCase,
    *,
    client: Optional[httpx.Client] = None,
    timeout: Optional[float] = None,
) -> None:
    """
    Run one endpoint case and check status, content type and body.

    Status code, content type and first-lines mismatches are recorded and
    reported together once the case ends. Transport errors, undecodable
    JSON bodies and JSON mismatches stop the case immediately.

    Args:
        server_addr: "host:port" or (host, port) of the service
        case: The case to run
        client: Optional httpx client to send the request with
        timeout: Request timeout in seconds (defaults to the configured one)
    """
    with CaseReport(case.name) as report:
        try:
            case.validate()
        except CaseDefinitionError as e:
            report.fatal(e.message)

        if client is None:
            if timeout is None:
                timeout = get_config().http_timeout
            with httpx.Client(timeout=timeout) as own_client:
                _run(own_client, server_addr, case, report)
        else:
            _run(client, server_addr, case, report)


def _run(client: httpx.Client, server_addr: ServerAddress, case: EndpointCase, report: CaseReport):
    method = case.effective_method
    request = build_request(client, server_addr, case)
    logger.debug("sending %s %s", method, request.url)

    try:
        response = client.send(request, stream=True)
    except httpx.TransportError as e:
        report.fatal(f"{method} {case.url}:\n{e!r}")
        return

    with contextlib.closing(response):
        expected_status = case.effective_status_code
        if response.status_code != expected_status:
            report.error(
                f"{case.url} {method}: got status code {response.status_code}, not {expected_status}"
            )

        expected_type = case.expected_content_type
        got_type = response.headers.get("content-type", "")
        if got_type != expected_type:
            report.error(
                f"{method} {case.url} Content-Type (-got, +want):\n-{got_type}\n+{expected_type}"
            )

        if case.json_output is not None:
            try:
                got = json.loads(response.read())
            except (ValueError, httpx.HTTPError, httpx.StreamError) as e:
                report.fatal(f"{method} {case.url}:\n{e!r}")
                return
            difference = diff(got, case.json_output)
            if difference:
                report.fatal(f"{method} {case.url} (-got, +want):\n{difference}")
        else:
            expected_lines = case.first_lines or []
            got_lines: list[str] = []
            if expected_lines:
                for line in response.iter_lines():
                    got_lines.append(line)
                    if len(got_lines) >= len(expected_lines):
                        break
            difference = diff(got_lines, list(expected_lines))
            if difference:
                report.error(f"{method} {case.url} (-got, +want):\n{difference}")


def endpoint_params(cases: Iterable[EndpointCase]) -> list:
    """Turn a case table into pytest params identified by the case names."""
    return [pytest.param(case, id=case.name) for case in cases]


def parametrize_endpoints(cases: Iterable[EndpointCase]):
    """
    Parametrize a test over a case table.

    Usage:
        @parametrize_endpoints(CASES)
        def test_api(server_addr, case):
            check_http_endpoint(server_addr, case)
    """
    return pytest.mark.parametrize("case", endpoint_params(cases))


def check_http_endpoints(
    server_addr: ServerAddress,
    cases: Iterable[EndpointCase],
    *,
    client: Optional[httpx.Client] = None,
    timeout: Optional[float] = None,
) -> None:
    """Run a whole case table in one test, isolating each case."""
    run_isolated(
        (case.name, lambda case=case: check_http_endpoint(server_addr, case, client=client, timeout=timeout))
        for case in cases
    )
