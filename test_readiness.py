"""Tests for external service readiness checks."""

from __future__ import annotations

import socket

import pytest

from svcprobe import ProbeConfig, ReadinessTarget, RetryPolicy, check_external_service
from svcprobe.readiness import resolve, resolve_first, wait_for_connection


def fast_config(**kwargs) -> ProbeConfig:
    return ProbeConfig(
        resolve_policy=RetryPolicy(attempt_timeout=2.0, deadline=2.0, interval=0.0),
        connect_policy=RetryPolicy(attempt_timeout=0.2, deadline=0.3, interval=0.05),
        **kwargs,
    )


@pytest.fixture
def listening_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        s.listen(8)
        yield s.getsockname()[1]


@pytest.fixture
def closed_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    return port


@pytest.fixture
def best_effort(monkeypatch):
    monkeypatch.delenv("CI_FUNCTIONAL_TESTS", raising=False)


@pytest.fixture
def mandatory(monkeypatch):
    monkeypatch.setenv("CI_FUNCTIONAL_TESTS", "true")


class TestResolution:
    """Test DNS lookups."""

    def test_resolve(self):
        """Literal addresses resolve, reserved names do not."""
        assert resolve("127.0.0.1", 2.0)
        assert not resolve("kafka.invalid", 2.0)

    def test_first_candidate_wins(self):
        """Candidates are tried in order."""
        policy = RetryPolicy(attempt_timeout=2.0, deadline=2.0, interval=0.0)
        assert resolve_first(["kafka.invalid", "127.0.0.1"], policy) == "127.0.0.1"
        assert resolve_first(["kafka.invalid"], policy) is None


class TestConnection:
    """Test the connection retry loop."""

    def test_success(self, listening_port):
        """A listening port connects at once."""
        policy = RetryPolicy(attempt_timeout=1.0, deadline=1.0, interval=0.1)
        assert wait_for_connection("127.0.0.1", listening_port, policy) is None

    def test_deadline(self, closed_port):
        """A closed port returns the last error once the deadline passes."""
        policy = RetryPolicy(attempt_timeout=0.1, deadline=0.2, interval=0.05)
        assert isinstance(wait_for_connection("127.0.0.1", closed_port, policy), OSError)


class TestCheckExternalService:
    """Test the skip or fail decision."""

    def test_ready(self, best_effort, listening_port):
        """A reachable service returns its host:port."""
        server = check_external_service(
            "kafka", ["kafka.invalid", "127.0.0.1"], listening_port, config=fast_config(),
        )
        assert server == f"127.0.0.1:{listening_port}"

    def test_unresolvable_skips(self, best_effort):
        """Without the mandatory variable, an unknown name skips the test."""
        with pytest.raises(pytest.skip.Exception, match="kafka cannot be resolved"):
            check_external_service("kafka", ["kafka.invalid"], 9092, config=fast_config())

    def test_unresolvable_fails_when_mandatory(self, mandatory):
        """With the mandatory variable set, an unknown name fails the test."""
        with pytest.raises(pytest.fail.Exception) as excinfo:
            check_external_service("kafka", ["kafka.invalid"], 9092, config=fast_config())
        assert str(excinfo.value) == "kafka cannot be resolved (CI_FUNCTIONAL_TESTS is set)"

    def test_custom_mandatory_variable(self, monkeypatch):
        """The mandatory variable name can be changed."""
        monkeypatch.setenv("MY_CI", "1")
        config = fast_config(mandatory_env="MY_CI")
        with pytest.raises(pytest.fail.Exception, match="MY_CI is set"):
            check_external_service("clickhouse", ["clickhouse.invalid"], 9000, config=config)

    def test_not_running_skips(self, best_effort, closed_port):
        """A closed port skips the test."""
        with pytest.raises(pytest.skip.Exception, match="kafka is not running"):
            check_external_service("kafka", ["127.0.0.1"], closed_port, config=fast_config())

    def test_not_running_fails_when_mandatory(self, mandatory, closed_port):
        """A closed port fails the test when the service is mandatory."""
        with pytest.raises(pytest.fail.Exception, match="kafka is not running"):
            check_external_service("kafka", ["127.0.0.1"], closed_port, config=fast_config())

    def test_short_mode(self, mandatory, listening_port):
        """Short mode skips before any network access."""
        with pytest.raises(pytest.skip.Exception, match="Skip test with real kafka in short mode"):
            check_external_service("kafka", ["127.0.0.1"], listening_port, config=fast_config(short=True))
        with pytest.raises(pytest.skip.Exception):
            check_external_service("kafka", ["127.0.0.1"], listening_port, config=fast_config(), short=True)

    def test_target(self, best_effort, listening_port):
        """A target checks itself with the given settings."""
        target = ReadinessTarget("redis", ["127.0.0.1"], listening_port)
        assert target.check(config=fast_config()) == f"127.0.0.1:{listening_port}"

    def test_unavailable_kafka_skips(self, best_effort, closed_port):
        """An unavailable broker under its usual names skips the test."""
        target = ReadinessTarget("kafka", ["kafka.invalid", "localhost"], str(closed_port))
        with pytest.raises(pytest.skip.Exception, match="CI_FUNCTIONAL_TESTS is not set"):
            target.check(config=fast_config())

    def test_fixture(self, best_effort, check_service, listening_port):
        """The plugin fixture uses the session configuration."""
        assert check_service("redis", ["127.0.0.1"], listening_port) == f"127.0.0.1:{listening_port}"
