"""Tests for harness settings and utilities."""

from datetime import timedelta

import pytest

from svcprobe import ConfigurationError, ProbeConfig, RetryPolicy, get_config
from svcprobe.config import reset_config
from svcprobe.utils import coerce_bool, join_host_port, parse_duration

ENV_VARS = [
    "CI_FUNCTIONAL_TESTS",
    "SVCPROBE_MANDATORY_ENV",
    "SVCPROBE_SHORT",
    "SVCPROBE_HTTP_TIMEOUT",
    "SVCPROBE_RESOLVE_TIMEOUT",
    "SVCPROBE_CONNECT_DEADLINE",
    "SVCPROBE_RETRY_INTERVAL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield monkeypatch
    reset_config()


class TestProbeConfig:
    """Test loading settings from the environment."""

    def test_defaults(self, clean_env):
        """Defaults apply when nothing is set."""
        config = ProbeConfig.from_env()
        assert config.mandatory_env == "CI_FUNCTIONAL_TESTS"
        assert config.short is False
        assert config.http_timeout == 10.0
        assert config.resolve_policy == RetryPolicy(0.1, 0.1, 0.0)
        assert config.connect_policy == RetryPolicy(1.0, 1.0, 0.1)

    def test_overrides(self, clean_env):
        """Durations accept units."""
        clean_env.setenv("SVCPROBE_SHORT", "yes")
        clean_env.setenv("SVCPROBE_HTTP_TIMEOUT", "30s")
        clean_env.setenv("SVCPROBE_RESOLVE_TIMEOUT", "500ms")
        clean_env.setenv("SVCPROBE_CONNECT_DEADLINE", "2m")
        clean_env.setenv("SVCPROBE_RETRY_INTERVAL", "0.5")
        config = ProbeConfig.from_env()
        assert config.short is True
        assert config.http_timeout == 30.0
        assert config.resolve_policy.attempt_timeout == 0.5
        assert config.connect_policy.deadline == 120.0
        assert config.connect_policy.interval == 0.5

    def test_invalid_duration(self, clean_env):
        """Invalid durations name the variable."""
        clean_env.setenv("SVCPROBE_HTTP_TIMEOUT", "soon")
        with pytest.raises(ConfigurationError, match="SVCPROBE_HTTP_TIMEOUT"):
            ProbeConfig.from_env()

    def test_mandatory(self, clean_env):
        """The mandatory flag is read when checked, empty means unset."""
        config = ProbeConfig()
        assert not config.is_mandatory()
        clean_env.setenv("CI_FUNCTIONAL_TESTS", "")
        assert not config.is_mandatory()
        clean_env.setenv("CI_FUNCTIONAL_TESTS", "true")
        assert config.is_mandatory()

    def test_custom_mandatory_env(self, clean_env):
        """Another variable can be used as the mandatory flag."""
        clean_env.setenv("SVCPROBE_MANDATORY_ENV", "MY_CI")
        clean_env.setenv("MY_CI", "1")
        assert ProbeConfig.from_env().is_mandatory()

    def test_global_config(self, clean_env):
        """The global config is loaded once until reset."""
        clean_env.setenv("SVCPROBE_HTTP_TIMEOUT", "5")
        first = get_config()
        assert first.http_timeout == 5.0
        clean_env.setenv("SVCPROBE_HTTP_TIMEOUT", "6")
        assert get_config() is first
        reset_config()
        assert get_config().http_timeout == 6.0


class TestUtils:
    """Test small helpers."""

    @pytest.mark.parametrize("raw, expected", [
        ("250ms", timedelta(milliseconds=250)),
        ("1.5s", timedelta(seconds=1.5)),
        ("2m", timedelta(minutes=2)),
        ("1h", timedelta(hours=1)),
        ("3", timedelta(seconds=3)),
    ])
    def test_parse_duration(self, raw, expected):
        assert parse_duration(raw) == expected

    def test_parse_duration_invalid(self):
        with pytest.raises(ValueError):
            parse_duration("fast")

    def test_coerce_bool(self):
        assert coerce_bool("1") and coerce_bool("True") and coerce_bool("yes")
        assert not coerce_bool(None) and not coerce_bool("0") and not coerce_bool("")

    def test_join_host_port(self):
        assert join_host_port("localhost", 9092) == "localhost:9092"
        assert join_host_port("::1", "9092") == "[::1]:9092"
