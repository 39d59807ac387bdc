"""
svcprobe - Black-box test harness for network services

Structural diffs with per-type formatters, HTTP endpoint checks,
configuration decode checks (direct and through YAML), readiness probes for
external services and start/stop guards for components.
"""

from .models import (
    DiffConfig,
    DiffEntry,
    DiffOption,
    DiffType,
    EndpointCase,
    DecodeCase,
    ReadinessTarget,
    RetryPolicy,
    Startable,
    Stoppable,
)
from .differ import (
    Differ,
    DiffUnexported,
    DiffZero,
    diff,
    diff_formatter,
    diff_ignore,
)
from .subnetmap import SubnetMap
from .decoder import ConfigDecoder, yaml_roundtrip
from .config import ProbeConfig, get_config
from .exceptions import (
    SvcProbeError,
    CaseDefinitionError,
    ConfigDecodeError,
    ConfigurationError,
    DiffOptionError,
)
from .endpoints import (
    check_http_endpoint,
    check_http_endpoints,
    endpoint_params,
    parametrize_endpoints,
)
from .configuration import (
    check_configuration_decode,
    check_configuration_decodes,
    decode_params,
    parametrize_decode,
)
from .readiness import check_external_service
from .lifecycle import guard_lifecycle, start_stop

__version__ = "0.1.0"
__all__ = [
    # Diff
    "diff",
    "Differ",
    "DiffConfig",
    "DiffEntry",
    "DiffOption",
    "DiffType",
    "DiffUnexported",
    "DiffZero",
    "diff_formatter",
    "diff_ignore",
    "SubnetMap",
    # Endpoints
    "EndpointCase",
    "check_http_endpoint",
    "check_http_endpoints",
    "endpoint_params",
    "parametrize_endpoints",
    # Configuration decode
    "DecodeCase",
    "ConfigDecoder",
    "yaml_roundtrip",
    "check_configuration_decode",
    "check_configuration_decodes",
    "decode_params",
    "parametrize_decode",
    # Readiness
    "ReadinessTarget",
    "RetryPolicy",
    "check_external_service",
    # Lifecycle
    "Startable",
    "Stoppable",
    "guard_lifecycle",
    "start_stop",
    # Settings and errors
    "ProbeConfig",
    "get_config",
    "SvcProbeError",
    "CaseDefinitionError",
    "ConfigDecodeError",
    "ConfigurationError",
    "DiffOptionError",
]
