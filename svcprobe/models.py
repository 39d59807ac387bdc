"""Data models for svcprobe."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Protocol, runtime_checkable

from .exceptions import CaseDefinitionError

JSON_CONTENT_TYPE = "application/json; charset=utf-8"


class DiffType(Enum):
    VALUE_MISMATCH = "VALUE_MISMATCH"
    TYPE_MISMATCH = "TYPE_MISMATCH"
    MISSING_IN_GOT = "MISSING_IN_GOT"
    EXTRA_IN_GOT = "EXTRA_IN_GOT"
    LENGTH_MISMATCH = "LENGTH_MISMATCH"
    ITEM_MISSING = "ITEM_MISSING"
    ITEM_EXTRA = "ITEM_EXTRA"
    FORMATTED_MISMATCH = "FORMATTED_MISMATCH"


class DiffOptionKind(Enum):
    UNEXPORTED = "unexported"
    ZERO = "zero"
    FORMATTER = "formatter"
    IGNORE = "ignore"


@dataclass(frozen=True)
class DiffOption:
    """A single option changing the behavior of `diff()`."""
    kind: DiffOptionKind
    type_: Optional[type] = None
    fn: Optional[Callable[[Any], str]] = None
    paths: tuple[str, ...] = ()


@dataclass(frozen=True)
class DiffConfig:
    """Comparison settings, built fresh for each `diff()` call."""
    include_unexported: bool = False
    include_zero_fields: bool = False
    formatters: Mapping[type, Callable[[Any], str]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    ignore_paths: tuple[str, ...] = ()


@dataclass
class DiffEntry:
    """A single difference found during comparison."""
    path: str
    type: DiffType
    got: Any
    want: Any
    message: str

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "type": self.type.value,
            "got": self.got,
            "want": self.want,
            "message": self.message,
        }

    def render(self) -> str:
        return f"{self.path}: {self.message}\n  -{self.got!r}\n  +{self.want!r}"


@dataclass
class EndpointCase:
    """One HTTP request against the service and what its response should be."""
    url: str
    description: str = ""
    method: str = ""
    headers: Optional[dict[str, str]] = None
    json_input: Any = None
    content_type: str = ""
    status_code: int = 0
    first_lines: Optional[list[str]] = None
    json_output: Any = None

    @property
    def name(self) -> str:
        return self.description or self.url

    @property
    def effective_method(self) -> str:
        if self.method:
            return self.method.upper()
        return "GET" if self.json_input is None else "POST"

    @property
    def effective_status_code(self) -> int:
        return self.status_code or 200

    @property
    def expected_content_type(self) -> str:
        # A JSON expectation always implies the JSON content type.
        if self.json_output is not None:
            return JSON_CONTENT_TYPE
        return self.content_type

    def validate(self):
        if self.first_lines is not None and self.json_output is not None:
            raise CaseDefinitionError(
                self.name, "Cannot have both first_lines and json_output"
            )


@dataclass
class DecodeCase:
    """
    A configuration decode case.

    `initial` and `configuration` are factories: decoding mutates its
    destination, so every run needs fresh objects.
    """
    description: str
    initial: Callable[[], Any]
    configuration: Optional[Callable[[], Any]]
    expected: Any = None
    error: bool = False


@dataclass(frozen=True)
class RetryPolicy:
    """Bounds for a retry loop, in seconds."""
    attempt_timeout: float
    deadline: float
    interval: float


@dataclass
class ReadinessTarget:
    """An external dependency the tests need to reach."""
    name: str
    dns_candidates: list[str]
    port: str | int

    def check(self, **kwargs) -> str:
        from .readiness import check_external_service
        return check_external_service(self.name, self.dns_candidates, self.port, **kwargs)


@runtime_checkable
class Startable(Protocol):
    def start(self) -> None: ...


@runtime_checkable
class Stoppable(Protocol):
    def stop(self) -> None: ...
