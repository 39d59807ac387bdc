"""Structural diff of arbitrary values with human-readable output."""

from __future__ import annotations

import dataclasses
import logging
import types
from collections.abc import Mapping, Set
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel

from .formatters import DEFAULT_FORMATTERS
from .jsonpath_utils import matches_pattern, validate_patterns
from .models import DiffConfig, DiffEntry, DiffOption, DiffOptionKind, DiffType
from .utils import build_path, get_type_name, is_numeric, values_equal

logger = logging.getLogger(__name__)

_MISSING = object()

# Display unexported (underscore-prefixed) fields too.
DiffUnexported = DiffOption(DiffOptionKind.UNEXPORTED)
# Do not skip fields that are zero on both sides.
DiffZero = DiffOption(DiffOptionKind.ZERO)


def diff_formatter(type_: type, fn: Callable[[Any], str]) -> DiffOption:
    """Render values of exactly `type_` through `fn` instead of walking them."""
    return DiffOption(DiffOptionKind.FORMATTER, type_=type_, fn=fn)


def diff_ignore(*paths: str) -> DiffOption:
    """Skip every node whose path matches one of the JSONPath patterns."""
    return DiffOption(DiffOptionKind.IGNORE, paths=validate_patterns(tuple(paths)))


def build_config(options: tuple[DiffOption, ...] | list[DiffOption] = ()) -> DiffConfig:
    """Fold options, in order, over the default comparison settings."""
    include_unexported = False
    include_zero_fields = False
    formatters = dict(DEFAULT_FORMATTERS)
    ignore_paths: list[str] = []

    for option in options:
        if option.kind == DiffOptionKind.UNEXPORTED:
            include_unexported = True
        elif option.kind == DiffOptionKind.ZERO:
            include_zero_fields = True
        elif option.kind == DiffOptionKind.FORMATTER:
            formatters[option.type_] = option.fn
        elif option.kind == DiffOptionKind.IGNORE:
            ignore_paths.extend(option.paths)

    return DiffConfig(
        include_unexported=include_unexported,
        include_zero_fields=include_zero_fields,
        formatters=types.MappingProxyType(formatters),
        ignore_paths=tuple(ignore_paths),
    )


class Differ:
    """
    Performs a structural comparison of two values.

    Handles:
    - Per-type formatters (compared as strings, never walked)
    - Mappings key by key, sequences index by index, sets by membership
    - Dataclasses, pydantic models and plain objects field by field
    - Zero-valued field skipping and unexported fields
    """

    def __init__(self, config: Optional[DiffConfig] = None):
        self.config = config or build_config()
        self.diffs: list[DiffEntry] = []
        # (id(got), id(want)) pairs on the current descent path
        self._walking: set[tuple[int, int]] = set()

    def diff(self, got: Any, want: Any, path: str = "$") -> bool:
        """
        Perform deep diff comparison.

        Args:
            got: The value produced by the system under test
            want: The expected value
            path: Current JSONPath

        Returns:
            True if values match, False otherwise
        """
        if self._ignored(path):
            return True

        formatter = self.config.formatters.get(type(got))
        if formatter is not None and type(got) is type(want):
            got_text, want_text = formatter(got), formatter(want)
            if got_text == want_text:
                return True
            self._add_diff(path, DiffType.FORMATTED_MISMATCH, got_text, want_text,
                           f"Formatted {type(got).__name__} values differ")
            return False

        if got is None and want is None:
            return True

        if is_numeric(got) and is_numeric(want):
            return self._diff_scalars(got, want, path)

        if type(got) is not type(want):
            self._add_diff(path, DiffType.TYPE_MISMATCH, got, want,
                           f"Type mismatch: {get_type_name(got)} vs {get_type_name(want)}")
            return False

        if isinstance(got, (str, bytes, Enum)):
            return self._diff_scalars(got, want, path)

        # A pair already being compared higher up is a cycle: it matches here.
        pair = (id(got), id(want))
        if pair in self._walking:
            return True
        self._walking.add(pair)
        try:
            return self._diff_structured(got, want, path)
        finally:
            self._walking.discard(pair)

    def _diff_structured(self, got: Any, want: Any, path: str) -> bool:
        """Dispatch containers and objects by type."""
        if isinstance(got, Mapping):
            return self._diff_mappings(got, want, path)
        elif isinstance(got, (list, tuple)):
            return self._diff_sequences(got, want, path)
        elif isinstance(got, Set):
            return self._diff_sets(got, want, path)

        got_fields = self._fields(got)
        if got_fields is not None:
            return self._diff_objects(got_fields, self._fields(want), path)
        return self._diff_scalars(got, want, path)

    def _diff_mappings(self, got: Mapping, want: Mapping, path: str) -> bool:
        """Compare two mappings key by key."""
        all_match = True
        keys = list(got.keys()) + [k for k in want.keys() if k not in got]

        for key in keys:
            child_path = build_path(path, key)
            if self._ignored(child_path):
                continue

            if key not in got:
                self._add_diff(child_path, DiffType.MISSING_IN_GOT, None, want[key],
                               f"Key missing in got: {key!r}")
                all_match = False
            elif key not in want:
                self._add_diff(child_path, DiffType.EXTRA_IN_GOT, got[key], None,
                               f"Extra key in got: {key!r}")
                all_match = False
            elif not self.diff(got[key], want[key], child_path):
                all_match = False

        return all_match

    def _diff_sequences(self, got: list | tuple, want: list | tuple, path: str) -> bool:
        """Compare sequences index-by-index (order matters)."""
        all_match = True

        if len(got) != len(want):
            self._add_diff(path, DiffType.LENGTH_MISMATCH, len(got), len(want),
                           f"Length mismatch: {len(got)} vs {len(want)}")
            all_match = False

        for i in range(min(len(got), len(want))):
            if not self.diff(got[i], want[i], f"{path}[{i}]"):
                all_match = False

        for i in range(len(want), len(got)):
            self._add_diff(f"{path}[{i}]", DiffType.ITEM_EXTRA, got[i], None,
                           f"Extra item in got at index {i}")
        for i in range(len(got), len(want)):
            self._add_diff(f"{path}[{i}]", DiffType.ITEM_MISSING, None, want[i],
                           f"Missing item in got at index {i}")

        return all_match

    def _diff_sets(self, got: Set, want: Set, path: str) -> bool:
        """Compare sets by membership."""
        missing = want - got
        extra = got - want
        for item in sorted(missing, key=repr):
            self._add_diff(path, DiffType.ITEM_MISSING, None, item, "Item missing in got")
        for item in sorted(extra, key=repr):
            self._add_diff(path, DiffType.ITEM_EXTRA, item, None, "Extra item in got")
        return not missing and not extra

    def _diff_objects(self, got: dict[str, Any], want: dict[str, Any], path: str) -> bool:
        """Compare two structured objects field by field."""
        all_match = True
        names = list(got) + [n for n in want if n not in got]

        for name in names:
            got_value = got.get(name, _MISSING)
            want_value = want.get(name, _MISSING)
            if not self.config.include_zero_fields and self._is_zero(got_value) and self._is_zero(want_value):
                continue

            child_path = build_path(path, name)
            if self._ignored(child_path):
                continue

            if got_value is _MISSING:
                self._add_diff(child_path, DiffType.MISSING_IN_GOT, None, want_value,
                               f"Field missing in got: {name}")
                all_match = False
            elif want_value is _MISSING:
                self._add_diff(child_path, DiffType.EXTRA_IN_GOT, got_value, None,
                               f"Extra field in got: {name}")
                all_match = False
            elif not self.diff(got_value, want_value, child_path):
                all_match = False

        return all_match

    def _diff_scalars(self, got: Any, want: Any, path: str) -> bool:
        """Compare scalar values."""
        if values_equal(got, want):
            return True
        self._add_diff(path, DiffType.VALUE_MISMATCH, got, want,
                       f"Values differ: {got!r} != {want!r}")
        return False

    def _fields(self, value: Any) -> Optional[dict[str, Any]]:
        """Return the comparable fields of a structured value, in declaration order."""
        if isinstance(value, BaseModel):
            fields = {name: getattr(value, name) for name in type(value).model_fields}
            if self.config.include_unexported and value.__pydantic_private__:
                fields.update(value.__pydantic_private__)
        elif dataclasses.is_dataclass(value) and not isinstance(value, type):
            fields = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        elif hasattr(value, "__dict__") and not isinstance(
            value, (type, types.ModuleType, types.FunctionType, types.MethodType)
        ):
            fields = dict(vars(value))
        else:
            return None

        if self.config.include_unexported:
            return fields
        return {name: v for name, v in fields.items() if not name.startswith("_")}

    def _is_zero(self, value: Any, _seen: Optional[set[int]] = None) -> bool:
        """Check if a field value is zero (absent fields are zero too)."""
        if value is _MISSING or value is None or value is False:
            return True
        if is_numeric(value):
            return value == 0
        if type(value) in self.config.formatters:
            return False
        if isinstance(value, (str, bytes, Mapping, list, tuple, Set)):
            return len(value) == 0
        fields = self._fields(value)
        if fields is None:
            return False
        # An object reachable from itself holds a reference, so it is not zero.
        seen = _seen if _seen is not None else set()
        if id(value) in seen:
            return False
        seen.add(id(value))
        try:
            return all(self._is_zero(v, seen) for v in fields.values())
        finally:
            seen.discard(id(value))

    def _ignored(self, path: str) -> bool:
        return any(matches_pattern(path, p) for p in self.config.ignore_paths)

    def _add_diff(self, path: str, diff_type: DiffType, got: Any, want: Any, message: str):
        """Add a diff entry."""
        self.diffs.append(DiffEntry(
            path=path,
            type=diff_type,
            got=got,
            want=want,
            message=message,
        ))


def diff(got: Any, want: Any, *options: DiffOption) -> str:
    """
    Return a human-readable diff of two values, or an empty string when equal.

    Options are applied in order on top of a fresh copy of the defaults, so
    concurrent calls with different options do not interfere.
    """
    differ = Differ(build_config(options))
    differ.diff(got, want)
    if differ.diffs:
        logger.debug("diff found %d difference(s)", len(differ.diffs))
    return "\n".join(entry.render() for entry in differ.diffs)
