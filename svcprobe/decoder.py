"""Merge-over-defaults configuration decoding and YAML round trips."""

from __future__ import annotations

import copy
import dataclasses
import ipaddress
import logging
import typing
from collections.abc import Mapping, MutableMapping
from enum import Enum
from functools import lru_cache
from typing import Any

import yaml
from pydantic import BaseModel, TypeAdapter, ValidationError

from .exceptions import ConfigDecodeError
from .subnetmap import SubnetMap

logger = logging.getLogger(__name__)


def _is_structured(value: Any) -> bool:
    return (
        isinstance(value, (BaseModel, MutableMapping))
        or (dataclasses.is_dataclass(value) and not isinstance(value, type))
    )


def _join(path: str, key: Any) -> str:
    return f"{path}.{key}" if path else str(key)


@lru_cache(maxsize=256)
def _cached_adapter(annotation: Any) -> TypeAdapter:
    return TypeAdapter(annotation)


def _adapter(annotation: Any) -> TypeAdapter:
    try:
        return _cached_adapter(annotation)
    except TypeError:
        # Unhashable annotation
        return TypeAdapter(annotation)


def _summarize(error: ValidationError) -> str:
    return "; ".join(e["msg"] for e in error.errors())


def _dataclass_hints(cls: type) -> dict[str, Any]:
    """Resolve dataclass annotations, keeping unresolvable string ones as Any."""
    try:
        return typing.get_type_hints(cls)
    except NameError:
        # Classes defined in a function cannot see their local names here.
        return {
            f.name: Any if isinstance(f.type, str) else f.type
            for f in dataclasses.fields(cls)
        }


class ConfigDecoder:
    """
    Decodes a generic configuration structure onto an existing value.

    Keys present in the source overwrite the destination, nested structures
    are merged, and anything absent from the source keeps its current
    value. Dataclass and pydantic fields are validated against their type
    annotations, so "8080" decodes to an int field and 1 to a float one.
    """

    def __init__(self, match_case_insensitive: bool = True, error_unused: bool = True):
        self.match_case_insensitive = match_case_insensitive
        self.error_unused = error_unused

    def decode(self, source: Any, destination: Any) -> Any:
        """
        Decode `source` onto `destination`, in place.

        Returns:
            The destination

        Raises:
            ConfigDecodeError: listing every key that could not be decoded;
                valid keys have already been applied
        """
        errors: list[str] = []
        self._decode(source, destination, "", errors)
        if errors:
            raise ConfigDecodeError(errors)
        return destination

    def _decode(self, source: Any, destination: Any, path: str, errors: list[str]):
        if source is None:
            return
        if isinstance(destination, BaseModel) or (
            dataclasses.is_dataclass(destination) and not isinstance(destination, type)
        ):
            self._decode_object(source, destination, path, errors)
        elif isinstance(destination, MutableMapping):
            self._merge_mapping(source, destination, path, errors)
        else:
            errors.append(
                f"'{path or '<root>'}' cannot decode onto {type(destination).__name__}"
            )

    def _merge_mapping(self, source: Any, destination: MutableMapping, path: str, errors: list[str]):
        if not isinstance(source, Mapping):
            errors.append(f"'{path or '<root>'}' expected a map, got '{type(source).__name__}'")
            return
        for key, value in source.items():
            current = destination.get(key)
            if isinstance(value, Mapping) and _is_structured(current):
                self._decode(value, current, _join(path, key), errors)
            else:
                destination[key] = copy.deepcopy(value)

    def _decode_object(self, source: Any, destination: Any, path: str, errors: list[str]):
        if not isinstance(source, Mapping):
            errors.append(f"'{path or '<root>'}' expected a map, got '{type(source).__name__}'")
            return

        annotations, names = self._fields(destination)
        unused = []
        for key, value in source.items():
            name = names.get(self._normalize(str(key)))
            if name is None:
                unused.append(str(key))
                continue

            child_path = _join(path, name)
            current = getattr(destination, name)
            if isinstance(value, Mapping) and _is_structured(current):
                self._decode(value, current, child_path, errors)
                continue

            try:
                decoded = _adapter(annotations[name]).validate_python(value)
            except ValidationError as e:
                errors.append(f"'{child_path}': {_summarize(e)}")
                continue
            try:
                setattr(destination, name, decoded)
            except (AttributeError, TypeError, ValidationError) as e:
                errors.append(f"'{child_path}': cannot be set: {e}")
                continue
            logger.debug("decoded %s", child_path)

        if unused and self.error_unused:
            errors.append(f"'{path or '<root>'}' has invalid keys: {', '.join(sorted(unused))}")

    def _fields(self, destination: Any) -> tuple[dict[str, Any], dict[str, str]]:
        """Return field annotations and a lookup from normalized key to field name."""
        annotations: dict[str, Any] = {}
        names: dict[str, str] = {}
        if isinstance(destination, BaseModel):
            for name, info in type(destination).model_fields.items():
                annotations[name] = info.annotation
                names[self._normalize(name)] = name
                if info.alias:
                    names[self._normalize(info.alias)] = name
        else:
            hints = _dataclass_hints(type(destination))
            for f in dataclasses.fields(destination):
                annotations[f.name] = hints.get(f.name, Any)
                names[self._normalize(f.name)] = f.name
        return annotations, names

    def _normalize(self, key: str) -> str:
        if self.match_case_insensitive:
            return key.lower().replace("-", "_")
        return key


class _RoundTripDumper(yaml.SafeDumper):
    """Safe YAML dumper that also knows the value types configurations use."""


def _represent_as_str(dumper: yaml.SafeDumper, data: Any):
    return dumper.represent_str(str(data))


def _represent_object(dumper: yaml.SafeDumper, data: Any):
    if isinstance(data, BaseModel):
        return dumper.represent_dict(data.model_dump())
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        return dumper.represent_dict({f.name: getattr(data, f.name) for f in dataclasses.fields(data)})
    return dumper.represent_undefined(data)


for _type in (
    ipaddress.IPv4Address,
    ipaddress.IPv6Address,
    ipaddress.IPv4Network,
    ipaddress.IPv6Network,
    ipaddress.IPv4Interface,
    ipaddress.IPv6Interface,
):
    _RoundTripDumper.add_representer(_type, _represent_as_str)
_RoundTripDumper.add_representer(tuple, lambda d, v: d.represent_list(list(v)))
_RoundTripDumper.add_representer(SubnetMap, lambda d, v: d.represent_dict(v.to_dict()))
_RoundTripDumper.add_multi_representer(Enum, lambda d, v: d.represent_data(v.value))
_RoundTripDumper.add_multi_representer(object, _represent_object)


def to_yaml(value: Any) -> str:
    """Serialize a configuration value to YAML text."""
    return yaml.dump(value, Dumper=_RoundTripDumper, sort_keys=False)


def yaml_roundtrip(value: Any) -> Any:
    """Serialize a value to YAML and parse it back into generic structures."""
    return yaml.safe_load(to_yaml(value))
