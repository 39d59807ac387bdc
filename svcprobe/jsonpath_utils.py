"""JSONPath utilities for svcprobe."""

from __future__ import annotations

import re
from functools import lru_cache

from jsonpath_ng import parse as jsonpath_parse
from jsonpath_ng.exceptions import JsonPathLexerError, JsonPathParserError

from .exceptions import DiffOptionError


@lru_cache(maxsize=256)
def compile_path(path: str):
    """Compile and cache a JSONPath expression."""
    try:
        return jsonpath_parse(path)
    except (JsonPathLexerError, JsonPathParserError) as e:
        raise DiffOptionError(path, f"invalid JSONPath expression: {e}") from e


@lru_cache(maxsize=256)
def _pattern_regex(pattern: str) -> re.Pattern:
    """Translate a JSONPath pattern into a regex over concrete paths."""
    # Handle recursive descent patterns
    if '..' in pattern:
        # $..field matches any path ending with .field
        field = re.escape(pattern.split('..')[-1])
        return re.compile(rf'^.*\.{field}$|^\$\.{field}$')

    regex = re.escape(pattern)
    regex = regex.replace(r'\[\*\]', r'\[\d+\]')
    regex = regex.replace(r'\*', r'[^.\[]+')
    return re.compile(f'^{regex}$')


def matches_pattern(concrete_path: str, pattern: str) -> bool:
    """
    Check if a concrete path matches a JSONPath pattern.

    Supports:
    - Exact match: $.foo.bar
    - Recursive descent: $..field
    - Wildcard: $.items[*].name, $.metrics.*
    """
    if concrete_path == pattern:
        return True
    return bool(_pattern_regex(pattern).match(concrete_path))


def validate_patterns(patterns: tuple[str, ...]) -> tuple[str, ...]:
    """Check that every pattern is a JSONPath expression jsonpath-ng accepts."""
    for pattern in patterns:
        if not pattern.startswith('$'):
            raise DiffOptionError(pattern, "JSONPath expressions must start with '$'")
        compile_path(pattern)
    return patterns
