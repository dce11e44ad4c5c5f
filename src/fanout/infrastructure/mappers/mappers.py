"""Concrete value mapper implementations."""

import re
from typing import List, Optional

from ...domain.exceptions import ConfigurationError
from ...domain.services.value_mapper import MapperImplementation


class FlattenMapper(MapperImplementation):
    """Strips directory components, keeping the base name."""

    def map(self, value: str) -> Optional[List[str]]:
        return [re.split(r"[\\/]", value)[-1]]


class MergeMapper(MapperImplementation):
    """Maps every value to the same constant."""

    def __init__(self, to: str):
        self.to = to

    def map(self, value: str) -> Optional[List[str]]:
        return [self.to]


class GlobMapper(MapperImplementation):
    """
    Wildcard rewrite, e.g. from `*.txt` to `*.bak`.

    The part matched by the single `*` in `from` replaces the `*` in `to`.
    Values that do not match `from` are skipped. A pattern without a
    wildcard is a prefix with an empty postfix: from `a` to `b` maps
    `abc` to `bbc`.
    """

    def __init__(self, from_pattern: str, to_pattern: str):
        if from_pattern.count("*") > 1 or to_pattern.count("*") > 1:
            raise ConfigurationError("glob mapper patterns may contain at most one '*'")
        self.from_prefix, self.from_postfix = self._split(from_pattern)
        self.to_prefix, self.to_postfix = self._split(to_pattern)

    @staticmethod
    def _split(pattern: str):
        prefix, _, postfix = pattern.partition("*")
        return prefix, postfix

    def map(self, value: str) -> Optional[List[str]]:
        prefix, postfix = self.from_prefix, self.from_postfix
        if len(value) < len(prefix) + len(postfix):
            return None
        if not (value.startswith(prefix) and value.endswith(postfix)):
            return None

        matched = value[len(prefix):len(value) - len(postfix)]
        return [self.to_prefix + matched + self.to_postfix]


class RegexpMapper(MapperImplementation):
    """
    Regular expression rewrite.

    `to` may reference groups as \\0 .. \\9. Values the expression does
    not match are skipped.
    """

    _BACKREF = re.compile(r"\\(\d)")

    def __init__(self, from_pattern: str, to_pattern: str):
        try:
            self.regex = re.compile(from_pattern)
        except re.error as e:
            raise ConfigurationError(f"Invalid regexp mapper pattern {from_pattern!r}: {e}") from e
        self.to_pattern = to_pattern

    def map(self, value: str) -> Optional[List[str]]:
        match = self.regex.search(value)
        if match is None:
            return None

        def replace(ref: re.Match) -> str:
            index = int(ref.group(1))
            if index > self.regex.groups:
                return ""
            return match.group(index) or ""

        return [self._BACKREF.sub(replace, self.to_pattern)]
