"""Wildcard branch filters.

A filter expression is a space-separated list of wildcard tokens where ``*``
matches any run of characters and everything else is literal, e.g.
``"master release-* feature/*-ui"``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

DEFAULT_INCLUDE_FILTER = "*"
DEFAULT_EXCLUDE_FILTER = ""

_STAR_SPLIT_RE = re.compile(r"(\*)")


def convert_to_pattern(expression: str | None) -> str:
    """Translate a wildcard expression into regex source.

    Tokens are joined as one alternation. Empty tokens (from repeated spaces)
    are skipped, so an empty expression yields an empty string.
    """

    compiled_tokens: list[str] = []
    for token in (expression or "").split(" "):
        if not token:
            continue
        pieces = []
        for piece in _STAR_SPLIT_RE.split(token):
            if piece == "*":
                pieces.append(".*")
            elif piece:
                pieces.append(re.escape(piece))
        compiled_tokens.append("".join(pieces))
    return "|".join(compiled_tokens)


@dataclass(frozen=True, slots=True)
class WildcardMatcher:
    """Full-string matcher compiled from a wildcard expression."""

    expression: str
    pattern: str = field(init=False)
    _regex: re.Pattern[str] | None = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        pattern = convert_to_pattern(self.expression)
        object.__setattr__(self, "pattern", pattern)
        # No tokens means nothing matches, not even the empty string.
        regex = re.compile(f"(?:{pattern})", re.DOTALL) if pattern else None
        object.__setattr__(self, "_regex", regex)

    def matches(self, name: str) -> bool:
        if self._regex is None:
            return False
        return self._regex.fullmatch(name) is not None


def compile_wildcards(expression: str | None) -> WildcardMatcher:
    return WildcardMatcher(expression or "")


class FilterVerdict(str, Enum):
    ACCEPTED = "accepted"
    EXCLUDED = "excluded"
    NOT_INCLUDED = "not_included"


@dataclass(frozen=True, slots=True)
class BranchFilter:
    """Include/exclude pair. Exclusion is checked first and wins."""

    include: WildcardMatcher
    exclude: WildcardMatcher

    @classmethod
    def from_expressions(
        cls,
        include: str | None = DEFAULT_INCLUDE_FILTER,
        exclude: str | None = DEFAULT_EXCLUDE_FILTER,
    ) -> BranchFilter:
        return cls(include=compile_wildcards(include), exclude=compile_wildcards(exclude))

    def evaluate(self, name: str) -> FilterVerdict:
        if self.exclude.matches(name):
            return FilterVerdict.EXCLUDED
        if not self.include.matches(name):
            return FilterVerdict.NOT_INCLUDED
        return FilterVerdict.ACCEPTED

    def accepts(self, name: str) -> bool:
        return self.evaluate(name) is FilterVerdict.ACCEPTED
