"""Include/exclude name filters built from ``!``-prefixed patterns.

A pattern with an even number of leading ``!`` (including none) includes the
stripped name; an odd number excludes it. ``!!name`` is therefore an include,
which lets callers toggle a pattern by prepending another ``!``. Matching is
exact string membership, no wildcards.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

NEGATION = "!"


def count_prefix(name: str, ch: str) -> int:
    """Return how many times *ch* repeats at the start of *name*."""
    return len(name) - len(name.lstrip(ch))


def split_patterns(values: Iterable[str]) -> list[str]:
    """Flatten comma separated flag values, dropping empty items."""
    return [item.strip() for value in values for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class NameFilter:
    """Read-only include/exclude predicate over names."""

    include: frozenset[str] = frozenset()
    exclude: frozenset[str] = frozenset()

    @classmethod
    def from_patterns(cls, patterns: Iterable[str]) -> NameFilter:
        include: set[str] = set()
        exclude: set[str] = set()
        for pattern in patterns:
            count = count_prefix(pattern, NEGATION)
            name = pattern[count:]
            if count % 2 == 0:
                include.add(name)
            else:
                exclude.add(name)
        return cls(frozenset(include), frozenset(exclude))

    def matches(self, name: str) -> bool:
        if self.include and name not in self.include:
            return False
        return name not in self.exclude

    __call__ = matches
