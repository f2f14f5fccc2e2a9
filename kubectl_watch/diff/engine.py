"""Structural comparison of JSON documents and marked-up text rendering.

``compare(old, new)`` produces a DiffResult holding a delta tree;
``render(old, result, styled)`` prints the whole ``old`` document as indented
JSON with one marker per line::

      {
        "spec": {
    -     "replicas": 1
    +     "replicas": 2
        }
      }

``" "`` marks unchanged lines, ``"-"`` removed (or previous) values and ``"+"``
added (or current) values. Mapping keys are printed sorted, so key order never
shows up as a change. Lists are compared position by position.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import click

_INDENT = "  "
_COLORS = {"-": "red", "+": "green"}


class Change(StrEnum):
    """Kind of difference recorded at one node of the delta tree."""

    UNCHANGED = "unchanged"
    ADDED = "added"
    DELETED = "deleted"
    MODIFIED = "modified"
    OBJECT = "object"  # both sides are mappings with changed children
    ARRAY = "array"  # both sides are lists with changed children


@dataclass(frozen=True)
class Delta:
    """One node of the delta tree; ``new`` is set for ADDED and MODIFIED."""

    change: Change
    new: Any = None
    children: tuple[tuple[str | int, Delta], ...] = ()


_UNCHANGED = Delta(Change.UNCHANGED)


@dataclass(frozen=True)
class DiffResult:
    """Outcome of compare(): the delta tree and whether anything differs."""

    delta: Delta

    @property
    def modified(self) -> bool:
        return self.delta.change is not Change.UNCHANGED


def compare(old: Any, new: Any) -> DiffResult:
    """Compare two JSON-like documents."""
    return DiffResult(_compare(old, new))


def _compare(old: Any, new: Any) -> Delta:
    if isinstance(old, Mapping) and isinstance(new, Mapping):
        fields: list[tuple[str | int, Delta]] = []
        for key in sorted(old.keys() | new.keys(), key=str):
            if key not in new:
                fields.append((key, Delta(Change.DELETED)))
            elif key not in old:
                fields.append((key, Delta(Change.ADDED, new=new[key])))
            else:
                fields.append((key, _compare(old[key], new[key])))
        return _container(Change.OBJECT, fields)

    if isinstance(old, list) and isinstance(new, list):
        items: list[tuple[str | int, Delta]] = []
        for index in range(max(len(old), len(new))):
            if index >= len(new):
                items.append((index, Delta(Change.DELETED)))
            elif index >= len(old):
                items.append((index, Delta(Change.ADDED, new=new[index])))
            else:
                items.append((index, _compare(old[index], new[index])))
        return _container(Change.ARRAY, items)

    # bool is an int subclass; True must not equal 1 here.
    if type(old) is type(new) and old == new:
        return _UNCHANGED
    return Delta(Change.MODIFIED, new=new)


def _container(change: Change, children: list[tuple[str | int, Delta]]) -> Delta:
    if all(child.change is Change.UNCHANGED for _, child in children):
        return _UNCHANGED
    return Delta(change, children=tuple(children))


def render(old: Any, result: DiffResult, styled: bool = False) -> str:
    """Render *result* against the left-hand document *old*.

    Unchanged regions are printed from *old*; ``styled`` colours removed lines
    red and added lines green.
    """
    lines: list[tuple[str, str]] = []
    _render_delta(result.delta, old, 0, "", True, lines)
    return "".join(_paint(marker, text, styled) + "\n" for marker, text in lines)


def _paint(marker: str, text: str, styled: bool) -> str:
    line = f"{marker} {text}"
    if styled and marker in _COLORS:
        return click.style(line, fg=_COLORS[marker])
    return line


def _label(key: str | int, in_object: bool) -> str:
    return f"{json.dumps(str(key))}: " if in_object else ""


def _render_delta(
    delta: Delta,
    left: Any,
    depth: int,
    label: str,
    last: bool,
    lines: list[tuple[str, str]],
) -> None:
    change = delta.change
    if change is Change.UNCHANGED:
        _render_value(" ", left, depth, label, last, lines)
    elif change is Change.ADDED:
        _render_value("+", delta.new, depth, label, last, lines)
    elif change is Change.DELETED:
        _render_value("-", left, depth, label, last, lines)
    elif change is Change.MODIFIED:
        _render_value("-", left, depth, label, last, lines)
        _render_value("+", delta.new, depth, label, last, lines)
    else:
        in_object = change is Change.OBJECT
        opening, closing = ("{", "}") if in_object else ("[", "]")
        pad = _INDENT * depth
        lines.append((" ", f"{pad}{label}{opening}"))
        count = len(delta.children)
        for position, (key, child) in enumerate(delta.children):
            child_left = _child(left, key)
            _render_delta(child, child_left, depth + 1, _label(key, in_object), position == count - 1, lines)
        lines.append((" ", f"{pad}{closing}{'' if last else ','}"))


def _child(container: Any, key: str | int) -> Any:
    if isinstance(container, Mapping):
        return container.get(key)  # type: ignore[arg-type]
    if isinstance(container, list) and isinstance(key, int) and key < len(container):
        return container[key]
    return None


def _render_value(
    marker: str,
    value: Any,
    depth: int,
    label: str,
    last: bool,
    lines: list[tuple[str, str]],
) -> None:
    pad = _INDENT * depth
    comma = "" if last else ","
    if isinstance(value, (Mapping, list)):
        in_object = isinstance(value, Mapping)
        opening, closing = ("{", "}") if in_object else ("[", "]")
        if not value:
            lines.append((marker, f"{pad}{label}{opening}{closing}{comma}"))
            return
        keys: list[Any] = sorted(value, key=str) if in_object else list(range(len(value)))
        lines.append((marker, f"{pad}{label}{opening}"))
        for position, key in enumerate(keys):
            _render_value(marker, value[key], depth + 1, _label(key, in_object), position == len(keys) - 1, lines)
        lines.append((marker, f"{pad}{closing}{comma}"))
        return
    lines.append((marker, f"{pad}{label}{json.dumps(value, default=str)}{comma}"))
