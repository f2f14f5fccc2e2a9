"""Snapshot cache: last-known state of every live object of one resource type.

Each watch loop owns exactly one SnapshotCache and issues every operation on
it from a single task, so no locking is needed. The cache stores the literal
structure it was given (deep-copied), not a normalised form.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from kubectl_watch.models.events import EMPTY_STATE


def object_key(obj: Mapping[str, Any]) -> str:
    """Return the display/lookup key of *obj*.

    Format: ``[<namespace>/]<name> [<apiVersion>/]<kind lowercased>``,
    e.g. ``default/web apps/v1/deployment`` or ``node-1 v1/node``.
    """
    metadata = obj.get("metadata") or {}
    namespace = str(metadata.get("namespace") or "")
    name = str(metadata.get("name") or "")
    api_version = str(obj.get("apiVersion") or "")
    kind = str(obj.get("kind") or "").lower()

    key = f"{namespace}/{name}" if namespace else name
    if api_version:
        return f"{key} {api_version}/{kind}"
    return f"{key} {kind}"


class SnapshotCache:
    """Keyed map of object state for a single resource type."""

    def __init__(self) -> None:
        self._store: dict[str, Mapping[str, Any]] = {}

    def get(self, key: str) -> Mapping[str, Any]:
        """Return the cached state for *key*, or EMPTY_STATE when unknown."""
        return self._store.get(key, EMPTY_STATE)

    def put(self, key: str, obj: Mapping[str, Any]) -> None:
        """Replace the cached state for *key* with a copy of *obj*."""
        self._store[key] = copy.deepcopy(dict(obj))

    def pop(self, key: str) -> Mapping[str, Any]:
        """Remove *key* and return its prior state (EMPTY_STATE if absent)."""
        return self._store.pop(key, EMPTY_STATE)

    def seed(self, objects: Iterable[Mapping[str, Any]]) -> None:
        """Bulk-load the initial listing, keyed by object_key()."""
        for obj in objects:
            self.put(object_key(obj), obj)

    def keys(self) -> list[str]:
        return list(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)

    def __iter__(self) -> Iterator[str]:
        return iter(self._store)
