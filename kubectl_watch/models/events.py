"""Core event data structures and enumerations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from types import MappingProxyType
from typing import Any


class WatchEventType(StrEnum):
    """Notification type carried by a change stream."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    BOOKMARK = "BOOKMARK"
    ERROR = "ERROR"


CHANGE_TYPES = frozenset({WatchEventType.ADDED, WatchEventType.MODIFIED, WatchEventType.DELETED})

# Baseline for creates and deletes: "the object did not exist".
EMPTY_STATE: MappingProxyType[str, Any] = MappingProxyType({})


@dataclass(frozen=True)
class ResourceDescriptor:
    """Identifies one watchable resource type (group, version, plural name).

    Produced by the dispatcher, consumed exactly once by a spawner worker.
    """

    group: str
    version: str
    resource: str

    @property
    def group_version(self) -> str:
        """Return ``v1`` for the core group, ``group/version`` otherwise."""
        if not self.group:
            return self.version
        return f"{self.group}/{self.version}"

    def __str__(self) -> str:
        return f"{self.group_version}/{self.resource}"


@dataclass(frozen=True)
class CatalogEntry:
    """One discovered group-version and the resource names it serves."""

    group_version: str
    resources: tuple[str, ...] = ()


@dataclass(frozen=True)
class WatchEvent:
    """A single notification read from a change stream.

    ``type`` stays a plain string so that unknown notification types survive
    decoding and can be ignored by the watch loop.
    """

    type: str
    object: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ChangeEvent:
    """A rendered change to one object.

    Produced by a watch loop, consumed by the printer. Immutable.
    """

    timestamp: datetime
    key: str
    diff: str
