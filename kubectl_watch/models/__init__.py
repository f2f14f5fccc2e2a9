"""Core data structures for kubectl-watch."""

from kubectl_watch.models.config import WatchConfig
from kubectl_watch.models.events import (
    CHANGE_TYPES,
    EMPTY_STATE,
    CatalogEntry,
    ChangeEvent,
    ResourceDescriptor,
    WatchEvent,
    WatchEventType,
)

__all__ = [
    "CHANGE_TYPES",
    "EMPTY_STATE",
    "CatalogEntry",
    "ChangeEvent",
    "ResourceDescriptor",
    "WatchConfig",
    "WatchEvent",
    "WatchEventType",
]
