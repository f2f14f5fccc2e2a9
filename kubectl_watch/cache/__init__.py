"""Per-resource-type snapshot cache.

Submodules:
    snapshot_cache -- SnapshotCache and the object_key derivation used for lookups.
"""

from kubectl_watch.cache.snapshot_cache import SnapshotCache, object_key

__all__ = ["SnapshotCache", "object_key"]
