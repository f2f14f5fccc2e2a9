"""ChangeDetector: turns watch notifications into rendered ChangeEvents.

One detector per watch loop. It owns that loop's SnapshotCache and is driven
from a single task, so cache reads, writes and evictions for a key happen in
the order the notifications arrived.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

import structlog

from kubectl_watch.cache.snapshot_cache import SnapshotCache, object_key
from kubectl_watch.diff.engine import compare, render
from kubectl_watch.models.events import EMPTY_STATE, ChangeEvent, WatchEventType

_log = structlog.get_logger(component="diff.changes")


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class ChangeDetector:
    """Diff incoming objects against the cached baseline and update the cache."""

    def __init__(
        self,
        cache: SnapshotCache | None = None,
        colorize: bool = False,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.cache = cache if cache is not None else SnapshotCache()
        self._colorize = colorize
        self._clock = clock

    def process(self, event_type: str, obj: Mapping[str, Any]) -> ChangeEvent | None:
        """Apply one ADDED/MODIFIED/DELETED notification.

        Returns None when the new state is structurally identical to the
        cached one, so replays after a reconnect produce no output.
        """
        now = self._clock()
        key = object_key(obj)

        old: Mapping[str, Any]
        new: Mapping[str, Any]
        if event_type == WatchEventType.DELETED:
            # Never seen (e.g. the initial listing failed): show the final
            # state carried by the notification as removed.
            old = self.cache.pop(key) if key in self.cache else obj
            new = EMPTY_STATE
        else:
            old = self.cache.get(key)
            new = obj
            self.cache.put(key, obj)

        result = compare(old, new)
        if not result.modified:
            return None

        try:
            text = render(old, result, styled=self._colorize)
        except (TypeError, ValueError) as exc:
            _log.error("diff_render_failed", key=key, error=str(exc))
            return None

        return ChangeEvent(timestamp=now, key=key, diff=text)
