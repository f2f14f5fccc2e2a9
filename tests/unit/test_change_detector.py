"""Unit tests for ChangeDetector (snapshot cache + diff engine)."""

from __future__ import annotations

from datetime import UTC, datetime

from kubectl_watch.cache import SnapshotCache
from kubectl_watch.diff import ChangeDetector
from kubectl_watch.models.events import WatchEventType

_FIXED = datetime(2024, 1, 15, 10, 30, 0, tzinfo=UTC)


def _widget(replicas: int = 1, **spec: object) -> dict:
    return {
        "kind": "Widget",
        "metadata": {"name": "x", "namespace": "a"},
        "spec": {"replicas": replicas, **spec},
    }


def _detector(cache: SnapshotCache | None = None, colorize: bool = False) -> ChangeDetector:
    return ChangeDetector(cache, colorize=colorize, clock=lambda: _FIXED)


class TestCreate:
    def test_unseen_object_is_reported_as_created(self) -> None:
        detector = _detector()
        change = detector.process(WatchEventType.ADDED, _widget())
        assert change is not None
        assert change.key == "a/x widget"
        assert change.timestamp == _FIXED
        assert '+   "kind": "Widget",' in change.diff
        assert "a/x widget" in detector.cache

    def test_seeded_object_replayed_is_silent(self) -> None:
        cache = SnapshotCache()
        cache.seed([_widget()])
        assert _detector(cache).process(WatchEventType.ADDED, _widget()) is None


class TestUpdate:
    def test_same_object_twice_emits_once(self) -> None:
        detector = _detector()
        assert detector.process(WatchEventType.ADDED, _widget()) is not None
        assert detector.process(WatchEventType.MODIFIED, _widget()) is None

    def test_change_is_rendered_against_cached_state(self) -> None:
        cache = SnapshotCache()
        cache.seed([_widget(1)])
        change = _detector(cache).process(WatchEventType.MODIFIED, _widget(2))
        assert change is not None
        assert '-     "replicas": 1' in change.diff
        assert '+     "replicas": 2' in change.diff

    def test_rapid_updates_apply_in_arrival_order(self) -> None:
        cache = SnapshotCache()
        cache.seed([_widget(1)])
        detector = _detector(cache)
        first = detector.process(WatchEventType.MODIFIED, _widget(2))
        second = detector.process(WatchEventType.MODIFIED, _widget(3))
        assert first is not None and second is not None
        assert '-     "replicas": 1' in first.diff
        assert '-     "replicas": 2' in second.diff
        assert '+     "replicas": 3' in second.diff
        assert cache.get("a/x widget")["spec"]["replicas"] == 3

    def test_cache_holds_a_copy_of_the_payload(self) -> None:
        detector = _detector()
        obj = _widget()
        detector.process(WatchEventType.ADDED, obj)
        obj["spec"]["replicas"] = 9
        assert detector.process(WatchEventType.MODIFIED, _widget()) is None

    def test_colorized_rendering(self) -> None:
        change = _detector(colorize=True).process(WatchEventType.ADDED, _widget())
        assert change is not None
        assert "\x1b[32m" in change.diff


class TestDelete:
    def test_delete_of_unseen_key_reports_the_deleted_object(self) -> None:
        detector = _detector()
        change = detector.process(WatchEventType.DELETED, _widget())
        assert change is not None
        assert change.key == "a/x widget"
        assert '-   "kind": "Widget",' in change.diff
        assert '-     "replicas": 1' in change.diff
        assert "+" not in [line[0] for line in change.diff.splitlines()]
        assert len(detector.cache) == 0

    def test_delete_reports_removal_and_evicts(self) -> None:
        cache = SnapshotCache()
        cache.seed([_widget()])
        change = _detector(cache).process(WatchEventType.DELETED, _widget())
        assert change is not None
        assert '-   "kind": "Widget",' in change.diff
        assert "a/x widget" not in cache

    def test_recreate_after_delete_starts_fresh(self) -> None:
        cache = SnapshotCache()
        cache.seed([_widget(1, stale="yes")])
        detector = _detector(cache)
        detector.process(WatchEventType.DELETED, _widget(1, stale="yes"))

        change = detector.process(WatchEventType.ADDED, _widget(4))
        assert change is not None
        assert "stale" not in change.diff
        assert '+     "replicas": 4' in change.diff
        assert cache.get("a/x widget") == _widget(4)
