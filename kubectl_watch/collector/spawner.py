"""Bounded spawner pool: admits resource types at a fixed rate of concurrency.

Each of the ``W`` workers takes a descriptor, lists its current objects
inline (so at most ``W`` listings are in flight), then launches a long-lived
ResourceWatcher task and goes back to the queue. The number of open watch
streams is not bounded by ``W``: one per admitted resource type.
"""

from __future__ import annotations

import asyncio

import structlog

from kubectl_watch.cache.snapshot_cache import SnapshotCache
from kubectl_watch.collector.client import ClusterClient
from kubectl_watch.collector.dispatcher import DispatchQueue
from kubectl_watch.collector.stopping import STOPPED, until_stopped
from kubectl_watch.collector.watcher import ResourceWatcher
from kubectl_watch.diff.changes import ChangeDetector
from kubectl_watch.filters import NameFilter
from kubectl_watch.models.events import ChangeEvent, ResourceDescriptor

_log = structlog.get_logger(component="collector.spawner")


async def seed_cache(
    client: ClusterClient,
    descriptor: ResourceDescriptor,
    stop: asyncio.Event,
) -> SnapshotCache | None:
    """List *descriptor* into a fresh cache.

    A failed listing yields an empty cache: every existing object will then be
    reported as created when the watch replays it. Returns None if stopped.
    """
    cache = SnapshotCache()
    try:
        objects = await until_stopped(client.list(descriptor), stop)
    except Exception as exc:  # noqa: BLE001
        _log.warning("initial_list_failed", resource=str(descriptor), error=str(exc))
        return cache
    if objects is STOPPED:
        return None
    cache.seed(objects)  # type: ignore[arg-type]
    return cache


class SpawnerPool:
    """Fixed set of workers turning descriptors into running watchers."""

    def __init__(
        self,
        client: ClusterClient,
        queue: DispatchQueue,
        events: asyncio.Queue[ChangeEvent],
        namespace_filter: NameFilter | None = None,
        concurrency: int = 4,
        colorize: bool = False,
        poll_interval: float = 1.0,
    ) -> None:
        self._client = client
        self._queue = queue
        self._events = events
        self._namespace_filter = namespace_filter or NameFilter()
        self._concurrency = concurrency
        self._colorize = colorize
        self._poll_interval = poll_interval

        self._workers: list[asyncio.Task[None]] = []
        self._watch_tasks: set[asyncio.Task[None]] = set()
        self.watchers: dict[ResourceDescriptor, ResourceWatcher] = {}

    @property
    def watcher_count(self) -> int:
        return len(self.watchers)

    def start(self, stop: asyncio.Event) -> None:
        for index in range(self._concurrency):
            task = asyncio.create_task(self._worker(stop), name=f"spawner-{index}")
            self._workers.append(task)

    async def join_workers(self) -> None:
        """Wait until every worker has seen end-of-input or the stop signal."""
        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)

    async def wait_closed(self, timeout: float | None = None) -> None:
        """Wait for workers and watch loops to exit and release their streams.

        Loops still running after *timeout* are cancelled.
        """
        tasks = [*self._workers, *self._watch_tasks]
        if not tasks:
            return
        _, pending = await asyncio.wait(tasks, timeout=timeout)
        if pending:
            _log.warning("watchers_did_not_stop", count=len(pending), timeout=timeout)
            for task in pending:
                task.cancel()
            await asyncio.wait(pending)

    async def _worker(self, stop: asyncio.Event) -> None:
        while True:
            descriptor = await self._queue.receive(stop)
            if descriptor is None:
                return
            cache = await seed_cache(self._client, descriptor, stop)
            if cache is None:
                return
            self._spawn(descriptor, cache, stop)

    def _spawn(self, descriptor: ResourceDescriptor, cache: SnapshotCache, stop: asyncio.Event) -> None:
        if descriptor in self.watchers:
            return
        watcher = ResourceWatcher(
            self._client,
            descriptor,
            ChangeDetector(cache, colorize=self._colorize),
            self._events,
            namespace_filter=self._namespace_filter,
            poll_interval=self._poll_interval,
        )
        self.watchers[descriptor] = watcher
        task = asyncio.create_task(watcher.run(stop), name=f"watch-{descriptor}")
        self._watch_tasks.add(task)
        task.add_done_callback(self._watch_tasks.discard)
        _log.debug("watcher_started", resource=str(descriptor), cached=len(cache))
