"""WatchPipeline: dispatcher -> spawner pool -> watchers -> printer.

All stages share one stop event. The printer runs in the foreground; when it
returns (stop raised, queue drained, epilogue written) the pipeline waits a
bounded grace period for every watcher to close its stream.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import TextIO

import structlog

from kubectl_watch.collector.client import ClusterClient
from kubectl_watch.collector.dispatcher import DispatchQueue, dispatch_resources
from kubectl_watch.collector.spawner import SpawnerPool
from kubectl_watch.filters import NameFilter
from kubectl_watch.models.config import WatchConfig
from kubectl_watch.models.events import CatalogEntry, ChangeEvent
from kubectl_watch.output.formatters import get_formatter
from kubectl_watch.output.printer import EventPrinter

_log = structlog.get_logger(component="pipeline")


class WatchPipeline:
    """Owns the queues and tasks of one watch session."""

    def __init__(
        self,
        client: ClusterClient,
        config: WatchConfig,
        stop: asyncio.Event,
        sink: TextIO | None = None,
    ) -> None:
        self._client = client
        self._config = config
        self._stop = stop

        pipeline = config.pipeline
        filters = config.filters
        self.gv_filter = NameFilter.from_patterns(filters.group_versions)
        self.gvr_filter = NameFilter.from_patterns(filters.group_version_resources)

        self.dispatch_queue = DispatchQueue(maxsize=pipeline.spawn_concurrency)
        self.events: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=pipeline.event_buffer)
        self.spawner = SpawnerPool(
            client,
            self.dispatch_queue,
            self.events,
            namespace_filter=NameFilter.from_patterns(filters.namespaces),
            concurrency=pipeline.spawn_concurrency,
            colorize=config.output.colorize,
            poll_interval=pipeline.poll_interval,
        )
        self.printer = EventPrinter(self.events, get_formatter(config.output.format), sink)

    async def run(self, catalog: Iterable[CatalogEntry]) -> int:
        """Run until the stop event is set; return the number of events printed."""
        self.spawner.start(self._stop)
        dispatcher = asyncio.create_task(
            dispatch_resources(catalog, self.dispatch_queue, self.gv_filter, self.gvr_filter, self._stop),
            name="dispatcher",
        )
        try:
            printed = await self.printer.run(self._stop)
        finally:
            self._stop.set()
            await asyncio.wait({dispatcher})
            await self.spawner.wait_closed(timeout=self._config.pipeline.shutdown_grace)

        if dispatcher.cancelled():
            return printed
        error = dispatcher.exception()
        if error is not None:
            _log.error("dispatcher_failed", error=str(error))
        else:
            _log.info("watch_session_ended", resources=dispatcher.result(), watchers=self.spawner.watcher_count)
        return printed
