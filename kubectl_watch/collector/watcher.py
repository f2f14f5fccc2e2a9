"""ResourceWatcher: the long-lived watch loop for one resource type.

State machine::

    CONNECTING --open ok--> STREAMING --clean end--> RECONNECTING --> CONNECTING
        |  ^                    |
        |  +-- not found, poll  +-- stop / bad payload --> STOPPED
        +-- unsupported / other error / stop ------------> STOPPED

A dropped connection while streaming counts as a clean end (after one poll
interval); an undecodable payload or other read error stops the loop.

When opening, only ResourceNotFoundError is retried (forever, at a fixed
poll interval): kinds can appear later, e.g. when a CRD is installed. Every
other open failure ends this loop alone; other resource types are unaffected.
"""

from __future__ import annotations

import asyncio
from enum import StrEnum

import aiohttp
import structlog

from kubectl_watch.collector.client import ClusterClient, WatchStream
from kubectl_watch.collector.errors import ResourceNotFoundError, WatchUnsupportedError
from kubectl_watch.collector.stopping import STOPPED, sleep_until_stopped, until_stopped
from kubectl_watch.diff.changes import ChangeDetector
from kubectl_watch.filters import NameFilter
from kubectl_watch.models.events import CHANGE_TYPES, ChangeEvent, ResourceDescriptor, WatchEvent

_log = structlog.get_logger(component="collector.watcher")


class WatcherState(StrEnum):
    """Lifecycle state of a ResourceWatcher."""

    CONNECTING = "connecting"
    STREAMING = "streaming"
    RECONNECTING = "reconnecting"
    STOPPED = "stopped"


class ResourceWatcher:
    """Watches one resource type and publishes its changes.

    The detector (and therefore the snapshot cache) belongs to this watcher
    alone; every cache operation happens on this watcher's task.
    """

    def __init__(
        self,
        client: ClusterClient,
        descriptor: ResourceDescriptor,
        detector: ChangeDetector,
        events: asyncio.Queue[ChangeEvent],
        namespace_filter: NameFilter | None = None,
        poll_interval: float = 1.0,
    ) -> None:
        self.descriptor = descriptor
        self.state = WatcherState.CONNECTING
        self.reconnects = 0
        self._client = client
        self._detector = detector
        self._events = events
        self._namespace_filter = namespace_filter or NameFilter()
        self._poll_interval = poll_interval
        self._log = _log.bind(resource=str(descriptor))

    async def run(self, stop: asyncio.Event) -> None:
        """Connect, stream, reconnect on clean close; return once STOPPED."""
        try:
            while not stop.is_set():
                self.state = WatcherState.CONNECTING
                stream = await self._connect(stop)
                if stream is None:
                    return

                self.state = WatcherState.STREAMING
                try:
                    reconnect = await self._consume(stream, stop)
                finally:
                    await stream.close()
                if not reconnect:
                    return

                self.state = WatcherState.RECONNECTING
                self.reconnects += 1
                self._log.debug("watch_stream_closed", reconnects=self.reconnects)
        finally:
            self.state = WatcherState.STOPPED

    async def _connect(self, stop: asyncio.Event) -> WatchStream | None:
        """Open a change stream, polling while the kind is not served."""
        while True:
            try:
                stream = await until_stopped(self._client.watch(self.descriptor), stop)
            except ResourceNotFoundError:
                if await sleep_until_stopped(self._poll_interval, stop):
                    return None
                continue
            except WatchUnsupportedError:
                self._log.debug("watch_unsupported")
                return None
            except Exception as exc:  # noqa: BLE001
                self._log.error("watch_open_failed", error=str(exc))
                return None

            if stream is STOPPED:
                return None
            return stream  # type: ignore[return-value]

    async def _consume(self, stream: WatchStream, stop: asyncio.Event) -> bool:
        """Process notifications; True means the stream ended and should be reopened."""
        while True:
            try:
                event = await until_stopped(stream.receive(), stop)
            except (aiohttp.ClientError, ConnectionError) as exc:
                # Dropped connection (API server restart, proxy reset): the
                # watch is re-established and replays are deduplicated.
                self._log.warning("watch_stream_interrupted", error=str(exc))
                return not await sleep_until_stopped(self._poll_interval, stop)
            except Exception as exc:  # noqa: BLE001
                self._log.error("watch_stream_failed", error=str(exc))
                return False

            if event is STOPPED:
                return False
            if event is None:
                return True

            change = self._handle(event)  # type: ignore[arg-type]
            if change is None:
                continue
            if await until_stopped(self._events.put(change), stop) is STOPPED:
                return False

    def _handle(self, event: WatchEvent) -> ChangeEvent | None:
        # Bookmarks and unknown types only prove the stream is alive.
        if event.type not in CHANGE_TYPES:
            return None
        metadata = event.object.get("metadata") or {}
        if not self._namespace_filter(str(metadata.get("namespace") or "")):
            return None
        return self._detector.process(event.type, event.object)
