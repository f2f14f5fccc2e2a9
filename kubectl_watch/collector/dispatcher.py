"""Resource enumeration and the dispatch queue feeding the spawner pool."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

import structlog

from kubectl_watch.collector.stopping import STOPPED, until_stopped
from kubectl_watch.filters import NameFilter
from kubectl_watch.models.events import CatalogEntry, ResourceDescriptor

_log = structlog.get_logger(component="collector.dispatcher")


class _Closed:
    pass


_CLOSED = _Closed()


class DispatchQueue:
    """Bounded queue of descriptors with an explicit end-of-input marker.

    ``close()`` posts a single marker; each receiver that takes it puts it
    back before returning None, so every worker observes the end of input.
    """

    def __init__(self, maxsize: int = 4) -> None:
        self._queue: asyncio.Queue[ResourceDescriptor | _Closed] = asyncio.Queue(maxsize=maxsize)

    async def send(self, descriptor: ResourceDescriptor, stop: asyncio.Event) -> bool:
        """Block until *descriptor* is queued; return False if stopped first."""
        return await until_stopped(self._queue.put(descriptor), stop) is not STOPPED

    async def receive(self, stop: asyncio.Event) -> ResourceDescriptor | None:
        """Return the next descriptor, or None once closed or stopped."""
        item = await until_stopped(self._queue.get(), stop)
        if isinstance(item, ResourceDescriptor):
            return item
        if item is _CLOSED:
            self._queue.put_nowait(_CLOSED)
        return None

    async def close(self, stop: asyncio.Event) -> None:
        await until_stopped(self._queue.put(_CLOSED), stop)

    def qsize(self) -> int:
        return self._queue.qsize()


def parse_group_version(group_version: str) -> tuple[str, str]:
    """Split ``group/version`` into its parts; ``v1`` is the core group.

    Raises ValueError for strings with more than one ``/``.
    """
    if not group_version or group_version == "/":
        return "", ""
    parts = group_version.split("/")
    if len(parts) == 1:
        return "", parts[0]
    if len(parts) == 2:
        return parts[0], parts[1]
    raise ValueError(f"unexpected GroupVersion string: {group_version}")


async def dispatch_resources(
    catalog: Iterable[CatalogEntry],
    queue: DispatchQueue,
    gv_filter: NameFilter,
    gvr_filter: NameFilter,
    stop: asyncio.Event,
) -> int:
    """Queue a descriptor for every catalog resource passing both filters.

    The group-version filter sees ``apps/v1``; the resource filter sees
    ``apps/v1/deployments``. The queue is always closed on return. Returns
    the number of descriptors queued.
    """
    sent = 0
    try:
        for entry in catalog:
            if not gv_filter(entry.group_version):
                continue

            try:
                group, version = parse_group_version(entry.group_version)
            except ValueError as exc:
                _log.error("group_version_parse_failed", group_version=entry.group_version, error=str(exc))
                continue

            for resource in entry.resources:
                if not gvr_filter(f"{entry.group_version}/{resource}"):
                    continue
                if not await queue.send(ResourceDescriptor(group, version, resource), stop):
                    return sent
                sent += 1
        _log.debug("dispatch_complete", resources=sent)
        return sent
    finally:
        await queue.close(stop)
