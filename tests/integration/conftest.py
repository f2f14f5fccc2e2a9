"""Shared fixtures for kubectl-watch integration tests.

Provides an in-memory ClusterClient whose list results and watch streams are
scripted per resource type, so the pipeline can be exercised end to end
without a Kubernetes cluster.
"""

from __future__ import annotations

import asyncio
import copy
from collections import defaultdict
from collections.abc import Callable
from typing import Any

import pytest

from kubectl_watch.models.events import CatalogEntry, ResourceDescriptor, WatchEvent

# ---------------------------------------------------------------------------
# Object factory helpers
# ---------------------------------------------------------------------------


def make_widget(
    name: str = "x",
    namespace: str = "a",
    replicas: int = 1,
    kind: str = "Widget",
) -> dict[str, Any]:
    """Create a namespaced object with sensible defaults for testing."""
    metadata: dict[str, Any] = {"name": name}
    if namespace:
        metadata["namespace"] = namespace
    return {"kind": kind, "metadata": metadata, "spec": {"replicas": replicas}}


# ---------------------------------------------------------------------------
# Fake cluster
# ---------------------------------------------------------------------------


class FakeStream:
    """Scripted WatchStream.

    Items are WatchEvents, exceptions (raised from receive) or None (clean
    end of stream). A stream left open blocks in receive() until pushed to.
    """

    def __init__(self, items: list[WatchEvent | Exception | None] | None = None, end: bool = False) -> None:
        self._queue: asyncio.Queue[WatchEvent | Exception | None] = asyncio.Queue()
        for item in items or []:
            self._queue.put_nowait(item)
        if end:
            self._queue.put_nowait(None)
        self.closed = False
        self.received = 0

    def push(self, event_type: str, obj: dict[str, Any]) -> None:
        self._queue.put_nowait(WatchEvent(type=event_type, object=copy.deepcopy(obj)))

    def end(self) -> None:
        self._queue.put_nowait(None)

    async def receive(self) -> WatchEvent | None:
        item = await self._queue.get()
        if isinstance(item, Exception):
            raise item
        if item is not None:
            self.received += 1
        return item

    async def close(self) -> None:
        self.closed = True


class FakeClusterClient:
    """In-memory ClusterClient with per-descriptor scripts."""

    def __init__(self) -> None:
        self.catalog: list[CatalogEntry] = []
        self.objects: dict[ResourceDescriptor, list[dict[str, Any]]] = {}
        self.list_errors: dict[ResourceDescriptor, Exception] = {}
        self.watch_scripts: dict[ResourceDescriptor, list[FakeStream | Exception]] = defaultdict(list)
        self.watch_calls: dict[ResourceDescriptor, int] = defaultdict(int)
        self.list_calls: list[ResourceDescriptor] = []
        self.streams: dict[ResourceDescriptor, list[FakeStream]] = defaultdict(list)
        self.discover_error: Exception | None = None
        self.discover_gate: asyncio.Event | None = None
        self.discover_calls = 0
        self.closed = False
        self.list_gate: asyncio.Event | None = None
        self.lists_in_flight = 0
        self.max_lists_in_flight = 0

    def stream(self, *events: tuple[str, dict[str, Any]], end: bool = False) -> FakeStream:
        """Create a FakeStream preloaded with (type, object) notifications."""
        fake = FakeStream()
        for event_type, obj in events:
            fake.push(event_type, obj)
        if end:
            fake.end()
        return fake

    def script_watch(self, descriptor: ResourceDescriptor, *steps: FakeStream | Exception) -> None:
        self.watch_scripts[descriptor].extend(steps)

    async def discover(self) -> list[CatalogEntry]:
        self.discover_calls += 1
        if self.discover_gate is not None:
            await self.discover_gate.wait()
        if self.discover_error is not None:
            raise self.discover_error
        return list(self.catalog)

    async def list(self, descriptor: ResourceDescriptor) -> list[dict[str, Any]]:
        self.list_calls.append(descriptor)
        self.lists_in_flight += 1
        self.max_lists_in_flight = max(self.max_lists_in_flight, self.lists_in_flight)
        try:
            if self.list_gate is not None:
                await self.list_gate.wait()
            if descriptor in self.list_errors:
                raise self.list_errors[descriptor]
            return copy.deepcopy(self.objects.get(descriptor, []))
        finally:
            self.lists_in_flight -= 1

    async def watch(self, descriptor: ResourceDescriptor) -> FakeStream:
        self.watch_calls[descriptor] += 1
        script = self.watch_scripts[descriptor]
        step: FakeStream | Exception = script.pop(0) if script else FakeStream()
        if isinstance(step, Exception):
            raise step
        self.streams[descriptor].append(step)
        return step

    async def close(self) -> None:
        self.closed = True


async def eventually(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll *predicate* until it holds, failing the test after *timeout*."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cluster() -> FakeClusterClient:
    return FakeClusterClient()


@pytest.fixture
def stop() -> asyncio.Event:
    return asyncio.Event()


@pytest.fixture
def widget() -> Callable[..., dict[str, Any]]:
    return make_widget


@pytest.fixture
def wait_until() -> Callable[..., Any]:
    return eventually
