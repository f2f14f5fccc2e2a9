"""Integration tests for catalog enumeration and the dispatch queue."""

from __future__ import annotations

import asyncio

import pytest

from kubectl_watch.collector.dispatcher import DispatchQueue, dispatch_resources, parse_group_version
from kubectl_watch.filters import NameFilter
from kubectl_watch.models.events import CatalogEntry, ResourceDescriptor

_CATALOG = [
    CatalogEntry("v1", ("pods", "configmaps")),
    CatalogEntry("apps/v1", ("deployments", "statefulsets")),
]

_ALL = NameFilter()


async def _collect(queue: DispatchQueue, stop: asyncio.Event) -> list[ResourceDescriptor]:
    received = []
    while (descriptor := await queue.receive(stop)) is not None:
        received.append(descriptor)
    return received


async def _dispatch(
    catalog: list[CatalogEntry],
    gv_filter: NameFilter = _ALL,
    gvr_filter: NameFilter = _ALL,
) -> tuple[int, list[ResourceDescriptor]]:
    stop = asyncio.Event()
    queue = DispatchQueue(maxsize=2)
    consumer = asyncio.create_task(_collect(queue, stop))
    sent = await dispatch_resources(catalog, queue, gv_filter, gvr_filter, stop)
    received = await asyncio.wait_for(consumer, timeout=1.0)
    return sent, received


# ---------------------------------------------------------------------------
# parse_group_version
# ---------------------------------------------------------------------------


class TestParseGroupVersion:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("v1", ("", "v1")), ("apps/v1", ("apps", "v1")), ("", ("", "")), ("/", ("", ""))],
    )
    def test_valid(self, value: str, expected: tuple[str, str]) -> None:
        assert parse_group_version(value) == expected

    def test_too_many_slashes(self) -> None:
        with pytest.raises(ValueError, match="unexpected GroupVersion"):
            parse_group_version("a/b/c")


# ---------------------------------------------------------------------------
# Enumeration and filtering
# ---------------------------------------------------------------------------


class TestDispatch:
    async def test_everything_passes_empty_filters(self) -> None:
        sent, received = await _dispatch(_CATALOG)
        assert sent == 4
        assert received == [
            ResourceDescriptor("", "v1", "pods"),
            ResourceDescriptor("", "v1", "configmaps"),
            ResourceDescriptor("apps", "v1", "deployments"),
            ResourceDescriptor("apps", "v1", "statefulsets"),
        ]

    async def test_group_version_and_resource_filters(self) -> None:
        gv_filter = NameFilter.from_patterns(["apps/v1", "!apps/v1/deployments"])
        gvr_filter = NameFilter.from_patterns(["!apps/v1/deployments"])
        sent, received = await _dispatch(_CATALOG, gv_filter, gvr_filter)
        assert sent == 1
        assert received == [ResourceDescriptor("apps", "v1", "statefulsets")]

    async def test_malformed_group_version_is_skipped(self) -> None:
        catalog = [CatalogEntry("a/b/c", ("things",)), *_CATALOG]
        sent, received = await _dispatch(catalog)
        assert sent == 4
        assert all(descriptor.resource != "things" for descriptor in received)


# ---------------------------------------------------------------------------
# Queue closing and cancellation
# ---------------------------------------------------------------------------


class TestDispatchQueue:
    async def test_every_receiver_sees_end_of_input(self) -> None:
        stop = asyncio.Event()
        queue = DispatchQueue(maxsize=4)
        receivers = [asyncio.create_task(_collect(queue, stop)) for _ in range(3)]
        await dispatch_resources(_CATALOG, queue, _ALL, _ALL, stop)

        results = await asyncio.wait_for(asyncio.gather(*receivers), timeout=1.0)
        received = [descriptor for result in results for descriptor in result]
        assert len(received) == 4
        assert len(set(received)) == 4

    async def test_stop_abandons_blocked_dispatch(self) -> None:
        stop = asyncio.Event()
        queue = DispatchQueue(maxsize=1)
        dispatcher = asyncio.create_task(dispatch_resources(_CATALOG, queue, _ALL, _ALL, stop))
        await asyncio.sleep(0.02)
        assert not dispatcher.done()

        stop.set()
        sent = await asyncio.wait_for(dispatcher, timeout=1.0)
        assert sent == 1
        assert queue.qsize() == 1

    async def test_receive_returns_none_when_stopped(self) -> None:
        stop = asyncio.Event()
        queue = DispatchQueue()
        receiver = asyncio.create_task(queue.receive(stop))
        await asyncio.sleep(0.01)
        stop.set()
        assert await asyncio.wait_for(receiver, timeout=1.0) is None
