"""Cooperative cancellation shared by every task of the pipeline.

A single ``asyncio.Event`` is the broadcast stop signal. Every suspension
point awaits through ``until_stopped`` so it unwinds as soon as the signal is
raised, without cancelling the task that owns it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Final, TypeVar

T = TypeVar("T")


class _Stopped:
    def __repr__(self) -> str:
        return "STOPPED"


STOPPED: Final = _Stopped()


async def until_stopped(aw: Awaitable[T], stop: asyncio.Event) -> T | _Stopped:
    """Await *aw* unless *stop* is set first.

    Returns STOPPED when the stop signal wins; *aw* is then cancelled and
    awaited so it can release what it holds. A result that completed in the
    same loop iteration as the signal is still returned.
    """
    if stop.is_set():
        if asyncio.iscoroutine(aw):
            aw.close()
        return STOPPED

    task = asyncio.ensure_future(aw)
    stopper = asyncio.ensure_future(stop.wait())
    try:
        await asyncio.wait({task, stopper}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stopper.cancel()
        if not task.done():
            task.cancel()
            await asyncio.wait({task})

    if task.cancelled():
        return STOPPED
    return task.result()


async def sleep_until_stopped(delay: float, stop: asyncio.Event) -> bool:
    """Sleep for *delay* seconds; return True if *stop* was raised meanwhile."""
    try:
        await asyncio.wait_for(stop.wait(), timeout=delay)
    except TimeoutError:
        return False
    return True
