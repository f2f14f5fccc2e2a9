"""EventPrinter: the single consumer of the shared event queue."""

from __future__ import annotations

import asyncio
import sys
from typing import TextIO

import structlog

from kubectl_watch.collector.stopping import STOPPED, until_stopped
from kubectl_watch.models.events import ChangeEvent
from kubectl_watch.output.formatters import DefaultFormatter, EventFormatter

_log = structlog.get_logger(component="output.printer")


class EventPrinter:
    """Prints ChangeEvents until stopped, then flushes what is buffered.

    The final drain never waits: events already queued when the stop signal
    is observed are printed, anything a watcher is still in the middle of
    sending may or may not make it.
    """

    def __init__(
        self,
        events: asyncio.Queue[ChangeEvent],
        formatter: EventFormatter | None = None,
        sink: TextIO | None = None,
    ) -> None:
        self._events = events
        self._formatter = formatter or DefaultFormatter()
        self._sink = sink if sink is not None else sys.stdout
        self.printed = 0

    async def run(self, stop: asyncio.Event) -> int:
        """Write preamble, events, drained events and epilogue; return the event count."""
        self._write(self._formatter.preamble())
        try:
            while True:
                event = await until_stopped(self._events.get(), stop)
                if event is STOPPED:
                    break
                self._print(event)  # type: ignore[arg-type]
        finally:
            drained = self.drain()
            self._write(self._formatter.epilogue())
        _log.debug("printer_stopped", printed=self.printed, drained=drained)
        return self.printed

    def drain(self) -> int:
        """Print every event currently buffered without waiting for more."""
        drained = 0
        while True:
            try:
                event = self._events.get_nowait()
            except asyncio.QueueEmpty:
                return drained
            self._print(event)
            drained += 1

    def _print(self, event: ChangeEvent) -> None:
        self._write(self._formatter.format(event))
        self.printed += 1

    def _write(self, text: str) -> None:
        if not text:
            return
        self._sink.write(text)
        self._sink.flush()
