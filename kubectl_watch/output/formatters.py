"""Output formatters.

DefaultFormatter -- ``[timestamp] key`` header followed by the diff text.
TraceFormatter   -- one Chrome trace-event record per change, wrapped in a
                    JSON array so the output loads in chrome://tracing or
                    Perfetto even when the process is interrupted.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod

from kubectl_watch.models.events import ChangeEvent


class EventFormatter(ABC):
    """Renders the output envelope and each ChangeEvent."""

    name: str = ""

    def preamble(self) -> str:
        """Text written before the first event."""
        return ""

    def epilogue(self) -> str:
        """Text written after the final drain."""
        return ""

    @abstractmethod
    def format(self, event: ChangeEvent) -> str:
        """Render one event, including its trailing newline."""


class DefaultFormatter(EventFormatter):
    name = "default"

    def format(self, event: ChangeEvent) -> str:
        stamp = event.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        return f"[{stamp}] {event.key}\n{event.diff}\n"


class TraceFormatter(EventFormatter):
    name = "trace"

    def preamble(self) -> str:
        return "[\n"

    def epilogue(self) -> str:
        return "]\n"

    def format(self, event: ChangeEvent) -> str:
        # Instant event ("ph": "i") scoped to the thread; ts is in microseconds.
        ts = event.timestamp.timestamp() * 1_000_000
        return (
            f'{{"ts": {ts:f}, "name": {json.dumps(event.key)}, "ph": "i", '
            f'"pid": 1, "tid": 1, "s": "t", "args": [{json.dumps(event.diff)}]}},\n'
        )


_FORMATTERS: dict[str, type[EventFormatter]] = {
    "": DefaultFormatter,
    DefaultFormatter.name: DefaultFormatter,
    TraceFormatter.name: TraceFormatter,
}


def get_formatter(name: str) -> EventFormatter:
    """Return the formatter registered under *name*.

    Raises ValueError for unknown names.
    """
    try:
        return _FORMATTERS[name.lower()]()
    except KeyError:
        raise ValueError(f"unknown output format: {name}") from None
