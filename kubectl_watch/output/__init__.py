"""Event output: formatters and the printer that drains the event queue.

Submodules:
    formatters -- DefaultFormatter and TraceFormatter (Chrome trace-event JSON).
    printer    -- EventPrinter: preamble, print until stopped, drain, epilogue.
"""

from kubectl_watch.output.formatters import DefaultFormatter, EventFormatter, TraceFormatter, get_formatter
from kubectl_watch.output.printer import EventPrinter

__all__ = ["DefaultFormatter", "EventFormatter", "EventPrinter", "TraceFormatter", "get_formatter"]
