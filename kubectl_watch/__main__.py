"""Entry point for `python -m kubectl_watch`.

Usage:
    python -m kubectl_watch -n default -o trace
"""

from __future__ import annotations

from kubectl_watch.cli import cli

cli()
