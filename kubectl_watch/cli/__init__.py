"""kubectl-watch command-line interface.

Exposes:
    cli -- Click command entry point (registered as ``kubectl-watch`` script).
"""

from kubectl_watch.cli.main import cli

__all__ = ["cli"]
