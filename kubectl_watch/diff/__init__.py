"""Structural diff of JSON documents and the change detector built on it.

Submodules:
    engine  -- compare()/render(): structural comparison and marked-up text rendering.
    changes -- ChangeDetector: snapshot cache + diff engine -> ChangeEvent.
"""

from kubectl_watch.diff.changes import ChangeDetector
from kubectl_watch.diff.engine import DiffResult, compare, render

__all__ = ["ChangeDetector", "DiffResult", "compare", "render"]
