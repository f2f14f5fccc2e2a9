"""kubectl-watch: stream cluster-wide resource changes as structured diffs."""

__version__ = "0.1.0"
