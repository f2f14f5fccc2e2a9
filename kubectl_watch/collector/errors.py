"""Cluster API error taxonomy.

The watch loop only ever sees these types; the client adapter maps HTTP
statuses onto them.

ResourceNotFoundError -- 404, the kind is not served (yet). Retried forever.
WatchUnsupportedError -- 405, the kind cannot be watched. Stops quietly.
DiscoveryError        -- catalog retrieval failed. Process fatal.
ClusterAPIError       -- anything else. Logged, stops one watch loop.
"""

from __future__ import annotations


class ClusterAPIError(Exception):
    """Base class for errors returned by the cluster API."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ResourceNotFoundError(ClusterAPIError):
    """The resource type is not currently served by the cluster."""


class WatchUnsupportedError(ClusterAPIError):
    """The resource type does not support the requested verb."""


class DiscoveryError(ClusterAPIError):
    """The resource catalog could not be retrieved."""


_STATUS_ERRORS: dict[int, type[ClusterAPIError]] = {
    404: ResourceNotFoundError,
    405: WatchUnsupportedError,
}


def error_for_status(status: int, message: str) -> ClusterAPIError:
    """Return the taxonomy error matching an HTTP *status*."""
    return _STATUS_ERRORS.get(status, ClusterAPIError)(message, status=status)
