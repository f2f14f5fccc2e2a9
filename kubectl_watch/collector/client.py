"""Cluster API client used by the watch pipeline.

ClusterClient / WatchStream -- the protocols the pipeline depends on.
KubeClusterClient          -- implementation on top of kubernetes-asyncio's
                              ApiClient, talking to the generic REST paths so
                              every served resource type (built-in or custom)
                              can be listed and watched the same way.
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any, Protocol

import structlog
from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]
from kubernetes_asyncio import config as k8s_config  # type: ignore[import-untyped]
from kubernetes_asyncio.client.rest import ApiException  # type: ignore[import-untyped]

from kubectl_watch.collector.errors import ClusterAPIError, DiscoveryError, error_for_status
from kubectl_watch.collector.throttle import RequestThrottle
from kubectl_watch.models.config import KubeConfig
from kubectl_watch.models.events import CatalogEntry, ResourceDescriptor, WatchEvent, WatchEventType

if TYPE_CHECKING:
    import aiohttp

_log = structlog.get_logger(component="collector.client")


class WatchStream(Protocol):
    """An open change stream for one resource type."""

    async def receive(self) -> WatchEvent | None:
        """Return the next notification, or None once the server ends the stream."""
        ...

    async def close(self) -> None:
        """Release the underlying connection. Safe to call more than once."""
        ...


class ClusterClient(Protocol):
    """Upstream collaborator: discovery, list and watch."""

    async def discover(self) -> list[CatalogEntry]: ...

    async def list(self, descriptor: ResourceDescriptor) -> list[dict[str, Any]]: ...

    async def watch(self, descriptor: ResourceDescriptor) -> WatchStream: ...

    async def close(self) -> None: ...


def resource_path(descriptor: ResourceDescriptor) -> str:
    """Return the collection URL path of *descriptor*."""
    if descriptor.group:
        return f"/apis/{descriptor.group}/{descriptor.version}/{descriptor.resource}"
    return f"/api/{descriptor.version}/{descriptor.resource}"


def group_version_path(group_version: str) -> str:
    """Return the discovery URL path of a group-version (``v1`` is the core group)."""
    if "/" in group_version:
        return f"/apis/{group_version}"
    return f"/api/{group_version}"


class KubeWatchStream:
    """Line-delimited JSON watch response decoded into WatchEvents."""

    def __init__(self, response: aiohttp.ClientResponse) -> None:
        self._response = response
        self._closed = False

    async def receive(self) -> WatchEvent | None:
        while not self._closed:
            try:
                line = await self._response.content.readline()
            except TimeoutError:
                # Client-side read timeout: treat like a server-side close.
                return None
            if not line:
                return None
            line = line.strip()
            if not line:
                continue

            data = json.loads(line)
            event_type = str(data.get("type", ""))
            obj = data.get("object") or {}
            if event_type == WatchEventType.ERROR:
                # Typically 410 Gone; a fresh watch starts from current state.
                _log.debug("watch_error_event", code=obj.get("code"), reason=obj.get("reason"))
                return None
            return WatchEvent(type=event_type, object=obj)
        return None

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._response.close()


class KubeClusterClient:
    """ClusterClient backed by a kubernetes-asyncio ApiClient."""

    def __init__(self, api_client: Any, watch_timeout: int = 240, throttle: RequestThrottle | None = None) -> None:
        self._api = api_client
        self._watch_timeout = watch_timeout
        self._throttle = throttle

    @classmethod
    async def connect(cls, kube: KubeConfig, watch_timeout: int = 240) -> KubeClusterClient:
        """Build a client from in-cluster config or kubeconfig.

        An explicit kubeconfig path or context skips in-cluster detection.
        """
        configuration = k8s_client.Configuration()
        if kube.kubeconfig or kube.context:
            await k8s_config.load_kube_config(
                config_file=kube.kubeconfig or None,
                context=kube.context or None,
                client_configuration=configuration,
            )
            _log.info("k8s_client_configured", source="kubeconfig", kubeconfig=kube.kubeconfig, context=kube.context)
        else:
            try:
                k8s_config.load_incluster_config(client_configuration=configuration)
                _log.info("k8s_client_configured", source="in-cluster")
            except k8s_config.ConfigException:
                await k8s_config.load_kube_config(client_configuration=configuration)
                _log.info("k8s_client_configured", source="kubeconfig")

        if kube.master:
            configuration.host = kube.master
        # One connection stays open per watched resource type.
        configuration.connection_pool_maxsize = kube.max_connections
        return cls(
            k8s_client.ApiClient(configuration=configuration),
            watch_timeout=watch_timeout,
            throttle=RequestThrottle(kube.qps, kube.burst),
        )

    async def _request(self, path: str, query: list[tuple[str, str]] | None = None) -> aiohttp.ClientResponse:
        if self._throttle is not None:
            await self._throttle.acquire()
        try:
            response = await self._api.call_api(
                path,
                "GET",
                query_params=query or [],
                header_params={"Accept": "application/json"},
                auth_settings=["BearerToken"],
                _preload_content=False,
                _return_http_data_only=True,
            )
        except ApiException as exc:
            raise error_for_status(exc.status or 0, f"GET {path}: {exc.reason}") from exc

        if response.status >= 400:
            body = await response.text()
            response.release()
            raise error_for_status(response.status, f"GET {path}: {response.status} {body.strip()[:200]}")
        return response

    async def _get_json(self, path: str) -> dict[str, Any]:
        response = await self._request(path)
        try:
            return json.loads(await response.read())  # type: ignore[no-any-return]
        finally:
            response.release()

    async def discover(self) -> list[CatalogEntry]:
        """Return core ``v1`` plus the preferred version of every API group.

        Failure to read the group list is fatal; a single group that cannot be
        described (an unavailable aggregated API, say) is logged and skipped.
        """
        try:
            core = await self._get_json("/api")
            groups = await self._get_json("/apis")
        except (ClusterAPIError, OSError, ValueError) as exc:
            raise DiscoveryError(f"error getting resources: {exc}") from exc

        group_versions = list(core.get("versions") or [])
        for group in groups.get("groups") or []:
            preferred = (group.get("preferredVersion") or {}).get("groupVersion")
            if preferred:
                group_versions.append(preferred)

        results = await asyncio.gather(
            *(self._describe(gv) for gv in group_versions),
            return_exceptions=True,
        )
        catalog: list[CatalogEntry] = []
        for group_version, result in zip(group_versions, results, strict=True):
            if isinstance(result, BaseException):
                _log.warning("group_version_discovery_failed", group_version=group_version, error=str(result))
                continue
            catalog.append(result)
        return catalog

    async def _describe(self, group_version: str) -> CatalogEntry:
        body = await self._get_json(group_version_path(group_version))
        names = tuple(
            str(resource["name"])
            for resource in body.get("resources") or []
            # Subresources such as pods/log cannot be watched on their own.
            if "/" not in str(resource.get("name", "/"))
        )
        return CatalogEntry(group_version=group_version, resources=names)

    async def list(self, descriptor: ResourceDescriptor) -> list[dict[str, Any]]:
        """List current objects, stamping apiVersion/kind the list items omit."""
        body = await self._get_json(resource_path(descriptor))
        api_version = str(body.get("apiVersion") or descriptor.group_version)
        kind = str(body.get("kind") or "").removesuffix("List")
        items: list[dict[str, Any]] = []
        for item in body.get("items") or []:
            item.setdefault("apiVersion", api_version)
            if kind:
                item.setdefault("kind", kind)
            items.append(item)
        return items

    async def watch(self, descriptor: ResourceDescriptor) -> KubeWatchStream:
        query = [
            ("watch", "true"),
            ("allowWatchBookmarks", "true"),
            ("timeoutSeconds", str(self._watch_timeout)),
        ]
        response = await self._request(resource_path(descriptor), query)
        return KubeWatchStream(response)

    async def close(self) -> None:
        await self._api.close()
