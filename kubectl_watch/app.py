"""Application bootstrap for kubectl-watch.

Startup order: logging -> cluster client -> catalog discovery -> pipeline.
Setup failures (client construction, discovery) are fatal and exit non-zero.
SIGINT/SIGTERM raise the shared stop event. During setup the pending step is
abandoned; once the pipeline runs, new resource types stop being admitted and
buffered events are drained. Either way the process exits 0.
"""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TextIO

from kubectl_watch.collector.client import ClusterClient, KubeClusterClient
from kubectl_watch.collector.stopping import STOPPED, until_stopped
from kubectl_watch.models.config import KubeConfig, WatchConfig
from kubectl_watch.models.events import CatalogEntry
from kubectl_watch.observability.logging import bind_session, get_logger, setup_logging
from kubectl_watch.pipeline import WatchPipeline

if TYPE_CHECKING:
    import structlog

ClientFactory = Callable[[KubeConfig, int], Awaitable[ClusterClient]]


class SetupError(Exception):
    """Raised when a mandatory startup step fails."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class WatchApp:
    """Application root.  Owns the cluster client and the pipeline's stop event.

    ``request_stop()`` may be called any number of times, from a signal
    handler or otherwise; only the first call has an effect.
    """

    def __init__(
        self,
        config: WatchConfig,
        client_factory: ClientFactory | None = None,
        sink: TextIO | None = None,
    ) -> None:
        self.config = config
        self.stop_event = asyncio.Event()
        self._client_factory: ClientFactory = client_factory or KubeClusterClient.connect
        self._sink = sink
        self._client: ClusterClient | None = None
        self._log: structlog.stdlib.BoundLogger | None = None

    async def run(self) -> int:
        """Run until stopped; return the number of events printed.

        Raises SetupError if the client cannot be built or discovery fails.
        A stop requested during either step ends the run without output.
        """
        setup_logging(self.config.log.level)
        bind_session(context=self.config.kube.context, master=self.config.kube.master)
        self._log = get_logger("app")
        self._log.info("app_starting", version=_version(), output=self.config.output.format)

        try:
            catalog = None
            if await self._start_client():
                catalog = await self._discover()
            if catalog is None:
                self._log.info("startup_interrupted")
                return 0

            pipeline = WatchPipeline(self._client, self.config, self.stop_event, sink=self._sink)  # type: ignore[arg-type]
            printed = await pipeline.run(catalog)
            self._log.info("app_stopped", events=printed)
            return printed
        finally:
            await self._close_client()

    def request_stop(self) -> None:
        if self.stop_event.is_set():
            return
        if self._log is not None:
            self._log.info("app_shutting_down")
        self.stop_event.set()

    async def _start_client(self) -> bool:
        """Build the cluster client; False if stopped before it was ready."""
        assert self._log is not None
        self._log.debug("k8s_client_starting")
        try:
            client = await until_stopped(
                self._client_factory(self.config.kube, self.config.pipeline.watch_timeout),
                self.stop_event,
            )
        except Exception as exc:
            raise SetupError("k8s_client", exc) from exc
        if client is STOPPED:
            return False
        self._client = client  # type: ignore[assignment]
        return True

    async def _discover(self) -> list[CatalogEntry] | None:
        """Fetch the resource catalog; None if stopped before it arrived."""
        assert self._log is not None
        assert self._client is not None
        try:
            catalog = await until_stopped(self._client.discover(), self.stop_event)
        except Exception as exc:
            raise SetupError("discovery", exc) from exc
        if catalog is STOPPED:
            return None
        self._log.info(
            "catalog_discovered",
            group_versions=len(catalog),  # type: ignore[arg-type]
            resources=sum(len(entry.resources) for entry in catalog),  # type: ignore[union-attr]
        )
        return catalog  # type: ignore[return-value]

    async def _close_client(self) -> None:
        if self._client is None:
            return
        client, self._client = self._client, None
        try:
            await client.close()
        except Exception as exc:  # noqa: BLE001
            log = self._log or get_logger("app")
            log.debug("k8s_client_close_failed", error=str(exc))


def _version() -> str:
    from kubectl_watch import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main(
    config: WatchConfig,
    client_factory: ClientFactory | None = None,
    sink: TextIO | None = None,
) -> int:
    """Create the app, register OS signals, run until shutdown; return the exit code."""
    app = WatchApp(config, client_factory=client_factory, sink=sink)
    loop = asyncio.get_running_loop()

    signals = (signal.SIGTERM, signal.SIGINT)
    for sig in signals:
        loop.add_signal_handler(sig, app.request_stop)

    try:
        await app.run()
    except SetupError as exc:
        log = get_logger("app")
        log.critical(
            "fatal_startup_error",
            component=exc.component,
            error=str(exc.cause),
        )
        return 1
    finally:
        for sig in signals:
            loop.remove_signal_handler(sig)
    return 0
