"""Application bootstrap for kubediscovery.

Wires all components in dependency order and manages the asyncio lifecycle.
Startup order: config → logging → credentials → cluster client → schema
              → store → discovery loop → REST

Shutdown is graceful: components are stopped in reverse startup order.
Each client close error is caught and logged independently so that
a single failure does not prevent the rest from shutting down cleanly.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING

import structlog

from kubediscovery.config import load_config
from kubediscovery.models.config import KubeDiscoveryConfig
from kubediscovery.observability.logging import setup_logging

if TYPE_CHECKING:
    from kubediscovery.cluster.client import ClusterClient
    from kubediscovery.discovery.loop import DiscoveryLoop
    from kubediscovery.schema.provider import SchemaProvider
    from kubediscovery.schema.registry import RegistryClient
    from kubediscovery.store.composition_store import CompositionStore

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class KubeDiscoveryApp:
    """Application root.  Owns every component and coordinates their lifecycle.

    Calling ``stop()`` on an app that was never started (or already
    stopped) is safe.
    """

    def __init__(self) -> None:
        self.config: KubeDiscoveryConfig | None = None

        self._cluster_client: ClusterClient | None = None
        self._registry: RegistryClient | None = None
        self._schema_provider: SchemaProvider | None = None
        self._store: CompositionStore | None = None
        self._discovery_loop: DiscoveryLoop | None = None
        self._rest_server: object | None = None

        # Background tasks that must be cancelled on shutdown
        self._background_tasks: list[asyncio.Task[None]] = []

        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a mandatory component cannot start.
        """
        self.config = load_config()

        setup_logging(self.config.log.level)
        self._log = structlog.get_logger(component="app")
        self._log.info("kubediscovery starting", version=_kubediscovery_version())

        await self._start_cluster_client()
        await self._start_schema_provider()
        self._start_store()
        await self._start_discovery_loop()
        await self._start_rest()

        self._running = True
        self._log.info("kubediscovery started", port=self.config.api.port)

    async def _start_cluster_client(self) -> None:
        """Load in-cluster or kubeconfig credentials and open the API server client."""
        assert self._log is not None
        assert self.config is not None
        self._log.debug("starting cluster client")
        try:
            from kubediscovery.cluster import ClusterClient, load_cluster_credentials

            cluster = self.config.cluster
            credentials = await load_cluster_credentials(cluster.kubeconfig, cluster.context)
            self._cluster_client = ClusterClient(credentials, timeout=cluster.request_timeout)
            self._log.info("cluster client configured", host=credentials.host, source=credentials.source)
        except Exception as exc:
            raise _ComponentError("cluster_client", exc) from exc

    async def _start_schema_provider(self) -> None:
        """Choose the static file or the registry as the schema source."""
        assert self._log is not None
        assert self.config is not None
        from kubediscovery.schema import RegistryClient, SchemaProvider

        schema = self.config.schema
        if schema.composition_file:
            self._schema_provider = SchemaProvider(composition_file=schema.composition_file)
            self._log.info("schema source: file", path=schema.composition_file)
        else:
            self._registry = RegistryClient(
                schema.registry_url,
                root_key=schema.registry_root_key,
                timeout=schema.registry_timeout,
            )
            self._schema_provider = SchemaProvider(registry=self._registry)
            self._log.info("schema source: registry", url=schema.registry_url)

    def _start_store(self) -> None:
        from kubediscovery.store import CompositionStore

        self._store = CompositionStore()

    async def _start_discovery_loop(self) -> None:
        assert self._log is not None
        assert self.config is not None
        assert self._cluster_client is not None
        assert self._schema_provider is not None
        assert self._store is not None
        from kubediscovery.discovery import DiscoveryLoop

        discovery = self.config.discovery
        loop = DiscoveryLoop(
            self._schema_provider,
            self._cluster_client,
            self._store,
            interval=discovery.interval_seconds,
            max_depth=discovery.max_depth,
            match_all_owners=discovery.match_all_owners,
            purge_by_name_only=discovery.purge_by_name_only,
        )
        task = asyncio.create_task(loop.run_forever(), name="discovery-loop")
        self._background_tasks.append(task)
        self._discovery_loop = loop
        self._log.info("discovery loop started", interval=discovery.interval_seconds)

    async def _start_rest(self) -> None:
        """Start the uvicorn REST server."""
        assert self._log is not None
        assert self.config is not None
        assert self._store is not None
        assert self._schema_provider is not None
        self._log.debug("starting rest api")
        try:
            import uvicorn

            from kubediscovery.api import create_app

            fastapi_app = create_app(store=self._store, schema_provider=self._schema_provider)
            uv_config = uvicorn.Config(
                app=fastapi_app,
                host=self.config.api.host,
                port=self.config.api.port,
                log_config=None,  # structlog handles all logging
                access_log=False,
            )
            server = uvicorn.Server(uv_config)
            task = asyncio.create_task(server.serve(), name="rest-server")
            self._background_tasks.append(task)
            self._rest_server = server
            self._log.info("rest api started", port=self.config.api.port)
        except Exception as exc:
            raise _ComponentError("rest", exc) from exc

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Gracefully stop all components in reverse startup order."""
        if not self._running and self._log is None:
            return

        log = self._log or structlog.get_logger(component="app")
        log.info("kubediscovery shutting down")

        self._running = False

        if self._discovery_loop is not None:
            self._discovery_loop.stop()

        for task in reversed(self._background_tasks):
            if not task.done():
                task.cancel()

        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
        self._background_tasks.clear()

        await self._close_client("registry", self._registry)
        await self._close_client("cluster_client", self._cluster_client)

        log.info("kubediscovery stopped")

    async def _close_client(self, name: str, client: ClusterClient | RegistryClient | None) -> None:
        """Close an HTTP client, logging rather than raising on failure."""
        if client is None:
            return
        log = self._log or structlog.get_logger(component="app")
        try:
            await asyncio.wait_for(client.close(), timeout=_SHUTDOWN_GRACE_SECONDS)
        except TimeoutError:
            log.warning("component stop timed out", component=name, timeout=_SHUTDOWN_GRACE_SECONDS)
        except Exception as exc:
            log.error("component stop raised an error", component=name, error=str(exc))


def _kubediscovery_version() -> str:
    from kubediscovery import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main() -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = KubeDiscoveryApp()
    loop = asyncio.get_running_loop()

    shutdown_triggered = False

    def _request_shutdown() -> None:
        nonlocal shutdown_triggered
        if shutdown_triggered:
            return
        shutdown_triggered = True
        asyncio.create_task(app.stop(), name="shutdown")

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _request_shutdown)

    try:
        await app.start()
        while app._running:
            await asyncio.sleep(1)
    except _ComponentError as exc:
        log = structlog.get_logger(component="app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        await app.stop()
        raise SystemExit(1) from exc
    finally:
        if app._running:
            await app.stop()


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())
