"""The discovery control loop.

One cycle: refresh schema, enumerate kinds x namespaces, build and upsert a
tree for every instance found, then purge records that were not observed.
Every per-call failure is logged and absorbed so the loop always reaches
its sleep and self-heals on the next cycle.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass

import structlog

from kubediscovery.cluster.client import ClusterClient
from kubediscovery.errors import RegistryError, SchemaError
from kubediscovery.graph.builder import CompositionBuilder
from kubediscovery.models.resources import ResourceIdentity, ResourceInstance
from kubediscovery.models.schema import KindSchema, SchemaSnapshot
from kubediscovery.schema.provider import SchemaProvider
from kubediscovery.store.composition_store import CompositionStore

_log = structlog.get_logger(component="discovery.loop")

_DEFAULT_INTERVAL_SECONDS = 10.0


@dataclass
class CycleStats:
    """Summary of one discovery cycle."""

    kinds: int = 0
    namespaces: int = 0
    top_level: int = 0
    purged: int = 0
    schema_refreshed: bool = False
    duration_ms: int = 0


class _CycleListings:
    """Memoises instance listings per (kind, namespace) for one cycle."""

    def __init__(self, client: ClusterClient) -> None:
        self._client = client
        self._cache: dict[tuple[str, str], list[ResourceInstance]] = {}

    async def list(self, kind_schema: KindSchema, namespace: str) -> list[ResourceInstance]:
        key = (kind_schema.kind, namespace)
        if key not in self._cache:
            self._cache[key] = await self._client.list_instances(
                kind_schema.endpoint, kind_schema.plural, namespace
            )
        return self._cache[key]


class DiscoveryLoop:
    """Periodically rebuilds the composition store from the cluster.

    Args:
        provider:           Schema provider refreshed at the start of each cycle.
        client:             Cluster API client.
        store:              Store receiving upserts and purges.
        interval:           Seconds to sleep between cycles.
        max_depth:          Passed to the tree builder.
        match_all_owners:   Passed to the tree builder.
        purge_by_name_only: Keep records alive by name alone when purging.
    """

    def __init__(
        self,
        provider: SchemaProvider,
        client: ClusterClient,
        store: CompositionStore,
        interval: float = _DEFAULT_INTERVAL_SECONDS,
        max_depth: int | None = None,
        match_all_owners: bool = False,
        purge_by_name_only: bool = False,
    ) -> None:
        self._provider = provider
        self._client = client
        self._store = store
        self._interval = interval
        self._max_depth = max_depth
        self._match_all_owners = match_all_owners
        self._purge_by_name_only = purge_by_name_only
        self._stop_event = asyncio.Event()
        self.cycles_completed = 0

    async def run_forever(self) -> None:
        """Run cycles until stop() is called or the task is cancelled."""
        _log.info("discovery_loop_started", interval=self._interval)
        while not self._stop_event.is_set():
            try:
                await self.run_cycle()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                _log.error("discovery_cycle_failed", error=str(exc), exc_info=True)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except TimeoutError:
                pass
        _log.info("discovery_loop_stopped", cycles=self.cycles_completed)

    def stop(self) -> None:
        self._stop_event.set()

    async def run_cycle(self) -> CycleStats:
        started = time.monotonic()
        stats = CycleStats()

        schema = await self._refresh_schema(stats)
        listings = _CycleListings(self._client)
        builder = CompositionBuilder(
            listings.list,
            max_depth=self._max_depth,
            match_all_owners=self._match_all_owners,
        )

        kinds = schema.kinds()
        namespaces = await self._client.list_namespaces()
        stats.kinds = len(kinds)
        stats.namespaces = len(namespaces)

        observed: dict[ResourceIdentity, None] = {}
        for kind in kinds:
            kind_schema = schema.get(kind)
            if kind_schema is None:
                continue
            for namespace in namespaces:
                for instance in await listings.list(kind_schema, namespace):
                    identity = ResourceIdentity(kind, instance.name, instance.namespace)
                    if identity in observed:
                        # Cluster-scoped kinds are returned once per namespace scan.
                        continue
                    observed[identity] = None
                    await self._build_and_store(builder, schema, identity, instance.status)

        stats.top_level = len(observed)
        stats.purged = self._store.purge(observed, by_name_only=self._purge_by_name_only)
        stats.duration_ms = int((time.monotonic() - started) * 1000)
        self.cycles_completed += 1

        _log.info(
            "discovery_cycle_complete",
            kinds=stats.kinds,
            namespaces=stats.namespaces,
            top_level=stats.top_level,
            purged=stats.purged,
            schema_refreshed=stats.schema_refreshed,
            duration_ms=stats.duration_ms,
        )
        return stats

    async def _refresh_schema(self, stats: CycleStats) -> SchemaSnapshot:
        try:
            schema = await self._provider.refresh()
            stats.schema_refreshed = True
            return schema
        except (SchemaError, RegistryError) as exc:
            _log.warning("schema_refresh_failed", error=str(exc), kept="previous")
            return self._provider.current

    async def _build_and_store(
        self,
        builder: CompositionBuilder,
        schema: SchemaSnapshot,
        identity: ResourceIdentity,
        status: str,
    ) -> None:
        try:
            tree = await builder.build(schema, identity.kind, identity.name, identity.namespace, status)
        except Exception as exc:
            _log.warning(
                "composition_build_failed",
                kind=identity.kind,
                name=identity.name,
                namespace=identity.namespace,
                error=str(exc),
            )
            return
        self._store.upsert(identity.kind, identity.name, identity.namespace, status, tree)
