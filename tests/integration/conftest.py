"""Shared fixtures for kubediscovery integration tests.

Provides a fake Kubernetes API server (served through ``httpx.MockTransport``)
and pre-wired discovery components so tests can run full discovery cycles
without touching a real cluster.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import httpx
import pytest

from kubediscovery.cluster.client import ClusterClient
from kubediscovery.cluster.credentials import ClusterCredentials
from kubediscovery.query import CompositionQueryService
from kubediscovery.schema.provider import SchemaProvider
from kubediscovery.store.composition_store import CompositionStore

# ---------------------------------------------------------------------------
# Object factory helpers
# ---------------------------------------------------------------------------


def make_item(
    name: str,
    namespace: str | None = "default",
    owner: str | None = None,
    owner_kind: str = "",
    phase: str | None = None,
    replicas: int | None = None,
) -> dict[str, Any]:
    """Create a raw list item as the API server would return it."""
    metadata: dict[str, Any] = {"name": name, "uid": f"uid-{name}"}
    if namespace is not None:
        metadata["namespace"] = namespace
    if owner is not None:
        metadata["ownerReferences"] = [
            {"name": owner, "kind": owner_kind, "apiVersion": "apps/v1", "controller": True}
        ]
    item: dict[str, Any] = {"metadata": metadata}
    if phase is not None or replicas is not None:
        status: dict[str, Any] = {}
        if phase is not None:
            status["phase"] = phase
        if replicas is not None:
            status.update(replicas=replicas, readyReplicas=replicas, availableReplicas=replicas)
        item["status"] = status
    return item


# ---------------------------------------------------------------------------
# Fake API server
# ---------------------------------------------------------------------------


class FakeCluster:
    """In-memory API server answering namespace and instance list requests.

    Objects are registered under the ``(api_path, plural)`` of their kind.
    A namespaced request returns the objects in that namespace; a request
    whose path is exactly ``/<api_path>`` (cluster-scoped kinds) returns all.
    """

    def __init__(self, namespaces: list[str] | None = None) -> None:
        self.namespaces = namespaces or ["default"]
        self.objects: dict[tuple[str, str], list[dict[str, Any]]] = {}
        self.failing_paths: set[str] = set()
        self.requests: list[str] = []

    def add(self, api_path: str, plural: str, *items: dict[str, Any]) -> None:
        self.objects.setdefault((api_path, plural), []).extend(items)

    def remove(self, api_path: str, plural: str, name: str) -> None:
        items = self.objects.get((api_path, plural), [])
        self.objects[(api_path, plural)] = [i for i in items if i["metadata"]["name"] != name]

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append(path)
        if path in self.failing_paths:
            return httpx.Response(500, json={"kind": "Status", "status": "Failure"})

        if path == "/api/v1/namespaces":
            return httpx.Response(200, json={"items": [{"metadata": {"name": ns}} for ns in self.namespaces]})

        for (api_path, plural), items in self.objects.items():
            if path == f"/{api_path}":
                return httpx.Response(200, json={"items": items})
            prefix = f"/{api_path}/namespaces/"
            if path.startswith(prefix) and path.endswith(f"/{plural}"):
                namespace = path[len(prefix) : -len(plural) - 1]
                selected = [i for i in items if i["metadata"].get("namespace") == namespace]
                return httpx.Response(200, json={"items": selected})

        return httpx.Response(200, json={"items": []})

    def request_count(self, path: str) -> int:
        return self.requests.count(path)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_cluster() -> FakeCluster:
    """Cluster with Deployment "web" -> ReplicaSet "web-abc123" -> two Pods."""
    cluster = FakeCluster()
    cluster.add(
        "apis/apps/v1",
        "deployments",
        make_item("web", phase="Running", replicas=3),
    )
    cluster.add(
        "apis/apps/v1",
        "replicasets",
        make_item("web-abc123", owner="web", owner_kind="Deployment", replicas=3),
    )
    cluster.add(
        "api/v1",
        "pods",
        make_item("web-abc123-x1", owner="web-abc123", owner_kind="ReplicaSet", phase="Running"),
        make_item("web-abc123-x2", owner="web-abc123", owner_kind="ReplicaSet", phase="Running"),
    )
    return cluster


@pytest.fixture()
async def cluster_client(fake_cluster: FakeCluster) -> AsyncIterator[ClusterClient]:
    client = ClusterClient(
        ClusterCredentials(host="https://10.96.0.1:443", authorization="Bearer test-token"),
        transport=httpx.MockTransport(fake_cluster.handler),
    )
    yield client
    await client.close()


@pytest.fixture()
def store() -> CompositionStore:
    return CompositionStore()


@pytest.fixture()
def schema_file(tmp_path: Path) -> Path:
    """Composition file adding ConfigMap and a custom EtcdCluster kind."""
    path = tmp_path / "kinds.yaml"
    path.write_text(
        "- kind: ConfigMap\n"
        "  plural: configmaps\n"
        "  endpoint: api/v1\n"
        "  composition: []\n"
        "- kind: EtcdCluster\n"
        "  plural: etcdclusters\n"
        "  endpoint: apis/etcd.database.coreos.com/v1beta2\n"
        "  composition: [Service, Pod]\n"
    )
    return path


@pytest.fixture()
def schema_provider() -> SchemaProvider:
    """Provider with the built-in kinds only."""
    return SchemaProvider()


@pytest.fixture()
def query_service(store: CompositionStore, schema_provider: SchemaProvider) -> CompositionQueryService:
    return CompositionQueryService(store, schema_provider)
