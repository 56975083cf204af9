"""REST routes for composition queries."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, Request

from kubediscovery.api.schemas import CompositionNodeModel, HealthResponse

router = APIRouter()

# Cluster-scoped records are stored with an empty namespace.
_CLUSTER_SCOPE = ""


@router.get(
    "/namespaces/{namespace}/{kind}/{name}/compositions",
    response_model=list[CompositionNodeModel],
)
async def get_compositions(request: Request, namespace: str, kind: str, name: str) -> list[dict[str, Any]]:
    """Composition trees for *name* (or ``*``) of *kind* in *namespace*."""
    return request.app.state.query_service.get_compositions(kind, name, namespace)


@router.get("/{kind}/{name}/compositions", response_model=list[CompositionNodeModel])
async def get_cluster_compositions(request: Request, kind: str, name: str) -> list[dict[str, Any]]:
    """Composition trees for a cluster-scoped kind such as PersistentVolume."""
    return request.app.state.query_service.get_compositions(kind, name, _CLUSTER_SCOPE)


@router.get("/compositions", response_model=list[CompositionNodeModel])
async def find_compositions(
    request: Request,
    kind: str = Query(..., min_length=1),
    instance: str = Query("*", min_length=1),
    namespace: str = Query("default"),
) -> list[dict[str, Any]]:
    """Query-string form; ``namespace=`` (empty) selects cluster-scoped records."""
    return request.app.state.query_service.get_compositions(kind, instance, namespace)


@router.get("/healthz", response_model=HealthResponse)
async def healthz(request: Request) -> HealthResponse:
    store = request.app.state.store
    schema_provider = request.app.state.schema_provider
    return HealthResponse(records=len(store), kinds=sorted(schema_provider.current.kinds()))
