"""Recursive composition tree construction.

The builder follows the schema's child-kind edges from a root resource,
keeps the listed instances whose owner reference names the current node,
and attaches them as children one level down.  It holds no state between
calls: the schema snapshot and the listing coroutine are its only inputs.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import structlog

from kubediscovery.models.composition import CompositionNode
from kubediscovery.models.resources import ResourceIdentity, ResourceInstance
from kubediscovery.models.schema import KindSchema, SchemaSnapshot

_log = structlog.get_logger(component="graph.builder")

Lister = Callable[[KindSchema, str], Awaitable[list[ResourceInstance]]]


class CompositionBuilder:
    """Builds nested CompositionNode trees.

    Args:
        lister:           Coroutine returning the instances of a kind in a namespace.
        max_depth:        Deepest level that may receive children.  None is unlimited.
        match_all_owners: Match on any owner reference instead of the first only.
    """

    def __init__(
        self,
        lister: Lister,
        max_depth: int | None = None,
        match_all_owners: bool = False,
    ) -> None:
        if max_depth is not None and max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self._lister = lister
        self._max_depth = max_depth
        self._match_all_owners = match_all_owners

    async def build(
        self,
        schema: SchemaSnapshot,
        kind: str,
        name: str,
        namespace: str,
        status: str = "",
    ) -> CompositionNode:
        """Return the composition tree rooted at (*kind*, *name*, *namespace*)."""
        root = ResourceIdentity(kind, name, namespace)
        return await self._build_node(schema, root, status, level=1, path={root})

    async def _build_node(
        self,
        schema: SchemaSnapshot,
        identity: ResourceIdentity,
        status: str,
        level: int,
        path: set[ResourceIdentity],
    ) -> CompositionNode:
        children: list[CompositionNode] = []
        if self._max_depth is None or level < self._max_depth:
            seen: set[tuple[str, str]] = set()
            for child_kind in schema.children_of(identity.kind):
                child_schema = schema.get(child_kind)
                if child_schema is None:
                    _log.debug("child_kind_not_in_schema", parent=identity.kind, child=child_kind)
                    continue

                for instance in await self._owned_instances(child_schema, identity):
                    key = (child_kind, instance.name)
                    child = ResourceIdentity(child_kind, instance.name, identity.namespace)
                    if key in seen or child in path:
                        continue
                    seen.add(key)

                    path.add(child)
                    try:
                        node = await self._build_node(schema, child, instance.status, level + 1, path)
                    finally:
                        path.discard(child)
                    children.append(node)

        return CompositionNode(
            level=level,
            kind=identity.kind,
            name=identity.name,
            namespace=identity.namespace,
            status=status,
            children=tuple(children),
        )

    async def _owned_instances(
        self,
        child_schema: KindSchema,
        parent: ResourceIdentity,
    ) -> list[ResourceInstance]:
        instances = await self._lister(child_schema, parent.namespace)
        return [i for i in instances if i.is_owned_by(parent.name, self._match_all_owners)]
