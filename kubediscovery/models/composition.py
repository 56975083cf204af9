"""Composition tree data structures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from kubediscovery.models.resources import ResourceIdentity


@dataclass(frozen=True)
class CompositionNode:
    """A node in a composition tree.  This is the shape returned to callers."""

    level: int
    kind: str
    name: str
    namespace: str
    status: str = ""
    children: tuple[CompositionNode, ...] = ()

    @property
    def identity(self) -> ResourceIdentity:
        return ResourceIdentity(self.kind, self.name, self.namespace)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the JSON output shape, children in order."""
        return {
            "level": self.level,
            "kind": self.kind,
            "name": self.name,
            "namespace": self.namespace,
            "status": self.status,
            "children": [child.to_dict() for child in self.children],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CompositionNode:
        return cls(
            level=int(data["level"]),
            kind=str(data["kind"]),
            name=str(data["name"]),
            namespace=str(data.get("namespace", "")),
            status=str(data.get("status", "")),
            children=tuple(cls.from_dict(child) for child in data.get("children", [])),
        )

    def walk(self) -> list[CompositionNode]:
        """Return this node and all descendants, depth-first."""
        nodes = [self]
        for child in self.children:
            nodes.extend(child.walk())
        return nodes


@dataclass
class CompositionRecord:
    """Store entry for one top-level resource.

    ``status`` and ``tree`` are replaced in place whenever the same identity
    is observed again.
    """

    kind: str
    name: str
    namespace: str
    status: str
    tree: CompositionNode

    @property
    def identity(self) -> ResourceIdentity:
        return ResourceIdentity(self.kind, self.name, self.namespace)

    def materialize(self) -> CompositionNode:
        """Root node carrying this record's identity and status with the stored children."""
        return CompositionNode(
            level=1,
            kind=self.kind,
            name=self.name,
            namespace=self.namespace,
            status=self.status,
            children=self.tree.children,
        )
