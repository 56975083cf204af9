"""Kind schema data structures.

A ``SchemaSnapshot`` is the immutable view of every known kind and its
declared child kinds for one discovery cycle.  Snapshots are replaced
wholesale between cycles, never edited.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from kubediscovery.errors import SchemaError


@dataclass(frozen=True)
class KindSchema:
    """Declared relationships for one resource kind."""

    kind: str
    plural: str
    endpoint: str
    composition: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, data: Any) -> KindSchema:
        """Build a KindSchema from a ``{kind, plural, endpoint, composition}`` record.

        Raises SchemaError when the record is not a mapping, ``kind`` is
        missing, or a field has the wrong type.
        """
        if not isinstance(data, Mapping):
            raise SchemaError(f"Schema entry must be a mapping, got {type(data).__name__}")

        kind = data.get("kind")
        if not isinstance(kind, str) or not kind:
            raise SchemaError(f"Schema entry is missing a 'kind': {dict(data)!r}")

        plural = data.get("plural") or ""
        endpoint = data.get("endpoint") or ""
        if not isinstance(plural, str) or not isinstance(endpoint, str):
            raise SchemaError(f"Schema entry '{kind}' has non-string plural or endpoint")

        composition = data.get("composition") or []
        if isinstance(composition, str):
            composition = [c.strip() for c in composition.split(",") if c.strip()]
        if not isinstance(composition, list) or not all(isinstance(c, str) for c in composition):
            raise SchemaError(f"Schema entry '{kind}' composition must be a list of kind names")

        return cls(
            kind=kind,
            plural=plural or kind.lower() + "s",
            endpoint=endpoint.strip("/"),
            composition=tuple(composition),
        )


_BASELINE: tuple[KindSchema, ...] = (
    KindSchema("Deployment", "deployments", "apis/apps/v1", ("ReplicaSet",)),
    KindSchema("ReplicaSet", "replicasets", "apis/apps/v1", ("Pod",)),
    KindSchema("Pod", "pods", "api/v1"),
    KindSchema("Service", "services", "api/v1"),
    KindSchema("Secret", "secrets", "api/v1"),
    KindSchema("PersistentVolumeClaim", "persistentvolumeclaims", "api/v1"),
    # Cluster-scoped: the endpoint already names the plural.
    KindSchema("PersistentVolume", "persistentvolumes", "api/v1/persistentvolumes"),
)


@dataclass(frozen=True)
class SchemaSnapshot:
    """Read-only mapping of kind name to KindSchema."""

    _kinds: Mapping[str, KindSchema] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_entries(cls, entries: Iterable[KindSchema]) -> SchemaSnapshot:
        return cls(MappingProxyType({entry.kind: entry for entry in entries}))

    @classmethod
    def baseline(cls) -> SchemaSnapshot:
        """Snapshot containing only the built-in kinds."""
        return cls.from_entries(_BASELINE)

    def merged(self, entries: Iterable[KindSchema]) -> SchemaSnapshot:
        """Return a new snapshot with *entries* layered over this one."""
        kinds = dict(self._kinds)
        for entry in entries:
            kinds[entry.kind] = entry
        return SchemaSnapshot(MappingProxyType(kinds))

    def get(self, kind: str) -> KindSchema | None:
        return self._kinds.get(kind)

    def kinds(self) -> list[str]:
        return list(self._kinds)

    def children_of(self, kind: str) -> tuple[str, ...]:
        entry = self._kinds.get(kind)
        return entry.composition if entry is not None else ()

    def resolve_kind(self, name: str) -> str | None:
        """Map a kind or plural name, in any case, to the canonical kind.

        Exact kind names win over plural matches.
        """
        lowered = name.lower()
        for kind in self._kinds:
            if kind.lower() == lowered:
                return kind
        for kind, entry in self._kinds.items():
            if entry.plural.lower() == lowered:
                return kind
        return None

    def __contains__(self, kind: object) -> bool:
        return kind in self._kinds

    def __len__(self) -> int:
        return len(self._kinds)
