"""Inbound query interface over the composition store."""

from __future__ import annotations

import json
from typing import Any

from kubediscovery.schema.provider import SchemaProvider
from kubediscovery.store.composition_store import CompositionStore


class CompositionQueryService:
    """Answers composition queries by kind, name and namespace.

    Callers may pass the kind's singular or plural name in any case; it is
    resolved against the provider's current schema before the store lookup.
    """

    def __init__(self, store: CompositionStore, schema_provider: SchemaProvider) -> None:
        self._store = store
        self._schema_provider = schema_provider

    def resolve_kind(self, kind: str) -> str:
        return self._schema_provider.current.resolve_kind(kind) or kind

    def get_compositions(self, kind: str, name: str, namespace: str) -> list[dict[str, Any]]:
        resolved = self.resolve_kind(kind)
        return [node.to_dict() for node in self._store.query(resolved, name, namespace)]

    def get_compositions_json(self, kind: str, name: str, namespace: str) -> str:
        return json.dumps(self.get_compositions(kind, name, namespace))
