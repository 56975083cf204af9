"""Kind-composition schema provider.

On every refresh the provider builds a fresh ``SchemaSnapshot`` from the
built-in baseline plus either a static YAML file or the registry, then
swaps it in as ``current``.  Readers holding the previous snapshot keep a
consistent view; a failed refresh leaves ``current`` untouched.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import yaml

from kubediscovery.errors import SchemaError
from kubediscovery.models.schema import KindSchema, SchemaSnapshot
from kubediscovery.schema.registry import RegistryClient

_log = structlog.get_logger(component="schema.provider")


def parse_composition_file(path: str) -> list[KindSchema]:
    """Parse a YAML list of ``{kind, plural, endpoint, composition}`` records.

    Raises SchemaError for unreadable files, invalid YAML, or malformed entries.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise SchemaError(f"Cannot read kind composition file '{path}': {exc}") from exc
    return parse_composition_document(text)


def parse_composition_document(text: str) -> list[KindSchema]:
    try:
        data: Any = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SchemaError(f"Kind composition document is not valid YAML: {exc}") from exc
    if data is None:
        return []
    if not isinstance(data, list):
        raise SchemaError("Kind composition document must be a list of entries")
    return [KindSchema.from_mapping(entry) for entry in data]


class SchemaProvider:
    """Resolves the set of known kinds for each discovery cycle.

    Args:
        composition_file: Path to a static YAML schema.  Takes precedence.
        registry:         Registry consulted when no file is configured.
    """

    def __init__(
        self,
        composition_file: str = "",
        registry: RegistryClient | None = None,
    ) -> None:
        self._composition_file = composition_file
        self._registry = registry
        self._current = SchemaSnapshot.baseline()

    @property
    def current(self) -> SchemaSnapshot:
        return self._current

    async def load(self) -> SchemaSnapshot:
        """Build a new snapshot without installing it.

        Raises SchemaError or RegistryError.
        """
        if self._composition_file:
            entries = parse_composition_file(self._composition_file)
            source = "file"
        elif self._registry is not None:
            entries = await self._registry.load_kinds()
            source = "registry"
        else:
            entries = []
            source = "baseline"

        snapshot = SchemaSnapshot.baseline().merged(entries)
        _log.debug("schema_loaded", source=source, custom_kinds=len(entries), kinds=len(snapshot))
        return snapshot

    async def refresh(self) -> SchemaSnapshot:
        """Load a new snapshot and swap it in as ``current``."""
        snapshot = await self.load()
        self._current = snapshot
        return snapshot
