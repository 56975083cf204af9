"""In-memory table of the latest composition tree per top-level resource.

A single mutex guards the record table.  It is held for the whole of an
upsert, a query (including materialisation of the returned trees) and a
purge, so readers never see a half-applied cycle step.  Network calls that
produce the trees happen outside the lock.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable

import structlog

from kubediscovery.models.composition import CompositionNode, CompositionRecord
from kubediscovery.models.resources import ResourceIdentity

_log = structlog.get_logger(component="store")

WILDCARD = "*"


class CompositionStore:
    """Concurrency-safe mapping of ResourceIdentity to CompositionRecord."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        # Insertion-ordered: new identities are appended.
        self._records: dict[ResourceIdentity, CompositionRecord] = {}

    def upsert(
        self,
        kind: str,
        name: str,
        namespace: str,
        status: str,
        tree: CompositionNode,
    ) -> None:
        """Replace the status and tree of an existing record, or append a new one."""
        identity = ResourceIdentity(kind, name, namespace)
        with self._lock:
            record = self._records.get(identity)
            if record is None:
                self._records[identity] = CompositionRecord(kind, name, namespace, status, tree)
            else:
                record.status = status
                record.tree = tree

    def query(self, kind: str, name: str, namespace: str) -> list[CompositionNode]:
        """Return the trees matching *kind* (any case), *namespace* and *name* or ``"*"``."""
        kind_key = kind.lower()
        with self._lock:
            return [
                record.materialize()
                for record in self._records.values()
                if record.namespace == namespace
                and record.kind.lower() == kind_key
                and (name == WILDCARD or record.name == name)
            ]

    def purge(self, observed: Iterable[ResourceIdentity], by_name_only: bool = False) -> int:
        """Drop every record not present in *observed*; return how many were removed.

        With *by_name_only* a record survives when any observed identity
        shares its name, regardless of kind or namespace.
        """
        observed = list(observed)
        with self._lock:
            if by_name_only:
                names = {identity.name for identity in observed}
                stale = [i for i in self._records if i.name not in names]
            else:
                keep = set(observed)
                stale = [i for i in self._records if i not in keep]
            for identity in stale:
                del self._records[identity]
        if stale:
            _log.debug("records_purged", count=len(stale))
        return len(stale)

    def identities(self) -> list[ResourceIdentity]:
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
