"""Defensive decoding of Kubernetes list responses.

Each item is decoded field by field.  A field of the wrong type degrades to
an empty value; only an item without usable metadata (or with a ``status``
key that is not a mapping) is dropped.  Nothing here raises on bad input.
"""

from __future__ import annotations

from typing import Any

from kubediscovery.models.resources import READY_STATUS, OwnerReference, ResourceInstance

_REPLICA_FIELDS = ("replicas", "readyReplicas", "availableReplicas")


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _items(body: Any) -> list[Any]:
    if not isinstance(body, dict):
        return []
    items = body.get("items")
    return items if isinstance(items, list) else []


def _decode_owner_references(raw: Any) -> tuple[OwnerReference, ...]:
    if not isinstance(raw, list):
        return ()
    refs = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        name = _str(entry.get("name"))
        if not name:
            continue
        refs.append(
            OwnerReference(
                name=name,
                kind=_str(entry.get("kind")),
                api_version=_str(entry.get("apiVersion")),
            )
        )
    return tuple(refs)


def derive_status(status: dict[str, Any]) -> str:
    """Return ``status.phase``, or "Ready" when all replica counts are equal and positive."""
    counts = []
    for key in _REPLICA_FIELDS:
        value = status.get(key)
        # bool is an int subclass; a boolean replica count is malformed.
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            break
        counts.append(value)
    if len(counts) == len(_REPLICA_FIELDS) and counts[0] > 0 and len(set(counts)) == 1:
        return READY_STATUS
    return _str(status.get("phase"))


def decode_instance(item: Any) -> ResourceInstance | None:
    """Decode a single list item, or return None if it must be skipped."""
    if not isinstance(item, dict):
        return None

    metadata = item.get("metadata")
    if not isinstance(metadata, dict):
        return None
    name = _str(metadata.get("name"))
    if not name:
        return None

    status = ""
    if "status" in item:
        raw_status = item["status"]
        if not isinstance(raw_status, dict):
            return None
        status = derive_status(raw_status)

    return ResourceInstance(
        name=name,
        namespace=_str(metadata.get("namespace")),
        status=status,
        owner_references=_decode_owner_references(metadata.get("ownerReferences")),
    )


def decode_instances(body: Any) -> list[ResourceInstance]:
    """Decode every usable item of a Kubernetes list envelope."""
    instances = []
    for item in _items(body):
        instance = decode_instance(item)
        if instance is not None:
            instances.append(instance)
    return instances


def decode_namespaces(body: Any) -> list[str]:
    """Return ``metadata.name`` of every item in a namespace list."""
    names = []
    for item in _items(body):
        metadata = item.get("metadata") if isinstance(item, dict) else None
        if isinstance(metadata, dict):
            name = _str(metadata.get("name"))
            if name:
                names.append(name)
    return names
