"""Core data structures for kubediscovery."""

from kubediscovery.models.composition import CompositionNode, CompositionRecord
from kubediscovery.models.config import KubeDiscoveryConfig
from kubediscovery.models.resources import (
    READY_STATUS,
    OwnerReference,
    ResourceIdentity,
    ResourceInstance,
)
from kubediscovery.models.schema import KindSchema, SchemaSnapshot

__all__ = [
    "READY_STATUS",
    "CompositionNode",
    "CompositionRecord",
    "KindSchema",
    "KubeDiscoveryConfig",
    "OwnerReference",
    "ResourceIdentity",
    "ResourceInstance",
    "SchemaSnapshot",
]
