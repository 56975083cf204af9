"""Composition store for kubediscovery."""

from kubediscovery.store.composition_store import WILDCARD, CompositionStore

__all__ = ["WILDCARD", "CompositionStore"]
