"""Composition tree construction over the kind schema graph."""

from kubediscovery.graph.builder import CompositionBuilder, Lister

__all__ = ["CompositionBuilder", "Lister"]
