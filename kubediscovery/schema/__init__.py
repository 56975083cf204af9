"""Kind schema sources for kubediscovery.

Submodules:
    provider -- SchemaProvider: baseline kinds plus static file or registry.
    registry -- RegistryClient: custom-kind declarations from etcd.
"""

from kubediscovery.schema.provider import SchemaProvider, parse_composition_file
from kubediscovery.schema.registry import RegistryClient

__all__ = ["RegistryClient", "SchemaProvider", "parse_composition_file"]
