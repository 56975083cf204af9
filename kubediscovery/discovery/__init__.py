"""Discovery control loop."""

from kubediscovery.discovery.loop import CycleStats, DiscoveryLoop

__all__ = ["CycleStats", "DiscoveryLoop"]
