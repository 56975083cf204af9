"""Kubernetes API access for kubediscovery.

Submodules:
    credentials -- In-cluster or kubeconfig credentials via kubernetes-asyncio.
    decode      -- Defensive decoding of list responses into ResourceInstance.
    client      -- ClusterClient: namespace and instance listing over HTTPS.
"""

from kubediscovery.cluster.client import ClusterClient
from kubediscovery.cluster.credentials import ClusterCredentials, load_cluster_credentials

__all__ = ["ClusterClient", "ClusterCredentials", "load_cluster_credentials"]
