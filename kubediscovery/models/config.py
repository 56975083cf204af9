"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ClusterConfig:
    """Kubernetes API server connection configuration.

    In-cluster service-account credentials are tried first; ``kubeconfig``
    and ``context`` apply only when running outside a pod.  An empty
    ``kubeconfig`` lets kubernetes-asyncio use $KUBECONFIG or ~/.kube/config.
    """

    kubeconfig: str = ""
    context: str = ""
    request_timeout: float = 10.0


@dataclass
class SchemaConfig:
    """Kind-composition schema source configuration.

    When ``composition_file`` is set the registry is not consulted.
    """

    composition_file: str = ""
    registry_url: str = "http://localhost:2379"
    registry_root_key: str = "/operators"
    registry_timeout: float = 5.0


@dataclass
class DiscoveryConfig:
    """Discovery loop configuration."""

    interval_seconds: float = 10.0
    max_depth: int | None = None
    match_all_owners: bool = False
    purge_by_name_only: bool = False


@dataclass
class APIConfig:
    """REST API configuration."""

    host: str = "0.0.0.0"
    port: int = 8080


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class KubeDiscoveryConfig:
    """Top-level kubediscovery configuration."""

    cluster: ClusterConfig = field(default_factory=ClusterConfig)
    schema: SchemaConfig = field(default_factory=SchemaConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)
