"""kubediscovery: composition discovery for Kubernetes resources."""

__version__ = "0.3.0"
