"""Exception hierarchy for kubediscovery."""

from __future__ import annotations


class DiscoveryError(Exception):
    """Base class for all kubediscovery errors."""


class SchemaError(DiscoveryError):
    """Raised when a static kind-composition source is malformed."""


class RegistryError(DiscoveryError):
    """Raised when the custom-kind registry cannot be read."""


class CredentialError(DiscoveryError):
    """Raised when neither in-cluster nor kubeconfig credentials can be loaded.

    Fatal: without credentials no cluster access is possible.
    """

    def __init__(self, source: str, cause: Exception) -> None:
        super().__init__(f"Cannot load cluster credentials from '{source}': {cause}")
        self.source = source
        self.cause = cause
