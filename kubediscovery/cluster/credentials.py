"""Cluster credential bootstrap.

Credentials come from the in-cluster service account when running inside a
pod, or from a kubeconfig file otherwise.  Both are resolved by
kubernetes-asyncio; only the resulting connection settings are kept here so
the httpx-based ClusterClient can issue raw-path requests with them.
"""

from __future__ import annotations

import ssl
from dataclasses import dataclass
from typing import Any

import structlog
import yaml

from kubediscovery.errors import CredentialError

_log = structlog.get_logger(component="cluster.credentials")

_AUTHORIZATION_KEYS = ("authorization", "BearerToken")


@dataclass(frozen=True)
class ClusterCredentials:
    """Connection settings for the API server.

    ``authorization`` is the full header value (``Bearer <token>``); it is
    empty for kubeconfigs that authenticate with a client certificate only.
    """

    host: str
    authorization: str = ""
    ca_cert_path: str | None = None
    cert_file: str | None = None
    key_file: str | None = None
    verify_ssl: bool = True
    source: str = ""

    @classmethod
    def from_configuration(cls, configuration: Any, source: str = "") -> ClusterCredentials:
        """Extract the settings from a ``kubernetes_asyncio.client.Configuration``."""
        api_key = configuration.api_key or {}
        prefixes = configuration.api_key_prefix or {}
        authorization = ""
        for key in _AUTHORIZATION_KEYS:
            value = api_key.get(key)
            if value:
                prefix = prefixes.get(key)
                authorization = f"{prefix} {value}" if prefix else value
                break
        return cls(
            host=configuration.host.rstrip("/"),
            authorization=authorization,
            ca_cert_path=configuration.ssl_ca_cert or None,
            cert_file=configuration.cert_file or None,
            key_file=configuration.key_file or None,
            verify_ssl=bool(configuration.verify_ssl),
            source=source,
        )

    @property
    def headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.authorization:
            headers["Authorization"] = self.authorization
        return headers

    def ssl_context(self) -> ssl.SSLContext | bool:
        """Value for httpx's ``verify`` argument."""
        if not self.verify_ssl:
            return False
        context = ssl.create_default_context(cafile=self.ca_cert_path)
        if self.cert_file:
            context.load_cert_chain(self.cert_file, self.key_file)
        return context


async def load_cluster_credentials(kubeconfig: str = "", context: str = "") -> ClusterCredentials:
    """Resolve credentials from the in-cluster service account, else kubeconfig.

    Raises CredentialError when neither source yields a usable configuration.
    """
    # Imported lazily: kubernetes-asyncio probes the environment on import in some versions.
    from kubernetes_asyncio.client import Configuration  # type: ignore[import-untyped]
    from kubernetes_asyncio.config import (  # type: ignore[import-untyped]
        ConfigException,
        load_incluster_config,
        load_kube_config,
    )

    configuration = Configuration()
    try:
        load_incluster_config(client_configuration=configuration)
        _log.info("credentials_loaded", source="in-cluster")
        return ClusterCredentials.from_configuration(configuration, source="in-cluster")
    except ConfigException as exc:
        _log.debug("in_cluster_config_unavailable", error=str(exc))

    source = kubeconfig or "kubeconfig"
    try:
        await load_kube_config(
            config_file=kubeconfig or None,
            context=context or None,
            client_configuration=configuration,
        )
    except (ConfigException, OSError, yaml.YAMLError) as exc:
        raise CredentialError(source, exc) from exc

    _log.info("credentials_loaded", source=source)
    return ClusterCredentials.from_configuration(configuration, source=source)
