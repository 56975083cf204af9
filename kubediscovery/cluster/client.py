"""Read-only client for the Kubernetes API server.

Issues raw GET requests built from a kind's API path and plural name, so
custom kinds discovered at runtime need no generated client code.  Every
failure is logged and surfaces as an empty result; one bad call never
aborts a discovery cycle.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from kubediscovery.cluster.credentials import ClusterCredentials
from kubediscovery.cluster.decode import decode_instances, decode_namespaces
from kubediscovery.models.resources import ResourceInstance

_log = structlog.get_logger(component="cluster.client")

_NAMESPACES_PATH = "/api/v1/namespaces"


class ClusterClient:
    """Lists namespaces and resource instances over HTTPS.

    Args:
        credentials: API server host, authorization header and TLS settings.
        timeout:     Per-request timeout in seconds.
        transport:   Optional httpx transport (tests inject a MockTransport).
    """

    def __init__(
        self,
        credentials: ClusterCredentials,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        verify: Any = True
        if transport is None:
            verify = credentials.ssl_context()
        self._client = httpx.AsyncClient(
            base_url=credentials.host,
            headers=credentials.headers,
            timeout=timeout,
            verify=verify,
            transport=transport,
        )

    @staticmethod
    def build_path(api_path: str, plural: str, namespace: str) -> str:
        """Return the request path for listing *plural* in *namespace*.

        An ``api_path`` that already contains the plural (cluster-scoped
        kinds such as ``api/v1/persistentvolumes``) is used verbatim.
        """
        api_path = api_path.strip("/")
        if plural and plural in api_path:
            return f"/{api_path}"
        return f"/{api_path}/namespaces/{namespace}/{plural}"

    async def list_namespaces(self) -> list[str]:
        body = await self._get_json(_NAMESPACES_PATH)
        return decode_namespaces(body)

    async def list_instances(self, api_path: str, plural: str, namespace: str) -> list[ResourceInstance]:
        body = await self._get_json(self.build_path(api_path, plural, namespace))
        return decode_instances(body)

    async def close(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str) -> Any:
        try:
            response = await self._client.get(path)
        except httpx.TimeoutException:
            _log.warning("cluster_request_timeout", path=path)
            return None
        except httpx.HTTPError as exc:
            _log.warning("cluster_request_failed", path=path, error=str(exc))
            return None

        if not response.is_success:
            _log.warning(
                "cluster_non_2xx_response",
                path=path,
                status_code=response.status_code,
                body=response.text[:200],
            )
            return None

        try:
            return response.json()
        except ValueError as exc:
            _log.warning("cluster_response_not_json", path=path, error=str(exc))
            return None
