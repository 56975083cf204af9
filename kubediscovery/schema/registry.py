"""Client for the etcd-style key-value registry of custom kinds.

Layout::

    /operators       -> JSON array of registered kind names
    /<kind name>     -> JSON object {kind, plural, endpoint, composition}

Values are read through the etcd v2 keys API
(``GET /v2/keys/<key>`` returning ``{"node": {"value": ...}}``).
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog

from kubediscovery.errors import RegistryError
from kubediscovery.models.schema import KindSchema

_log = structlog.get_logger(component="schema.registry")


class RegistryClient:
    """Reads custom-kind declarations from the registry.

    Args:
        endpoint:  Base URL of the registry, e.g. ``http://localhost:2379``.
        root_key:  Key listing the registered kind names.
        timeout:   Per-request timeout in seconds.
        transport: Optional httpx transport for tests.
    """

    def __init__(
        self,
        endpoint: str,
        root_key: str = "/operators",
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._root_key = root_key
        self._client = httpx.AsyncClient(
            base_url=endpoint.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    async def read_key(self, key: str) -> str | None:
        """Return the raw value stored at *key*, or None when the key is absent.

        Raises RegistryError when the registry is unreachable or answers
        with an unexpected status.
        """
        path = "/v2/keys/" + key.lstrip("/")
        try:
            response = await self._client.get(path)
        except httpx.HTTPError as exc:
            raise RegistryError(f"Registry request for '{key}' failed: {exc}") from exc

        if response.status_code == 404:
            return None
        if not response.is_success:
            raise RegistryError(f"Registry returned {response.status_code} for '{key}'")

        try:
            node = response.json().get("node") or {}
        except (ValueError, AttributeError) as exc:
            raise RegistryError(f"Registry response for '{key}' is not a key node") from exc
        value = node.get("value") if isinstance(node, dict) else None
        return value if isinstance(value, str) else None

    async def list_kind_names(self) -> list[str]:
        raw = await self.read_key(self._root_key)
        if not raw:
            return []
        return _parse_name_list(raw)

    async def get_kind(self, name: str) -> KindSchema | None:
        """Fetch and parse the declaration registered under *name*.

        Raises RegistryError on transport failure or an undecodable blob.
        """
        raw = await self.read_key("/" + name)
        if not raw:
            _log.warning("registry_kind_missing", name=name)
            return None
        try:
            data: Any = json.loads(raw)
        except ValueError as exc:
            raise RegistryError(f"Registry entry '{name}' is not JSON") from exc
        return KindSchema.from_mapping(data)

    async def load_kinds(self) -> list[KindSchema]:
        """Return every registered kind declaration."""
        kinds = []
        for name in await self.list_kind_names():
            entry = await self.get_kind(name)
            if entry is not None:
                kinds.append(entry)
        return kinds

    async def close(self) -> None:
        await self._client.aclose()


def _parse_name_list(raw: str) -> list[str]:
    """Accept either a JSON array of names or a comma-separated string."""
    try:
        data = json.loads(raw)
    except ValueError:
        data = raw.split(",")
    if isinstance(data, str):
        data = data.split(",")
    if not isinstance(data, list):
        return []
    return [name.strip() for name in data if isinstance(name, str) and name.strip()]
