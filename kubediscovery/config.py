"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from kubediscovery.models.config import (
    APIConfig,
    ClusterConfig,
    DiscoveryConfig,
    KubeDiscoveryConfig,
    LogConfig,
    SchemaConfig,
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBEDISCOVERY_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_float(key: str, default: float, min_val: float | None = None) -> float:
    val = float(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _composition_file() -> str:
    # KIND_COMPOSITION_FILE is the name operators already set in their manifests.
    return _env("KIND_COMPOSITION_FILE", os.environ.get("KIND_COMPOSITION_FILE", ""))


def _max_depth() -> int | None:
    depth = _env_int("MAX_DEPTH", 0, min_val=0)
    return depth or None


def load_config() -> KubeDiscoveryConfig:
    """Load configuration from KUBEDISCOVERY_* environment variables."""
    return KubeDiscoveryConfig(
        cluster=ClusterConfig(
            kubeconfig=_env("KUBECONFIG"),
            context=_env("CONTEXT"),
            request_timeout=_env_float("REQUEST_TIMEOUT", 10.0, min_val=1.0),
        ),
        schema=SchemaConfig(
            composition_file=_composition_file(),
            registry_url=_env("REGISTRY_URL", "http://localhost:2379"),
            registry_root_key=_env("REGISTRY_ROOT_KEY", "/operators"),
            registry_timeout=_env_float("REGISTRY_TIMEOUT", 5.0, min_val=1.0),
        ),
        discovery=DiscoveryConfig(
            interval_seconds=_env_float("INTERVAL_SECONDS", 10.0, min_val=1.0),
            max_depth=_max_depth(),
            match_all_owners=_env_bool("MATCH_ALL_OWNERS", False),
            purge_by_name_only=_env_bool("PURGE_BY_NAME_ONLY", False),
        ),
        api=APIConfig(
            host=_env("API_HOST", "0.0.0.0"),
            port=_env_int("API_PORT", 8080, min_val=1024, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
