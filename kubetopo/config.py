"""Configuration loading from environment variables."""

from __future__ import annotations

import os
import re

from kubetopo.models.config import (
    FetchOptions,
    KrokiConfig,
    KubeConfig,
    KubeTopoConfig,
    LogConfig,
    RenderConfig,
)

_LOG_LEVELS = {"debug", "info", "warning", "error"}
_LOG_FORMATS = {"console", "json"}


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBETOPO_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    raw = _env(key, str(default))
    try:
        val = int(raw)
    except ValueError as exc:
        raise ValueError(f"KUBETOPO_{key} must be an integer, got {raw!r}") from exc
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def validate_grid_columns(value: int) -> int:
    if value < 0:
        raise ValueError(f"Invalid grid columns: {value}. Must be >= 0")
    return value


def validate_log_level(value: str) -> str:
    if value.lower() not in _LOG_LEVELS:
        raise ValueError(f"Invalid log level: {value}. Must be one of {sorted(_LOG_LEVELS)}")
    return value.lower()


def validate_log_format(value: str) -> str:
    if value.lower() not in _LOG_FORMATS:
        raise ValueError(f"Invalid log format: {value}. Must be one of {sorted(_LOG_FORMATS)}")
    return value.lower()


def _validate_endpoint(value: str) -> str:
    if not re.match(r"^https?://[^\s/]+", value):
        raise ValueError(f"Invalid Kroki endpoint: {value}")
    return value.rstrip("/")


def load_config() -> KubeTopoConfig:
    """Load configuration from KUBETOPO_* environment variables."""
    return KubeTopoConfig(
        kube=KubeConfig(
            kubeconfig=_env("KUBECONFIG", ""),
            context=_env("CONTEXT", ""),
        ),
        fetch=FetchOptions(
            namespace=_env("NAMESPACE", ""),
            all_namespaces=_env_bool("ALL_NAMESPACES", False),
            include_storage=_env_bool("INCLUDE_STORAGE", False),
            max_concurrency=_env_int("MAX_CONCURRENCY", 8, min_val=1, max_val=64),
        ),
        render=RenderConfig(
            grid_columns=validate_grid_columns(_env_int("GRID_COLUMNS", 3)),
        ),
        kroki=KrokiConfig(
            endpoint=_validate_endpoint(_env("KROKI_ENDPOINT", "https://kroki.io")),
            timeout_seconds=_env_int("KROKI_TIMEOUT", 30, min_val=1, max_val=300),
        ),
        log=LogConfig(
            level=validate_log_level(_env("LOG_LEVEL", "info")),
            format=validate_log_format(_env("LOG_FORMAT", "console")),
        ),
    )
