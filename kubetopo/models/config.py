"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class KubeConfig:
    """Cluster client configuration.

    An empty ``kubeconfig`` means ``~/.kube/config`` first, then the
    in-cluster service account.
    """

    kubeconfig: str = ""
    context: str = ""


@dataclass
class FetchOptions:
    """Which part of the cluster to snapshot."""

    namespace: str = ""
    all_namespaces: bool = False
    include_storage: bool = False
    max_concurrency: int = 8


@dataclass
class RenderConfig:
    """D2 renderer configuration."""

    grid_columns: int = 3


@dataclass
class KrokiConfig:
    """Kroki image rendering service configuration."""

    endpoint: str = "https://kroki.io"
    timeout_seconds: int = 30


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"
    format: str = "console"


@dataclass
class KubeTopoConfig:
    """Top-level kubetopo configuration."""

    kube: KubeConfig = field(default_factory=KubeConfig)
    fetch: FetchOptions = field(default_factory=FetchOptions)
    render: RenderConfig = field(default_factory=RenderConfig)
    kroki: KrokiConfig = field(default_factory=KrokiConfig)
    log: LogConfig = field(default_factory=LogConfig)
