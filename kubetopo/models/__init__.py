"""Core data structures for kubetopo."""

from kubetopo.models.config import (
    FetchOptions,
    KrokiConfig,
    KubeConfig,
    KubeTopoConfig,
    LogConfig,
    RenderConfig,
)
from kubetopo.models.topology import (
    PVC,
    Cluster,
    Namespace,
    Port,
    Service,
    ServiceType,
    VolumeMount,
    Workload,
    WorkloadKind,
)

__all__ = [
    "PVC",
    "Cluster",
    "FetchOptions",
    "KrokiConfig",
    "KubeConfig",
    "KubeTopoConfig",
    "LogConfig",
    "Namespace",
    "Port",
    "RenderConfig",
    "Service",
    "ServiceType",
    "VolumeMount",
    "Workload",
    "WorkloadKind",
]
