"""Topology model: a point-in-time snapshot of namespaces and their resources.

Built once per invocation by ``TopologyBuilder`` and consumed by the deriver,
renderer and validator. Immutable: no component may mutate the model after
construction.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum


class WorkloadKind(StrEnum):
    """Workload kinds drawn on the diagram."""

    DEPLOYMENT = "Deployment"
    STATEFUL_SET = "StatefulSet"
    DAEMON_SET = "DaemonSet"


class ServiceType(StrEnum):
    """Kubernetes Service types. Carried on the model, not drawn differently."""

    CLUSTER_IP = "ClusterIP"
    NODE_PORT = "NodePort"
    LOAD_BALANCER = "LoadBalancer"
    EXTERNAL_NAME = "ExternalName"


@dataclass(frozen=True)
class VolumeMount:
    """A container mount backed by a PersistentVolumeClaim.

    ``claim_name`` may be synthesized from a StatefulSet claim template.
    """

    claim_name: str
    mount_path: str
    read_only: bool = False

    @property
    def access_mode(self) -> str:
        return "ro" if self.read_only else "rw"


@dataclass(frozen=True)
class Workload:
    """A Deployment, StatefulSet or DaemonSet.

    ``replicas`` is the declared count for Deployments and StatefulSets and
    the scheduler's desired-on-nodes count for DaemonSets.
    """

    name: str
    kind: WorkloadKind
    replicas: int = 1
    labels: dict[str, str] = field(default_factory=dict)
    volume_mounts: list[VolumeMount] = field(default_factory=list)


@dataclass(frozen=True)
class Port:
    name: str = ""
    port: int = 0
    target_port: int = 0


@dataclass(frozen=True)
class Service:
    name: str
    type: str = ServiceType.CLUSTER_IP
    selector: dict[str, str] = field(default_factory=dict)
    ports: list[Port] = field(default_factory=list)


@dataclass(frozen=True)
class PVC:
    """A PersistentVolumeClaim. ``bound_pod`` is not populated yet."""

    name: str
    storage_class: str = ""
    capacity: str = ""
    bound_pod: str = ""


@dataclass(frozen=True)
class Namespace:
    """One namespace of the snapshot.

    Workloads are kept per kind because labels and replica semantics differ
    by kind. ConfigMaps and Secrets are counted only.
    """

    name: str
    deployments: list[Workload] = field(default_factory=list)
    stateful_sets: list[Workload] = field(default_factory=list)
    daemon_sets: list[Workload] = field(default_factory=list)
    services: list[Service] = field(default_factory=list)
    pvcs: list[PVC] = field(default_factory=list)
    config_maps: int = 0
    secrets: int = 0

    def workloads(self) -> Iterator[Workload]:
        """Yield every workload: Deployments, then StatefulSets, then DaemonSets."""
        yield from self.deployments
        yield from self.stateful_sets
        yield from self.daemon_sets

    @property
    def has_config(self) -> bool:
        return self.config_maps > 0 or self.secrets > 0


@dataclass(frozen=True)
class Cluster:
    """Root of the snapshot. Namespace names are unique within a cluster."""

    name: str = "cluster"
    namespaces: list[Namespace] = field(default_factory=list)

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for ns in self.namespaces:
            if ns.name in seen:
                raise ValueError(f"Duplicate namespace in cluster: {ns.name}")
            seen.add(ns.name)

    def namespace(self, name: str) -> Namespace | None:
        for ns in self.namespaces:
            if ns.name == name:
                return ns
        return None
