"""Shared topology builder.

Both the live fetcher and the fixture parser hand raw resource records
(mappings shaped like the Kubernetes API JSON) to a ``TopologyBuilder``, so
the field mapping from API objects to model objects exists in one place.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from kubetopo.errors import MalformedResourceError
from kubetopo.models.topology import (
    PVC,
    Cluster,
    Namespace,
    Port,
    Service,
    ServiceType,
    Workload,
    WorkloadKind,
)
from kubetopo.observability.logging import get_logger
from kubetopo.topology.filters import is_system_configmap, is_system_secret
from kubetopo.topology.volumes import correlate

Record = Mapping[str, Any]

# Kinds accepted in a document set that never become model objects
IGNORED_KINDS = frozenset({"Namespace", "StorageClass"})


# ---------------------------------------------------------------------------
# Record accessors
# ---------------------------------------------------------------------------


def _section(record: Record, *path: str) -> Mapping[str, Any]:
    node: Any = record
    for key in path:
        if not isinstance(node, Mapping):
            return {}
        node = node.get(key)
    return node if isinstance(node, Mapping) else {}


def _record_name(kind: str, record: Record) -> str:
    name = _section(record, "metadata").get("name")
    if not name or not isinstance(name, str):
        raise MalformedResourceError(kind, "metadata.name is missing")
    return name


def _str_map(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    return {str(k): str(v) for k, v in value.items()}


def _object_list(kind: str, name: str, value: Any, field_path: str) -> list[Record]:
    """Return *value* as a list of mappings; absent means empty."""
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, Mapping) for item in value):
        raise MalformedResourceError(kind, f"{field_path} must be a list of objects", name)
    return value


def _int_or(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


# ---------------------------------------------------------------------------
# Per-kind converters
# ---------------------------------------------------------------------------


def workload_from_record(kind: WorkloadKind, record: Record) -> Workload:
    """Convert a Deployment, StatefulSet or DaemonSet record into a Workload."""
    name = _record_name(kind, record)
    spec = _section(record, "spec")
    pod_spec = _section(spec, "template", "spec")
    containers = _object_list(kind, name, pod_spec.get("containers"), "spec.template.spec.containers")
    volumes = _object_list(kind, name, pod_spec.get("volumes"), "spec.template.spec.volumes")
    for container in containers:
        _object_list(kind, name, container.get("volumeMounts"), "containers[].volumeMounts")

    labels = _str_map(_section(spec, "selector").get("matchLabels"))
    labels.update(_str_map(_section(spec, "template", "metadata").get("labels")))

    if kind == WorkloadKind.DAEMON_SET:
        replicas = _int_or(_section(record, "status").get("desiredNumberScheduled"), 0)
    else:
        replicas = _int_or(spec.get("replicas"), 1)

    if kind == WorkloadKind.STATEFUL_SET:
        mounts = correlate(
            containers,
            volumes,
            claim_templates=_object_list(kind, name, spec.get("volumeClaimTemplates"), "spec.volumeClaimTemplates"),
            owner_name=name,
            replica_count=replicas,
        )
    else:
        mounts = correlate(containers, volumes)

    return Workload(name=name, kind=kind, replicas=replicas, labels=labels, volume_mounts=mounts)


def _port_from_record(record: Record) -> Port:
    target = record.get("targetPort")
    return Port(
        name=str(record.get("name") or ""),
        port=_int_or(record.get("port"), 0),
        # named target ports ("http") resolve per pod; only numeric ones are kept
        target_port=target if isinstance(target, int) else 0,
    )


def service_from_record(record: Record) -> Service:
    name = _record_name("Service", record)
    spec = _section(record, "spec")
    return Service(
        name=name,
        type=str(spec.get("type") or ServiceType.CLUSTER_IP),
        selector=_str_map(spec.get("selector")),
        ports=[_port_from_record(p) for p in _object_list("Service", name, spec.get("ports"), "spec.ports")],
    )


def pvc_from_record(record: Record) -> PVC:
    name = _record_name("PersistentVolumeClaim", record)
    spec = _section(record, "spec")
    capacity = _section(record, "status", "capacity").get("storage")
    if capacity is None:
        capacity = _section(spec, "resources", "requests").get("storage")
    return PVC(
        name=name,
        storage_class=str(spec.get("storageClassName") or ""),
        capacity=str(capacity or ""),
    )


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


@dataclass
class _NamespaceDraft:
    name: str
    deployments: list[Workload] = field(default_factory=list)
    stateful_sets: list[Workload] = field(default_factory=list)
    daemon_sets: list[Workload] = field(default_factory=list)
    services: list[Service] = field(default_factory=list)
    pvcs: list[PVC] = field(default_factory=list)
    config_maps: int = 0
    secrets: int = 0

    def freeze(self) -> Namespace:
        return Namespace(
            name=self.name,
            deployments=list(self.deployments),
            stateful_sets=list(self.stateful_sets),
            daemon_sets=list(self.daemon_sets),
            services=list(self.services),
            pvcs=list(self.pvcs),
            config_maps=self.config_maps,
            secrets=self.secrets,
        )


class TopologyBuilder:
    """Accumulates resource records per namespace and produces a Cluster.

    Args:
        filter_system_resources: Skip control-plane managed ConfigMaps and
            Secrets when counting. The live fetcher sets this; the fixture
            parser does not by default.
        log: Logger to use; defaults to the ``topology.builder`` component.
    """

    def __init__(
        self,
        filter_system_resources: bool = False,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._filter_system = filter_system_resources
        self._log = log or get_logger("topology.builder")
        self._drafts: dict[str, _NamespaceDraft] = {}
        self._handlers: dict[str, Callable[[_NamespaceDraft, Record], None]] = {
            "Deployment": self._add_deployment,
            "StatefulSet": self._add_stateful_set,
            "DaemonSet": self._add_daemon_set,
            "Service": self._add_service,
            "PersistentVolumeClaim": self._add_pvc,
            "ConfigMap": self._add_configmap,
            "Secret": self._add_secret,
        }

    @property
    def supported_kinds(self) -> frozenset[str]:
        return frozenset(self._handlers)

    def add_namespace(self, name: str) -> None:
        """Register a namespace so it appears even when it holds no resources."""
        if name not in self._drafts:
            self._drafts[name] = _NamespaceDraft(name=name)

    def add(self, namespace: str, record: Record, kind: str | None = None) -> bool:
        """Add one record to *namespace*.

        *kind* overrides ``record["kind"]`` (list responses omit it on items).
        Returns False when the kind is not part of the topology.

        Raises:
            MalformedResourceError: the record cannot be converted.
        """
        resolved = kind or str(record.get("kind") or "")
        handler = self._handlers.get(resolved)
        if handler is None:
            if resolved not in IGNORED_KINDS:
                self._log.debug("unsupported_kind_skipped", kind=resolved or "<none>", namespace=namespace)
            return False
        self.add_namespace(namespace)
        handler(self._drafts[namespace], record)
        return True

    def add_all(self, namespace: str, kind: str, records: Iterable[Record]) -> None:
        """Add every record of one kind, keeping list order."""
        self.add_namespace(namespace)
        for record in records:
            self.add(namespace, record, kind=kind)

    def build(self, cluster_name: str = "cluster") -> Cluster:
        """Freeze the accumulated namespaces, in registration order."""
        namespaces = [draft.freeze() for draft in self._drafts.values()]
        self._log.debug(
            "topology_built",
            namespaces=len(namespaces),
            workloads=sum(len(list(ns.workloads())) for ns in namespaces),
        )
        return Cluster(name=cluster_name, namespaces=namespaces)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _add_deployment(self, draft: _NamespaceDraft, record: Record) -> None:
        draft.deployments.append(workload_from_record(WorkloadKind.DEPLOYMENT, record))

    def _add_stateful_set(self, draft: _NamespaceDraft, record: Record) -> None:
        draft.stateful_sets.append(workload_from_record(WorkloadKind.STATEFUL_SET, record))

    def _add_daemon_set(self, draft: _NamespaceDraft, record: Record) -> None:
        draft.daemon_sets.append(workload_from_record(WorkloadKind.DAEMON_SET, record))

    def _add_service(self, draft: _NamespaceDraft, record: Record) -> None:
        draft.services.append(service_from_record(record))

    def _add_pvc(self, draft: _NamespaceDraft, record: Record) -> None:
        draft.pvcs.append(pvc_from_record(record))

    def _add_configmap(self, draft: _NamespaceDraft, record: Record) -> None:
        name = _record_name("ConfigMap", record)
        if self._filter_system and is_system_configmap(name):
            self._log.debug("system_configmap_skipped", namespace=draft.name, name=name)
            return
        draft.config_maps += 1

    def _add_secret(self, draft: _NamespaceDraft, record: Record) -> None:
        name = _record_name("Secret", record)
        if self._filter_system and is_system_secret(name, str(record.get("type") or "")):
            self._log.debug("system_secret_skipped", namespace=draft.name, name=name)
            return
        draft.secrets += 1
