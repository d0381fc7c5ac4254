"""Factories for model objects, raw API records and a fake cluster reader."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from kubetopo.models.topology import PVC, Cluster, Namespace, Service, VolumeMount, Workload, WorkloadKind

FIXTURES_DIR = Path(__file__).parent / "fixtures"
FIXTURE_NAMESPACE = "kubetopo-test"

BASE_FIXTURES = [
    FIXTURES_DIR / "base" / "01-namespace.yaml",
    FIXTURES_DIR / "base" / "02-configmaps-secrets.yaml",
    FIXTURES_DIR / "base" / "03-deployments.yaml",
    FIXTURES_DIR / "base" / "04-statefulsets.yaml",
    FIXTURES_DIR / "base" / "05-daemonsets.yaml",
    FIXTURES_DIR / "base" / "06-services.yaml",
]
STORAGE_FIXTURES = [
    FIXTURES_DIR / "storage" / "01-storageclass.yaml",
    FIXTURES_DIR / "storage" / "02-pvcs.yaml",
]


# ---------------------------------------------------------------------------
# Model factories
# ---------------------------------------------------------------------------


def make_workload(
    name: str = "web",
    kind: WorkloadKind = WorkloadKind.DEPLOYMENT,
    replicas: int = 1,
    labels: dict[str, str] | None = None,
    mounts: list[VolumeMount] | None = None,
) -> Workload:
    return Workload(
        name=name,
        kind=kind,
        replicas=replicas,
        labels=labels if labels is not None else {"app": name},
        volume_mounts=mounts or [],
    )


def make_service(name: str = "web-svc", selector: dict[str, str] | None = None) -> Service:
    return Service(name=name, selector=selector if selector is not None else {"app": "web"})


def make_namespace(
    name: str = "shop",
    workloads: list[Workload] | None = None,
    services: list[Service] | None = None,
    pvcs: list[PVC] | None = None,
    config_maps: int = 0,
    secrets: int = 0,
) -> Namespace:
    """Create a Namespace, sorting *workloads* into the per-kind lists."""
    workloads = workloads or []
    return Namespace(
        name=name,
        deployments=[w for w in workloads if w.kind == WorkloadKind.DEPLOYMENT],
        stateful_sets=[w for w in workloads if w.kind == WorkloadKind.STATEFUL_SET],
        daemon_sets=[w for w in workloads if w.kind == WorkloadKind.DAEMON_SET],
        services=services or [],
        pvcs=pvcs or [],
        config_maps=config_maps,
        secrets=secrets,
    )


def make_cluster(*namespaces: Namespace) -> Cluster:
    return Cluster(namespaces=list(namespaces))


# ---------------------------------------------------------------------------
# Raw record factories (Kubernetes API JSON shape)
# ---------------------------------------------------------------------------


def pod_template(
    labels: dict[str, str] | None = None,
    mounts: list[dict[str, Any]] | None = None,
    volumes: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    return {
        "metadata": {"labels": labels or {}},
        "spec": {
            "containers": [{"name": "main", "image": "busybox", "volumeMounts": mounts or []}],
            "volumes": volumes or [],
        },
    }


def deployment_record(
    name: str = "web",
    replicas: int | None = 3,
    labels: dict[str, str] | None = None,
    mounts: list[dict[str, Any]] | None = None,
    volumes: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    labels = labels if labels is not None else {"app": name}
    spec: dict[str, Any] = {
        "selector": {"matchLabels": dict(labels)},
        "template": pod_template(labels, mounts, volumes),
    }
    if replicas is not None:
        spec["replicas"] = replicas
    return {"apiVersion": "apps/v1", "kind": "Deployment", "metadata": {"name": name}, "spec": spec}


def statefulset_record(
    name: str = "db",
    replicas: int = 2,
    template_names: list[str] | None = None,
    mount_path: str = "/var/lib/data",
) -> dict[str, Any]:
    template_names = template_names if template_names is not None else ["data"]
    mounts = [{"name": t, "mountPath": mount_path} for t in template_names]
    return {
        "apiVersion": "apps/v1",
        "kind": "StatefulSet",
        "metadata": {"name": name},
        "spec": {
            "replicas": replicas,
            "selector": {"matchLabels": {"app": name}},
            "template": pod_template({"app": name}, mounts),
            "volumeClaimTemplates": [{"metadata": {"name": t}} for t in template_names],
        },
    }


def daemonset_record(name: str = "agent", desired: int | None = None) -> dict[str, Any]:
    record: dict[str, Any] = {
        "apiVersion": "apps/v1",
        "kind": "DaemonSet",
        "metadata": {"name": name},
        "spec": {"selector": {"matchLabels": {"app": name}}, "template": pod_template({"app": name})},
    }
    if desired is not None:
        record["status"] = {"desiredNumberScheduled": desired}
    return record


def service_record(name: str = "web-svc", selector: dict[str, str] | None = None) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": name},
        "spec": {
            "selector": selector if selector is not None else {"app": "web"},
            "ports": [{"name": "http", "port": 80, "targetPort": 8080}],
        },
    }


def configmap_record(name: str) -> dict[str, Any]:
    return {"apiVersion": "v1", "kind": "ConfigMap", "metadata": {"name": name}}


def secret_record(name: str, secret_type: str = "Opaque") -> dict[str, Any]:
    return {"apiVersion": "v1", "kind": "Secret", "metadata": {"name": name}, "type": secret_type}


def pvc_record(name: str, storage: str = "1Gi", bound: str | None = None) -> dict[str, Any]:
    record: dict[str, Any] = {
        "apiVersion": "v1",
        "kind": "PersistentVolumeClaim",
        "metadata": {"name": name},
        "spec": {"storageClassName": "standard", "resources": {"requests": {"storage": storage}}},
    }
    if bound is not None:
        record["status"] = {"capacity": {"storage": bound}}
    return record


def pvc_volume(volume_name: str, claim_name: str) -> dict[str, Any]:
    return {"name": volume_name, "persistentVolumeClaim": {"claimName": claim_name}}


def mount(volume_name: str, path: str, read_only: bool = False) -> dict[str, Any]:
    return {"name": volume_name, "mountPath": path, "readOnly": read_only}


# ---------------------------------------------------------------------------
# Fake cluster reader
# ---------------------------------------------------------------------------


class FakeReader:
    """In-memory ClusterReader.

    ``resources`` maps namespace -> kind -> records. ``failures`` maps
    (kind, namespace) -> exception raised by that listing call.
    """

    def __init__(
        self,
        namespaces: list[str] | None = None,
        resources: dict[str, dict[str, list[dict[str, Any]]]] | None = None,
        failures: dict[tuple[str, str], Exception] | None = None,
    ) -> None:
        self.namespace_names = namespaces if namespaces is not None else list((resources or {}).keys())
        self.resources = resources or {}
        self.failures = failures or {}
        self.calls: list[tuple[str, str]] = []

    async def _records(self, kind: str, namespace: str) -> list[dict[str, Any]]:
        self.calls.append((kind, namespace))
        if (kind, namespace) in self.failures:
            raise self.failures[(kind, namespace)]
        return list(self.resources.get(namespace, {}).get(kind, []))

    async def list_namespaces(self) -> list[str]:
        self.calls.append(("Namespace", ""))
        if ("Namespace", "") in self.failures:
            raise self.failures[("Namespace", "")]
        return list(self.namespace_names)

    async def list_deployments(self, namespace: str) -> list[dict[str, Any]]:
        return await self._records("Deployment", namespace)

    async def list_stateful_sets(self, namespace: str) -> list[dict[str, Any]]:
        return await self._records("StatefulSet", namespace)

    async def list_daemon_sets(self, namespace: str) -> list[dict[str, Any]]:
        return await self._records("DaemonSet", namespace)

    async def list_services(self, namespace: str) -> list[dict[str, Any]]:
        return await self._records("Service", namespace)

    async def list_config_maps(self, namespace: str) -> list[dict[str, Any]]:
        return await self._records("ConfigMap", namespace)

    async def list_secrets(self, namespace: str) -> list[dict[str, Any]]:
        return await self._records("Secret", namespace)

    async def list_pvcs(self, namespace: str) -> list[dict[str, Any]]:
        return await self._records("PersistentVolumeClaim", namespace)
