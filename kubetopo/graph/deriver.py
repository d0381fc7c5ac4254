"""Relationship derivation.

Service -> workload edges come from label selector matching; workload ->
volume edges come from the correlated volume mounts, one edge per distinct
claim with every mount of that claim folded into the edge label.
"""

from __future__ import annotations

from collections.abc import Iterable

from kubetopo.graph.models import Connection, EdgeType
from kubetopo.models.topology import Namespace, VolumeMount
from kubetopo.naming import labels_match, pvc_id, sanitize_id, service_id

# D2 string escape for a line break inside a quoted label
LABEL_LINE_BREAK = "\\n"


def format_mount_label(mounts: Iterable[VolumeMount]) -> str:
    """Join ``<path> (<rw|ro>)`` for every mount, in encounter order.

    Single mount: ``/var/log/app (rw)``
    Multiple mounts: ``/data (rw)\\n/backup (ro)``
    """
    return LABEL_LINE_BREAK.join(f"{m.mount_path} ({m.access_mode})" for m in mounts)


def group_mounts_by_claim(mounts: Iterable[VolumeMount]) -> dict[str, list[VolumeMount]]:
    """Group mounts per claim name, keeping first-seen claim order."""
    grouped: dict[str, list[VolumeMount]] = {}
    for mount in mounts:
        grouped.setdefault(mount.claim_name, []).append(mount)
    return grouped


class RelationshipDeriver:
    """Derives the edges of one namespace. Stateless."""

    def service_to_workload_edges(self, namespace: Namespace) -> list[Connection]:
        """Every (service, workload) pair whose selector matches the workload labels.

        All pairs are emitted; an empty selector matches nothing.
        """
        edges: list[Connection] = []
        workloads = list(namespace.workloads())
        for svc in namespace.services:
            for workload in workloads:
                if labels_match(svc.selector, workload.labels):
                    edges.append(
                        Connection(
                            source=service_id(svc.name),
                            target=sanitize_id(workload.name),
                            edge_type=EdgeType.SERVICE_TO_WORKLOAD,
                        )
                    )
        return edges

    def workload_to_volume_edges(self, namespace: Namespace) -> list[Connection]:
        """One edge per (workload, claim), labelled with all of its mounts."""
        edges: list[Connection] = []
        for workload in namespace.workloads():
            for claim_name, mounts in group_mounts_by_claim(workload.volume_mounts).items():
                edges.append(
                    Connection(
                        source=sanitize_id(workload.name),
                        target=pvc_id(claim_name),
                        edge_type=EdgeType.WORKLOAD_TO_VOLUME,
                        label=format_mount_label(mounts),
                    )
                )
        return edges

    def edges(self, namespace: Namespace) -> list[Connection]:
        return self.service_to_workload_edges(namespace) + self.workload_to_volume_edges(namespace)
