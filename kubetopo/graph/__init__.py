"""Relationship graph for the diagram.

Derives Service -> workload edges (selector matching) and workload -> PVC
edges (correlated volume mounts, grouped per claim) for one namespace.
"""

from kubetopo.graph.deriver import RelationshipDeriver, format_mount_label, group_mounts_by_claim
from kubetopo.graph.models import Connection, EdgeType

__all__ = [
    "Connection",
    "EdgeType",
    "RelationshipDeriver",
    "format_mount_label",
    "group_mounts_by_claim",
]
