"""Topology construction from raw resource records.

Submodules
----------
volumes -- correlate(): PVC-backed mounts, including StatefulSet claim templates.
filters -- deny lists for system namespaces, ConfigMaps and Secrets.
builder -- TopologyBuilder: the one mapping from API records to model objects.
"""

from kubetopo.topology.builder import TopologyBuilder
from kubetopo.topology.volumes import claim_name_for_replica, correlate

__all__ = ["TopologyBuilder", "claim_name_for_replica", "correlate"]
