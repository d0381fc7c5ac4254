"""Identifier and label helpers shared by the renderer, deriver and validator."""

from __future__ import annotations

from collections.abc import Mapping

from kubetopo.models.topology import WorkloadKind

_ID_TRANSLATION = str.maketrans({"-": "_", ".": "_"})

_WORKLOAD_ICONS: dict[WorkloadKind, str] = {
    WorkloadKind.DEPLOYMENT: "●",
    WorkloadKind.STATEFUL_SET: "◉",
    WorkloadKind.DAEMON_SET: "◈",
}
_DEFAULT_ICON = "●"

SERVICE_PREFIX = "svc_"
PVC_PREFIX = "pvc_"
CONFIG_SUFFIX = "_config"


def sanitize_id(name: str) -> str:
    """Convert a Kubernetes resource name into a D2 identifier.

    D2 treats ``-`` as part of the edge operator and ``.`` as a nesting
    separator, so both become ``_``.
    """
    return name.translate(_ID_TRANSLATION)


def service_id(name: str) -> str:
    return SERVICE_PREFIX + sanitize_id(name)


def pvc_id(name: str) -> str:
    return PVC_PREFIX + sanitize_id(name)


def config_id(namespace: str) -> str:
    return sanitize_id(namespace) + CONFIG_SUFFIX


def workload_icon(kind: str) -> str:
    """Return the glyph drawn in front of a workload label."""
    try:
        return _WORKLOAD_ICONS[WorkloadKind(kind)]
    except ValueError:
        return _DEFAULT_ICON


def workload_label(kind: str, name: str, replicas: int) -> str:
    """Build the node label for a workload.

    Deployments and StatefulSets show their replica count; DaemonSets never
    do, since their pod count follows the node count.
    """
    icon = workload_icon(kind)
    if kind == WorkloadKind.DAEMON_SET:
        return f"{icon} {name}"
    return f"{icon} {name} ({replicas})"


def labels_match(selector: Mapping[str, str], labels: Mapping[str, str]) -> bool:
    """Return True when every selector pair is present and equal in *labels*.

    An empty selector matches nothing.
    """
    if not selector:
        return False
    return all(key in labels and labels[key] == value for key, value in selector.items())
