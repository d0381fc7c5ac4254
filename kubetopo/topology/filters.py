"""Deny lists for control-plane managed namespaces, ConfigMaps and Secrets."""

from __future__ import annotations

SYSTEM_NAMESPACES = frozenset({"default", "kube-system", "kube-public", "kube-node-lease"})
SYSTEM_NAMESPACE_PREFIXES = ("kube-", "openshift-", "istio-")

# CA bundles and mesh config injected into every namespace
SYSTEM_CONFIGMAPS = frozenset({"kube-root-ca.crt", "istio-ca-root-cert", "linkerd-config"})
SYSTEM_CONFIGMAP_PREFIXES = ("kube-", "openshift-")

SERVICE_ACCOUNT_TOKEN_TYPE = "kubernetes.io/service-account-token"
SYSTEM_SECRET_PREFIXES = ("default-token-", "sh.helm.")


def is_system_namespace(name: str) -> bool:
    return name in SYSTEM_NAMESPACES or name.startswith(SYSTEM_NAMESPACE_PREFIXES)


def is_system_configmap(name: str) -> bool:
    return name in SYSTEM_CONFIGMAPS or name.startswith(SYSTEM_CONFIGMAP_PREFIXES)


def is_system_secret(name: str, secret_type: str = "") -> bool:
    if secret_type == SERVICE_ACCOUNT_TOKEN_TYPE:
        return True
    return name.startswith(SYSTEM_SECRET_PREFIXES)


def filter_namespaces(names: list[str], include_system: bool = False) -> list[str]:
    """Drop system namespaces unless *include_system* is set. Order is kept."""
    if include_system:
        return list(names)
    return [name for name in names if not is_system_namespace(name)]
