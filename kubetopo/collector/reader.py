"""Read-only cluster access.

``ClusterReader`` is the contract the fetcher depends on: one listing call per
resource kind, each returning raw records shaped like the Kubernetes API JSON.
``KubernetesReader`` implements it with kubernetes-asyncio against a private
ApiClient, so no process-wide client configuration is touched.
"""

from __future__ import annotations

import os
from collections.abc import Awaitable, Callable
from types import TracebackType
from typing import Any, Protocol

import structlog
from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]
from kubernetes_asyncio import config as k8s_config  # type: ignore[import-untyped]

from kubetopo.errors import ClusterConnectionError
from kubetopo.observability.logging import get_logger

Record = dict[str, Any]

_DEFAULT_KUBECONFIG = os.path.join("~", ".kube", "config")


class ClusterReader(Protocol):
    """Read-only listing calls used to snapshot a cluster."""

    async def list_namespaces(self) -> list[str]: ...

    async def list_deployments(self, namespace: str) -> list[Record]: ...

    async def list_stateful_sets(self, namespace: str) -> list[Record]: ...

    async def list_daemon_sets(self, namespace: str) -> list[Record]: ...

    async def list_services(self, namespace: str) -> list[Record]: ...

    async def list_config_maps(self, namespace: str) -> list[Record]: ...

    async def list_secrets(self, namespace: str) -> list[Record]: ...

    async def list_pvcs(self, namespace: str) -> list[Record]: ...


async def create_api_client(
    kubeconfig: str = "",
    context: str = "",
    log: structlog.stdlib.BoundLogger | None = None,
) -> Any:
    """Build an ApiClient from kubeconfig, falling back to in-cluster credentials.

    An explicit *kubeconfig* path is never silently replaced by in-cluster
    credentials.

    Raises:
        ClusterConnectionError: no usable configuration was found.
    """
    log = log or get_logger("collector.reader")
    path = os.path.expanduser(kubeconfig or _DEFAULT_KUBECONFIG)

    if kubeconfig or os.path.exists(path):
        try:
            api_client = await k8s_config.new_client_from_config(
                config_file=path,
                context=context or None,
                persist_config=False,
            )
        except (k8s_config.ConfigException, OSError) as exc:
            raise ClusterConnectionError(f"kubeconfig {path}", exc) from exc
        log.info("k8s client configured from kubeconfig", path=path, context=context or "<current>")
        return api_client

    try:
        configuration = k8s_client.Configuration()
        k8s_config.load_incluster_config(client_configuration=configuration)
    except k8s_config.ConfigException as exc:
        raise ClusterConnectionError("in-cluster service account", exc) from exc
    log.info("k8s client configured from in-cluster service account")
    return k8s_client.ApiClient(configuration=configuration)


class KubernetesReader:
    """ClusterReader backed by a kubernetes-asyncio ApiClient.

    Use as an async context manager; the ApiClient connection pool is closed
    on exit.

    Args:
        api_client: A configured ``kubernetes_asyncio.client.ApiClient``.
    """

    def __init__(self, api_client: Any) -> None:
        self._api_client = api_client
        self._core = k8s_client.CoreV1Api(api_client)
        self._apps = k8s_client.AppsV1Api(api_client)

    @classmethod
    async def connect(
        cls,
        kubeconfig: str = "",
        context: str = "",
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> KubernetesReader:
        return cls(await create_api_client(kubeconfig, context, log))

    async def __aenter__(self) -> KubernetesReader:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        await self._api_client.close()

    async def _list(self, call: Callable[..., Awaitable[Any]], namespace: str) -> list[Record]:
        response = await call(namespace)
        return [self._api_client.sanitize_for_serialization(item) for item in response.items or []]

    async def list_namespaces(self) -> list[str]:
        response = await self._core.list_namespace()
        return [item.metadata.name for item in response.items or []]

    async def list_deployments(self, namespace: str) -> list[Record]:
        return await self._list(self._apps.list_namespaced_deployment, namespace)

    async def list_stateful_sets(self, namespace: str) -> list[Record]:
        return await self._list(self._apps.list_namespaced_stateful_set, namespace)

    async def list_daemon_sets(self, namespace: str) -> list[Record]:
        return await self._list(self._apps.list_namespaced_daemon_set, namespace)

    async def list_services(self, namespace: str) -> list[Record]:
        return await self._list(self._core.list_namespaced_service, namespace)

    async def list_config_maps(self, namespace: str) -> list[Record]:
        return await self._list(self._core.list_namespaced_config_map, namespace)

    async def list_secrets(self, namespace: str) -> list[Record]:
        return await self._list(self._core.list_namespaced_secret, namespace)

    async def list_pvcs(self, namespace: str) -> list[Record]:
        return await self._list(self._core.list_namespaced_persistent_volume_claim, namespace)
