"""Live topology fetcher.

Lists every relevant resource kind per namespace through a ``ClusterReader``
and feeds the records to a ``TopologyBuilder``. Listing calls run concurrently
(bounded by a semaphore) but results are assembled in namespace-list order and,
within a namespace, in the order each kind was listed, so the model and the
rendered output are stable.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from kubetopo.collector.reader import ClusterReader, Record
from kubetopo.errors import FetchError, KubeTopoError
from kubetopo.models.config import FetchOptions
from kubetopo.models.topology import Cluster
from kubetopo.observability.logging import get_logger
from kubetopo.topology.builder import TopologyBuilder
from kubetopo.topology.filters import filter_namespaces

_Lister = Callable[[str], Awaitable[list[Record]]]


class TopologyFetcher:
    """Builds a Cluster from live cluster state.

    Args:
        reader:  Read-only cluster access.
        options: Namespace selection and storage inclusion.
        log:     Logger to use; defaults to the ``collector.fetcher`` component.
    """

    def __init__(
        self,
        reader: ClusterReader,
        options: FetchOptions | None = None,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._reader = reader
        self._options = options or FetchOptions()
        self._log = log or get_logger("collector.fetcher")
        self._semaphore = asyncio.Semaphore(max(1, self._options.max_concurrency))

    def _listers(self) -> list[tuple[str, _Lister]]:
        listers: list[tuple[str, _Lister]] = [
            ("Deployment", self._reader.list_deployments),
            ("StatefulSet", self._reader.list_stateful_sets),
            ("DaemonSet", self._reader.list_daemon_sets),
            ("Service", self._reader.list_services),
            ("ConfigMap", self._reader.list_config_maps),
            ("Secret", self._reader.list_secrets),
        ]
        if self._options.include_storage:
            listers.append(("PersistentVolumeClaim", self._reader.list_pvcs))
        return listers

    async def namespaces(self) -> list[str]:
        """Resolve the namespaces to snapshot.

        A requested namespace is used as-is, without filtering. Otherwise all
        namespaces are listed and system namespaces dropped unless
        ``all_namespaces`` is set.
        """
        if self._options.namespace:
            return [self._options.namespace]
        try:
            names = await self._reader.list_namespaces()
        except Exception as exc:
            raise FetchError("Namespace", "", exc) from exc
        selected = filter_namespaces(names, include_system=self._options.all_namespaces)
        self._log.debug("namespaces_selected", listed=len(names), selected=len(selected))
        return selected

    async def _list(self, kind: str, namespace: str, lister: _Lister) -> list[Record]:
        async with self._semaphore:
            try:
                records = await lister(namespace)
            except KubeTopoError:
                raise
            except Exception as exc:
                raise FetchError(kind, namespace, exc) from exc
        self._log.debug("resources_listed", kind=kind, namespace=namespace, count=len(records))
        return records

    async def _fetch_namespace(self, namespace: str) -> list[tuple[str, list[Record]]]:
        listers = self._listers()
        results = await asyncio.gather(*(self._list(kind, namespace, lister) for kind, lister in listers))
        return [(kind, records) for (kind, _), records in zip(listers, results, strict=True)]

    async def fetch(self) -> Cluster:
        """Snapshot the cluster.

        Raises:
            FetchError: any listing call failed. No partial cluster is returned.
        """
        t_start = time.monotonic()
        names = await self.namespaces()

        tasks = [asyncio.ensure_future(self._fetch_namespace(ns)) for ns in names]
        try:
            per_namespace: list[list[tuple[str, list[Any]]]] = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        builder = TopologyBuilder(filter_system_resources=True, log=self._log)
        for ns, listed in zip(names, per_namespace, strict=True):
            builder.add_namespace(ns)
            for kind, records in listed:
                builder.add_all(ns, kind, records)

        cluster = builder.build()
        self._log.info(
            "cluster topology fetched",
            namespaces=len(cluster.namespaces),
            duration_ms=round((time.monotonic() - t_start) * 1000.0, 1),
        )
        return cluster
