"""D2 renderer.

Serializes a Cluster and its derived edges into D2 text. Single pass, no I/O
besides writes to the sink, and no time- or randomness-dependent content, so
the same model always renders to the same bytes.

Layout of the output::

    direction: right
    grid-rows: 1
    grid-columns: 2

    shop: {
      label: "shop"
      web: {
        label: "● web (3)"
        shape: rectangle
      }
      ...
      svc_web -> web
      db -> pvc_data_db_0: "/var/lib/data (rw)"
    }
"""

from __future__ import annotations

import io
from collections.abc import Iterable
from typing import TextIO

import structlog

from kubetopo.errors import RenderError
from kubetopo.graph.deriver import RelationshipDeriver
from kubetopo.graph.models import Connection
from kubetopo.models.topology import PVC, Cluster, Namespace, Service, Workload
from kubetopo.naming import config_id, pvc_id, sanitize_id, service_id, workload_label
from kubetopo.observability.logging import get_logger
from kubetopo.render.layout import pack_grid

_INDENT = "  "
_GRID_GAP = 60

_NAMESPACE_FILL = "#f5f7fa"
_SERVICE_FILL = "#e3f2fd"
_VOLUME_FILL = "#fff8e1"
_CONFIG_FILL = "#f3e5f5"


def quote(text: str) -> str:
    """Quote *text* as a D2 string. Backslash escapes already in it are kept."""
    return '"' + text.replace('"', '\\"') + '"'


class D2Renderer:
    """Writes D2 text for a Cluster to a text sink.

    Args:
        sink:         Any object with a ``write(str)`` method.
        grid_columns: Namespace grid width. 0 stacks namespaces vertically.
        log:          Logger to use; defaults to ``render.d2``.
    """

    def __init__(
        self,
        sink: TextIO,
        grid_columns: int = 3,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        if grid_columns < 0:
            raise ValueError(f"grid_columns must be >= 0, got {grid_columns}")
        self._sink = sink
        self._grid_columns = grid_columns
        self._deriver = RelationshipDeriver()
        self._log = log or get_logger("render.d2")

    def render(self, cluster: Cluster) -> None:
        """Write the whole diagram for *cluster*.

        Raises:
            RenderError: the sink rejected a write.
        """
        self._check_ids("cluster", ((sanitize_id(ns.name), f"Namespace/{ns.name}") for ns in cluster.namespaces))
        lines = self._header(cluster)
        for ns in cluster.namespaces:
            lines.append("")
            lines.extend(self._namespace(ns))
        self._write("\n".join(lines) + "\n")

    def _check_ids(self, scope: str, entries: Iterable[tuple[str, str]]) -> None:
        """Warn when two resources in *scope* map to the same D2 id, which D2 would merge."""
        seen: dict[str, str] = {}
        for node_id, owner in entries:
            first = seen.setdefault(node_id, owner)
            if first != owner:
                self._log.warning("diagram_id_collision", scope=scope, id=node_id, first=first, second=owner)

    def _write(self, text: str) -> None:
        try:
            self._sink.write(text)
        except (OSError, ValueError) as exc:
            raise RenderError(f"Failed to write diagram: {exc}") from exc

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _header(self, cluster: Cluster) -> list[str]:
        direction = "right" if self._grid_columns > 0 else "down"
        lines = [f"direction: {direction}"]
        layout = pack_grid(len(cluster.namespaces), self._grid_columns)
        if layout.is_grid:
            lines.append(f"grid-rows: {layout.rows}")
            lines.append(f"grid-columns: {layout.columns}")
            lines.append(f"grid-gap: {_GRID_GAP}")
        return lines

    def _namespace(self, ns: Namespace) -> list[str]:
        self._check_ids(ns.name, self._node_ids(ns))
        body: list[str] = [
            f"label: {quote(ns.name)}",
            f"style.fill: {quote(_NAMESPACE_FILL)}",
        ]
        for workload in ns.workloads():
            body.extend(self._workload(workload))
        for svc in ns.services:
            body.extend(self._service(svc))
        for pvc in ns.pvcs:
            body.extend(self._pvc(pvc))
        if ns.has_config:
            body.extend(self._config(ns))
        for edge in self._deriver.edges(ns):
            body.append(self._edge(edge))
        return [f"{sanitize_id(ns.name)}: {{", *(_INDENT + line for line in body), "}"]

    @staticmethod
    def _node_ids(ns: Namespace) -> Iterable[tuple[str, str]]:
        for workload in ns.workloads():
            yield sanitize_id(workload.name), f"{workload.kind}/{workload.name}"
        for svc in ns.services:
            yield service_id(svc.name), f"Service/{svc.name}"
        for pvc in ns.pvcs:
            yield pvc_id(pvc.name), f"PersistentVolumeClaim/{pvc.name}"
        if ns.has_config:
            yield config_id(ns.name), "config summary"

    @staticmethod
    def _node(node_id: str, label: str, shape: str, fill: str | None = None) -> list[str]:
        lines = [f"{node_id}: {{", f"{_INDENT}label: {quote(label)}", f"{_INDENT}shape: {shape}"]
        if fill:
            lines.append(f"{_INDENT}style.fill: {quote(fill)}")
        lines.append("}")
        return lines

    def _workload(self, workload: Workload) -> list[str]:
        label = workload_label(workload.kind, workload.name, workload.replicas)
        return self._node(sanitize_id(workload.name), label, "rectangle")

    def _service(self, svc: Service) -> list[str]:
        return self._node(service_id(svc.name), svc.name, "oval", _SERVICE_FILL)

    def _pvc(self, pvc: PVC) -> list[str]:
        label = f"{pvc.name}\\n{pvc.capacity}" if pvc.capacity else pvc.name
        return self._node(pvc_id(pvc.name), label, "cylinder", _VOLUME_FILL)

    def _config(self, ns: Namespace) -> list[str]:
        label = f"CM: {ns.config_maps} | Sec: {ns.secrets}"
        return self._node(config_id(ns.name), label, "page", _CONFIG_FILL)

    @staticmethod
    def _edge(edge: Connection) -> str:
        if edge.label:
            return f"{edge.arrow}: {quote(edge.label)}"
        return edge.arrow


def render_to_string(
    cluster: Cluster,
    grid_columns: int = 3,
    log: structlog.stdlib.BoundLogger | None = None,
) -> str:
    """Render *cluster* and return the D2 text."""
    buf = io.StringIO()
    D2Renderer(buf, grid_columns, log=log).render(cluster)
    return buf.getvalue()
