"""Application pipeline for kubetopo.

Wires the stages of one invocation in order:
    source (live cluster | fixtures) -> topology -> D2 text -> destination

The destination is stdout, a D2 file, or an SVG image rendered by Kroki.
Diagram text is produced completely in memory before anything is written,
so a failing stage never leaves a partial file behind.
"""

from __future__ import annotations

import contextlib
import os
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

import structlog

from kubetopo.collector.fetcher import TopologyFetcher
from kubetopo.collector.fixtures import FixtureParser
from kubetopo.collector.reader import ClusterReader, KubernetesReader
from kubetopo.errors import RenderError
from kubetopo.models.config import KubeTopoConfig
from kubetopo.models.topology import Cluster
from kubetopo.observability.logging import get_logger
from kubetopo.render.d2 import render_to_string
from kubetopo.render.kroki import KrokiClient, image_path
from kubetopo.validation.validator import D2Validator, ValidationReport


@dataclass(frozen=True)
class OutputTarget:
    """Where the diagram goes. Both empty means stdout."""

    output: str = ""
    image: str = ""

    def __post_init__(self) -> None:
        if self.output and self.image:
            raise ValueError("output and image destinations are mutually exclusive")


class DiagramApp:
    """Runs one diagram invocation with an explicit configuration.

    Args:
        config: Resolved configuration; never read from process state here.
        log:    Logger to use; defaults to the ``app`` component.
        stdout: Text sink used when no output file is given.
    """

    def __init__(
        self,
        config: KubeTopoConfig,
        log: structlog.stdlib.BoundLogger | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        self.config = config
        self._log = log or get_logger("app")
        self._stdout = stdout or sys.stdout

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    async def fetch_live(self, reader: ClusterReader | None = None) -> Cluster:
        """Snapshot the cluster. A reader created here is closed on return."""
        if reader is not None:
            return await TopologyFetcher(reader, self.config.fetch, log=self._log).fetch()

        self._log.debug("creating k8s client")
        k8s_reader = await KubernetesReader.connect(
            kubeconfig=self.config.kube.kubeconfig,
            context=self.config.kube.context,
            log=self._log,
        )
        async with k8s_reader:
            return await TopologyFetcher(k8s_reader, self.config.fetch, log=self._log).fetch()

    def parse_fixtures(
        self,
        paths: Iterable[str | Path],
        namespace: str,
        filter_system: bool = False,
    ) -> Cluster:
        cluster = FixtureParser(namespace, filter_system=filter_system, log=self._log).parse_files(paths)
        self._log.info("fixtures parsed", namespace=namespace)
        return cluster

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def render(self, cluster: Cluster) -> str:
        diagram = render_to_string(cluster, self.config.render.grid_columns, log=self._log)
        self._log.debug("diagram rendered", size=len(diagram), namespaces=len(cluster.namespaces))
        return diagram

    async def export_image(self, diagram: str, path: str | Path, client: KrokiClient | None = None) -> Path:
        """Render *diagram* to SVG through Kroki and write it to *path* (suffix forced to .svg)."""
        target = image_path(path)
        if client is None:
            async with KrokiClient(self.config.kroki.endpoint, float(self.config.kroki.timeout_seconds)) as kroki:
                data = await kroki.render(diagram)
        else:
            data = await client.render(diagram)
        _write_bytes(target, data)
        self._log.info("SVG image generated successfully", file=str(target))
        return target

    def write_diagram(self, diagram: str, output: str = "") -> None:
        if not output:
            try:
                self._stdout.write(diagram)
                self._stdout.flush()
            except (OSError, ValueError) as exc:
                raise RenderError(f"Failed to write diagram to stdout: {exc}") from exc
            return
        _write_text(Path(output), diagram)
        self._log.info("D2 diagram generated successfully", file=output)

    async def deliver(self, cluster: Cluster, target: OutputTarget, kroki: KrokiClient | None = None) -> None:
        """Render *cluster* and send it to *target*."""
        diagram = self.render(cluster)
        if target.image:
            await self.export_image(diagram, target.image, client=kroki)
        else:
            self.write_diagram(diagram, target.output)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def run_live(self, target: OutputTarget, reader: ClusterReader | None = None) -> Cluster:
        cluster = await self.fetch_live(reader)
        await self.deliver(cluster, target)
        return cluster

    async def run_fixtures(
        self,
        paths: Iterable[str | Path],
        namespace: str,
        target: OutputTarget,
        filter_system: bool = False,
    ) -> Cluster:
        cluster = self.parse_fixtures(paths, namespace, filter_system)
        await self.deliver(cluster, target)
        return cluster

    def validate(self, paths: Iterable[str | Path], namespace: str, diagram: str) -> ValidationReport:
        """Check *diagram* against the topology parsed from fixture *paths*."""
        expected = self.parse_fixtures(paths, namespace)
        report = D2Validator(expected, diagram).validate()
        if report.ok:
            self._log.info("diagram validation passed", namespace=namespace)
        else:
            self._log.warning("diagram validation failed", failures=len(report.failures))
        return report


def _replace_file(path: Path, data: bytes, what: str) -> None:
    """Write *data* to a temp file beside *path*, then move it into place.

    A failed write leaves any existing *path* untouched and removes the temp file.
    """
    tmp = path.with_name(f".{path.name}.tmp")
    try:
        tmp.write_bytes(data)
        os.replace(tmp, path)
    except OSError as exc:
        with contextlib.suppress(OSError):
            tmp.unlink(missing_ok=True)
        raise RenderError(f"Failed to write {what} to {path}: {exc}") from exc


def _write_text(path: Path, text: str) -> None:
    _replace_file(path, text.encode("utf-8"), "diagram")


def _write_bytes(path: Path, data: bytes) -> None:
    _replace_file(path, data, "image")
