"""Static topology parser for declarative YAML documents.

Parses manifests (one or more documents per file) into a single synthesized
namespace whose name is chosen by the caller; ``metadata.namespace`` in the
documents is ignored. Documents that fail to parse, are not mappings, or are
not usable records are skipped with a warning, as are files that are not
valid UTF-8; the batch never fails on them.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import yaml

from kubetopo.errors import MalformedResourceError
from kubetopo.models.topology import Cluster
from kubetopo.observability.logging import get_logger
from kubetopo.topology.builder import TopologyBuilder

_DOCUMENT_SEPARATOR = re.compile(r"^---[ \t]*(?:#.*)?$", re.MULTILINE)


def split_documents(content: str) -> list[str]:
    """Split multi-document YAML text on ``---`` lines, dropping empty chunks."""
    return [chunk.strip() for chunk in _DOCUMENT_SEPARATOR.split(content) if chunk.strip()]


class FixtureParser:
    """Parses YAML fixtures into a one-namespace Cluster.

    Args:
        namespace:      Name of the namespace every document is placed in.
        filter_system:  Apply the live fetcher's ConfigMap/Secret filtering.
                        Off by default, so every ConfigMap and Secret given
                        is counted.
        log:            Logger to use; defaults to ``collector.fixtures``.
    """

    def __init__(
        self,
        namespace: str,
        filter_system: bool = False,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        if not namespace:
            raise ValueError("Fixture namespace must not be empty")
        self._namespace = namespace
        self._filter_system = filter_system
        self._log = log or get_logger("collector.fixtures")

    def parse(self, contents: Iterable[str | bytes]) -> Cluster:
        """Parse raw file contents into a Cluster with one namespace."""
        builder = TopologyBuilder(filter_system_resources=self._filter_system, log=self._log)
        builder.add_namespace(self._namespace)

        for index, content in enumerate(contents):
            source = f"file[{index}]"
            if isinstance(content, bytes):
                try:
                    text = content.decode("utf-8")
                except UnicodeDecodeError as exc:
                    self._log.warning("fixture_file_undecodable", source=source, error=str(exc))
                    continue
            else:
                text = content
            for doc in split_documents(text):
                self._parse_document(builder, doc, source=source)

        return builder.build()

    def parse_files(self, paths: Iterable[str | Path]) -> Cluster:
        """Read fixture files in the given order and parse them."""
        return self.parse(Path(p).read_bytes() for p in paths)

    def _parse_document(self, builder: TopologyBuilder, doc: str, source: str) -> None:
        try:
            record: Any = yaml.safe_load(doc)
        except yaml.YAMLError as exc:
            self._log.warning("fixture_document_unparseable", source=source, error=str(exc).splitlines()[0])
            return
        if not isinstance(record, dict):
            self._log.debug("fixture_document_not_a_resource", source=source)
            return
        try:
            builder.add(self._namespace, record)
        except MalformedResourceError as exc:
            self._log.warning("fixture_document_skipped", source=source, kind=exc.kind, reason=exc.reason)
