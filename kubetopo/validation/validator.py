"""D2 output validator.

Re-derives the expected structure from an independently built Cluster and
checks a rendered diagram against it. Every missing expectation becomes its
own ``ValidationFailure`` named after the check that produced it, so a test
runner can report exactly which property broke.

Checks
------
syntax.braces           -- ``{`` and ``}`` counts are equal.
syntax.direction        -- a ``direction:`` header is present.
resources.namespace     -- one container per namespace.
resources.workload      -- one node per workload.
resources.service       -- one ``svc_`` node per Service.
resources.pvc           -- one ``pvc_`` node per listed PVC.
resources.config_node   -- a ``_config`` node when ConfigMaps/Secrets exist.
labels.workload         -- ``<icon> <name> (<replicas>)`` / ``<icon> <name>``.
connections.service     -- every Service -> workload edge.
connections.volume      -- every workload -> PVC edge.
connections.volume_label -- mount label on each workload -> PVC edge.
config.configmaps       -- ``CM: <n>`` on the config node.
config.secrets          -- ``Sec: <n>`` on the config node.
"""

from __future__ import annotations

import re
from collections import defaultdict
from dataclasses import dataclass, field

from kubetopo.errors import DiagramValidationError
from kubetopo.graph.deriver import RelationshipDeriver
from kubetopo.models.topology import Cluster, Namespace
from kubetopo.naming import config_id, pvc_id, sanitize_id, service_id, workload_label
from kubetopo.validation.diagram import DiagramGraph, parse_diagram


@dataclass(frozen=True)
class ValidationFailure:
    """One failed expectation."""

    check: str
    subject: str
    message: str

    def __str__(self) -> str:
        return f"[{self.check}] {self.message}"


@dataclass
class ValidationReport:
    failures: list[ValidationFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def by_check(self) -> dict[str, list[ValidationFailure]]:
        grouped: dict[str, list[ValidationFailure]] = defaultdict(list)
        for failure in self.failures:
            grouped[failure.check].append(failure)
        return dict(grouped)

    def raise_for_failures(self) -> None:
        if self.failures:
            raise DiagramValidationError(self.failures)


class D2Validator:
    """Validates rendered D2 text against an expected Cluster.

    Args:
        expected: The topology the diagram should show.
        rendered: D2 text produced by the renderer or a live run.
    """

    def __init__(self, expected: Cluster, rendered: str) -> None:
        self._expected = expected
        self._text = rendered
        self._graph: DiagramGraph = parse_diagram(rendered)
        self._deriver = RelationshipDeriver()

    @property
    def graph(self) -> DiagramGraph:
        return self._graph

    def validate(self) -> ValidationReport:
        """Run every check and collect all failures."""
        failures: list[ValidationFailure] = []
        failures.extend(self.validate_syntax())
        failures.extend(self.validate_resources())
        failures.extend(self.validate_workload_labels())
        failures.extend(self.validate_service_connections())
        failures.extend(self.validate_volume_connections())
        failures.extend(self.validate_config_info())
        return ValidationReport(failures=failures)

    # ------------------------------------------------------------------
    # Individual checks
    # ------------------------------------------------------------------

    def validate_syntax(self) -> list[ValidationFailure]:
        failures: list[ValidationFailure] = []
        opened = self._text.count("{")
        closed = self._text.count("}")
        if opened != closed:
            failures.append(
                ValidationFailure("syntax.braces", "diagram", f"unbalanced braces: {opened} open, {closed} close")
            )
        if "direction:" not in self._text:
            failures.append(ValidationFailure("syntax.direction", "diagram", "missing direction header"))
        return failures

    def validate_resources(self) -> list[ValidationFailure]:
        failures: list[ValidationFailure] = []
        for ns in self._expected.namespaces:
            ns_id = sanitize_id(ns.name)
            if not self._graph.has_node(ns_id):
                failures.append(ValidationFailure("resources.namespace", ns.name, f"missing namespace: {ns.name}"))
                continue

            for workload in ns.workloads():
                if not self._graph.has_node(ns_id, sanitize_id(workload.name)):
                    failures.append(
                        ValidationFailure(
                            "resources.workload",
                            f"{ns.name}/{workload.name}",
                            f"missing workload: {workload.name} ({workload.kind})",
                        )
                    )
            for svc in ns.services:
                if not self._graph.has_node(ns_id, service_id(svc.name)):
                    failures.append(
                        ValidationFailure("resources.service", f"{ns.name}/{svc.name}", f"missing service: {svc.name}")
                    )
            for pvc in ns.pvcs:
                if not self._graph.has_node(ns_id, pvc_id(pvc.name)):
                    failures.append(
                        ValidationFailure("resources.pvc", f"{ns.name}/{pvc.name}", f"missing PVC: {pvc.name}")
                    )
            if ns.has_config and not self._graph.has_node(ns_id, config_id(ns.name)):
                failures.append(
                    ValidationFailure(
                        "resources.config_node", ns.name, f"missing config node for namespace: {ns.name}"
                    )
                )
        return failures

    def validate_workload_labels(self) -> list[ValidationFailure]:
        failures: list[ValidationFailure] = []
        for ns in self._expected.namespaces:
            ns_id = sanitize_id(ns.name)
            for workload in ns.workloads():
                expected = workload_label(workload.kind, workload.name, workload.replicas)
                node = self._graph.node(ns_id, sanitize_id(workload.name))
                actual = node.label if node is not None else None
                if actual != expected:
                    failures.append(
                        ValidationFailure(
                            "labels.workload",
                            f"{ns.name}/{workload.name}",
                            f"incorrect label for {workload.name} (expected: {expected!r}, got: {actual!r})",
                        )
                    )
        return failures

    def validate_service_connections(self) -> list[ValidationFailure]:
        failures: list[ValidationFailure] = []
        for ns in self._expected.namespaces:
            scope = (sanitize_id(ns.name),)
            for conn in self._deriver.service_to_workload_edges(ns):
                if not self._graph.edges_between(scope, conn.source, conn.target):
                    failures.append(
                        ValidationFailure(
                            "connections.service", conn.arrow, f"missing expected connection: {conn.arrow}"
                        )
                    )
        return failures

    def validate_volume_connections(self) -> list[ValidationFailure]:
        failures: list[ValidationFailure] = []
        for ns in self._expected.namespaces:
            scope = (sanitize_id(ns.name),)
            for conn in self._deriver.workload_to_volume_edges(ns):
                edges = self._graph.edges_between(scope, conn.source, conn.target)
                if not edges:
                    failures.append(
                        ValidationFailure(
                            "connections.volume", conn.arrow, f"missing workload-to-PVC connection: {conn.arrow}"
                        )
                    )
                elif all(edge.label != conn.label for edge in edges):
                    failures.append(
                        ValidationFailure(
                            "connections.volume_label",
                            conn.arrow,
                            f"incorrect mount label on {conn.arrow} "
                            f"(expected: {conn.label!r}, got: {edges[0].label!r})",
                        )
                    )
        return failures

    def validate_config_info(self) -> list[ValidationFailure]:
        failures: list[ValidationFailure] = []
        for ns in self._expected.namespaces:
            if not ns.has_config:
                continue
            label = self._config_label(ns)
            if not _has_count(label, "CM", ns.config_maps):
                failures.append(
                    ValidationFailure(
                        "config.configmaps",
                        ns.name,
                        f"incorrect ConfigMap count for namespace {ns.name} (expected: {ns.config_maps})",
                    )
                )
            if not _has_count(label, "Sec", ns.secrets):
                failures.append(
                    ValidationFailure(
                        "config.secrets",
                        ns.name,
                        f"incorrect Secret count for namespace {ns.name} (expected: {ns.secrets})",
                    )
                )
        return failures

    def _config_label(self, ns: Namespace) -> str:
        node = self._graph.node(sanitize_id(ns.name), config_id(ns.name))
        return node.label if node is not None else ""


def _has_count(label: str, key: str, count: int) -> bool:
    return re.search(rf"(?<!\w){re.escape(key)}: {count}(?!\d)", label) is not None
