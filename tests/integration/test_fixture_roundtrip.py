"""End-to-end checks over the bundled fixture set: parse -> render -> validate.

The fixtures describe one namespace with two Deployments, a two-replica
StatefulSet with a claim template, a DaemonSet, three Services, two
ConfigMaps and two Secrets; the storage set adds a StorageClass and two PVCs.
"""

from __future__ import annotations

from kubetopo.collector.fixtures import FixtureParser
from kubetopo.graph.deriver import RelationshipDeriver
from kubetopo.models.topology import WorkloadKind
from kubetopo.render.d2 import render_to_string
from kubetopo.validation.validator import D2Validator

from ..helpers import FIXTURE_NAMESPACE


class TestFixtureModel:
    def test_base_namespace_contents(self, base_fixtures, log) -> None:
        cluster = FixtureParser(FIXTURE_NAMESPACE, log=log).parse_files(base_fixtures)
        assert [ns.name for ns in cluster.namespaces] == [FIXTURE_NAMESPACE]
        ns = cluster.namespaces[0]

        assert [(w.name, w.kind, w.replicas) for w in ns.workloads()] == [
            ("web-frontend", WorkloadKind.DEPLOYMENT, 3),
            ("api-backend", WorkloadKind.DEPLOYMENT, 2),
            ("database", WorkloadKind.STATEFUL_SET, 2),
            ("log-collector", WorkloadKind.DAEMON_SET, 0),
        ]
        assert [s.name for s in ns.services] == ["web-service", "api-service", "database-service"]
        assert (ns.config_maps, ns.secrets) == (2, 2)
        assert ns.pvcs == []

    def test_storage_adds_pvcs(self, storage_fixtures, log) -> None:
        ns = FixtureParser(FIXTURE_NAMESPACE, log=log).parse_files(storage_fixtures).namespaces[0]
        assert [(p.name, p.capacity, p.storage_class) for p in ns.pvcs] == [
            ("data-volume", "1Gi", "kubetopo-standard"),
            ("logs-volume", "500Mi", "kubetopo-standard"),
        ]

    def test_derived_edges(self, base_fixtures, log) -> None:
        ns = FixtureParser(FIXTURE_NAMESPACE, log=log).parse_files(base_fixtures).namespaces[0]
        edges = [(e.arrow, e.label) for e in RelationshipDeriver().edges(ns)]
        assert edges == [
            ("svc_web_service -> web_frontend", ""),
            ("svc_api_service -> api_backend", ""),
            ("svc_database_service -> database", ""),
            ("api_backend -> pvc_logs_volume", "/var/log/app (rw)"),
            ("database -> pvc_data_database_0", "/var/lib/postgresql/data (rw)"),
            ("database -> pvc_data_database_1", "/var/lib/postgresql/data (rw)"),
        ]


class TestRoundTrip:
    def test_base_fixtures_validate_clean(self, base_fixtures, log) -> None:
        cluster = FixtureParser(FIXTURE_NAMESPACE, log=log).parse_files(base_fixtures)
        text = render_to_string(cluster)
        report = D2Validator(cluster, text).validate()
        assert report.ok, [str(f) for f in report.failures]

        assert 'label: "● web-frontend (3)"' in text
        assert 'label: "◉ database (2)"' in text
        assert 'label: "◈ log-collector"' in text
        assert 'label: "CM: 2 | Sec: 2"' in text

    def test_storage_fixtures_validate_clean(self, storage_fixtures, log) -> None:
        cluster = FixtureParser(FIXTURE_NAMESPACE, log=log).parse_files(storage_fixtures)
        text = render_to_string(cluster, grid_columns=0)
        report = D2Validator(cluster, text).validate()
        assert report.ok, [str(f) for f in report.failures]
        assert "pvc_data_volume: {" in text
        assert 'label: "logs-volume\\n500Mi"' in text

    def test_diagram_without_storage_fails_storage_expectations(self, base_fixtures, storage_fixtures, log) -> None:
        parser = FixtureParser(FIXTURE_NAMESPACE, log=log)
        rendered = render_to_string(parser.parse_files(base_fixtures))
        report = D2Validator(parser.parse_files(storage_fixtures), rendered).validate()
        # logs-volume is still drawn as the api-backend edge target
        assert [f.subject for f in report.by_check()["resources.pvc"]] == [f"{FIXTURE_NAMESPACE}/data-volume"]

    def test_render_is_byte_stable(self, storage_fixtures, log) -> None:
        parser = FixtureParser(FIXTURE_NAMESPACE, log=log)
        assert render_to_string(parser.parse_files(storage_fixtures)) == render_to_string(
            parser.parse_files(storage_fixtures)
        )
