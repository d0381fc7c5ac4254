"""Tests for the DiagramApp pipeline."""

from __future__ import annotations

import io
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from kubetopo.app import DiagramApp, OutputTarget
from kubetopo.errors import KrokiError, RenderError
from kubetopo.render.kroki import KrokiClient

from ..helpers import FIXTURE_NAMESPACE, FakeReader, deployment_record, service_record

_SVG = b"<svg></svg>"


def _reader() -> FakeReader:
    return FakeReader(
        namespaces=["shop", "kube-system"],
        resources={
            "shop": {
                "Deployment": [deployment_record("web", replicas=3)],
                "Service": [service_record("web-svc", {"app": "web"})],
            },
        },
    )


class _ClosingReader(FakeReader):
    closed = False

    async def __aenter__(self) -> _ClosingReader:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.closed = True


class TestOutputTarget:
    def test_output_and_image_exclusive(self) -> None:
        with pytest.raises(ValueError, match="mutually exclusive"):
            OutputTarget(output="a.d2", image="a.svg")


class TestRunLive:
    async def test_writes_to_stdout(self, config, log) -> None:
        stdout = io.StringIO()
        app = DiagramApp(config, log=log, stdout=stdout)
        cluster = await app.run_live(OutputTarget(), reader=_reader())

        assert [ns.name for ns in cluster.namespaces] == ["shop"]
        text = stdout.getvalue()
        assert 'label: "● web (3)"' in text
        assert "svc_web_svc -> web" in text

    async def test_writes_to_file(self, config, log, tmp_path: Path) -> None:
        out = tmp_path / "live.d2"
        app = DiagramApp(config, log=log, stdout=io.StringIO())
        await app.run_live(OutputTarget(output=str(out)), reader=_reader())
        assert out.read_text(encoding="utf-8").startswith("direction: right\n")

    async def test_creates_and_closes_kubernetes_reader(self, config, log) -> None:
        reader = _ClosingReader(namespaces=["shop"], resources={"shop": {"Deployment": [deployment_record("web")]}})
        config.kube.kubeconfig = "/tmp/kubeconfig"
        config.kube.context = "staging"
        with patch("kubetopo.app.KubernetesReader.connect", new_callable=AsyncMock, return_value=reader) as connect:
            cluster = await DiagramApp(config, log=log, stdout=io.StringIO()).fetch_live()

        connect.assert_awaited_once_with(kubeconfig="/tmp/kubeconfig", context="staging", log=log)
        assert reader.closed
        assert cluster.namespaces[0].name == "shop"


class TestFixturesAndImages:
    async def test_run_fixtures_to_stdout(self, config, log, base_fixtures) -> None:
        stdout = io.StringIO()
        app = DiagramApp(config, log=log, stdout=stdout)
        await app.run_fixtures(base_fixtures, FIXTURE_NAMESPACE, OutputTarget())
        assert "kubetopo_test: {" in stdout.getvalue()

    async def test_export_image_forces_svg_suffix(self, config, log, tmp_path: Path) -> None:
        kroki = KrokiClient("http://kroki.local")
        with patch.object(kroki, "render", new_callable=AsyncMock, return_value=_SVG) as render:
            written = await DiagramApp(config, log=log).export_image("direction: right\n", tmp_path / "topo.png", kroki)
        await kroki.aclose()

        assert written == tmp_path / "topo.svg"
        assert written.read_bytes() == _SVG
        render.assert_awaited_once_with("direction: right\n")

    async def test_image_target_renders_via_kroki(self, config, log, base_fixtures, tmp_path: Path) -> None:
        kroki = KrokiClient("http://kroki.local")
        app = DiagramApp(config, log=log, stdout=io.StringIO())
        cluster = app.parse_fixtures(base_fixtures, FIXTURE_NAMESPACE)
        with patch.object(kroki, "render", new_callable=AsyncMock, return_value=_SVG) as render:
            await app.deliver(cluster, OutputTarget(image=str(tmp_path / "topo.svg")), kroki=kroki)
        await kroki.aclose()

        sent = render.call_args.args[0]
        assert sent == app.render(cluster)
        assert (tmp_path / "topo.svg").read_bytes() == _SVG

    async def test_kroki_failure_leaves_no_file(self, config, log, tmp_path: Path) -> None:
        kroki = KrokiClient("http://kroki.local")
        with patch.object(kroki, "render", new_callable=AsyncMock, side_effect=KrokiError("boom", 500)):
            with pytest.raises(KrokiError):
                await DiagramApp(config, log=log).export_image("x", tmp_path / "topo.svg", kroki)
        await kroki.aclose()
        assert not (tmp_path / "topo.svg").exists()

    def test_unwritable_output_raises_render_error(self, config, log, tmp_path: Path) -> None:
        app = DiagramApp(config, log=log)
        with pytest.raises(RenderError):
            app.write_diagram("direction: right\n", str(tmp_path / "missing-dir" / "out.d2"))

    def test_failed_write_keeps_previous_file(self, config, log, tmp_path: Path) -> None:
        out = tmp_path / "out.d2"
        out.write_text("previous\n", encoding="utf-8")
        app = DiagramApp(config, log=log)
        with patch("kubetopo.app.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(RenderError, match="disk full"):
                app.write_diagram("direction: right\n", str(out))
        assert out.read_text(encoding="utf-8") == "previous\n"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["out.d2"]

    def test_write_replaces_existing_file(self, config, log, tmp_path: Path) -> None:
        out = tmp_path / "out.d2"
        out.write_text("previous\n", encoding="utf-8")
        DiagramApp(config, log=log).write_diagram("direction: right\n", str(out))
        assert out.read_text(encoding="utf-8") == "direction: right\n"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["out.d2"]


class TestValidate:
    def test_validate_rendered_fixtures(self, config, log, storage_fixtures) -> None:
        app = DiagramApp(config, log=log)
        diagram = app.render(app.parse_fixtures(storage_fixtures, FIXTURE_NAMESPACE))
        assert app.validate(storage_fixtures, FIXTURE_NAMESPACE, diagram).ok

    def test_validate_reports_failures(self, config, log, base_fixtures) -> None:
        app = DiagramApp(config, log=log)
        report = app.validate(base_fixtures, FIXTURE_NAMESPACE, "direction: right\n")
        assert not report.ok
        assert "resources.namespace" in report.by_check()
