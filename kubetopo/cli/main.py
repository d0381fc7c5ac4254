"""kubetopo command-line interface.

Commands:
    diagram   -- snapshot a live cluster and render it.
    fixtures  -- render YAML manifests offline as one namespace.
    validate  -- check a rendered D2 file against YAML manifests.
"""

from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import click

from kubetopo import __version__
from kubetopo.app import DiagramApp, OutputTarget
from kubetopo.config import load_config, validate_grid_columns, validate_log_format
from kubetopo.errors import KubeTopoError
from kubetopo.models.config import KubeTopoConfig
from kubetopo.observability.logging import get_logger, setup_logging

F = TypeVar("F", bound=Callable[..., Any])

DEFAULT_FIXTURE_NAMESPACE = "kubetopo-test"


def _output_options(func: F) -> F:
    """Destination, layout and logging options shared by rendering commands."""
    options = [
        click.option("-o", "--output", default="", help="Output D2 file (default: stdout)."),
        click.option("-i", "--image", default="", help="Render an SVG image via Kroki to this file."),
        click.option(
            "--grid-columns",
            type=int,
            default=None,
            help="Number of columns in the namespace grid (0 for a single column). [default: 3]",
        ),
        click.option("-q", "--quiet", is_flag=True, help="Only log warnings and errors."),
        click.option(
            "--log-format",
            type=click.Choice(["console", "json"]),
            default=None,
            help="Log line format on stderr.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _resolve_config(grid_columns: int | None, log_format: str | None, quiet: bool) -> KubeTopoConfig:
    try:
        config = load_config()
        if grid_columns is not None:
            config.render = dataclasses.replace(config.render, grid_columns=validate_grid_columns(grid_columns))
        if log_format is not None:
            config.log = dataclasses.replace(config.log, format=validate_log_format(log_format))
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc
    if quiet:
        config.log = dataclasses.replace(config.log, level="warning")
    setup_logging(config.log.level, config.log.format)
    return config


def _target(output: str, image: str) -> OutputTarget:
    try:
        return OutputTarget(output=output, image=image)
    except ValueError:
        raise click.UsageError("flags --output/-o and --image/-i are mutually exclusive") from None


def _read_diagram(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise click.BadParameter(f"{path} is not UTF-8 text ({exc.reason})", param_hint="'--diagram'") from exc


def _run(action: Callable[[], Any]) -> Any:
    """Run *action*, turning kubetopo errors into a logged failure and exit code 1."""
    try:
        return action()
    except KubeTopoError as exc:
        get_logger("cli").error("kubetopo failed", error=str(exc), error_type=type(exc).__name__)
        raise SystemExit(1) from exc


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "-v", "--version", prog_name="kubetopo")
def cli() -> None:
    """Generate D2 diagrams from Kubernetes cluster topology."""


@cli.command()
@click.option("--kubeconfig", default=None, help="Path to kubeconfig (default: ~/.kube/config).")
@click.option("--context", default=None, help="Kubeconfig context to use.")
@click.option("-n", "--namespace", default=None, help="Namespace to visualize (default: all non-system).")
@click.option("-A", "--all-namespaces", is_flag=True, help="Include system namespaces.")
@click.option("--include-storage", is_flag=True, help="Include the PVC layer.")
@_output_options
def diagram(
    kubeconfig: str | None,
    context: str | None,
    namespace: str | None,
    all_namespaces: bool,
    include_storage: bool,
    output: str,
    image: str,
    grid_columns: int | None,
    quiet: bool,
    log_format: str | None,
) -> None:
    """Snapshot the cluster and render its topology as D2."""
    target = _target(output, image)
    config = _resolve_config(grid_columns, log_format, quiet)

    kube_overrides: dict[str, Any] = {}
    if kubeconfig is not None:
        kube_overrides["kubeconfig"] = kubeconfig
    if context is not None:
        kube_overrides["context"] = context
    config.kube = dataclasses.replace(config.kube, **kube_overrides)

    fetch_overrides: dict[str, Any] = {}
    if namespace is not None:
        fetch_overrides["namespace"] = namespace
    if all_namespaces:
        fetch_overrides["all_namespaces"] = True
    if include_storage:
        fetch_overrides["include_storage"] = True
    config.fetch = dataclasses.replace(config.fetch, **fetch_overrides)

    app = DiagramApp(config)
    _run(lambda: asyncio.run(app.run_live(target)))


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-n",
    "--namespace",
    default=DEFAULT_FIXTURE_NAMESPACE,
    show_default=True,
    help="Namespace the manifests are placed in.",
)
@click.option("--filter-system", is_flag=True, help="Skip system ConfigMaps/Secrets like a live fetch does.")
@_output_options
def fixtures(
    files: tuple[Path, ...],
    namespace: str,
    filter_system: bool,
    output: str,
    image: str,
    grid_columns: int | None,
    quiet: bool,
    log_format: str | None,
) -> None:
    """Render YAML manifests FILES offline, as one namespace."""
    target = _target(output, image)
    config = _resolve_config(grid_columns, log_format, quiet)
    app = DiagramApp(config)
    _run(lambda: asyncio.run(app.run_fixtures(files, namespace, target, filter_system=filter_system)))


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-d",
    "--diagram",
    "diagram_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Rendered D2 file to check.",
)
@click.option(
    "-n",
    "--namespace",
    default=DEFAULT_FIXTURE_NAMESPACE,
    show_default=True,
    help="Namespace the manifests were rendered in.",
)
@click.option("-q", "--quiet", is_flag=True, help="Only log warnings and errors.")
def validate(files: tuple[Path, ...], diagram_path: Path, namespace: str, quiet: bool) -> None:
    """Check a rendered D2 file against YAML manifests FILES."""
    config = _resolve_config(None, None, quiet)
    diagram_text = _read_diagram(diagram_path)
    app = DiagramApp(config)
    report = _run(lambda: app.validate(files, namespace, diagram_text))
    for failure in report.failures:
        click.echo(str(failure))
    if not report.ok:
        raise SystemExit(1)
    click.echo("diagram matches manifests")
