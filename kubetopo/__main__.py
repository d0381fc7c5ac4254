"""Entry point for `python -m kubetopo`.

Usage:
    python -m kubetopo diagram -n my-namespace
    uv run python -m kubetopo fixtures manifests/*.yaml
"""

from __future__ import annotations

from kubetopo.cli import cli

cli(prog_name="kubetopo")
