"""Diagram rendering: D2 text, grid packing and the Kroki image collaborator."""

from kubetopo.render.d2 import D2Renderer, render_to_string
from kubetopo.render.kroki import KrokiClient
from kubetopo.render.layout import GridLayout, pack_grid

__all__ = ["D2Renderer", "GridLayout", "KrokiClient", "pack_grid", "render_to_string"]
