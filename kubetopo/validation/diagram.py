"""Structural reader for the D2 subset the renderer emits.

Turns diagram text into containers, node labels and scoped edges so the
validator can assert on structure instead of raw substrings. It understands
``id: {`` blocks, ``label:``/``shape:``/``style.*`` attributes, ``id: "label"``
shorthand nodes, root directives and ``a -> b: "label"`` edges. Anything else
is recorded in ``unparsed`` and otherwise ignored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

Path = tuple[str, ...]

_EDGE_RE = re.compile(r"^(?P<src>[\w.]+)\s*->\s*(?P<dst>[\w.]+)\s*(?::\s*(?P<label>.+))?$")
_OPEN_RE = re.compile(r"^(?P<key>[\w.-]+)\s*:\s*(?:(?P<label>\".*\")\s*)?\{$")
_PAIR_RE = re.compile(r"^(?P<key>[\w.-]+)\s*:\s*(?P<value>.+)$")

_ATTRIBUTE_KEYS = frozenset(
    {
        "label",
        "shape",
        "icon",
        "tooltip",
        "link",
        "near",
        "width",
        "height",
        "direction",
        "grid-rows",
        "grid-columns",
        "grid-gap",
        "vertical-gap",
        "horizontal-gap",
    }
)


def unquote(value: str) -> str:
    """Strip D2 double quotes and undo ``\\"`` escapes; other escapes are kept."""
    value = value.strip()
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1].replace('\\"', '"')
    return value


def _is_attribute(key: str) -> bool:
    return key in _ATTRIBUTE_KEYS or key.startswith("style.")


@dataclass
class DiagramNode:
    path: Path
    label: str = ""
    shape: str = ""
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.path[-1]


@dataclass(frozen=True)
class DiagramEdge:
    scope: Path
    source: str
    target: str
    label: str = ""


@dataclass
class DiagramGraph:
    directives: dict[str, str] = field(default_factory=dict)
    nodes: dict[Path, DiagramNode] = field(default_factory=dict)
    edges: list[DiagramEdge] = field(default_factory=list)
    unparsed: list[str] = field(default_factory=list)

    def node(self, *path: str) -> DiagramNode | None:
        return self.nodes.get(tuple(path))

    def has_node(self, *path: str) -> bool:
        """True when the node is declared or appears as an edge endpoint in its scope."""
        key = tuple(path)
        if key in self.nodes:
            return True
        scope, node_id = key[:-1], key[-1]
        return any(e.scope == scope and node_id in (e.source, e.target) for e in self.edges)

    def edges_between(self, scope: Path, source: str, target: str) -> list[DiagramEdge]:
        return [e for e in self.edges if e.scope == scope and e.source == source and e.target == target]


def parse_diagram(text: str) -> DiagramGraph:
    """Parse D2 text into a DiagramGraph."""
    graph = DiagramGraph()
    stack: list[str] = []

    def ensure_node(path: Path) -> DiagramNode:
        node = graph.nodes.get(path)
        if node is None:
            node = DiagramNode(path=path)
            graph.nodes[path] = node
        return node

    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        if line == "}":
            if stack:
                stack.pop()
            else:
                graph.unparsed.append(raw)
            continue

        edge = _EDGE_RE.match(line)
        if edge:
            label = edge.group("label")
            graph.edges.append(
                DiagramEdge(
                    scope=tuple(stack),
                    source=edge.group("src"),
                    target=edge.group("dst"),
                    label=unquote(label) if label else "",
                )
            )
            continue

        opened = _OPEN_RE.match(line)
        if opened:
            stack.append(opened.group("key"))
            node = ensure_node(tuple(stack))
            if opened.group("label"):
                node.label = unquote(opened.group("label"))
            continue

        pair = _PAIR_RE.match(line)
        if pair is None:
            graph.unparsed.append(raw)
            continue

        key, value = pair.group("key"), unquote(pair.group("value"))
        if _is_attribute(key):
            if not stack:
                graph.directives[key] = value
                continue
            node = ensure_node(tuple(stack))
            if key == "label":
                node.label = value
            elif key == "shape":
                node.shape = value
            else:
                node.attributes[key] = value
        else:
            ensure_node((*stack, key)).label = value

    return graph
