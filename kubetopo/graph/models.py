"""Data structures for derived diagram edges."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class EdgeType(StrEnum):
    """Types of relationships drawn between resources."""

    SERVICE_TO_WORKLOAD = "service-to-workload"
    WORKLOAD_TO_VOLUME = "workload-to-volume"


@dataclass(frozen=True)
class Connection:
    """A derived edge between two diagram identifiers.

    Computed fresh for every render; ids are already sanitized.
    """

    source: str
    target: str
    edge_type: EdgeType
    label: str = ""

    @property
    def arrow(self) -> str:
        """The ``from -> to`` text as it appears in the diagram."""
        return f"{self.source} -> {self.target}"
