"""Row-major grid packing for namespace containers.

D2 fills grid cells in declaration order, so the packing only has to pick
the grid dimensions; namespaces keep their model order.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class GridLayout:
    """Grid dimensions. ``columns == 0`` means no grid (vertical stack)."""

    rows: int
    columns: int

    @property
    def is_grid(self) -> bool:
        return self.columns > 0


def pack_grid(count: int, columns: int) -> GridLayout:
    """Pack *count* items row-major into at most *columns* columns.

    The column count shrinks to the item count so a single namespace does not
    leave empty cells. ``columns == 0`` (or fewer than two items) gives a
    single column with no grid, one item per row.
    """
    if columns < 0:
        raise ValueError(f"columns must be >= 0, got {columns}")
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")
    if columns == 0 or count < 2:
        return GridLayout(rows=count, columns=0)

    effective = min(columns, count)
    return GridLayout(rows=math.ceil(count / effective), columns=effective)
