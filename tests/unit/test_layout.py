"""Tests for namespace grid packing."""

from __future__ import annotations

import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from kubetopo.render.layout import GridLayout, pack_grid


class TestPackGrid:
    def test_five_items_three_columns(self) -> None:
        layout = pack_grid(5, 3)
        assert layout.is_grid
        assert layout == GridLayout(rows=2, columns=3)

    def test_columns_shrink_to_item_count(self) -> None:
        layout = pack_grid(2, 3)
        assert (layout.rows, layout.columns) == (1, 2)

    def test_single_item_is_not_a_grid(self) -> None:
        layout = pack_grid(1, 3)
        assert not layout.is_grid
        assert layout.rows == 1

    def test_zero_columns_stacks_vertically(self) -> None:
        layout = pack_grid(3, 0)
        assert not layout.is_grid
        assert layout == GridLayout(rows=3, columns=0)

    def test_empty(self) -> None:
        layout = pack_grid(0, 3)
        assert layout == GridLayout(rows=0, columns=0)

    def test_negative_columns_rejected(self) -> None:
        with pytest.raises(ValueError, match="columns must be >= 0"):
            pack_grid(1, -1)

    def test_negative_count_rejected(self) -> None:
        with pytest.raises(ValueError, match="count must be >= 0"):
            pack_grid(-1, 3)

    @given(st.integers(min_value=2, max_value=200), st.integers(min_value=1, max_value=10))
    def test_grid_holds_every_item_with_no_spare_row(self, count: int, columns: int) -> None:
        layout = pack_grid(count, columns)
        effective = min(columns, count)
        assert layout.columns == effective
        assert layout.rows == math.ceil(count / effective)
        assert layout.rows * layout.columns >= count
        assert (layout.rows - 1) * layout.columns < count
