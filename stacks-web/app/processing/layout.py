"""Fixed-width grid arrangement for the genotype table."""
from __future__ import annotations

import math
from typing import TypeVar

T = TypeVar("T")


def grid_row_count(n: int, columns: int) -> int:
    if columns < 1:
        raise ValueError("columns must be >= 1")
    return math.ceil(max(n, 0) / columns)


def layout_grid(cells: list[T], columns: int, rows: int | None = None) -> list[list[T | None]]:
    """Arrange cells left-to-right, top-to-bottom.

    The last row is padded with None so every row has ``columns`` cells.
    If ``rows`` is given the grid is extended with empty rows up to that
    count; it is never truncated.
    """
    n_rows = grid_row_count(len(cells), columns)
    if rows is not None:
        n_rows = max(n_rows, rows)

    grid: list[list[T | None]] = []
    for r in range(n_rows):
        row: list[T | None] = list(cells[r * columns:(r + 1) * columns])
        row.extend([None] * (columns - len(row)))
        grid.append(row)
    return grid
