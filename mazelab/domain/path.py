"""Path marking and validation utilities shared by all engines."""

from typing import List, Iterable
from .types import Coord, Grid


def mark_path(path: Iterable[Coord], grid: Grid) -> None:
    """Flag every path cell except start and end with is_path."""
    for coord in path:
        cell = grid.cell(coord)
        if not cell.is_start and not cell.is_end:
            cell.is_path = True


def mark_visited(coord: Coord, grid: Grid) -> None:
    """Flag a cell as visited unless it is the start or end cell."""
    cell = grid.cell(coord)
    if not cell.is_start and not cell.is_end:
        cell.is_visited = True


def path_edge_count(path: List[Coord]) -> int:
    """Number of moves along a path of cells."""
    return len(path) - 1 if path else 0


def validate_path(path: List[Coord], grid: Grid) -> bool:
    """
    Validate that a path is walkable and connected.
    Returns True if every cell is open and consecutive cells are orthogonal neighbors.
    """
    if not path:
        return False

    for coord in path:
        if not grid.is_open(coord):
            return False

    for i in range(1, len(path)):
        d_row = abs(path[i][0] - path[i - 1][0])
        d_col = abs(path[i][1] - path[i - 1][1])
        if d_row + d_col != 1:
            return False

    return True
