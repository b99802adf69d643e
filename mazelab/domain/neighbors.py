"""Neighbor generation and movement rules on the 4-connected maze grid."""

from typing import List, Tuple, Optional, Sequence
from .types import Coord, Grid, ActionInt, ACTION_DELTAS


def step_coord(coord: Coord, action: ActionInt, distance: int = 1) -> Coord:
    """Coordinate reached by moving `distance` cells in the action's direction."""
    d_row, d_col = ACTION_DELTAS[action]
    return (coord[0] + d_row * distance, coord[1] + d_col * distance)


def get_open_moves(coord: Coord, grid: Grid,
                   actions: Optional[Sequence[ActionInt]] = None) -> List[Tuple[ActionInt, Coord]]:
    """
    Get the in-bounds, non-wall moves from a coordinate.
    Returns list of (action, neighbor_coord) tuples in the order of `actions`
    (canonical up, right, down, left when not given).
    """
    if actions is None:
        actions = tuple(ACTION_DELTAS)

    moves = []
    for action in actions:
        neighbor = step_coord(coord, action)
        if grid.is_open(neighbor):
            moves.append((action, neighbor))
    return moves


def get_neighbors(coord: Coord, grid: Grid) -> List[Coord]:
    """Open neighbor coordinates in canonical order."""
    return [neighbor for _, neighbor in get_open_moves(coord, grid)]


def count_open_moves(coord: Coord, grid: Grid) -> int:
    """Number of open neighbors; zero means the cell is a dead end with no exit."""
    return len(get_open_moves(coord, grid))

