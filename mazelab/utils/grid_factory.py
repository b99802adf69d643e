"""Grid factory for carving mazes and converting grids to and from text."""

from collections import deque
from typing import Optional, List, Dict, Iterable
from ..domain.types import Grid, Cell, Coord, ACTION_DELTAS, MIN_GRID_SIZE
from ..domain.errors import InvalidParameter
from ..domain.neighbors import step_coord, get_neighbors
from .rng import SeededRNG, default_rng

WALL_CHAR = "#"
OPEN_CHAR = "."
START_CHAR = "S"
END_CHAR = "E"
VISITED_CHAR = "o"
PATH_CHAR = "*"


def create_wall_grid(rows: int, cols: int) -> Grid:
    """
    Create a grid where every cell is a wall.

    Args:
        rows: Number of rows (must be > 0)
        cols: Number of columns (must be > 0)

    Raises:
        InvalidParameter: If rows or cols <= 0
    """
    if rows <= 0 or cols <= 0:
        raise InvalidParameter(f"Grid dimensions must be positive, got {rows}x{cols}")

    cells = [[Cell(row=r, col=c) for c in range(cols)] for r in range(rows)]
    return Grid(rows=rows, cols=cols, cells=cells)


def generate_maze(rows: int, cols: int, seed: Optional[int] = None) -> Grid:
    """
    Generate a perfect maze with start at (0, 1) and end at (rows-1, cols-2).

    Passages are carved by recursive backtracking from (1, 1) on two-cell
    spacing; afterwards start and end are guaranteed to be connected.

    Args:
        rows: Grid height, at least 5
        cols: Grid width, at least 5
        seed: Random seed for reproducibility (process-wide source if None)

    Returns:
        New Grid with every open cell reachable from start

    Raises:
        InvalidParameter: If rows or cols < 5
    """
    if rows < MIN_GRID_SIZE or cols < MIN_GRID_SIZE:
        raise InvalidParameter(
            f"Maze dimensions must be at least {MIN_GRID_SIZE}x{MIN_GRID_SIZE}, got {rows}x{cols}"
        )

    rng = SeededRNG(seed) if seed is not None else default_rng
    grid = create_wall_grid(rows, cols)

    start = (0, 1)
    end = (rows - 1, cols - 2)
    _open(grid, start).is_start = True
    _open(grid, end).is_end = True

    carve_passages(grid, (1, 1), rng)
    ensure_path_exists(grid, start, end)

    return grid


def carve_passages(grid: Grid, origin: Coord, rng: SeededRNG) -> None:
    """
    Recursive backtracking carver.

    Runs with an explicit stack of (cell, remaining directions) so that large
    grids stay clear of the recursion limit; the visiting order matches the
    recursive formulation.
    """
    visited = {origin}
    _open(grid, origin)
    stack = [(origin, iter(rng.shuffled(ACTION_DELTAS)))]

    while stack:
        coord, directions = stack[-1]
        for action in directions:
            target = step_coord(coord, action, 2)
            if grid.in_bounds(target) and target not in visited:
                # Carve wall between current and next cell
                _open(grid, step_coord(coord, action))
                visited.add(target)
                _open(grid, target)
                stack.append((target, iter(rng.shuffled(ACTION_DELTAS))))
                break
        else:
            stack.pop()


def ensure_path_exists(grid: Grid, start: Coord, end: Coord) -> bool:
    """
    Make sure end is reachable from start.

    A breadth-first search over open cells looks for a connection; when it
    finds one its cells are opened (already open). Otherwise a straight
    row-then-column corridor is carved from start to end.

    Returns:
        True if a connection already existed, False if a corridor was carved
    """
    path = find_open_path(grid, start, end)
    if path is not None:
        for coord in path:
            grid.cell(coord).is_wall = False
        return True

    row, col = start
    while (row, col) != end:
        if row != end[0]:
            row += 1 if row < end[0] else -1
        else:
            col += 1 if col < end[1] else -1
        grid.cell((row, col)).is_wall = False
    return False


def find_open_path(grid: Grid, start: Coord, end: Coord) -> Optional[List[Coord]]:
    """Shortest open path from start to end by BFS, or None if unreachable."""
    parent: Dict[Coord, Optional[Coord]] = {start: None}
    queue = deque([start])

    while queue:
        current = queue.popleft()
        if current == end:
            path = []
            node: Optional[Coord] = current
            while node is not None:
                path.append(node)
                node = parent[node]
            path.reverse()
            return path

        for neighbor in get_neighbors(current, grid):
            if neighbor not in parent:
                parent[neighbor] = current
                queue.append(neighbor)

    return None


def reachable_from(grid: Grid, origin: Coord) -> set:
    """Set of open coordinates reachable from origin."""
    seen = {origin}
    queue = deque([origin])
    while queue:
        current = queue.popleft()
        for neighbor in get_neighbors(current, grid):
            if neighbor not in seen:
                seen.add(neighbor)
                queue.append(neighbor)
    return seen


def grid_from_ascii(lines: Iterable[str]) -> Grid:
    """
    Build a grid from text rows.

    '#' is a wall, '.' open, 'S' start, 'E' end, 'o' visited and '*' path.

    Raises:
        InvalidParameter: On ragged rows or unknown characters
    """
    rows = [line.strip() for line in lines if line.strip()]
    if not rows:
        raise InvalidParameter("Maze text is empty")

    width = len(rows[0])
    grid = create_wall_grid(len(rows), width)

    for r, text in enumerate(rows):
        if len(text) != width:
            raise InvalidParameter(f"Row {r} has length {len(text)}, expected {width}")
        for c, char in enumerate(text):
            cell = grid.cells[r][c]
            if char == WALL_CHAR:
                continue
            if char not in (OPEN_CHAR, START_CHAR, END_CHAR, VISITED_CHAR, PATH_CHAR):
                raise InvalidParameter(f"Unknown maze character {char!r} at ({r}, {c})")
            cell.is_wall = False
            cell.is_start = char == START_CHAR
            cell.is_end = char == END_CHAR
            cell.is_visited = char == VISITED_CHAR
            cell.is_path = char == PATH_CHAR

    return grid


def grid_to_ascii(grid: Grid) -> str:
    """Render a grid as text, the inverse of grid_from_ascii."""
    lines = []
    for row in grid.cells:
        lines.append("".join(_cell_char(cell) for cell in row))
    return "\n".join(lines)


def _cell_char(cell: Cell) -> str:
    if cell.is_start:
        return START_CHAR
    if cell.is_end:
        return END_CHAR
    if cell.is_wall:
        return WALL_CHAR
    if cell.is_path:
        return PATH_CHAR
    if cell.is_visited:
        return VISITED_CHAR
    return OPEN_CHAR


def _open(grid: Grid, coord: Coord) -> Cell:
    cell = grid.cell(coord)
    cell.is_wall = False
    return cell
