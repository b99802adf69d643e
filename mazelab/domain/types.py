"""Core type definitions for mazes, metrics and step snapshots."""

import copy
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple, Literal, Dict, List, Any
import numpy as np

from .errors import MalformedGrid, InvalidParameter

# Coordinate type for grid positions, always (row, col)
Coord = Tuple[int, int]

# Engine identifiers, used as the metrics tag
AlgorithmId = Literal["dfs", "bfs", "astar", "monte_carlo", "qlearning"]
ALGORITHMS: Tuple[AlgorithmId, ...] = ("dfs", "bfs", "astar", "monte_carlo", "qlearning")

# Actions the agents can take
ActionInt = Literal[0, 1, 2, 3]

# Canonical exploration order: up, right, down, left
ACTION_DELTAS: Dict[ActionInt, Coord] = {
    0: (-1, 0),  # up
    1: (0, 1),   # right
    2: (1, 0),   # down
    3: (0, -1)   # left
}

NUM_ACTIONS = 4

MIN_GRID_SIZE = 5
MAX_GRID_SIZE = 30


@dataclass
class Cell:
    """A single maze cell with its structural flags and algorithm annotations."""
    row: int
    col: int
    is_wall: bool = True
    is_start: bool = False
    is_end: bool = False
    is_visited: bool = False
    is_path: bool = False

    @property
    def coord(self) -> Coord:
        return (self.row, self.col)

    def clear_annotations(self):
        """Drop the transient visited/path flags."""
        self.is_visited = False
        self.is_path = False


@dataclass
class Grid:
    """Rectangular, row-major maze grid."""
    rows: int
    cols: int
    cells: List[List[Cell]]

    def cell(self, coord: Coord) -> Cell:
        """Get the cell at a coordinate."""
        return self.cells[coord[0]][coord[1]]

    def in_bounds(self, coord: Coord) -> bool:
        """Check if coordinate is within grid bounds."""
        row, col = coord
        return 0 <= row < self.rows and 0 <= col < self.cols

    def is_open(self, coord: Coord) -> bool:
        """Check if coordinate is in bounds and not a wall."""
        return self.in_bounds(coord) and not self.cell(coord).is_wall

    def iter_cells(self):
        """Iterate over all cells in row-major order."""
        for row in self.cells:
            yield from row

    def wall_mask(self) -> np.ndarray:
        """Boolean array that is True on wall cells."""
        return np.array([[c.is_wall for c in row] for row in self.cells], dtype=bool)

    def clear_annotations(self):
        """Reset visited/path flags on every cell."""
        for c in self.iter_cells():
            c.clear_annotations()

    def clone(self) -> "Grid":
        """Deep, independent copy of the grid."""
        return Grid(
            rows=self.rows,
            cols=self.cols,
            cells=[[replace(c) for c in row] for row in self.cells]
        )


def find_terminals(grid: Grid) -> Tuple[Coord, Coord]:
    """
    Locate the start and end cells.

    Raises:
        MalformedGrid: If the grid has no start or no end cell
    """
    start: Optional[Coord] = None
    end: Optional[Coord] = None

    for c in grid.iter_cells():
        if c.is_start:
            start = c.coord
        if c.is_end:
            end = c.coord

    if start is None:
        raise MalformedGrid("Grid has no start cell")
    if end is None:
        raise MalformedGrid("Grid has no end cell")

    return start, end


def clone_grid(grid: Grid) -> Grid:
    """Create a deep copy of the grid."""
    return grid.clone()


@dataclass
class Metrics:
    """Metrics shared by every engine, tagged with the producing algorithm."""
    algorithm: AlgorithmId
    nodes_visited: int = 0
    path_length: int = 0  # Edge count, meaningful only when is_path_found
    execution_time: float = 0.0  # Seconds
    is_path_found: bool = False
    path: List[Coord] = field(default_factory=list)
    cancelled: bool = False

    def copy(self) -> "Metrics":
        """Independent copy, safe to hand out in a step snapshot."""
        return copy.deepcopy(self)

    def summary(self) -> Dict[str, Any]:
        """Scalar fields for display."""
        return {
            "algorithm": self.algorithm,
            "nodes_visited": self.nodes_visited,
            "path_length": self.path_length,
            "execution_time": self.execution_time,
            "is_path_found": self.is_path_found,
            "cancelled": self.cancelled,
        }


@dataclass
class MonteCarloMetrics(Metrics):
    """Metrics for Monte Carlo training and exploration."""
    algorithm: AlgorithmId = "monte_carlo"
    value_function: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))
    value_function_history: List[np.ndarray] = field(default_factory=list)
    epsilon: float = 0.0
    discount_factor: float = 0.9
    episodes_completed: int = 0
    total_episodes: int = 0
    reward_value: float = 0.0
    stuck_penalty: float = 0.0
    successful_episodes: int = 0

    def summary(self) -> Dict[str, Any]:
        data = super().summary()
        data.update({
            "episodes_completed": self.episodes_completed,
            "total_episodes": self.total_episodes,
            "successful_episodes": self.successful_episodes,
            "epsilon": self.epsilon,
            "discount_factor": self.discount_factor,
            "reward_value": self.reward_value,
            "stuck_penalty": self.stuck_penalty,
            "history_snapshots": len(self.value_function_history),
        })
        return data


@dataclass
class QLearningMetrics(Metrics):
    """Metrics for Q-learning training and exploration."""
    algorithm: AlgorithmId = "qlearning"
    q_table: np.ndarray = field(default_factory=lambda: np.zeros((0, 0, NUM_ACTIONS)))
    epsilon: float = 0.0
    discount_factor: float = 0.0
    learning_rate: float = 0.0
    episodes_completed: int = 0
    total_episodes: int = 0
    reward_value: float = 0.0
    stuck_penalty: float = 0.0
    successful_episodes: int = 0

    def summary(self) -> Dict[str, Any]:
        data = super().summary()
        data.update({
            "episodes_completed": self.episodes_completed,
            "total_episodes": self.total_episodes,
            "successful_episodes": self.successful_episodes,
            "epsilon": self.epsilon,
            "discount_factor": self.discount_factor,
            "learning_rate": self.learning_rate,
            "reward_value": self.reward_value,
            "stuck_penalty": self.stuck_penalty,
        })
        return data


@dataclass(frozen=True)
class StepSnapshot:
    """Independent (grid, metrics) pair handed to a step observer."""
    grid: Grid
    metrics: Metrics


def _check_unit_interval(name: str, value: float):
    if not (0.0 <= value <= 1.0):
        raise InvalidParameter(f"{name} must be between 0.0 and 1.0, got {value}")


@dataclass
class MazeConfig:
    """Dimensions for maze generation."""
    rows: int = 15
    cols: int = 15
    seed: Optional[int] = None

    def validate(self):
        """Raise InvalidParameter if the dimensions are out of range."""
        for name, value in (("rows", self.rows), ("cols", self.cols)):
            if value < MIN_GRID_SIZE:
                raise InvalidParameter(f"{name} must be at least {MIN_GRID_SIZE}, got {value}")


@dataclass
class MonteCarloConfig:
    """Hyper-parameters for first-visit Monte Carlo training."""
    episodes: int = 100
    epsilon: float = 0.1
    discount_factor: float = 0.9
    reward_value: float = 100.0
    stuck_penalty: float = -1.0
    verbose: bool = False

    def validate(self):
        """Raise InvalidParameter on out-of-contract values."""
        if self.episodes < 1:
            raise InvalidParameter(f"episodes must be at least 1, got {self.episodes}")
        _check_unit_interval("epsilon", self.epsilon)
        _check_unit_interval("discount_factor", self.discount_factor)


@dataclass
class QLearningConfig:
    """Hyper-parameters for tabular Q-learning."""
    episodes: int = 1000
    epsilon: float = 0.1
    discount_factor: float = 0.9
    learning_rate: float = 0.1
    reward_value: float = 1.0
    stuck_penalty: float = -1.0
    verbose: bool = False

    def validate(self):
        """Raise InvalidParameter on out-of-contract values."""
        if self.episodes < 1:
            raise InvalidParameter(f"episodes must be at least 1, got {self.episodes}")
        _check_unit_interval("epsilon", self.epsilon)
        _check_unit_interval("discount_factor", self.discount_factor)
        if not (0.0 < self.learning_rate <= 1.0):
            raise InvalidParameter(
                f"learning_rate must be in (0.0, 1.0], got {self.learning_rate}"
            )
