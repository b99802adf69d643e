"""Maze Lab - maze generation and five interchangeable solvers.

This package carves random perfect mazes and solves them with depth-first
search, breadth-first search, A*, first-visit Monte Carlo learning and
tabular Q-learning. Every engine reports its progress through the same
stepwise snapshot protocol.
"""

from .domain.types import (
    Cell, Grid, Coord, Metrics, MonteCarloMetrics, QLearningMetrics,
    StepSnapshot, find_terminals, clone_grid
)
from .domain.errors import MazeLabError, MalformedGrid, InvalidParameter
from .domain.dfs import run_dfs
from .domain.bfs import run_bfs
from .domain.astar import run_astar
from .domain.monte_carlo import run_monte_carlo, run_monte_carlo_exploration
from .domain.qlearning import run_qlearning, run_qlearning_exploration
from .utils.grid_factory import generate_maze

__version__ = "1.0.0"
__author__ = "Maze Lab"

__all__ = [
    "Cell", "Grid", "Coord", "Metrics", "MonteCarloMetrics", "QLearningMetrics",
    "StepSnapshot", "find_terminals", "clone_grid",
    "MazeLabError", "MalformedGrid", "InvalidParameter",
    "generate_maze",
    "run_dfs", "run_bfs", "run_astar",
    "run_monte_carlo", "run_monte_carlo_exploration",
    "run_qlearning", "run_qlearning_exploration",
]
