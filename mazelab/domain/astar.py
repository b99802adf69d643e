"""A* search engine with the Manhattan-distance heuristic."""

import threading
from typing import Optional
import numpy as np

from .types import Grid, Metrics
from .engine import TraversalEngine, StepObserver
from .priority_queue import PriorityQueue
from .heuristics import manhattan_distance
from .neighbors import get_neighbors
from .path import mark_visited


class AStarAlgorithm(TraversalEngine):
    """
    A* pathfinding over the 4-connected grid.

    The open set may hold several entries for one cell; entries popped after
    the cell was closed are stale and skipped. A neighbor is pushed only when
    its tentative g strictly improves the best known g. The first pop of the
    end cell carries an optimal path since the heuristic is admissible.
    """

    algorithm = "astar"

    def _setup(self):
        super()._setup()
        self.open_set = PriorityQueue()
        self.g_score = np.full((self.rows, self.cols), np.inf)
        self.g_score[self.start_coord] = 0

        h_cost = manhattan_distance(self.start_coord, self.end_coord)
        self.open_set.put(h_cost, h_cost, 0, (self.start_coord, [self.start_coord]))

    @property
    def closed_set(self) -> np.ndarray:
        """Boolean array of finalized cells."""
        return self._visited

    def step(self) -> Optional[Metrics]:
        # Pop until a cell that is not yet closed
        while True:
            item = self.open_set.get()
            if item is None:
                return self._complete_without_path()
            _, (coord, path) = item
            if not self._visited[coord]:
                break

        self._visited[coord] = True
        mark_visited(coord, self.grid)
        self.metrics.nodes_visited += 1
        self.emit()

        if coord == self.end_coord:
            return self._complete_with_path(path)

        tentative_g = self.g_score[coord] + 1
        for neighbor in get_neighbors(coord, self.grid):
            if self._visited[neighbor]:
                continue

            if tentative_g < self.g_score[neighbor]:
                self.g_score[neighbor] = tentative_g
                h_cost = manhattan_distance(neighbor, self.end_coord)
                self.open_set.put(
                    tentative_g + h_cost, h_cost, tentative_g, (neighbor, path + [neighbor])
                )

        return None


def run_astar(grid: Grid, on_step: Optional[StepObserver] = None, *,
              cancel: Optional[threading.Event] = None, delay: float = 0.0) -> Metrics:
    """Run A* search on a private copy of `grid`."""
    return AStarAlgorithm().run(grid, on_step, cancel=cancel, delay=delay)
