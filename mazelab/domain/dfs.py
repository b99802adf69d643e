"""Depth-first search engine."""

import threading
from typing import Optional, List
from .types import Grid, Metrics, ACTION_DELTAS
from .engine import TraversalEngine, StepObserver, FrontierEntry
from .neighbors import step_coord
from .path import mark_visited
from ..utils.rng import default_rng


class DFSAlgorithm(TraversalEngine):
    """
    Depth-first search with an explicit stack.

    Directions are shuffled on every expansion so the exploration order looks
    organic; any path found is valid but not necessarily shortest.
    """

    algorithm = "dfs"

    def _setup(self):
        super()._setup()
        self._stack: List[FrontierEntry] = [(self.start_coord, [self.start_coord])]
        self._visited[self.start_coord] = True

    def step(self) -> Optional[Metrics]:
        if not self._stack:
            return self._complete_without_path()

        coord, path = self._stack.pop()
        mark_visited(coord, self.grid)
        self.metrics.nodes_visited += 1
        self.emit()

        if coord == self.end_coord:
            return self._complete_with_path(path)

        for action in default_rng.shuffled(ACTION_DELTAS):
            neighbor = step_coord(coord, action)
            if self.grid.is_open(neighbor) and not self._visited[neighbor]:
                self._visited[neighbor] = True
                self._stack.append((neighbor, path + [neighbor]))

        return None


def run_dfs(grid: Grid, on_step: Optional[StepObserver] = None, *,
            cancel: Optional[threading.Event] = None, delay: float = 0.0) -> Metrics:
    """Run depth-first search on a private copy of `grid`."""
    return DFSAlgorithm().run(grid, on_step, cancel=cancel, delay=delay)
