"""Breadth-first search engine."""

import threading
from collections import deque
from typing import Optional, Deque
from .types import Grid, Metrics
from .engine import TraversalEngine, StepObserver, FrontierEntry
from .neighbors import get_neighbors
from .path import mark_visited


class BFSAlgorithm(TraversalEngine):
    """
    Breadth-first search with a FIFO queue.

    Neighbors are tried in the fixed order up, right, down, left. Cells are
    dequeued in nondecreasing distance from start, so the path carried by the
    first dequeue of the end cell is a shortest path.
    """

    algorithm = "bfs"

    def _setup(self):
        super()._setup()
        self._queue: Deque[FrontierEntry] = deque([(self.start_coord, [self.start_coord])])
        self._visited[self.start_coord] = True

    def step(self) -> Optional[Metrics]:
        if not self._queue:
            return self._complete_without_path()

        coord, path = self._queue.popleft()
        mark_visited(coord, self.grid)
        self.metrics.nodes_visited += 1
        self.emit()

        if coord == self.end_coord:
            return self._complete_with_path(path)

        for neighbor in get_neighbors(coord, self.grid):
            if not self._visited[neighbor]:
                self._visited[neighbor] = True
                self._queue.append((neighbor, path + [neighbor]))

        return None


def run_bfs(grid: Grid, on_step: Optional[StepObserver] = None, *,
            cancel: Optional[threading.Event] = None, delay: float = 0.0) -> Metrics:
    """Run breadth-first search on a private copy of `grid`."""
    return BFSAlgorithm().run(grid, on_step, cancel=cancel, delay=delay)
