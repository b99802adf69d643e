"""Stepwise execution protocol shared by every solver engine.

An engine works on a private clone of the caller's grid and advances one
unit of work per call to ``step()`` (one node expansion for the traversal
engines, one episode for the learners, one move for the greedy explorers).
Snapshots produced during a step are buffered in a bounded channel; the
driver in ``run()`` drains it after every step and hands each snapshot to
the observer, applies the optional pacing delay and checks for
cancellation before the next step.
"""

import time
import threading
from abc import ABC, abstractmethod
from collections import deque
from typing import Optional, Callable, Deque, List, Tuple

import numpy as np

from .types import Coord, Grid, Metrics, StepSnapshot, AlgorithmId, find_terminals
from .path import mark_path, path_edge_count

StepObserver = Callable[[StepSnapshot], None]


class SolverEngine(ABC):
    """Base class for all engines: owns the private grid, metrics and step channel."""

    algorithm: AlgorithmId
    CHANNEL_SIZE = 64

    def __init__(self):
        self.reset()

    def reset(self):
        """Reset the engine state and release any grid it holds."""
        self.grid: Optional[Grid] = None
        self.metrics: Optional[Metrics] = None
        self.start_coord: Optional[Coord] = None
        self.end_coord: Optional[Coord] = None
        self.finished = False
        self._source_grid: Optional[Grid] = None
        self._observed = True
        self._start_time = 0.0
        self._channel: Deque[StepSnapshot] = deque(maxlen=self.CHANNEL_SIZE)

    def initialize(self, grid: Grid, observed: bool = True):
        """
        Prepare a run on a private copy of `grid`.

        Args:
            grid: Caller-held grid, never mutated
            observed: When False, snapshots are not built at all

        Raises:
            MalformedGrid: If the grid has no start or end cell
        """
        self.reset()
        self._source_grid = grid.clone()
        self.grid = grid.clone()
        self.grid.clear_annotations()
        self.start_coord, self.end_coord = find_terminals(self.grid)
        self._observed = observed
        self.metrics = self._create_metrics()
        self._start_time = time.perf_counter()
        self._setup()

    @abstractmethod
    def _create_metrics(self) -> Metrics:
        """Build the metrics record for a fresh run."""

    def _setup(self):
        """Hook for engine-specific initialization after the grid is in place."""

    @abstractmethod
    def step(self) -> Optional[Metrics]:
        """
        Execute one unit of work.
        Returns the final metrics if the run is complete, None otherwise.
        """

    @property
    def rows(self) -> int:
        return self.grid.rows

    @property
    def cols(self) -> int:
        return self.grid.cols

    @property
    def max_steps(self) -> int:
        """Step budget for episodes and greedy walks."""
        return self.rows * self.cols * 2

    def elapsed(self) -> float:
        """Seconds since initialize()."""
        return time.perf_counter() - self._start_time

    def emit(self):
        """Queue a snapshot of the current grid and metrics."""
        if not self._observed:
            return
        self.metrics.execution_time = self.elapsed()
        self._channel.append(StepSnapshot(grid=self.grid.clone(), metrics=self.metrics.copy()))

    def emit_progress(self):
        """Queue a metrics-only snapshot paired with the untouched input grid."""
        if not self._observed:
            return
        self.metrics.execution_time = self.elapsed()
        self._channel.append(StepSnapshot(grid=self._source_grid.clone(), metrics=self.metrics.copy()))

    def drain_snapshots(self) -> List[StepSnapshot]:
        """Remove and return every queued snapshot, oldest first."""
        snapshots = list(self._channel)
        self._channel.clear()
        return snapshots

    def finish(self) -> Metrics:
        """Stamp the execution time and mark the run complete."""
        self.metrics.execution_time = self.elapsed()
        self.finished = True
        return self.metrics

    def emit_terminal(self):
        """Queue the snapshot that closes a run early."""
        self.emit()

    def cancel(self) -> Metrics:
        """Stop the run early, keeping the metrics accumulated so far."""
        self.metrics.cancelled = True
        self.emit_terminal()
        return self.finish()

    def run(self, grid: Grid, on_step: Optional[StepObserver] = None,
            cancel: Optional[threading.Event] = None, delay: float = 0.0) -> Metrics:
        """
        Run the engine to completion.

        Args:
            grid: Grid to solve; a private copy is used
            on_step: Observer called with every snapshot, return value ignored
            cancel: Any object with is_set(); checked before each step
            delay: Pause in seconds after each delivered snapshot

        Returns:
            Final metrics record
        """
        self.initialize(grid, observed=on_step is not None)
        try:
            while True:
                if cancel is not None and cancel.is_set():
                    result = self.cancel()
                    self._deliver(on_step, delay)
                    break

                result = self.step()
                self._deliver(on_step, delay)
                if result is not None:
                    break
        finally:
            # The caller never gets a handle on the private grid
            self.grid = None
            self._source_grid = None
            self._channel.clear()

        return result

    def _deliver(self, on_step: Optional[StepObserver], delay: float):
        for snapshot in self.drain_snapshots():
            if on_step is not None:
                on_step(snapshot)
            if delay > 0:
                time.sleep(delay)


class TraversalEngine(SolverEngine):
    """Shared completion logic for the DFS, BFS and A* engines."""

    def _create_metrics(self) -> Metrics:
        return Metrics(algorithm=self.algorithm)

    def _setup(self):
        self._visited = np.zeros((self.rows, self.cols), dtype=bool)

    def _complete_with_path(self, path: List[Coord]) -> Metrics:
        """Mark the path, emit the terminal snapshot and finish."""
        mark_path(path, self.grid)
        self.metrics.is_path_found = True
        self.metrics.path = list(path)
        self.metrics.path_length = path_edge_count(path)
        self.emit()
        return self.finish()

    def _complete_without_path(self) -> Metrics:
        """Frontier exhausted: report no path and finish."""
        self.metrics.is_path_found = False
        self.emit()
        return self.finish()


# Frontier entries carry the path walked so far
FrontierEntry = Tuple[Coord, List[Coord]]
