"""Shared fixtures for the maze lab test suite."""

import pytest

from mazelab.utils.rng import set_global_seed
from mazelab.utils.grid_factory import grid_from_ascii

# Single corridor from (0, 1) to (4, 3); its only path has Manhattan length
CORRIDOR_MAZE = [
    "#S###",
    "#.###",
    "#.###",
    "#...#",
    "###E#",
]

# Same layout with the corridor cut, so the end is unreachable
BLOCKED_MAZE = [
    "#S###",
    "#.###",
    "#####",
    "#...#",
    "###E#",
]

# Start walled in on every side
ISOLATED_START_MAZE = [
    "#S###",
    "#####",
    "#####",
    "#...#",
    "###E#",
]


@pytest.fixture(autouse=True)
def seeded_rng():
    """Make every test reproducible, then hand the process-wide source back unseeded."""
    set_global_seed(1234)
    yield
    set_global_seed(None)


@pytest.fixture
def corridor_grid():
    return grid_from_ascii(CORRIDOR_MAZE)


@pytest.fixture
def blocked_grid():
    return grid_from_ascii(BLOCKED_MAZE)


@pytest.fixture
def isolated_start_grid():
    return grid_from_ascii(ISOLATED_START_MAZE)


class SnapshotRecorder:
    """Step observer that keeps every snapshot it receives."""

    def __init__(self):
        self.snapshots = []

    def __call__(self, snapshot):
        self.snapshots.append(snapshot)

    @property
    def last(self):
        return self.snapshots[-1]


@pytest.fixture
def recorder():
    return SnapshotRecorder()


@pytest.fixture(scope="session")
def qapp():
    """QtCore application for controller tests; no display needed."""
    from PySide6.QtCore import QCoreApplication
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app
