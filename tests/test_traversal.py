"""Tests for the DFS, BFS and A* engines and the shared step protocol."""

import threading

import pytest

from mazelab.domain.types import clone_grid
from mazelab.domain.errors import MalformedGrid
from mazelab.domain.dfs import run_dfs, DFSAlgorithm
from mazelab.domain.bfs import run_bfs
from mazelab.domain.astar import run_astar, AStarAlgorithm
from mazelab.domain.path import validate_path
from mazelab.utils.grid_factory import generate_maze, grid_from_ascii, find_open_path

RUNNERS = {"dfs": run_dfs, "bfs": run_bfs, "astar": run_astar}


@pytest.mark.parametrize("name", sorted(RUNNERS))
def test_corridor_path_is_found(name, corridor_grid, recorder):
    metrics = RUNNERS[name](corridor_grid, recorder)

    assert metrics.algorithm == name
    assert metrics.is_path_found
    assert metrics.path_length == 6
    assert metrics.path[0] == (0, 1) and metrics.path[-1] == (4, 3)
    assert not metrics.cancelled

    final = recorder.last.grid
    path_cells = {c.coord for c in final.iter_cells() if c.is_path}
    assert path_cells == {(1, 1), (2, 1), (3, 1), (3, 2), (3, 3)}


@pytest.mark.parametrize("name", sorted(RUNNERS))
def test_unreachable_end_reports_no_path(name, blocked_grid, recorder):
    metrics = RUNNERS[name](blocked_grid, recorder)

    assert not metrics.is_path_found
    assert metrics.path == []
    assert metrics.nodes_visited == 2
    assert not any(c.is_path for c in recorder.last.grid.iter_cells())


def test_bfs_end_to_end_on_generated_maze(recorder):
    grid = generate_maze(15, 15)
    metrics = run_bfs(grid, recorder)

    assert metrics.is_path_found
    assert metrics.path_length == len(find_open_path(grid, (0, 1), (14, 13))) - 1
    assert len(recorder.snapshots) == metrics.nodes_visited + 1

    final = recorder.last.grid
    for cell in final.iter_cells():
        if cell.is_wall:
            assert not cell.is_visited and not cell.is_path
    assert final.cell((0, 1)).is_start and not final.cell((0, 1)).is_path
    assert final.cell((14, 13)).is_end and not final.cell((14, 13)).is_path


@pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
def test_bfs_and_astar_agree_and_dfs_is_no_shorter(seed):
    grid = generate_maze(21, 17, seed=seed)

    bfs = run_bfs(grid)
    astar = run_astar(grid)
    dfs = run_dfs(grid)

    assert bfs.path_length == astar.path_length
    assert dfs.path_length >= bfs.path_length
    for metrics in (bfs, astar, dfs):
        assert validate_path(metrics.path, grid)


def test_astar_expands_no_more_than_bfs():
    grid = generate_maze(25, 25, seed=11)
    assert run_astar(grid).nodes_visited <= run_bfs(grid).nodes_visited


def test_astar_step_protocol(corridor_grid):
    engine = AStarAlgorithm()
    engine.initialize(corridor_grid)

    results = []
    while not engine.finished:
        results.append(engine.step())
        assert engine.drain_snapshots()

    assert all(r is None for r in results[:-1])
    assert results[-1].is_path_found
    assert engine.closed_set[(4, 3)]


@pytest.mark.parametrize("name", sorted(RUNNERS))
def test_caller_grid_is_not_mutated(name):
    grid = generate_maze(11, 11)
    before = clone_grid(grid)

    RUNNERS[name](grid, lambda snapshot: None)

    assert grid == before


def test_snapshots_are_independent(corridor_grid, recorder):
    run_bfs(corridor_grid, recorder)

    first = recorder.snapshots[0]
    visited_before = [c.coord for c in first.grid.iter_cells() if c.is_visited]
    nodes_before = first.metrics.nodes_visited

    recorder.last.grid.cell((2, 1)).is_visited = False
    recorder.last.metrics.nodes_visited = 999

    assert [c.coord for c in first.grid.iter_cells() if c.is_visited] == visited_before
    assert first.metrics.nodes_visited == nodes_before
    assert recorder.snapshots[0].metrics.nodes_visited < recorder.snapshots[-2].metrics.nodes_visited


def test_snapshot_metrics_grow_monotonically(recorder):
    run_dfs(generate_maze(13, 13), recorder)
    counts = [s.metrics.nodes_visited for s in recorder.snapshots]
    assert counts == sorted(counts)


def test_annotations_in_input_are_ignored(recorder):
    grid = grid_from_ascii(["#S###", "#*###", "#o###", "#...#", "###E#"])
    metrics = run_bfs(grid, recorder)
    assert metrics.is_path_found
    assert recorder.snapshots[0].grid.cell((2, 1)).is_visited is False


def test_missing_terminal_is_rejected():
    grid = grid_from_ascii(["#.###", "#.###", "#.###", "#...#", "###E#"])
    with pytest.raises(MalformedGrid):
        run_astar(grid)


def test_cancellation_returns_partial_metrics():
    grid = generate_maze(15, 15)
    cancel = threading.Event()
    seen = []

    def observer(snapshot):
        seen.append(snapshot)
        if len(seen) == 3:
            cancel.set()

    metrics = run_bfs(grid, observer, cancel=cancel)

    assert metrics.cancelled
    assert metrics.nodes_visited == 3
    assert not metrics.is_path_found
    assert len(seen) == 4
    assert not seen[2].metrics.cancelled
    assert seen[-1].metrics.cancelled
    assert seen[-1].metrics.nodes_visited == 3


def test_cancel_before_start():
    cancel = threading.Event()
    cancel.set()
    metrics = run_dfs(generate_maze(9, 9), cancel=cancel)
    assert metrics.cancelled
    assert metrics.nodes_visited == 0


def test_unobserved_run_builds_no_snapshots(corridor_grid):
    engine = DFSAlgorithm()
    engine.initialize(corridor_grid, observed=False)
    while engine.step() is None:
        assert engine.drain_snapshots() == []
    assert engine.metrics.is_path_found


def test_engine_releases_grid_after_run(corridor_grid):
    engine = DFSAlgorithm()
    engine.run(corridor_grid)
    assert engine.grid is None
    assert engine.finished


def test_delay_paces_delivery(corridor_grid, recorder, monkeypatch):
    pauses = []
    monkeypatch.setattr("mazelab.domain.engine.time.sleep", pauses.append)

    metrics = run_bfs(corridor_grid, recorder, delay=0.01)

    assert metrics.is_path_found
    assert pauses == [0.01] * len(recorder.snapshots)
