"""Tests for Monte Carlo value learning and greedy exploration."""

import threading

import numpy as np
import pytest

from mazelab.domain.types import clone_grid
from mazelab.domain.errors import InvalidParameter
from mazelab.domain.monte_carlo import (
    run_monte_carlo, run_monte_carlo_exploration, MonteCarloAgent, snapshot_interval,
    progress_interval
)
from mazelab.domain.types import MonteCarloConfig
from mazelab.utils.grid_factory import generate_maze


def test_values_separate_goal_from_dead_end(corridor_grid, blocked_grid):
    reached = run_monte_carlo(corridor_grid, episodes=200, reward_value=100.0, stuck_penalty=-1.0)
    stuck = run_monte_carlo(blocked_grid, episodes=200, reward_value=100.0, stuck_penalty=-1.0)

    assert reached.value_function[0, 1] == pytest.approx(100 * 0.9 ** 6)
    assert stuck.value_function[0, 1] == pytest.approx(-0.9)
    assert reached.value_function[0, 1] > stuck.value_function[0, 1]
    assert reached.successful_episodes == 200
    assert stuck.successful_episodes == 0


def test_end_value_starts_at_reward(corridor_grid):
    metrics = run_monte_carlo(corridor_grid, episodes=1, epsilon=0.0, reward_value=10.0)
    assert metrics.value_function_history[0][4, 3] == 10.0
    assert metrics.value_function[4, 3] == 10.0


def test_walls_keep_zero_value():
    grid = generate_maze(11, 11)
    metrics = run_monte_carlo(grid, episodes=30)
    walls = grid.wall_mask()
    assert np.all(metrics.value_function[walls] == 0.0)
    assert metrics.value_function.shape == (11, 11)


@pytest.mark.parametrize("episodes,expected", [(5, 7), (50, 37)])
def test_value_history_is_thinned(corridor_grid, episodes, expected):
    metrics = run_monte_carlo(corridor_grid, episodes=episodes)
    assert len(metrics.value_function_history) == expected
    assert metrics.episodes_completed == episodes
    np.testing.assert_array_equal(metrics.value_function_history[-1], metrics.value_function)


def test_interval_helpers():
    assert snapshot_interval(50) == 2
    assert snapshot_interval(100) == 5
    assert snapshot_interval(1000) == 10
    assert snapshot_interval(3) == 1
    assert progress_interval(50) == 5
    assert progress_interval(7) == 1


def test_progress_snapshots_carry_input_grid(recorder):
    grid = generate_maze(9, 9)
    metrics = run_monte_carlo(grid, recorder, episodes=50)

    assert len(recorder.snapshots) == 11
    for snapshot in recorder.snapshots:
        assert snapshot.grid == grid
    completed = [s.metrics.episodes_completed for s in recorder.snapshots]
    assert completed == [1, 6, 11, 16, 21, 26, 31, 36, 41, 46, 50]
    assert recorder.last.metrics.value_function is not metrics.value_function


def test_training_does_not_touch_input(corridor_grid):
    before = clone_grid(corridor_grid)
    run_monte_carlo(corridor_grid, lambda s: None, episodes=10)
    assert corridor_grid == before


@pytest.mark.parametrize("kwargs", [
    {"episodes": 0},
    {"epsilon": 1.2},
    {"discount_factor": -0.1},
])
def test_invalid_parameters(corridor_grid, kwargs):
    with pytest.raises(InvalidParameter):
        run_monte_carlo(corridor_grid, **kwargs)


def test_episode_never_revisits_cells():
    grid = generate_maze(15, 15)
    agent = MonteCarloAgent(MonteCarloConfig(episodes=1, epsilon=1.0))
    agent.initialize(grid)
    for _ in range(20):
        trajectory, outcome = agent.generate_episode()
        assert len(set(trajectory)) == len(trajectory)
        assert outcome in ("goal", "stuck", "max_steps")
        if outcome == "goal":
            assert trajectory[-1] == (14, 13)


def test_max_steps_outcome_has_zero_reward():
    agent = MonteCarloAgent(MonteCarloConfig(stuck_penalty=-5.0))
    assert agent.terminal_reward("max_steps") == 0.0
    assert agent.terminal_reward("stuck") == -5.0
    assert agent.terminal_reward("goal") == 100.0


def test_cancelled_training(corridor_grid, recorder):
    cancel = threading.Event()

    def observer(snapshot):
        recorder(snapshot)
        cancel.set()

    metrics = run_monte_carlo(corridor_grid, observer, episodes=100, cancel=cancel)

    assert metrics.cancelled
    assert metrics.episodes_completed == 1
    assert len(recorder.snapshots) == 2
    assert recorder.last.metrics.cancelled
    assert recorder.last.metrics.episodes_completed == 1
    assert recorder.last.grid == corridor_grid


def test_exploration_follows_learned_values(corridor_grid, recorder):
    trained = run_monte_carlo(corridor_grid, episodes=20, epsilon=0.0)
    metrics = run_monte_carlo_exploration(corridor_grid, recorder, trained.value_function)

    assert metrics.is_path_found
    assert metrics.path_length == 6
    assert metrics.path[-1] == (4, 3)
    assert sum(c.is_path for c in recorder.last.grid.iter_cells()) == 5


def test_exploration_stops_on_revisit(blocked_grid, recorder):
    metrics = run_monte_carlo_exploration(blocked_grid, recorder, np.zeros((5, 5)))

    assert not metrics.is_path_found
    assert metrics.path == [(0, 1), (1, 1), (0, 1)]
    assert metrics.path_length == 2
    assert recorder.last.grid.cell((1, 1)).is_path


def test_exploration_rejects_mismatched_table(corridor_grid):
    with pytest.raises(InvalidParameter):
        run_monte_carlo_exploration(corridor_grid, None, np.zeros((6, 5)))
