"""Tests for the Qt session controller and its state machine."""

import pytest

from mazelab.app.controller import SolverController
from mazelab.app.fsm import AlgoStateMachine, AlgoState
from mazelab.domain.types import MazeConfig, MonteCarloMetrics


@pytest.fixture
def controller(qapp):
    return SolverController(MazeConfig(rows=9, cols=9, seed=3), step_mode=True)


def test_state_machine_transitions():
    fsm = AlgoStateMachine()
    assert fsm.can_start()
    assert not fsm.pause()
    assert fsm.start()
    assert fsm.pause()
    assert fsm.resume()
    assert fsm.complete()
    assert fsm.is_finished()
    assert not fsm.start()
    assert fsm.reset_to_idle()
    assert fsm.reset_to_idle()
    assert fsm.current_state == AlgoState.IDLE


def test_state_enter_callbacks_receive_context():
    fsm = AlgoStateMachine()
    entered = []
    fsm.on_state_enter(AlgoState.CANCELLED, entered.append)

    fsm.start()
    assert fsm.cancel({"reason": "user"})
    assert entered == [{"reason": "user"}]
    assert not fsm.cancel()
    assert fsm.get_state_description() == "Run cancelled"


def test_bfs_run_to_completion(controller):
    snapshots = []
    completed = []
    controller.step_emitted.connect(snapshots.append)
    controller.algorithm_completed.connect(completed.append)

    assert controller.select_algorithm("bfs")
    metrics = controller.run_to_completion()

    assert metrics.is_path_found
    assert controller.current_state == AlgoState.COMPLETE
    assert completed == [metrics]
    assert len(snapshots) == metrics.nodes_visited + 1
    assert controller.last_snapshot == snapshots[-1]
    assert not any(c.is_visited for c in controller.grid.iter_cells())


def test_rerun_after_completion(controller):
    controller.select_algorithm("astar")
    first = controller.run_to_completion()
    second = controller.run_to_completion()
    assert first.path_length == second.path_length


def test_learner_trains_then_explores(controller):
    controller.select_algorithm("monte_carlo")
    assert controller.update_config(episodes=30)

    trained = controller.run_to_completion()
    assert isinstance(trained, MonteCarloMetrics)
    assert trained.episodes_completed == 30
    assert controller.current_state == AlgoState.COMPLETE
    assert controller.is_trained()
    assert controller.learned_table("monte_carlo").shape == (9, 9)

    explored = controller.run_to_completion()
    assert explored.path[0] == (0, 1)
    assert explored.episodes_completed == 0
    assert controller.current_state in (AlgoState.COMPLETE, AlgoState.NO_PATH)

    controller.forget_training()
    assert not controller.is_trained()


def test_new_maze_discards_training(controller):
    controller.select_algorithm("qlearning")
    controller.update_config(episodes=20)
    controller.run_to_completion()
    assert controller.is_trained("qlearning")

    assert controller.generate_maze(11, 11)
    assert not controller.is_trained("qlearning")
    assert controller.grid.rows == 11


def test_cancel_keeps_partial_metrics(controller):
    controller.select_algorithm("bfs")
    snapshots = []
    controller.step_emitted.connect(snapshots.append)
    for _ in range(3):
        assert controller.step_algorithm()

    assert controller.cancel_algorithm()
    assert controller.current_state == AlgoState.CANCELLED
    assert controller.last_metrics.cancelled
    assert controller.last_metrics.nodes_visited == 3
    assert len(snapshots) == 4
    assert snapshots[-1].metrics.cancelled
    assert controller.last_snapshot == snapshots[-1]
    assert not controller.cancel_algorithm()


def test_pause_and_resume(controller):
    states = []
    controller.state_changed.connect(states.append)

    assert controller.start_algorithm()
    assert controller.pause_algorithm()
    assert controller.resume_algorithm()
    assert states == [AlgoState.RUNNING, AlgoState.PAUSED, AlgoState.RUNNING]

    assert controller.reset_algorithm()
    assert controller.current_state == AlgoState.IDLE


def test_invalid_maze_size_emits_error(controller):
    errors = []
    controller.error_occurred.connect(errors.append)

    assert not controller.generate_maze(3, 9)
    assert len(errors) == 1
    assert controller.grid.rows == 9


def test_invalid_config_is_rejected(controller):
    errors = []
    controller.error_occurred.connect(errors.append)

    controller.select_algorithm("qlearning")
    assert not controller.update_config(learning_rate=0.0)
    assert controller.qlearning_config.learning_rate == 0.1
    assert errors

    controller.select_algorithm("dfs")
    assert not controller.update_config(epsilon=0.5)


def test_statistics(controller):
    controller.select_algorithm("dfs")
    controller.run_to_completion()
    stats = controller.get_statistics()
    assert stats["algorithm"] == "dfs"
    assert stats["current_state"] == "complete"
    assert stats["is_path_found"] is True
