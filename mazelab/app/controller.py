"""Session controller that paces solver engines with a Qt timer."""

import copy
from typing import Optional, Dict
import numpy as np
from PySide6.QtCore import QObject, QTimer, Signal

from ..domain.types import (
    Grid, Metrics, StepSnapshot, AlgorithmId, ALGORITHMS,
    MazeConfig, MonteCarloConfig, QLearningConfig
)
from ..domain.errors import InvalidParameter
from ..domain.engine import SolverEngine
from ..domain.dfs import DFSAlgorithm
from ..domain.bfs import BFSAlgorithm
from ..domain.astar import AStarAlgorithm
from ..domain.monte_carlo import MonteCarloAgent, MonteCarloExplorer
from ..domain.qlearning import QLearningAgent, QLearningExplorer
from ..utils.grid_factory import generate_maze
from .fsm import AlgoStateMachine, AlgoState

LEARNERS = ("monte_carlo", "qlearning")


class SolverController(QObject):
    """
    Controller that owns the session maze and drives one engine at a time.

    Each timer tick executes one engine step and re-emits the snapshots the
    step produced. Learned tables from Monte Carlo and Q-learning training
    are kept for the session; running a trained learner again follows its
    greedy policy instead of retraining.

    Signals:
        state_changed: Emitted when the run state changes
        step_emitted: Emitted with every StepSnapshot an engine produces
        algorithm_completed: Emitted with the final Metrics of a run
        maze_updated: Emitted when a new maze was generated
        error_occurred: Emitted with a message when something fails
    """

    state_changed = Signal(object)  # AlgoState
    step_emitted = Signal(object)  # StepSnapshot
    algorithm_completed = Signal(object)  # Metrics
    maze_updated = Signal()
    error_occurred = Signal(str)

    def __init__(self, maze_config: Optional[MazeConfig] = None, step_mode: bool = False):
        super().__init__()

        self._state_machine = AlgoStateMachine()
        self._maze_config = maze_config or MazeConfig()
        self._grid: Optional[Grid] = None
        self._algorithm: AlgorithmId = "bfs"
        self._engine: Optional[SolverEngine] = None
        self._monte_carlo_config = MonteCarloConfig()
        self._qlearning_config = QLearningConfig()
        self._learned: Dict[AlgorithmId, np.ndarray] = {}
        self._last_snapshot: Optional[StepSnapshot] = None
        self._last_metrics: Optional[Metrics] = None
        self._step_mode = step_mode

        # Timer for run mode
        self._timer = QTimer(self)
        self._timer.timeout.connect(self._on_timer_tick)
        self._timer_interval = 30  # milliseconds

        self._setup_state_callbacks()
        self.generate_maze(self._maze_config.rows, self._maze_config.cols, self._maze_config.seed)

    def _setup_state_callbacks(self):
        """Setup callbacks for state machine transitions."""
        self._state_machine.on_state_enter(AlgoState.RUNNING, self._on_running_entered)
        for state in (AlgoState.IDLE, AlgoState.PAUSED, AlgoState.COMPLETE,
                      AlgoState.NO_PATH, AlgoState.CANCELLED, AlgoState.ERROR):
            self._state_machine.on_state_enter(state, self._make_stop_callback(state))

    def _make_stop_callback(self, state: AlgoState):
        def on_enter(context):
            self._timer.stop()
            self.state_changed.emit(state)
        return on_enter

    def _on_running_entered(self, context):
        if not self._step_mode:
            self._timer.start(self._timer_interval)
        self.state_changed.emit(AlgoState.RUNNING)

    # Properties

    @property
    def grid(self) -> Optional[Grid]:
        """Get the session maze (never mutated by engines)."""
        return self._grid

    @property
    def algorithm(self) -> AlgorithmId:
        return self._algorithm

    @property
    def current_state(self) -> AlgoState:
        return self._state_machine.current_state

    @property
    def last_snapshot(self) -> Optional[StepSnapshot]:
        return self._last_snapshot

    @property
    def last_metrics(self) -> Optional[Metrics]:
        return self._last_metrics

    @property
    def monte_carlo_config(self) -> MonteCarloConfig:
        return self._monte_carlo_config

    @property
    def qlearning_config(self) -> QLearningConfig:
        return self._qlearning_config

    @property
    def speed(self) -> int:
        """Get the current speed (timer interval in ms)."""
        return self._timer_interval

    @speed.setter
    def speed(self, interval_ms: int):
        """Set the speed (timer interval in ms)."""
        self._timer_interval = max(0, min(1000, interval_ms))
        if self._timer.isActive():
            self._timer.setInterval(self._timer_interval)

    # Maze management

    def generate_maze(self, rows: Optional[int] = None, cols: Optional[int] = None,
                      seed: Optional[int] = None) -> bool:
        """Generate a new session maze; learned tables are discarded."""
        if self._state_machine.is_active():
            return False

        config = MazeConfig(
            rows=rows if rows is not None else self._maze_config.rows,
            cols=cols if cols is not None else self._maze_config.cols,
            seed=seed
        )
        try:
            config.validate()
            self._grid = generate_maze(config.rows, config.cols, seed=config.seed)
        except InvalidParameter as e:
            self.error_occurred.emit(f"Failed to generate maze: {e}")
            return False

        self._maze_config = config
        self._learned.clear()
        self._reset_run()
        self.maze_updated.emit()
        return True

    # Algorithm selection and configuration

    def select_algorithm(self, algorithm: AlgorithmId) -> bool:
        """Choose the engine for the next run."""
        if algorithm not in ALGORITHMS:
            self.error_occurred.emit(f"Unknown algorithm: {algorithm}")
            return False
        if self._state_machine.is_active():
            return False
        self._algorithm = algorithm
        self._reset_run()
        return True

    def update_config(self, **kwargs) -> bool:
        """Update hyper-parameters of the selected learner."""
        if self._algorithm == "monte_carlo":
            config = self._monte_carlo_config
        elif self._algorithm == "qlearning":
            config = self._qlearning_config
        else:
            return False

        candidate = copy.copy(config)
        for key, value in kwargs.items():
            if hasattr(candidate, key):
                setattr(candidate, key, value)
        try:
            candidate.validate()
        except InvalidParameter as e:
            self.error_occurred.emit(f"Invalid configuration: {e}")
            return False

        if self._algorithm == "monte_carlo":
            self._monte_carlo_config = candidate
        else:
            self._qlearning_config = candidate
        return True

    def is_trained(self, algorithm: Optional[AlgorithmId] = None) -> bool:
        """Whether a learned table exists for the learner in this session."""
        return (algorithm or self._algorithm) in self._learned

    def learned_table(self, algorithm: AlgorithmId) -> Optional[np.ndarray]:
        """Value function or Q-table learned this session, if any."""
        table = self._learned.get(algorithm)
        return None if table is None else table.copy()

    def forget_training(self, algorithm: Optional[AlgorithmId] = None):
        """Drop a learned table so the next run trains again."""
        self._learned.pop(algorithm or self._algorithm, None)

    def _build_engine(self) -> SolverEngine:
        algorithm = self._algorithm
        if algorithm == "dfs":
            return DFSAlgorithm()
        if algorithm == "bfs":
            return BFSAlgorithm()
        if algorithm == "astar":
            return AStarAlgorithm()
        if algorithm == "monte_carlo":
            if self.is_trained("monte_carlo"):
                return MonteCarloExplorer(self._learned["monte_carlo"],
                                          self._monte_carlo_config.discount_factor)
            return MonteCarloAgent(copy.copy(self._monte_carlo_config))
        if self.is_trained("qlearning"):
            return QLearningExplorer(self._learned["qlearning"])
        return QLearningAgent(copy.copy(self._qlearning_config))

    # Algorithm control

    def can_start(self) -> bool:
        """Check if a run can be started."""
        return self._grid is not None and (self._state_machine.can_start()
                                           or self._state_machine.is_finished())

    def start_algorithm(self) -> bool:
        """Start a run of the selected algorithm."""
        if not self.can_start():
            return False

        self._state_machine.reset_to_idle()
        try:
            self._engine = self._build_engine()
            self._engine.initialize(self._grid)
        except Exception as e:
            self._engine = None
            self._state_machine.fail_error({"error": str(e)})
            self.error_occurred.emit(f"Failed to start algorithm: {e}")
            return False

        return self._state_machine.start()

    def step_algorithm(self) -> bool:
        """Execute one engine step, starting a run first if needed."""
        if not self._state_machine.is_active():
            if not self.start_algorithm():
                return False

        try:
            result = self._engine.step()
        except Exception as e:
            self._state_machine.fail_error({"error": str(e)})
            self.error_occurred.emit(f"Algorithm error: {e}")
            return False

        self._publish_snapshots()
        if result is not None:
            self._on_engine_finished(result)
        return True

    def run_to_completion(self) -> Optional[Metrics]:
        """Step the current or a new run until it ends; returns its metrics."""
        if not self._state_machine.is_active() and not self.start_algorithm():
            return None

        while self._state_machine.is_active():
            if not self.step_algorithm():
                return None
        return self._last_metrics

    def pause_algorithm(self) -> bool:
        return self._state_machine.pause()

    def resume_algorithm(self) -> bool:
        return self._state_machine.resume()

    def cancel_algorithm(self) -> bool:
        """Stop the active run, keeping the metrics gathered so far."""
        if not self._state_machine.is_active() or self._engine is None:
            return False

        metrics = self._engine.cancel()
        self._publish_snapshots()
        self._last_metrics = metrics
        self._engine.reset()
        self._engine = None
        self._state_machine.cancel({"metrics": metrics})
        self.algorithm_completed.emit(metrics)
        return True

    def reset_algorithm(self) -> bool:
        """Abandon any run and return to idle."""
        if self._state_machine.is_running():
            self._state_machine.pause()
        self._reset_run()
        return True

    def get_statistics(self) -> dict:
        """Current run statistics for display."""
        metrics = self._engine.metrics if self._engine and self._engine.metrics else self._last_metrics
        stats = {
            "algorithm": self._algorithm,
            "trained": self.is_trained(),
            "current_state": self._state_machine.current_state.value,
            "state_description": self._state_machine.get_state_description(),
        }
        if metrics is not None:
            stats.update(metrics.summary())
        return stats

    # Internals

    def _reset_run(self):
        if self._engine is not None:
            self._engine.reset()
        self._engine = None
        self._last_snapshot = None
        self._state_machine.reset_to_idle()

    def _publish_snapshots(self):
        for snapshot in self._engine.drain_snapshots():
            self._last_snapshot = snapshot
            self.step_emitted.emit(snapshot)

    def _on_engine_finished(self, metrics: Metrics):
        engine = self._engine
        if isinstance(engine, MonteCarloAgent):
            self._learned["monte_carlo"] = metrics.value_function.copy()
        elif isinstance(engine, QLearningAgent):
            self._learned["qlearning"] = metrics.q_table.copy()

        self._last_metrics = metrics
        engine.reset()
        self._engine = None

        context = {"metrics": metrics}
        if metrics.is_path_found or isinstance(engine, (MonteCarloAgent, QLearningAgent)):
            self._state_machine.complete(context)
        else:
            self._state_machine.fail_no_path(context)
        self.algorithm_completed.emit(metrics)

    def _on_timer_tick(self):
        """Called on each timer tick during run mode."""
        if self._state_machine.is_running():
            self.step_algorithm()
