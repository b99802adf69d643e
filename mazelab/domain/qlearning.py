"""Tabular Q-Learning and greedy exploration of the learned Q-table."""

import threading
from typing import Optional, List, Tuple
import numpy as np

from .types import Coord, Grid, ActionInt, QLearningConfig, QLearningMetrics, NUM_ACTIONS
from .errors import InvalidParameter
from .engine import SolverEngine, StepObserver
from .neighbors import get_open_moves, count_open_moves
from .path import mark_path, mark_visited, path_edge_count
from ..utils.rng import default_rng


def progress_interval(total_episodes: int) -> int:
    """Episodes between progress reports (about twenty per run)."""
    return max(1, total_episodes // 20)


class QLearningAgent(SolverEngine):
    """
    Q-Learning agent for maze navigation.

    Each engine step runs one episode from start with epsilon-greedy action
    selection and one-step temporal-difference updates. Moving into the goal
    pays reward_value; moving into a cell without any exit pays stuck_penalty;
    both end the episode.
    """

    algorithm = "qlearning"

    def __init__(self, config: Optional[QLearningConfig] = None):
        self.config = config or QLearningConfig()
        self.config.validate()
        super().__init__()

    def _create_metrics(self) -> QLearningMetrics:
        return QLearningMetrics(
            q_table=np.zeros((self.rows, self.cols, NUM_ACTIONS)),
            epsilon=self.config.epsilon,
            discount_factor=self.config.discount_factor,
            learning_rate=self.config.learning_rate,
            total_episodes=self.config.episodes,
            reward_value=self.config.reward_value,
            stuck_penalty=self.config.stuck_penalty
        )

    def _setup(self):
        self.episode_index = 0

    def emit_terminal(self):
        self.emit_progress()

    @property
    def q_table(self) -> np.ndarray:
        return self.metrics.q_table

    def get_q_value(self, state: Coord, action: ActionInt) -> float:
        """Get Q-value for state-action pair."""
        return float(self.q_table[state][action])

    def select_action(self, state: Coord,
                      moves: List[Tuple[ActionInt, Coord]]) -> Tuple[ActionInt, Coord]:
        """Epsilon-greedy choice among valid moves, ties broken at random."""
        if default_rng.random() < self.config.epsilon:
            return default_rng.choice(moves)

        q_values = np.array([self.q_table[state][action] for action, _ in moves])
        return moves[default_rng.choice_among_max(q_values)]

    def reward_for(self, next_state: Coord) -> Tuple[float, bool]:
        """Return (reward, terminal) for arriving at next_state."""
        if next_state == self.end_coord:
            return self.config.reward_value, True
        if count_open_moves(next_state, self.grid) == 0:
            return self.config.stuck_penalty, True
        return 0.0, False

    def update_q_value(self, state: Coord, action: ActionInt, reward: float,
                       next_state: Coord, done: bool):
        """Update Q-value using Q-learning update rule."""
        current_q = self.q_table[state][action]
        next_q_max = 0.0 if done else float(np.max(self.q_table[next_state]))

        target = reward + self.config.discount_factor * next_q_max
        self.q_table[state][action] = current_q + self.config.learning_rate * (target - current_q)

    def train_episode(self) -> Tuple[int, bool]:
        """Run one episode. Returns (steps taken, reached goal)."""
        state = self.start_coord
        steps = 0
        done = False

        while not done and steps < self.max_steps:
            steps += 1
            moves = get_open_moves(state, self.grid)
            if not moves:
                # No exit from the current state: end without an update
                break

            action, next_state = self.select_action(state, moves)
            reward, done = self.reward_for(next_state)
            self.update_q_value(state, action, reward, next_state, done)
            state = next_state

        return steps, state == self.end_coord

    def step(self) -> Optional[QLearningMetrics]:
        if self.episode_index >= self.config.episodes:
            return self.finish()

        episode = self.episode_index
        total = self.config.episodes

        steps, reached_goal = self.train_episode()
        self.metrics.episodes_completed = episode + 1
        self.metrics.nodes_visited += steps
        if reached_goal:
            self.metrics.successful_episodes += 1

        is_last = episode == total - 1
        if episode % progress_interval(total) == 0 or is_last:
            self.emit_progress()
            if self.config.verbose:
                success_rate = self.metrics.successful_episodes / (episode + 1)
                print(f"Episode {episode + 1}/{total}: Success rate: {success_rate:.1%}, "
                      f"Epsilon: {self.config.epsilon:.3f}")

        self.episode_index += 1
        if is_last:
            return self.finish()
        return None


class QLearningExplorer(SolverEngine):
    """
    Greedy walk over a learned Q-table.

    Stops at the goal, when no valid action exists, or when the chosen move
    enters a cell already walked (that cell is not added to the path).
    """

    algorithm = "qlearning"

    def __init__(self, q_table: np.ndarray):
        self.learned_q = np.asarray(q_table, dtype=float)
        super().__init__()

    def _create_metrics(self) -> QLearningMetrics:
        expected = (self.rows, self.cols, NUM_ACTIONS)
        if self.learned_q.shape != expected:
            raise InvalidParameter(
                f"Q-table shape {self.learned_q.shape} does not match expected {expected}"
            )
        return QLearningMetrics(q_table=self.learned_q.copy())

    def _setup(self):
        self.current = self.start_coord
        self.path: List[Coord] = [self.start_coord]
        self._walked = np.zeros((self.rows, self.cols), dtype=bool)
        self._walked[self.start_coord] = True
        self._steps = 0

    def step(self) -> Optional[QLearningMetrics]:
        if self._steps >= self.max_steps:
            return self._complete()
        self._steps += 1
        self.metrics.nodes_visited += 1

        state = self.current
        if state == self.end_coord:
            self.metrics.is_path_found = True
            return self._complete()

        mark_visited(state, self.grid)
        self.emit()

        moves = get_open_moves(state, self.grid)
        if not moves:
            return self._complete()

        q_values = np.array([self.metrics.q_table[state][action] for action, _ in moves])
        _, next_state = moves[default_rng.choice_among_max(q_values)]

        # Loop check happens after moving
        if self._walked[next_state]:
            return self._complete()
        self._walked[next_state] = True
        self.current = next_state
        self.path.append(next_state)
        return None

    def _complete(self) -> QLearningMetrics:
        mark_path(self.path, self.grid)
        self.metrics.path = list(self.path)
        self.metrics.path_length = path_edge_count(self.path)
        self.emit()
        return self.finish()


def run_qlearning(grid: Grid, on_step: Optional[StepObserver] = None,
                  episodes: int = 1000, epsilon: float = 0.1,
                  discount_factor: float = 0.9, learning_rate: float = 0.1,
                  reward_value: float = 1.0, stuck_penalty: float = -1.0, *,
                  cancel: Optional[threading.Event] = None, delay: float = 0.0,
                  verbose: bool = False) -> QLearningMetrics:
    """
    Train a tabular Q-function on a private copy of `grid`.

    Raises:
        InvalidParameter: On out-of-range episodes, epsilon, discount_factor or learning_rate
        MalformedGrid: If the grid has no start or end cell
    """
    config = QLearningConfig(
        episodes=episodes,
        epsilon=epsilon,
        discount_factor=discount_factor,
        learning_rate=learning_rate,
        reward_value=reward_value,
        stuck_penalty=stuck_penalty,
        verbose=verbose
    )
    return QLearningAgent(config).run(grid, on_step, cancel=cancel, delay=delay)


def run_qlearning_exploration(grid: Grid, on_step: Optional[StepObserver],
                              q_table: np.ndarray, *,
                              cancel: Optional[threading.Event] = None,
                              delay: float = 0.0) -> QLearningMetrics:
    """Follow the greedy policy of a learned Q-table from start."""
    return QLearningExplorer(q_table).run(grid, on_step, cancel=cancel, delay=delay)
