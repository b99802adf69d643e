"""First-visit Monte Carlo value learning and greedy exploration of the learned values."""

import threading
from typing import Optional, List, Tuple, Literal
import numpy as np

from .types import Coord, Grid, MonteCarloConfig, MonteCarloMetrics
from .errors import InvalidParameter
from .engine import SolverEngine, StepObserver
from .neighbors import get_open_moves
from .path import mark_path, mark_visited, path_edge_count
from ..utils.rng import default_rng

EpisodeOutcome = Literal["goal", "stuck", "max_steps"]

# Every episode is archived while training warms up
EARLY_SNAPSHOT_EPISODES = 20


def snapshot_interval(total_episodes: int) -> int:
    """Episodes between value-function snapshots once past the warm-up."""
    if total_episodes <= 100:
        return max(1, total_episodes // 20)
    return max(1, total_episodes // 100)


def progress_interval(total_episodes: int) -> int:
    """Episodes between progress reports (about ten per run)."""
    return max(1, total_episodes // 10)


class MonteCarloAgent(SolverEngine):
    """
    First-visit Monte Carlo learner for the state-value function.

    Each engine step simulates one episode from start: the agent never
    re-enters a cell within an episode, picks epsilon-greedily among the
    neighbor values and stops at the goal, when stuck, or when the step
    budget runs out. Only the final transition is rewarded.
    """

    algorithm = "monte_carlo"

    def __init__(self, config: Optional[MonteCarloConfig] = None):
        self.config = config or MonteCarloConfig()
        self.config.validate()
        super().__init__()

    def _create_metrics(self) -> MonteCarloMetrics:
        value_function = np.zeros((self.rows, self.cols))
        value_function[self.end_coord] = self.config.reward_value

        return MonteCarloMetrics(
            value_function=value_function,
            epsilon=self.config.epsilon,
            discount_factor=self.config.discount_factor,
            total_episodes=self.config.episodes,
            reward_value=self.config.reward_value,
            stuck_penalty=self.config.stuck_penalty
        )

    def _setup(self):
        self.visit_counts = np.zeros((self.rows, self.cols), dtype=int)
        self.episode_index = 0
        self._archive_snapshot()

    @property
    def value_function(self) -> np.ndarray:
        return self.metrics.value_function

    def emit_terminal(self):
        self.emit_progress()

    def _archive_snapshot(self):
        self.metrics.value_function_history.append(self.metrics.value_function.copy())

    def _should_archive(self, episode: int) -> bool:
        if episode < EARLY_SNAPSHOT_EPISODES:
            return True
        return episode % snapshot_interval(self.config.episodes) == 0

    def generate_episode(self) -> Tuple[List[Coord], EpisodeOutcome]:
        """Simulate one episode and return its trajectory and how it ended."""
        visited = np.zeros((self.rows, self.cols), dtype=bool)
        trajectory: List[Coord] = []
        current = self.start_coord
        outcome: EpisodeOutcome = "max_steps"

        for _ in range(self.max_steps):
            trajectory.append(current)
            visited[current] = True

            if current == self.end_coord:
                outcome = "goal"
                break

            moves = [(action, nxt) for action, nxt in get_open_moves(current, self.grid)
                     if not visited[nxt]]
            if not moves:
                outcome = "stuck"
                break

            if default_rng.random() < self.config.epsilon:
                _, current = default_rng.choice(moves)
            else:
                values = np.array([self.value_function[nxt] for _, nxt in moves])
                _, current = moves[default_rng.choice_among_max(values)]

        return trajectory, outcome

    def terminal_reward(self, outcome: EpisodeOutcome) -> float:
        """Reward attached to the last transition of an episode."""
        if outcome == "goal":
            return self.config.reward_value
        if outcome == "stuck":
            return self.config.stuck_penalty
        return 0.0

    def update_value_function(self, trajectory: List[Coord], outcome: EpisodeOutcome):
        """Apply first-visit running-average updates from the discounted returns."""
        if not trajectory:
            return

        final_reward = self.terminal_reward(outcome)
        gamma = self.config.discount_factor
        last = len(trajectory) - 1

        # Walking backwards, earlier visits overwrite later ones
        returns = {}
        g_return = 0.0
        for i in range(last, -1, -1):
            reward = final_reward if i == last else 0.0
            g_return = reward + gamma * g_return
            returns[trajectory[i]] = g_return

        for coord in dict.fromkeys(trajectory):
            self.visit_counts[coord] += 1
            old_value = self.value_function[coord]
            self.value_function[coord] = old_value + (returns[coord] - old_value) / self.visit_counts[coord]

    def step(self) -> Optional[MonteCarloMetrics]:
        if self.episode_index >= self.config.episodes:
            return self.finish()

        episode = self.episode_index
        total = self.config.episodes

        trajectory, outcome = self.generate_episode()
        self.update_value_function(trajectory, outcome)

        self.metrics.episodes_completed = episode + 1
        self.metrics.nodes_visited += len(trajectory)
        if outcome == "goal":
            self.metrics.successful_episodes += 1

        if self._should_archive(episode):
            self._archive_snapshot()

        is_last = episode == total - 1
        if episode % progress_interval(total) == 0 or is_last:
            self.emit_progress()
            if self.config.verbose:
                success_rate = self.metrics.successful_episodes / (episode + 1)
                print(f"Episode {episode + 1}/{total}: Success rate: {success_rate:.1%}, "
                      f"V(start): {self.value_function[self.start_coord]:.3f}")

        self.episode_index += 1
        if is_last:
            self._archive_snapshot()
            return self.finish()
        return None


class MonteCarloExplorer(SolverEngine):
    """
    Greedy walk over a learned value function.

    From start, repeatedly move to the open neighbor with the highest value
    (ties at random) until the goal, a dead end, a revisit or the step budget.
    The walked cells are marked as path even when the goal is never reached.
    """

    algorithm = "monte_carlo"

    def __init__(self, value_function: np.ndarray, discount_factor: float = 0.9):
        self.learned_values = np.asarray(value_function, dtype=float)
        self.discount_factor = discount_factor
        super().__init__()

    def _create_metrics(self) -> MonteCarloMetrics:
        if self.learned_values.shape != (self.rows, self.cols):
            raise InvalidParameter(
                f"Value function shape {self.learned_values.shape} does not match "
                f"grid {self.rows}x{self.cols}"
            )
        return MonteCarloMetrics(
            value_function=self.learned_values.copy(),
            value_function_history=[self.learned_values.copy()],
            discount_factor=self.discount_factor
        )

    def _setup(self):
        self.current = self.start_coord
        self.path: List[Coord] = [self.start_coord]
        self._walked = np.zeros((self.rows, self.cols), dtype=bool)
        self._steps = 0

    def step(self) -> Optional[MonteCarloMetrics]:
        if self._steps >= self.max_steps:
            return self._complete()
        self._steps += 1

        coord = self.current
        # Loop guard; nothing is walked yet on the first step, so start passes
        if self._walked[coord]:
            return self._complete()
        self._walked[coord] = True
        self.metrics.nodes_visited += 1

        if coord == self.end_coord:
            self.metrics.is_path_found = True
            return self._complete()

        mark_visited(coord, self.grid)
        self.emit()

        moves = get_open_moves(coord, self.grid)
        if not moves:
            return self._complete()

        values = np.array([self.metrics.value_function[nxt] for _, nxt in moves])
        _, self.current = moves[default_rng.choice_among_max(values)]
        self.path.append(self.current)
        return None

    def _complete(self) -> MonteCarloMetrics:
        mark_path(self.path, self.grid)
        self.metrics.path = list(self.path)
        self.metrics.path_length = path_edge_count(self.path)
        self.emit()
        return self.finish()


def run_monte_carlo(grid: Grid, on_step: Optional[StepObserver] = None,
                    episodes: int = 100, epsilon: float = 0.1,
                    discount_factor: float = 0.9, reward_value: float = 100.0,
                    stuck_penalty: float = -1.0, *,
                    cancel: Optional[threading.Event] = None, delay: float = 0.0,
                    verbose: bool = False) -> MonteCarloMetrics:
    """
    Train a first-visit Monte Carlo value function on a private copy of `grid`.

    Raises:
        InvalidParameter: If episodes < 1 or epsilon/discount_factor fall outside [0, 1]
        MalformedGrid: If the grid has no start or end cell
    """
    config = MonteCarloConfig(
        episodes=episodes,
        epsilon=epsilon,
        discount_factor=discount_factor,
        reward_value=reward_value,
        stuck_penalty=stuck_penalty,
        verbose=verbose
    )
    return MonteCarloAgent(config).run(grid, on_step, cancel=cancel, delay=delay)


def run_monte_carlo_exploration(grid: Grid, on_step: Optional[StepObserver],
                                value_function: np.ndarray, *,
                                cancel: Optional[threading.Event] = None,
                                delay: float = 0.0) -> MonteCarloMetrics:
    """Follow the greedy policy of a learned value function from start."""
    return MonteCarloExplorer(value_function).run(grid, on_step, cancel=cancel, delay=delay)
