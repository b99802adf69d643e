#!/usr/bin/env python3
"""
Headless command line runner: generate a maze, solve it, print the result.
"""

import sys
import argparse

from .domain.types import ALGORITHMS, MIN_GRID_SIZE, MAX_GRID_SIZE, Metrics
from .domain.errors import MazeLabError
from .domain.dfs import run_dfs
from .domain.bfs import run_bfs
from .domain.astar import run_astar
from .domain.monte_carlo import run_monte_carlo, run_monte_carlo_exploration
from .domain.qlearning import run_qlearning, run_qlearning_exploration
from .utils.grid_factory import generate_maze, grid_to_ascii

TRAVERSALS = {
    "dfs": run_dfs,
    "bfs": run_bfs,
    "astar": run_astar,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mazelab", description="Generate and solve a random maze")
    parser.add_argument("--algorithm", choices=ALGORITHMS, default="bfs", help="Solver to run")
    parser.add_argument("--rows", type=int, default=15, help=f"Maze rows ({MIN_GRID_SIZE}-{MAX_GRID_SIZE})")
    parser.add_argument("--cols", type=int, default=15, help=f"Maze columns ({MIN_GRID_SIZE}-{MAX_GRID_SIZE})")
    parser.add_argument("--seed", type=int, help="Random seed for the maze")
    parser.add_argument("--episodes", type=int, help="Training episodes (learners only)")
    parser.add_argument("--epsilon", type=float, default=0.1, help="Exploration rate")
    parser.add_argument("--discount", type=float, default=0.9, help="Discount factor")
    parser.add_argument("--learning-rate", type=float, default=0.1, help="Q-learning step size")
    parser.add_argument("--reward", type=float, help="Goal reward (default 100 for Monte Carlo, 1 for Q-learning)")
    parser.add_argument("--stuck-penalty", type=float, default=-1.0, help="Dead-end penalty")
    parser.add_argument("--explore", action="store_true", help="Follow the learned policy after training")
    parser.add_argument("--verbose", action="store_true", help="Print training progress")
    return parser


def print_metrics(title: str, metrics: Metrics):
    print(f"\n{title}")
    for key, value in metrics.summary().items():
        if isinstance(value, float):
            value = f"{value:.4f}"
        print(f"   {key}: {value}")


def solve(args) -> int:
    print(f"🎲 Generating maze: {args.rows}x{args.cols}")
    grid = generate_maze(args.rows, args.cols, seed=args.seed)
    print(grid_to_ascii(grid))

    if args.algorithm in TRAVERSALS:
        final = {}
        metrics = TRAVERSALS[args.algorithm](grid, lambda step: final.update(grid=step.grid))
        print(f"\n🚀 {args.algorithm} result:")
        print(grid_to_ascii(final["grid"]))
        print_metrics("📊 Metrics:", metrics)
        return 0

    if args.algorithm == "monte_carlo":
        metrics = run_monte_carlo(
            grid,
            episodes=args.episodes or 100,
            epsilon=args.epsilon,
            discount_factor=args.discount,
            reward_value=100.0 if args.reward is None else args.reward,
            stuck_penalty=args.stuck_penalty,
            verbose=args.verbose
        )
        print_metrics("🧠 Monte Carlo training:", metrics)
        table = metrics.value_function
        explore = run_monte_carlo_exploration
    else:
        metrics = run_qlearning(
            grid,
            episodes=args.episodes or 1000,
            epsilon=args.epsilon,
            discount_factor=args.discount,
            learning_rate=args.learning_rate,
            reward_value=1.0 if args.reward is None else args.reward,
            stuck_penalty=args.stuck_penalty,
            verbose=args.verbose
        )
        print_metrics("🧠 Q-Learning training:", metrics)
        table = metrics.q_table
        explore = run_qlearning_exploration

    if args.explore:
        final = {}
        result = explore(grid, lambda step: final.update(grid=step.grid), table)
        print("\n🧪 Greedy walk with the learned policy:")
        print(grid_to_ascii(final["grid"]))
        print_metrics("📊 Exploration:", result)
        print("✅ Goal reached" if result.is_path_found else "❌ Goal not reached")

    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return solve(args)
    except MazeLabError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\n⏹️  Interrupted by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
