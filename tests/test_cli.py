"""Tests for the command line runner."""

import pytest

from mazelab.__main__ import main


@pytest.mark.parametrize("algorithm", ["dfs", "bfs", "astar"])
def test_traversal_run(algorithm, capsys):
    assert main(["--algorithm", algorithm, "--rows", "7", "--cols", "9", "--seed", "2"]) == 0
    out = capsys.readouterr().out
    assert f"{algorithm} result" in out
    assert "is_path_found: True" in out


def test_learner_with_exploration(capsys):
    code = main(["--algorithm", "monte_carlo", "--rows", "7", "--cols", "7",
                 "--episodes", "20", "--explore", "--verbose"])
    assert code == 0
    out = capsys.readouterr().out
    assert "Monte Carlo training" in out
    assert "Greedy walk" in out
    assert "Episode 1/20" in out


def test_qlearning_run(capsys):
    assert main(["--algorithm", "qlearning", "--episodes", "50", "--rows", "6", "--cols", "6"]) == 0
    assert "Q-Learning training" in capsys.readouterr().out


def test_too_small_maze_fails(capsys):
    assert main(["--rows", "3"]) == 1
    assert "at least" in capsys.readouterr().err


def test_bad_hyper_parameter_fails(capsys):
    assert main(["--algorithm", "qlearning", "--learning-rate", "0"]) == 1


def test_unknown_algorithm_is_rejected():
    with pytest.raises(SystemExit):
        main(["--algorithm", "dijkstra"])
