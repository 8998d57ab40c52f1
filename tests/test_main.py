import logging

import pytest

from localcoloring.adversary import make_path_adversary
from localcoloring.coloring import is_global_coloring
from localcoloring.main import (
    ALGORITHMS,
    SimulationConfig,
    build_adversary_graph,
    count_conflicts,
    get_algorithm,
    plot_colored_grid,
    run_simulation,
)
from localcoloring.partial_grid import PartialGrid


def test_unknown_algorithm():
    with pytest.raises(ValueError, match="Unknown algorithm"):
        get_algorithm("rainbow", 1)


def test_negative_radius():
    with pytest.raises(ValueError):
        get_algorithm("greedy", -1)


def test_count_conflicts():
    grid = PartialGrid(2, 3)
    grid.put(0, 0, 1)
    grid.put(0, 1, 1)
    grid.put(1, 1, 1)
    grid.put(1, 2, 0)
    assert count_conflicts(grid) == 2


@pytest.mark.parametrize("name", sorted(ALGORITHMS))
def test_every_algorithm_fills_a_valid_grid(name):
    config = SimulationConfig(rows=5, columns=5, algorithm=name, radius=1, seed=1, save_path=None)
    result = run_simulation(config)
    assert result.steps == 25
    assert result.grid.empty_cells() == []
    assert result.valid
    assert result.conflicts == 0
    assert result.locality_violations == 0


def test_partial_run_and_plot(tmp_path, caplog):
    config = SimulationConfig(rows=4, columns=6, algorithm="parityaware", radius=2, steps=10)
    result = run_simulation(config)
    assert result.steps == 10
    assert len(result.grid.empty_cells()) == 14
    assert result.valid

    path = tmp_path / "grid.png"
    with caplog.at_level(logging.INFO):
        plot_colored_grid(result.grid, "parityaware", save_path=str(path))
    assert path.exists()
    assert "Saved figure" in caplog.text


@pytest.mark.parametrize("name", sorted(ALGORITHMS))
def test_path_adversary_graph_stays_colored(name):
    graph, violations = build_adversary_graph(make_path_adversary(), get_algorithm(name, 1))
    assert graph.n in (8, 9)
    assert all(node.data is not None for node in graph.nodes)
    assert is_global_coloring(graph)
    assert violations == 0
