from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.patches import Rectangle

from .adversary import Adversary, make_path_adversary, run_adversary
from .anticollision import anti_collision_coloring
from .coloring import NodeColor, is_global_coloring
from .graph import Graph, GraphNode, create_empty_graph, create_node
from .greedy import minimal_greedy, neighborhood_greedy, random_coloring
from .parity import parity_border_coloring
from .partial_grid import DynamicLocal, PartialGrid, apply_dynamic_step, random_adversary
from .sealing import border_component_coloring

logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parent

ALGORITHMS = {
    "greedy": neighborhood_greedy,
    "minimal": minimal_greedy,
    "random": random_coloring,
    "parityaware": parity_border_coloring,
    "tunneling": border_component_coloring,
    "walls": anti_collision_coloring,
}


@dataclass
class SimulationConfig:
    rows: int = 30
    columns: int = 15
    algorithm: str = "greedy"
    radius: int = 2            # 每一步允许改动的图距离
    seed: Optional[int] = 0
    steps: Optional[int] = None  # None 表示填满整个网格
    save_path: Optional[str] = str(ROOT / "outputs" / "grid_coloring.png")


@dataclass
class SimulationResult:
    grid: PartialGrid[NodeColor]
    steps: int
    conflicts: int
    colors_used: int
    valid: bool
    locality_violations: int = 0


def get_algorithm(name: str, radius: int) -> DynamicLocal:
    try:
        factory = ALGORITHMS[name]
    except KeyError:
        raise ValueError(f"Unknown algorithm {name!r}, expected one of {sorted(ALGORITHMS)}") from None
    return factory(radius)


def count_conflicts(grid: PartialGrid[NodeColor]) -> int:
    """Number of adjacent cell pairs sharing a color."""

    arr = grid.to_array()
    horizontal = (arr[:, 1:] == arr[:, :-1]) & ~np.isnan(arr[:, 1:])
    vertical = (arr[1:, :] == arr[:-1, :]) & ~np.isnan(arr[1:, :])
    return int(horizontal.sum() + vertical.sum())


def run_simulation(config: SimulationConfig) -> SimulationResult:
    grid: PartialGrid[NodeColor] = PartialGrid(config.rows, config.columns)
    algo = get_algorithm(config.algorithm, config.radius)
    adversary = random_adversary(np.random.default_rng(config.seed))

    total = config.rows * config.columns
    steps = total if config.steps is None else min(config.steps, total)
    violations = 0
    for t in range(steps):
        i, j = adversary(grid)
        violations += len(grid.dynamic_algorithm_step(i, j, algo))
        logger.debug("step %d/%d: colored (%d, %d) with %d", t + 1, steps, i, j, grid.get(i, j))

    graph, _ = grid.get_graph()
    arr = grid.to_array()
    colors_used = int(np.unique(arr[~np.isnan(arr)]).size)
    return SimulationResult(
        grid=grid,
        steps=steps,
        conflicts=count_conflicts(grid),
        colors_used=colors_used,
        valid=is_global_coloring(graph),
        locality_violations=violations,
    )


def build_adversary_graph(adversary: Adversary, algo: DynamicLocal) -> Tuple[Graph, int]:
    """Let `adversary` grow a graph while `algo` keeps it colored.

    新节点出现时先由 algo 染色；每条新边若造成冲突，就以其一端为变化点重新染色。
    返回图和累计的局部性违规次数。
    """

    graph = create_empty_graph()
    violations = 0

    def new_node(graph: Graph) -> GraphNode:
        nonlocal violations
        node = create_node(graph)
        violations += len(apply_dynamic_step(graph, node, algo))
        return node

    def on_edge(graph: Graph, edge: Tuple[GraphNode, GraphNode]) -> None:
        nonlocal violations
        a, b = edge
        if a.data != b.data:
            return
        b.data = None
        violations += len(apply_dynamic_step(graph, b, algo))

    edges = run_adversary(adversary, graph, new_node, on_edge)
    logger.debug("adversary inserted %d edges on %d nodes", edges, graph.n)
    return graph, violations


def plot_colored_grid(
    grid: PartialGrid[NodeColor],
    title: str,
    save_path: Optional[str] = None,
):
    arr = grid.to_array()
    masked = np.ma.masked_invalid(arr)

    fig, ax = plt.subplots(figsize=(4, 4 * grid.rows / max(grid.columns, 1)))
    cmap = plt.get_cmap("tab10").copy()  # 最多 10 种明显不同的颜色
    cmap.set_bad("white")
    ax.imshow(masked, cmap=cmap, vmin=0, vmax=9, interpolation="nearest")

    # 与邻居同色的格子用红框标出
    for i in range(grid.rows):
        for j in range(grid.columns):
            value = grid.get(i, j)
            if value is None:
                continue
            for di, dj in ((-1, 0), (1, 0), (0, -1), (0, 1)):
                i2, j2 = i + di, j + dj
                if 0 <= i2 < grid.rows and 0 <= j2 < grid.columns and grid.get(i2, j2) == value:
                    ax.add_patch(Rectangle((j - 0.5, i - 0.5), 1, 1, fill=False, edgecolor="red", linewidth=1.5))
                    break

    ax.set_title(title, fontsize=8)
    ax.set_xticks([])
    ax.set_yticks([])
    fig.tight_layout()

    if save_path is not None:
        os.makedirs(os.path.dirname(save_path) or ".", exist_ok=True)
        fig.savefig(save_path, dpi=200)
        logger.info("Saved figure to %s", save_path)
    else:
        plt.show()

    plt.close(fig)


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(levelname)s | %(message)s",
    )

    # ========== 全局参数 ==========
    config = SimulationConfig(
        rows=30,
        columns=15,
        algorithm="parityaware",
        radius=2,
        seed=0,
    )

    result = run_simulation(config)
    logger.info(
        "%s (radius %d): %d steps, %d colors, %d conflicts, valid=%s",
        config.algorithm, config.radius, result.steps, result.colors_used,
        result.conflicts, result.valid,
    )

    title = (
        f"{config.algorithm}, r={config.radius}, "
        f"colors={result.colors_used}, conflicts={result.conflicts}"
    )
    plot_colored_grid(result.grid, title=title, save_path=config.save_path)

    graph, violations = build_adversary_graph(make_path_adversary(), get_algorithm(config.algorithm, config.radius))
    logger.info(
        "path adversary: %d nodes, valid=%s, %d locality violations",
        graph.n, is_global_coloring(graph), violations,
    )


if __name__ == "__main__":
    main()
