from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from .coloring import (
    MAX_COLORS,
    ColoringExhausted,
    NodeColor,
    RadiusLocal,
    exhaustive_coloring,
    find_coloring,
    incremental_retry,
)
from .graph import Graph, GraphNode, sorted_neighbors
from .graph_algos import collect_neighborhood

logger = logging.getLogger(__name__)


@dataclass
class NeighborhoodGreedy(RadiusLocal):
    """Recolor the whole ball with as few colors as possible."""

    def step(self, graph: Graph, point_of_change: GraphNode) -> Dict[GraphNode, NodeColor]:
        nodes = collect_neighborhood(point_of_change, self.radius)
        return exhaustive_coloring(nodes)


@dataclass
class MinimalGreedy(RadiusLocal):
    """Touch as few nodes as possible, then use as few colors as possible.

    Candidate node sets are prefixes of the BFS order around the point of
    change, so the point itself is always recolored and farther nodes are
    only touched when the closer ones cannot absorb the change.
    """

    def step(self, graph: Graph, point_of_change: GraphNode) -> Dict[GraphNode, NodeColor]:
        nodes = collect_neighborhood(point_of_change, self.radius)

        def color_prefix(size: int) -> Optional[Dict[GraphNode, NodeColor]]:
            prefix = nodes[:size]
            return incremental_retry(2, MAX_COLORS, lambda k: find_coloring(prefix, k))

        result = incremental_retry(1, len(nodes), color_prefix)
        if result is None:
            raise ColoringExhausted(f"no coloring around node {point_of_change.index}")
        logger.debug("minimal greedy recolored %d of %d nodes", len(result), len(nodes))
        return result


def _constraint_arrays(nodes: List[GraphNode]) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Edges inside `nodes` as index pairs, and fixed outside colors per index."""

    index = {node: i for i, node in enumerate(nodes)}
    us: List[int] = []
    vs: List[int] = []
    fixed_idx: List[int] = []
    fixed_colors: List[int] = []
    for i, node in enumerate(nodes):
        for neighbor in sorted_neighbors(node):
            j = index.get(neighbor)
            if j is None:
                if neighbor.data is not None:
                    fixed_idx.append(i)
                    fixed_colors.append(neighbor.data)
            elif j >= i:
                us.append(i)
                vs.append(j)
    return (
        np.array(us, dtype=np.int64),
        np.array(vs, dtype=np.int64),
        np.array(fixed_idx, dtype=np.int64),
        np.array(fixed_colors, dtype=np.int64),
    )


@dataclass
class RandomColoring(RadiusLocal):
    """Guess colors for the ball at random; fall back to MinimalGreedy.

    - 每次从 `colors` 种颜色里为邻域内所有节点随机取色；
    - 按批次 (batch) 一次采样很多次尝试，用 numpy 向量化地检查所有边；
    - 第一个局部合法的尝试被接受；预算用完则退回确定性的穷举搜索。
    """

    attempts: int = 10**6
    colors: int = 3
    seed: Optional[int] = None
    batch_size: int = 4096

    def __post_init__(self):
        super().__post_init__()
        if self.colors <= 0:
            raise ValueError("palette must contain at least one color")
        self.rng = np.random.default_rng(self.seed)

    def step(self, graph: Graph, point_of_change: GraphNode) -> Dict[GraphNode, NodeColor]:
        nodes = collect_neighborhood(point_of_change, self.radius)
        us, vs, fixed_idx, fixed_colors = _constraint_arrays(nodes)

        remaining = self.attempts
        while remaining > 0:
            batch = min(self.batch_size, remaining)
            remaining -= batch
            samples = self.rng.integers(self.colors, size=(batch, len(nodes)))
            valid = np.ones(batch, dtype=bool)
            if us.size:
                valid &= np.all(samples[:, us] != samples[:, vs], axis=1)
            if fixed_idx.size:
                valid &= np.all(samples[:, fixed_idx] != fixed_colors, axis=1)
            hits = np.flatnonzero(valid)
            if hits.size:
                row = samples[hits[0]]
                return {node: int(row[i]) for i, node in enumerate(nodes)}

        logger.info(
            "random coloring gave up after %d attempts, falling back to exhaustive search",
            self.attempts,
        )
        return MinimalGreedy(self.radius).step(graph, point_of_change)


def neighborhood_greedy(radius: int) -> NeighborhoodGreedy:
    return NeighborhoodGreedy(radius)


def minimal_greedy(radius: int) -> MinimalGreedy:
    return MinimalGreedy(radius)


def random_coloring(
    radius: int,
    attempts: int = 10**6,
    colors: int = 3,
    seed: Optional[int] = None,
) -> RandomColoring:
    return RandomColoring(radius, attempts=attempts, colors=colors, seed=seed)
