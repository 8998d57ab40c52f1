from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Collection, Dict, Mapping, Optional, Sequence

from .coloring import (
    BORDER_COLOR,
    MAX_COLORS,
    ColoringExhausted,
    NodeColor,
    RadiusLocal,
    find_coloring,
    incremental_retry,
)
from .graph import Graph, GraphNode
from .graph_algos import collect_neighborhood, compute_distances, find_distance_to

logger = logging.getLogger(__name__)


def find_border_parity(point_of_change: GraphNode, neighborhood: Collection[GraphNode]) -> Optional[int]:
    """Parity of the distance to the nearest border node outside `neighborhood`."""

    inside = set(neighborhood)
    distance = find_distance_to(
        point_of_change,
        lambda node, d: node not in inside and node.data == BORDER_COLOR,
    )
    return None if distance is None else distance % 2


def border_limit(
    distances: Mapping[GraphNode, int],
    parity: Optional[int],
    budget: int,
) -> Callable[[GraphNode, Counter], int]:
    """Allow the border color at most `budget` times, and only at the given parity."""

    def limit(node: GraphNode, histogram: Counter) -> int:
        if histogram[BORDER_COLOR] >= budget:
            return BORDER_COLOR
        if parity is not None and distances[node] % 2 != parity:
            return BORDER_COLOR
        return BORDER_COLOR + 1

    return limit


def color_with_majority_border(
    nodes: Sequence[GraphNode],
    distances: Mapping[GraphNode, int],
    parity: Optional[int],
    fixed: Optional[Mapping[GraphNode, NodeColor]] = None,
) -> Optional[Dict[GraphNode, NodeColor]]:
    """Color `nodes`, escalating from 2 colors to MAX_COLORS.

    依次尝试：
    1. 普通 2-染色；
    2. 引入边界色，但只放在与中心距离奇偶性等于 parity 的位置，边界色个数逐步放宽；
    3. 不限制位置的 3-染色（仍然尽量少用边界色）；
    4. 4..MAX_COLORS 种颜色的穷举。
    全部失败返回 None。
    """

    result = find_coloring(nodes, 2, fixed)
    if result is not None:
        return result

    if parity is not None:
        result = incremental_retry(
            1, len(nodes),
            lambda budget: find_coloring(nodes, border_limit(distances, parity, budget), fixed),
        )
        if result is not None:
            return result
        logger.debug("no border placement at parity %d, dropping the parity rule", parity)

    result = incremental_retry(
        1, len(nodes),
        lambda budget: find_coloring(nodes, border_limit(distances, None, budget), fixed),
    )
    if result is not None:
        return result

    return incremental_retry(BORDER_COLOR + 2, MAX_COLORS, lambda k: find_coloring(nodes, k, fixed))


@dataclass
class ParityBorderColoring(RadiusLocal):
    """2-color the ball, placing border nodes in phase with the nearest existing border.

    Regions grown independently agree on where walls may sit because every
    new border node has the same distance parity as the closest old one.
    """

    def step(self, graph: Graph, point_of_change: GraphNode) -> Dict[GraphNode, NodeColor]:
        nodes = collect_neighborhood(point_of_change, self.radius)
        distances = compute_distances(point_of_change, nodes)
        parity = find_border_parity(point_of_change, nodes)
        result = color_with_majority_border(nodes, distances, parity)
        if result is None:
            raise ColoringExhausted(f"no coloring around node {point_of_change.index}")
        return result


def parity_border_coloring(radius: int) -> ParityBorderColoring:
    return ParityBorderColoring(radius)
