"""Component analysis shared by the sealing strategies.

A component is a maximal connected set of colored nodes that can be reached
without stepping on a border-colored node or on the node being colored.
Components are recomputed from scratch on every step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from .coloring import (
    BORDER_COLOR,
    NodeColor,
    conflicting_changes,
    exhaustive_coloring,
)
from .graph import GraphNode
from .graph_algos import SearchState, bfs, find_connected_components, nodes_by_component
from .parity import color_with_majority_border

logger = logging.getLogger(__name__)

# components with fewer nodes carry no reliable parity
MIN_COMPONENT_SIZE = 4

PALETTE: Tuple[NodeColor, ...] = (0, 1, 2)


@dataclass
class ComponentInfo:
    id: int
    nodes: List[GraphNode]
    inside: List[GraphNode]  # members within the neighborhood, in BFS order
    border: Set[GraphNode] = field(default_factory=set, repr=False)
    parity: Optional[int] = None

    @property
    def size(self) -> int:
        return len(self.nodes)

    @property
    def representative(self) -> GraphNode:
        return self.inside[0]


def is_separator(node: GraphNode) -> bool:
    # uncolored means "being colored right now"
    return node.data is None or node.data == BORDER_COLOR


def majority_border_parity(
    representative: GraphNode,
    members: Set[GraphNode],
    center_distance: int,
    min_size: int = MIN_COMPONENT_SIZE,
) -> Optional[int]:
    """Parity, relative to the point of change, at which the component's walls mostly sit.

    从代表节点出发在分量内部做 BFS，统计相邻边界节点的距离奇偶性，
    取多数（平票则无法判定），再加上代表节点到中心的距离换算到以中心为参考。
    """

    if len(members) < min_size:
        return None

    counts = [0, 0]

    def visit(node: GraphNode, distance: int) -> SearchState:
        if node in members:
            return SearchState.CONTINUE
        if node.data == BORDER_COLOR:
            counts[distance % 2] += 1
        return SearchState.SKIP

    bfs(representative, visit)
    even, odd = counts
    if even == odd:
        return None
    majority = 0 if even > odd else 1
    return (majority + center_distance) % 2


def adjacent_components(
    point_of_change: GraphNode,
    neighborhood: Sequence[GraphNode],
    distances: Mapping[GraphNode, int],
    min_size: int = MIN_COMPONENT_SIZE,
) -> List[ComponentInfo]:
    """Components reaching into the neighborhood, with their border parity."""

    def skip(node: GraphNode) -> bool:
        return node is point_of_change or is_separator(node)

    _, labels = find_connected_components(neighborhood, skip)
    inside_by_component = nodes_by_component(labels, neighborhood)
    members_by_component: Dict[int, List[GraphNode]] = {}
    for node, c in labels.items():
        members_by_component.setdefault(c, []).append(node)

    result: List[ComponentInfo] = []
    for c, inside in sorted(inside_by_component.items()):
        members = members_by_component[c]
        info = ComponentInfo(id=c, nodes=members, inside=inside)
        for node in members:
            info.border.update(n for n in node.neighbors if n.data == BORDER_COLOR)
        rep = info.representative
        info.parity = majority_border_parity(rep, set(members), distances[rep], min_size)
        result.append(info)
    return result


def conforming_parity(components: Iterable[ComponentInfo], fallback: Optional[int]) -> Optional[int]:
    """Size-weighted majority parity of the classified components."""

    weight = [0, 0]
    for info in components:
        if info.parity is not None:
            weight[info.parity] += info.size
    if weight[0] == weight[1]:
        return fallback
    return 0 if weight[0] > weight[1] else 1


def resolved_value(
    node: GraphNode,
    assigned: Mapping[GraphNode, NodeColor],
    inside: Set[GraphNode],
) -> Optional[NodeColor]:
    # free neighborhood nodes have no value yet
    if node in assigned:
        return assigned[node]
    if node in inside:
        return None
    return node.data


def can_take(
    node: GraphNode,
    color: NodeColor,
    assigned: Mapping[GraphNode, NodeColor],
    inside: Set[GraphNode],
) -> bool:
    return all(resolved_value(n, assigned, inside) != color for n in node.neighbors)


def find_seal_ring(
    component: ComponentInfo,
    neighborhood: Sequence[GraphNode],
    distances: Mapping[GraphNode, int],
    parity: int,
    assigned: Mapping[GraphNode, NodeColor],
    wall_color: NodeColor = BORDER_COLOR,
) -> List[GraphNode]:
    """Nodes that wall the component off from the rest of the neighborhood.

    在邻域内从分量出发做有界 BFS，第一层出现“到中心距离奇偶性 == parity”的节点即为环，
    环上节点两两不相邻，且不与已确定的同色节点相邻。
    """

    inside = set(neighborhood)
    members = set(component.nodes)
    levels: Dict[int, List[GraphNode]] = {}

    def visit(node: GraphNode, distance: int) -> SearchState:
        if node not in inside:
            return SearchState.SKIP
        if node not in members:
            levels.setdefault(distance, []).append(node)
        return SearchState.CONTINUE

    bfs(component.inside, visit)

    for distance in sorted(levels):
        chosen: List[GraphNode] = []
        ring_values = dict(assigned)
        for node in levels[distance]:
            if node in assigned or distances[node] % 2 != parity:
                continue
            if can_take(node, wall_color, ring_values, inside):
                chosen.append(node)
                ring_values[node] = wall_color
        if chosen:
            return chosen
    return []


def propagate_forced(
    neighborhood: Sequence[GraphNode],
    assigned: Dict[GraphNode, NodeColor],
    palette: Sequence[NodeColor] = PALETTE,
) -> int:
    """Fix every node left with a single admissible color; repeat until stable.

    A node seeing both 0 and 1 among its resolved neighbors must take the
    border color, and so on. Returns how many nodes were fixed.
    """

    inside = set(neighborhood)
    stuck: Set[GraphNode] = set()
    fixed_count = 0
    changed = True
    while changed:
        changed = False
        for node in neighborhood:
            if node in assigned:
                continue
            taken = {resolved_value(n, assigned, inside) for n in node.neighbors}
            options = [c for c in palette if c not in taken]
            if len(options) == 1:
                assigned[node] = options[0]
                fixed_count += 1
                changed = True
            elif not options and node not in stuck:
                stuck.add(node)
                logger.warning("node %d has no admissible color left", node.index)
    return fixed_count


def finish_neighborhood(
    point_of_change: GraphNode,
    neighborhood: Sequence[GraphNode],
    distances: Mapping[GraphNode, int],
    parity: Optional[int],
    assigned: Mapping[GraphNode, NodeColor],
) -> Dict[GraphNode, NodeColor]:
    """Fill the unresolved nodes around the fixed ones and check the outcome."""

    remaining = [node for node in neighborhood if node not in assigned]
    fill = color_with_majority_border(remaining, distances, parity, fixed=assigned)
    if fill is None:
        logger.warning(
            "seal around node %d failed, recoloring the whole neighborhood", point_of_change.index
        )
        result = exhaustive_coloring(neighborhood)
    else:
        result = dict(assigned)
        result.update(fill)

    bad = conflicting_changes(result)
    if bad:
        logger.warning("neighborhood of node %d left %d invalid nodes", point_of_change.index, len(bad))
    return result
