from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple, Union

from .graph import GraphNode, sorted_neighbors


class SearchState(Enum):
    CONTINUE = 0
    TERMINATE = 1
    SKIP = 2  # don't expand neighbors


NodeOrNodes = Union[GraphNode, Iterable[GraphNode]]


def _as_list(start: NodeOrNodes) -> List[GraphNode]:
    if isinstance(start, GraphNode):
        return [start]
    return list(start)


def bfs(start: NodeOrNodes, callback: Callable[[GraphNode, int], SearchState]) -> None:
    """Breadth-first search from one or several roots.

    每个节点至多访问一次，callback 收到节点和它到最近根的距离。
    返回 TERMINATE 立即停止，返回 SKIP 则不展开该节点的邻居。
    """

    frontier = _as_list(start)
    closed: Set[GraphNode] = set()
    distance = 0
    while frontier:
        new_frontier: List[GraphNode] = []
        for node in frontier:
            if node in closed:
                continue
            closed.add(node)
            state = callback(node, distance)
            if state is SearchState.TERMINATE:
                return
            if state is SearchState.SKIP:
                continue
            for child in sorted_neighbors(node):
                if child not in closed:
                    new_frontier.append(child)
        frontier = new_frontier
        distance += 1


def collect_neighborhoods(around: NodeOrNodes, radius: float) -> List[GraphNode]:
    """All nodes within `radius` hops of `around`, in BFS order (roots first)."""

    nodes: List[GraphNode] = []

    def visit(node: GraphNode, distance: int) -> SearchState:
        if distance > radius:
            return SearchState.TERMINATE
        nodes.append(node)
        return SearchState.CONTINUE

    bfs(around, visit)
    return nodes


def collect_neighborhood(around: GraphNode, radius: float) -> List[GraphNode]:
    return collect_neighborhoods(around, radius)


def compute_distances(center: NodeOrNodes, nodes: Iterable[GraphNode]) -> Dict[GraphNode, int]:
    """Hop distance from `center` for each of `nodes` that is reachable."""

    remaining = set(nodes)
    distances: Dict[GraphNode, int] = {}

    def visit(node: GraphNode, distance: int) -> SearchState:
        if node in remaining:
            distances[node] = distance
            remaining.discard(node)
        return SearchState.CONTINUE if remaining else SearchState.TERMINATE

    if remaining:
        bfs(center, visit)
    return distances


def find_connected_components(
    seeds: Iterable[GraphNode],
    skip: Callable[[GraphNode], bool],
) -> Tuple[int, Dict[GraphNode, int]]:
    """Label the components reachable from `seeds` without entering skipped nodes."""

    components: Dict[GraphNode, int] = {}
    count = 0
    for seed in seeds:
        if seed in components or skip(seed):
            continue

        def visit(node: GraphNode, distance: int) -> SearchState:
            if skip(node):
                return SearchState.SKIP
            components[node] = count
            return SearchState.CONTINUE

        bfs(seed, visit)
        count += 1
    return count, components


def nodes_by_component(
    components: Dict[GraphNode, int],
    nodes: Iterable[GraphNode],
) -> Dict[int, List[GraphNode]]:
    result: Dict[int, List[GraphNode]] = {}
    for node in nodes:
        c = components.get(node)
        if c is not None:
            result.setdefault(c, []).append(node)
    return result


def find_distance_to(
    node: GraphNode,
    predicate: Callable[[GraphNode, int], bool],
) -> Optional[int]:
    """Distance to the closest node matching `predicate`, or None."""

    result: List[int] = []

    def visit(current: GraphNode, distance: int) -> SearchState:
        if predicate(current, distance):
            result.append(distance)
            return SearchState.TERMINATE
        return SearchState.CONTINUE

    bfs(node, visit)
    return result[0] if result else None
