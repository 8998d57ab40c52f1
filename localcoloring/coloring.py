from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, TypeVar, Union

from .graph import Graph, GraphNode
from .partial_grid import DynamicLocal

logger = logging.getLogger(__name__)

# color for grid coloring, a small non-negative integer
NodeColor = int

# sentinel wall color used by the parity-aware strategies
BORDER_COLOR: NodeColor = 2

# ceiling of every exhaustive fallback
MAX_COLORS = 20

# a ball of radius 6 in the grid already holds 85 cells; search is exponential in that
MAX_RADIUS = 6

ColorLimit = Union[int, Callable[[GraphNode, Counter], int]]

R = TypeVar("R")


class ColoringExhausted(RuntimeError):
    """No valid coloring exists under the allowed color ceiling."""


def is_local_coloring(node: GraphNode) -> bool:
    # a self-loop makes the node its own neighbor and therefore never valid
    return all(neighbor.data != node.data for neighbor in node.neighbors)


def is_global_coloring(graph: Graph) -> bool:
    return all(is_local_coloring(node) for node in graph.nodes)


def invalid_nodes(nodes: Iterable[GraphNode]) -> List[GraphNode]:
    return [node for node in nodes if not is_local_coloring(node)]


def neighbor_colors(node: GraphNode) -> set:
    return {neighbor.data for neighbor in node.neighbors if neighbor.data is not None}


def conflicting_changes(changes: Mapping[GraphNode, NodeColor]) -> List[GraphNode]:
    """Changed nodes that would clash with a neighbor once `changes` are applied."""

    result = []
    for node, color in changes.items():
        for neighbor in node.neighbors:
            value = changes[neighbor] if neighbor in changes else neighbor.data
            if value == color:
                result.append(node)
                break
    return result


def greedy_coloring(graph: Graph, point_of_change: GraphNode) -> NodeColor:
    """Online algorithm: the smallest color not used by any neighbor."""

    used = neighbor_colors(point_of_change)
    c = 0
    while c in used:
        c += 1
    point_of_change.data = c
    return c


def _fits(
    node: GraphNode,
    color: NodeColor,
    assignment: Mapping[GraphNode, NodeColor],
    hidden: set,
    fixed: Mapping[GraphNode, NodeColor],
) -> bool:
    for neighbor in node.neighbors:
        if neighbor in hidden:
            continue
        if neighbor in assignment:
            value = assignment[neighbor]
        else:
            value = fixed.get(neighbor, neighbor.data)
        if value == color:
            return False
    return True


def find_coloring(
    nodes: Sequence[GraphNode],
    color_limit: ColorLimit,
    fixed: Optional[Mapping[GraphNode, NodeColor]] = None,
) -> Optional[Dict[GraphNode, NodeColor]]:
    """Assign colors to `nodes` in order by iterative backtracking.

    - 列表中尚未赋值的节点视为“隐藏”（尚未出现），不参与冲突检查；
    - 列表外的节点保持原有颜色（或 `fixed` 中给出的颜色），作为约束；
    - color_limit 可以是整数，也可以是 (node, 已用颜色直方图) -> 上限 的函数，
      用来限制某种颜色（例如边界色）的使用次数。

    用显式栈代替递归，栈的每一层保存当前尝试的颜色和进入该层前的颜色直方图。
    返回第一个找到的合法赋值；搜索空间耗尽则返回 None。结果是确定的。
    """

    nodes = list(nodes)
    fixed = fixed if fixed is not None else {}
    if not nodes:
        return {}

    if callable(color_limit):
        limit_of = color_limit
    else:
        def limit_of(node: GraphNode, histogram: Counter) -> int:
            return color_limit

    hidden = set(nodes)
    assignment: Dict[GraphNode, NodeColor] = {}
    tried: List[int] = [-1]
    histograms: List[Counter] = [Counter()]

    while tried:
        index = len(tried) - 1
        node = nodes[index]
        histogram = histograms[index]
        color = tried[index] + 1
        tried[index] = color

        if color < limit_of(node, histogram):
            assignment[node] = color
            hidden.discard(node)
            if _fits(node, color, assignment, hidden, fixed):
                if index + 1 == len(nodes):
                    return dict(assignment)
                # extend
                extended = histogram.copy()
                extended[color] += 1
                tried.append(-1)
                histograms.append(extended)
        else:
            # backtrack
            assignment.pop(node, None)
            hidden.add(node)
            tried.pop()
            histograms.pop()
    return None


def incremental_retry(start: int, limit: int, f: Callable[[int], Optional[R]]) -> Optional[R]:
    """Call f(start), f(start + 1), ... up to f(limit) until one is not None."""

    for k in range(start, limit + 1):
        result = f(k)
        if result is not None:
            return result
    return None


def exhaustive_coloring(
    nodes: Sequence[GraphNode],
    fixed: Optional[Mapping[GraphNode, NodeColor]] = None,
    start: int = 2,
) -> Dict[GraphNode, NodeColor]:
    """Fewest-colors coloring of `nodes` up to MAX_COLORS, else ColoringExhausted."""

    result = incremental_retry(start, MAX_COLORS, lambda k: find_coloring(nodes, k, fixed))
    if result is None:
        raise ColoringExhausted(f"no coloring of {len(nodes)} nodes with {MAX_COLORS} colors")
    return result


@dataclass
class RadiusLocal(DynamicLocal):
    """Base for strategies that only recolor the ball of `radius` around the change."""

    radius: int = 1

    def __post_init__(self):
        if not 0 <= self.radius <= MAX_RADIUS:
            raise ValueError(f"radius must be in [0, {MAX_RADIUS}], got {self.radius}")

    def locality(self, node_count: int) -> int:
        return self.radius
