from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, NamedTuple, Sequence

import networkx as nx

from .coloring import NodeColor, RadiusLocal
from .components import (
    MIN_COMPONENT_SIZE,
    ComponentInfo,
    adjacent_components,
    can_take,
    find_seal_ring,
    finish_neighborhood,
    propagate_forced,
)
from .graph import Graph, GraphNode, sorted_neighbors
from .graph_algos import collect_neighborhood, compute_distances
from .parity import find_border_parity

logger = logging.getLogger(__name__)

# containment root standing for the point of change
ROOT = -1


class BorderRoles(NamedTuple):
    """Which color plays which part of a wall at a given containment depth."""

    inside_border: NodeColor
    outside_border: NodeColor
    border: NodeColor

    @classmethod
    def at(cls, depth: int) -> "BorderRoles":
        return cls(depth % 3, (depth + 1) % 3, (depth + 2) % 3)


def containment_graph(
    components: Sequence[ComponentInfo],
    distances: Mapping[GraphNode, int],
) -> nx.DiGraph:
    """DAG over components: A -> B when A lies between the point of change and B.

    两个分量共享一个边界节点、且 A 比 B 更靠近中心时连边 A -> B；
    没有前驱的分量挂在 ROOT 下。边总是指向更远的分量，因此无环。
    """

    dag = nx.DiGraph()
    dag.add_node(ROOT)
    nearest = {c.id: min(distances[n] for n in c.inside) for c in components}
    sharing: Dict[GraphNode, List[int]] = {}
    for c in components:
        dag.add_node(c.id)
        for wall in c.border:
            sharing.setdefault(wall, []).append(c.id)

    for ids in sharing.values():
        for a in ids:
            for b in ids:
                if nearest[a] < nearest[b]:
                    dag.add_edge(a, b)

    for c in components:
        if dag.in_degree(c.id) == 0:
            dag.add_edge(ROOT, c.id)

    assert nx.is_directed_acyclic_graph(dag)
    return dag


def heights_and_depths(dag: nx.DiGraph):
    """Longest path down to a leaf, and longest path from ROOT, for every node."""

    order = list(nx.lexicographical_topological_sort(dag))
    depth = {}
    for node in order:
        depth[node] = max((depth[p] + 1 for p in dag.predecessors(node)), default=0)
    height = {}
    for node in reversed(order):
        height[node] = max((height[s] + 1 for s in dag.successors(node)), default=0)
    return order, height, depth


@dataclass
class AntiCollisionColoring(RadiusLocal):
    """Build separating walls before regions of opposite parity can collide.

    - 对邻域周围的分量建立包含关系 DAG，记录每个分量的高度和深度；
    - 高度（其次是大小）最大的已分类分量保留自己的奇偶性；
    - 奇偶性相反的分量沿 DAG 从内向外依次建墙，墙的颜色按深度轮换
      (inside_border / outside_border / border)；
    - 最后传播强制颜色，并用穷举搜索填满剩余节点。
    """

    min_component_size: int = MIN_COMPONENT_SIZE

    def step(self, graph: Graph, point_of_change: GraphNode) -> Dict[GraphNode, NodeColor]:
        nodes = collect_neighborhood(point_of_change, self.radius)
        inside = set(nodes)
        distances = compute_distances(point_of_change, nodes)
        components = adjacent_components(point_of_change, nodes, distances, self.min_component_size)
        classified = [c for c in components if c.parity is not None]

        assigned: Dict[GraphNode, NodeColor] = {}
        if not classified:
            parity = find_border_parity(point_of_change, nodes)
            return finish_neighborhood(point_of_change, nodes, distances, parity, assigned)

        dag = containment_graph(components, distances)
        order, height, depth = heights_and_depths(dag)
        keeper = max(classified, key=lambda c: (height[c.id], c.size, -c.id))
        parity = keeper.parity
        position = {node: i for i, node in enumerate(order)}
        builders = sorted(
            (c for c in classified if c.parity != parity),
            key=lambda c: position[c.id],
        )

        for component in builders:
            roles = BorderRoles.at(depth[component.id] - 1)
            ring = find_seal_ring(
                component, nodes, distances, component.parity, assigned, wall_color=roles.border
            )
            if not ring:
                logger.warning(
                    "no wall between component %d and keeper %d inside radius %d",
                    component.id, keeper.id, self.radius,
                )
                continue
            logger.debug(
                "component %d builds a wall of %d nodes in color %d",
                component.id, len(ring), roles.border,
            )
            for node in ring:
                assigned[node] = roles.border
            members = set(component.nodes)
            for node in ring:
                for neighbor in sorted_neighbors(node):
                    if neighbor not in inside or neighbor in assigned:
                        continue
                    color = roles.inside_border if neighbor in members else roles.outside_border
                    if can_take(neighbor, color, assigned, inside):
                        assigned[neighbor] = color

        if assigned:
            propagate_forced(nodes, assigned)
        return finish_neighborhood(point_of_change, nodes, distances, parity, assigned)


def anti_collision_coloring(radius: int, min_component_size: int = MIN_COMPONENT_SIZE) -> AntiCollisionColoring:
    return AntiCollisionColoring(radius, min_component_size=min_component_size)
