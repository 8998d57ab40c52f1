from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Set, Tuple


@dataclass(eq=False)
class GraphNode:
    """A vertex with a mutable payload.

    Nodes hash by identity, so two nodes carrying the same color are still
    different keys in a dict or set.
    """

    data: Any = None
    index: int = -1  # creation order inside its graph
    neighbors: Set["GraphNode"] = field(default_factory=set, repr=False)

    @property
    def degree(self) -> int:
        return len(self.neighbors)


def sorted_neighbors(node: GraphNode) -> List[GraphNode]:
    # set iteration follows object ids; sort so traversals are reproducible
    return sorted(node.neighbors, key=lambda n: n.index)


@dataclass
class Graph:
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[Tuple[GraphNode, GraphNode]] = field(default_factory=list)

    @property
    def n(self) -> int:
        return len(self.nodes)


def create_empty_graph() -> Graph:
    return Graph()


def create_node(graph: Graph, data: Any = None) -> GraphNode:
    node = GraphNode(data=data, index=len(graph.nodes))
    graph.nodes.append(node)
    return node


def create_edge(graph: Graph, a: GraphNode, b: GraphNode) -> Tuple[GraphNode, GraphNode]:
    assert b not in a.neighbors, "edge already exists"
    edge = (a, b)
    graph.edges.append(edge)
    a.neighbors.add(b)
    b.neighbors.add(a)
    return edge


def delete_edge(graph: Graph, a: GraphNode, b: GraphNode) -> None:
    graph.edges = [
        (u, v) for (u, v) in graph.edges if not ((u is a and v is b) or (u is b and v is a))
    ]
    a.neighbors.discard(b)
    b.neighbors.discard(a)


def map_subgraph_to(
    nodes: Iterable[GraphNode],
    target: Graph,
    mapping: Callable[[Any], Any],
) -> Dict[GraphNode, GraphNode]:
    """Copy `nodes` and the edges between them into `target`.

    返回旧节点到新节点的映射；节点数据经过 mapping 转换。
    """

    node_map: Dict[GraphNode, GraphNode] = {}
    for node in nodes:
        new_node = create_node(target, mapping(node.data))
        node_map[node] = new_node
        # 只有当邻居已经被复制时才连边，避免重复
        for neighbor in node.neighbors:
            other = node_map.get(neighbor)
            if other is not None and other not in new_node.neighbors:
                create_edge(target, new_node, other)
    return node_map


def map_graph(graph: Graph, mapping: Callable[[Any], Any]) -> Tuple[Graph, Dict[GraphNode, GraphNode]]:
    result = create_empty_graph()
    translation = map_subgraph_to(graph.nodes, result, mapping)
    return result, translation


def extract_subgraph(nodes: Iterable[GraphNode]) -> Tuple[Graph, Dict[GraphNode, GraphNode]]:
    """Induced subgraph on `nodes`, with payloads copied as-is."""

    subgraph = create_empty_graph()
    node_map = map_subgraph_to(nodes, subgraph, lambda data: data)
    return subgraph, node_map
