"""Tests for the graph substrate and its BFS utilities."""

import pytest

from localcoloring.graph import (
    create_edge,
    create_empty_graph,
    create_node,
    delete_edge,
    extract_subgraph,
    map_graph,
)
from localcoloring.graph_algos import (
    SearchState,
    bfs,
    collect_neighborhood,
    collect_neighborhoods,
    compute_distances,
    find_connected_components,
    find_distance_to,
    nodes_by_component,
)


def make_path(graph, values):
    nodes = [create_node(graph, v) for v in values]
    for a, b in zip(nodes, nodes[1:]):
        create_edge(graph, a, b)
    return nodes


class TestGraph:
    def test_edge_is_symmetric(self):
        graph = create_empty_graph()
        a = create_node(graph, 1)
        b = create_node(graph, 2)
        create_edge(graph, a, b)
        assert b in a.neighbors and a in b.neighbors
        assert graph.edges == [(a, b)]

    def test_duplicate_edge_rejected(self):
        graph = create_empty_graph()
        a, b = make_path(graph, [0, 1])
        with pytest.raises(AssertionError):
            create_edge(graph, b, a)

    def test_self_loop(self):
        graph = create_empty_graph()
        a = create_node(graph, 0)
        create_edge(graph, a, a)
        assert a in a.neighbors
        assert a.degree == 1

    def test_delete_edge(self):
        graph = create_empty_graph()
        a, b, c = make_path(graph, [0, 1, 0])
        delete_edge(graph, c, b)
        assert c not in b.neighbors
        assert len(graph.edges) == 1

    def test_nodes_hash_by_identity(self):
        graph = create_empty_graph()
        a = create_node(graph, 0)
        b = create_node(graph, 0)
        assert len({a, b}) == 2

    def test_map_graph(self):
        graph = create_empty_graph()
        a, b, c = make_path(graph, [1, 2, 3])
        mapped, translation = map_graph(graph, lambda v: v * 10)
        assert [n.data for n in mapped.nodes] == [10, 20, 30]
        assert translation[b].neighbors == {translation[a], translation[c]}
        assert len(mapped.edges) == 2

    def test_extract_subgraph_is_induced(self):
        graph = create_empty_graph()
        a, b, c, d = make_path(graph, [0, 1, 0, 1])
        sub, node_map = extract_subgraph([b, c])
        assert sub.n == 2
        assert len(sub.edges) == 1
        assert node_map[b].neighbors == {node_map[c]}


class TestBfs:
    def test_distances_on_path(self):
        graph = create_empty_graph()
        nodes = make_path(graph, range(5))
        seen = []
        bfs(nodes[0], lambda node, d: seen.append((node.data, d)) or SearchState.CONTINUE)
        assert seen == [(0, 0), (1, 1), (2, 2), (3, 3), (4, 4)]

    def test_skip_does_not_expand(self):
        graph = create_empty_graph()
        nodes = make_path(graph, range(4))
        seen = []

        def visit(node, d):
            seen.append(node.data)
            return SearchState.SKIP if node.data == 1 else SearchState.CONTINUE

        bfs(nodes[0], visit)
        assert seen == [0, 1]

    def test_terminate(self):
        graph = create_empty_graph()
        nodes = make_path(graph, range(4))
        seen = []

        def visit(node, d):
            seen.append(node.data)
            return SearchState.TERMINATE if d == 2 else SearchState.CONTINUE

        bfs(nodes[0], visit)
        assert seen == [0, 1, 2]

    def test_collect_neighborhood_order_and_radius(self):
        graph = create_empty_graph()
        nodes = make_path(graph, range(7))
        ball = collect_neighborhood(nodes[3], 2)
        assert ball[0] is nodes[3]
        assert set(ball) == set(nodes[1:6])

    def test_collect_neighborhoods_multiple_roots(self):
        graph = create_empty_graph()
        nodes = make_path(graph, range(7))
        ball = collect_neighborhoods([nodes[0], nodes[6]], 1)
        assert set(ball) == {nodes[0], nodes[1], nodes[5], nodes[6]}

    def test_compute_distances_skips_unreachable(self):
        graph = create_empty_graph()
        nodes = make_path(graph, range(3))
        lonely = create_node(graph, 9)
        distances = compute_distances(nodes[0], [nodes[2], lonely])
        assert distances == {nodes[2]: 2}

    def test_find_distance_to(self):
        graph = create_empty_graph()
        nodes = make_path(graph, [0, 1, 0, 2, 0])
        assert find_distance_to(nodes[0], lambda n, d: n.data == 2) == 3
        assert find_distance_to(nodes[0], lambda n, d: n.data == 7) is None


class TestComponents:
    def test_components_split_by_skipped_nodes(self):
        graph = create_empty_graph()
        nodes = make_path(graph, [0, 1, 2, 1, 0])
        count, labels = find_connected_components(graph.nodes, lambda n: n.data == 2)
        assert count == 2
        assert labels[nodes[0]] == labels[nodes[1]]
        assert labels[nodes[3]] == labels[nodes[4]]
        assert labels[nodes[0]] != labels[nodes[4]]
        assert nodes[2] not in labels

    def test_nodes_by_component(self):
        graph = create_empty_graph()
        nodes = make_path(graph, [0, 1, 2, 1, 0])
        _, labels = find_connected_components(graph.nodes, lambda n: n.data == 2)
        grouped = nodes_by_component(labels, graph.nodes)
        assert sorted(len(v) for v in grouped.values()) == [2, 2]
