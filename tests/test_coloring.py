"""Tests for the backtracking colorer and the coloring predicates."""

import pytest

from localcoloring.coloring import (
    MAX_COLORS,
    ColoringExhausted,
    conflicting_changes,
    exhaustive_coloring,
    find_coloring,
    greedy_coloring,
    incremental_retry,
    invalid_nodes,
    is_global_coloring,
    is_local_coloring,
)
from localcoloring.graph import create_edge, create_empty_graph, create_node


def complete_graph(n, value=None):
    graph = create_empty_graph()
    nodes = [create_node(graph, value) for _ in range(n)]
    for i in range(n):
        for j in range(i + 1, n):
            create_edge(graph, nodes[i], nodes[j])
    return graph, nodes


def is_proper(assignment):
    for node, color in assignment.items():
        for neighbor in node.neighbors:
            other = assignment.get(neighbor, neighbor.data)
            if other == color:
                return False
    return True


class TestPredicates:
    def test_local_coloring(self):
        graph, (a, b) = complete_graph(2)
        a.data, b.data = 0, 1
        assert is_local_coloring(a)
        b.data = 0
        assert not is_local_coloring(a)
        assert not is_global_coloring(graph)
        assert invalid_nodes(graph.nodes) == [a, b]

    def test_self_loop_is_never_valid(self):
        graph = create_empty_graph()
        a = create_node(graph, 0)
        create_edge(graph, a, a)
        assert not is_local_coloring(a)

    def test_conflicting_changes_sees_unchanged_neighbors(self):
        graph, (a, b) = complete_graph(2)
        b.data = 1
        assert conflicting_changes({a: 1}) == [a]
        assert conflicting_changes({a: 0}) == []


class TestFindColoring:
    def test_triangle_needs_three(self):
        _, nodes = complete_graph(3)
        assert find_coloring(nodes, 2) is None
        result = find_coloring(nodes, 3)
        assert sorted(result.values()) == [0, 1, 2]
        assert is_proper(result)

    def test_first_solution_is_lexicographic(self):
        _, nodes = complete_graph(3)
        result = find_coloring(nodes, 5)
        assert [result[n] for n in nodes] == [0, 1, 2]

    def test_empty_list(self):
        assert find_coloring([], 2) == {}

    def test_outside_nodes_are_constraints(self):
        graph, (a, b, c) = complete_graph(3)
        c.data = 0
        result = find_coloring([a, b], 3)
        assert 0 not in (result[a], result[b])
        assert result[a] != result[b]

    def test_later_nodes_are_hidden(self):
        # b keeps a stale color equal to a's first choice; as a member of the
        # list it must not block a
        graph, (a, b) = complete_graph(2)
        b.data = 0
        result = find_coloring([a, b], 2)
        assert result == {a: 0, b: 1}

    def test_fixed_overrides_data(self):
        graph, (a, b) = complete_graph(2)
        b.data = 0
        result = find_coloring([a], 2, fixed={b: 1})
        assert result == {a: 0}

    def test_self_loop_has_no_coloring(self):
        graph = create_empty_graph()
        a = create_node(graph)
        create_edge(graph, a, a)
        assert find_coloring([a], MAX_COLORS) is None

    def test_histogram_limit(self):
        # color 2 may be used at most once on a 5-cycle
        graph = create_empty_graph()
        nodes = [create_node(graph) for _ in range(5)]
        for i in range(5):
            create_edge(graph, nodes[i], nodes[(i + 1) % 5])

        def limit(node, histogram):
            return 3 if histogram[2] < 1 else 2

        result = find_coloring(nodes, limit)
        assert is_proper(result)
        assert list(result.values()).count(2) == 1

    def test_zero_limit(self):
        _, nodes = complete_graph(1)
        assert find_coloring(nodes, 0) is None

    def test_deterministic(self):
        graph = create_empty_graph()
        nodes = [create_node(graph) for _ in range(8)]
        for i in range(8):
            create_edge(graph, nodes[i], nodes[(i + 3) % 8])
        first = find_coloring(nodes, 3)
        second = find_coloring(nodes, 3)
        assert first == second

    def test_long_list_does_not_recurse(self):
        graph = create_empty_graph()
        nodes = [create_node(graph) for _ in range(3000)]
        for a, b in zip(nodes, nodes[1:]):
            create_edge(graph, a, b)
        result = find_coloring(nodes, 2)
        assert [result[n] for n in nodes[:4]] == [0, 1, 0, 1]


class TestIncrementalRetry:
    def test_returns_first_success(self):
        calls = []

        def f(k):
            calls.append(k)
            return k if k >= 4 else None

        assert incremental_retry(2, 10, f) == 4
        assert calls == [2, 3, 4]

    def test_limit_inclusive(self):
        assert incremental_retry(1, 3, lambda k: k if k == 3 else None) == 3
        assert incremental_retry(1, 3, lambda k: None) is None

    def test_exhaustive_coloring_uses_fewest_colors(self):
        _, nodes = complete_graph(4)
        result = exhaustive_coloring(nodes)
        assert len(set(result.values())) == 4

    def test_exhaustive_coloring_raises(self):
        graph = create_empty_graph()
        a = create_node(graph)
        create_edge(graph, a, a)
        with pytest.raises(ColoringExhausted):
            exhaustive_coloring([a])


class TestGreedyOnline:
    def test_smallest_free_color(self):
        graph, (a, b, c) = complete_graph(3)
        a.data, b.data = 0, 2
        assert greedy_coloring(graph, c) == 1
        assert c.data == 1
