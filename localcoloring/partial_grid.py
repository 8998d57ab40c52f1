from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

import numpy as np

from .graph import Graph, GraphNode, create_edge, create_empty_graph, create_node
from .graph_algos import compute_distances

logger = logging.getLogger(__name__)

T = TypeVar("T")

# assigns a value to the newly revealed node only
OnlineAlgorithm = Callable[[Graph, GraphNode], Any]

# picks the next cell to reveal
GridAdversary = Callable[["PartialGrid"], Tuple[int, int]]


class DynamicLocal(ABC):
    """A local algorithm that may revise already colored nodes near a change.

    `step` returns the new value of every node it touches; all of them should
    lie within `locality(node_count)` hops of the point of change.
    """

    @abstractmethod
    def locality(self, node_count: int) -> int:
        ...

    @abstractmethod
    def step(self, graph: Graph, point_of_change: GraphNode) -> Dict[GraphNode, Any]:
        ...


def locality_violations(
    point_of_change: GraphNode,
    changes: Dict[GraphNode, Any],
    locality: int,
) -> List[GraphNode]:
    """Changed nodes farther than `locality` hops (or unreachable) from the point of change."""

    distances = compute_distances(point_of_change, changes.keys())
    return [
        node for node in changes
        if distances.get(node, float("inf")) > locality
    ]


def apply_dynamic_step(graph: Graph, point_of_change: GraphNode, algo: DynamicLocal) -> List[GraphNode]:
    """Run `algo` on a graph in place and write its changes to the node payloads.

    Locality is a soft contract: violations are logged and returned, the
    values are written regardless.
    """

    changes = algo.step(graph, point_of_change)
    locality = algo.locality(graph.n)
    violations = locality_violations(point_of_change, changes, locality)
    for node in violations:
        logger.error(
            "Dynamic algorithm violates locality %d, touching node %d", locality, node.index
        )
    for node, value in changes.items():
        node.data = value
    return violations


class PartialGrid(Generic[T]):
    """A rows x columns grid of optional values, viewed as a 4-neighbor graph.

    Only the backing array is durable. Every step builds a fresh graph from
    the non-empty cells, so no node object survives between steps. Steps
    must not run concurrently on the same grid.
    """

    def __init__(self, rows: int, columns: int):
        self.rows = rows
        self.columns = columns
        self.cells: List[List[Optional[T]]] = [[None] * columns for _ in range(rows)]

    def _check(self, i: int, j: int) -> None:
        assert 0 <= i < self.rows and 0 <= j < self.columns, f"cell ({i}, {j}) outside grid"

    def get(self, i: int, j: int) -> Optional[T]:
        self._check(i, j)
        return self.cells[i][j]

    def put(self, i: int, j: int, value: Optional[T]) -> None:
        self._check(i, j)
        self.cells[i][j] = value

    def for_each(self, callback: Callable[[int, int, Optional[T]], Any]) -> None:
        for i in range(self.rows):
            for j in range(self.columns):
                callback(i, j, self.cells[i][j])

    def for_empty(self, callback: Callable[[int, int], Any]) -> None:
        self.for_each(lambda i, j, value: callback(i, j) if value is None else None)

    def for_non_empty(self, callback: Callable[[int, int, T], Any]) -> None:
        self.for_each(lambda i, j, value: callback(i, j, value) if value is not None else None)

    def empty_cells(self) -> List[Tuple[int, int]]:
        result: List[Tuple[int, int]] = []
        self.for_empty(lambda i, j: result.append((i, j)))
        return result

    def to_array(self, empty: float = np.nan) -> np.ndarray:
        """Float array of the cells, `empty` where a cell holds nothing."""

        arr = np.full((self.rows, self.columns), empty, dtype=float)
        for i, row in enumerate(self.cells):
            for j, value in enumerate(row):
                if value is not None:
                    arr[i, j] = value
        return arr

    def get_graph(self) -> Tuple[Graph, "PartialGrid[GraphNode]"]:
        graph = create_empty_graph()
        node_grid: PartialGrid[GraphNode] = PartialGrid(self.rows, self.columns)

        def add(i: int, j: int, value: T) -> None:
            node = create_node(graph, value)
            node_grid.put(i, j, node)
            # 只连向上和向左的邻居，每条边恰好添加一次
            if i > 0:
                other = node_grid.get(i - 1, j)
                if other is not None:
                    create_edge(graph, node, other)
            if j > 0:
                other = node_grid.get(i, j - 1)
                if other is not None:
                    create_edge(graph, node, other)

        self.for_non_empty(add)
        return graph, node_grid

    def _prepare_step(self, i: int, j: int) -> Tuple[Graph, "PartialGrid[GraphNode]", GraphNode]:
        self._check(i, j)
        # placeholder so the new cell becomes a node the algorithm can traverse
        self.cells[i][j] = _PLACEHOLDER  # type: ignore[assignment]
        graph, node_grid = self.get_graph()
        point_of_change = node_grid.get(i, j)
        assert point_of_change is not None
        point_of_change.data = None
        return graph, node_grid, point_of_change

    def online_algorithm_step(self, i: int, j: int, algo: OnlineAlgorithm) -> None:
        previous = self.get(i, j)
        graph, _, point_of_change = self._prepare_step(i, j)
        try:
            new_value = algo(graph, point_of_change)
            assert new_value is not None, "online algorithm returned no value"
        except Exception:
            self.cells[i][j] = previous
            raise
        self.put(i, j, new_value)

    def dynamic_algorithm_step(self, i: int, j: int, algo: DynamicLocal) -> List[Tuple[int, int]]:
        """Run `algo` at (i, j) and write back every cell it changed.

        Returns the coordinates of changed cells that break the locality bound.
        """

        previous = self.get(i, j)
        graph, node_grid, point_of_change = self._prepare_step(i, j)
        try:
            changes = algo.step(graph, point_of_change)
            assert changes.get(point_of_change) is not None, "point of change was not assigned"
        except Exception:
            self.cells[i][j] = previous
            raise

        locality = algo.locality(graph.n)
        violations = set(locality_violations(point_of_change, changes, locality))
        touched: List[Tuple[int, int]] = []

        def write_back(i2: int, j2: int, node: GraphNode) -> None:
            if node not in changes:
                return
            if node in violations:
                logger.error(
                    "Dynamic algorithm violates locality %d around (%d, %d), touching (%d, %d)",
                    locality, i, j, i2, j2,
                )
                touched.append((i2, j2))
            self.cells[i2][j2] = changes[node]

        node_grid.for_non_empty(write_back)
        return touched


class _Placeholder:
    def __repr__(self) -> str:
        return "<being colored>"


_PLACEHOLDER: Any = _Placeholder()


def random_adversary(rng: Optional[np.random.Generator] = None) -> GridAdversary:
    """Adversary that reveals a uniformly random empty cell."""

    rng = rng if rng is not None else np.random.default_rng()

    def choose(grid: PartialGrid) -> Tuple[int, int]:
        cells = grid.empty_cells()
        assert cells, "grid is full"
        return cells[int(rng.integers(len(cells)))]

    return choose
