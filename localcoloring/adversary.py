from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, Union

from .graph import Graph, GraphNode, create_edge

EdgeCommand = Tuple[int, int]
EXIT = "exit"


class Adversary(ABC):
    """Builds a graph edge by edge, possibly reacting to the coloring so far."""

    @abstractmethod
    def step(self, graph: Graph) -> Union[EdgeCommand, str]:
        """Next edge to insert, or EXIT."""

    @abstractmethod
    def clone(self) -> "Adversary":
        ...


@dataclass
class CommandTree:
    """Basic block of an adversary program.

    The build commands run first; then, unless this block exits, `decide`
    looks at the colored graph and picks the branch to run next.
    """

    commands: Callable[[Graph], List[EdgeCommand]]
    decide: Optional[Callable[[Graph], bool]] = None
    true_branch: Optional["CommandTree"] = None
    false_branch: Optional["CommandTree"] = None

    @property
    def exit(self) -> bool:
        return self.decide is None


class CommandTreeAdversary(Adversary):
    def __init__(self, tree: CommandTree):
        self.current_tree = tree
        self.current_commands: Optional[List[EdgeCommand]] = None

    def step(self, graph: Graph) -> Union[EdgeCommand, str]:
        if self.current_commands is None:
            self.current_commands = list(self.current_tree.commands(graph))
        while not self.current_commands:
            tree = self.current_tree
            if tree.exit:
                return EXIT
            # end of basic block, take a branch
            branch = tree.true_branch if tree.decide(graph) else tree.false_branch
            assert branch is not None, "decision without branch"
            self.current_tree = branch
            self.current_commands = list(branch.commands(graph))

        cmd = self.current_commands.pop(0)
        return cmd

    def clone(self) -> "CommandTreeAdversary":
        result = CommandTreeAdversary(self.current_tree)
        if self.current_commands is not None:
            result.current_commands = list(self.current_commands)
        return result


def execute_edge_command(
    cmd: EdgeCommand,
    graph: Graph,
    new_node: Callable[[Graph], GraphNode],
):
    """Insert the edge (i, j), creating nodes up to max(i, j) first."""

    i, j = cmd
    while graph.n <= max(i, j):
        new_node(graph)
    return create_edge(graph, graph.nodes[i], graph.nodes[j])


def run_adversary(
    adversary: Adversary,
    graph: Graph,
    new_node: Callable[[Graph], GraphNode],
    on_edge: Optional[Callable[[Graph, Tuple[GraphNode, GraphNode]], None]] = None,
) -> int:
    """Play the adversary to the end; returns the number of edges inserted."""

    count = 0
    cmd = adversary.step(graph)
    while cmd != EXIT:
        edge = execute_edge_command(cmd, graph, new_node)
        if on_edge is not None:
            on_edge(graph, edge)
        count += 1
        cmd = adversary.step(graph)
    return count


def path_edges(nodes: Sequence[int]) -> List[EdgeCommand]:
    return [(nodes[k], nodes[k + 1]) for k in range(len(nodes) - 1)]


def make_path_adversary() -> CommandTreeAdversary:
    """Two 4-node paths, then joined into one.

    Nodes 3 and 4 are linked directly when nodes 0 and 7 share a color,
    otherwise through an extra node 8.
    """

    tree = CommandTree(
        commands=lambda graph: path_edges([0, 1, 2, 3]) + path_edges([4, 5, 6, 7]),
        decide=lambda graph: graph.nodes[0].data == graph.nodes[7].data,
        true_branch=CommandTree(commands=lambda graph: [(3, 4)]),
        false_branch=CommandTree(commands=lambda graph: [(3, 8), (8, 4)]),
    )
    return CommandTreeAdversary(tree)
