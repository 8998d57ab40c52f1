from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict

from .coloring import BORDER_COLOR, NodeColor, RadiusLocal
from .components import (
    MIN_COMPONENT_SIZE,
    adjacent_components,
    conforming_parity,
    find_seal_ring,
    finish_neighborhood,
    propagate_forced,
)
from .graph import Graph, GraphNode
from .graph_algos import collect_neighborhood, compute_distances
from .parity import find_border_parity

logger = logging.getLogger(__name__)


@dataclass
class BorderComponentColoring(RadiusLocal):
    """Seal off components whose walls are out of phase with the majority.

    Components touching the neighborhood vote on a wall parity (weighted by
    size). Each dissenting component, smallest first, gets a ring of border
    nodes inside the neighborhood at its own parity; forced colors are then
    propagated and the rest is filled by exhaustive search.
    """

    min_component_size: int = MIN_COMPONENT_SIZE

    def step(self, graph: Graph, point_of_change: GraphNode) -> Dict[GraphNode, NodeColor]:
        nodes = collect_neighborhood(point_of_change, self.radius)
        distances = compute_distances(point_of_change, nodes)
        components = adjacent_components(point_of_change, nodes, distances, self.min_component_size)
        parity = conforming_parity(components, find_border_parity(point_of_change, nodes))

        assigned: Dict[GraphNode, NodeColor] = {}
        dissenting = sorted(
            (c for c in components if c.parity is not None and c.parity != parity),
            key=lambda c: (c.size, c.id),
        )
        for component in dissenting:
            ring = find_seal_ring(component, nodes, distances, component.parity, assigned)
            if not ring:
                logger.warning(
                    "component %d (parity %d) cannot be sealed inside radius %d",
                    component.id, component.parity, self.radius,
                )
                continue
            logger.debug("sealing component %d with %d border nodes", component.id, len(ring))
            for node in ring:
                assigned[node] = BORDER_COLOR

        if assigned:
            propagate_forced(nodes, assigned)
        return finish_neighborhood(point_of_change, nodes, distances, parity, assigned)


def border_component_coloring(radius: int, min_component_size: int = MIN_COMPONENT_SIZE) -> BorderComponentColoring:
    return BorderComponentColoring(radius, min_component_size=min_component_size)
