"""
Graph construction from line geometries.

Every feature becomes one edge. Its endpoints become nodes, and an endpoint
lying within the coincidence tolerance of an existing node reuses that node,
so lines sharing an endpoint share a node.
"""

import math

from topometric.errors import InvalidGeometryError
from topometric.graph.spatial_graph import (
    DEFAULT_COINCIDENCE_TOLERANCE, SpatialGraph, make_edge, planar_distance,
)
from topometric.models import Node
from topometric.tracer import get_tracer, trace


class NodeIndexer:
    """
    Assigns node ids to coordinates, merging coordinates closer than `tolerance`.

    Uses a uniform grid hash with cell size equal to the tolerance, so a
    lookup only inspects the 3x3 neighbourhood of the query cell.
    """

    def __init__(self, tolerance=DEFAULT_COINCIDENCE_TOLERANCE):
        if tolerance <= 0:
            raise InvalidGeometryError(f"Coincidence tolerance must be positive, got {tolerance}")
        self.tolerance = tolerance
        self.nodes = []
        self._grid = {}

    def _cell(self, coord):
        return (math.floor(coord[0] / self.tolerance), math.floor(coord[1] / self.tolerance))

    def lookup(self, coord):
        """Id of the closest existing node within tolerance, or None."""
        cx, cy = self._cell(coord)
        best_id = None
        best_dist = self.tolerance
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                for node_id in self._grid.get((cx + dx, cy + dy), ()):
                    dist = planar_distance(coord, self.nodes[node_id].coord)
                    if dist <= best_dist:
                        best_id, best_dist = node_id, dist
        return best_id

    def get_index_for_coordinate(self, coord):
        """Return the node id for `coord`, creating a node if none is close enough."""
        node_id = self.lookup(coord)
        if node_id is not None:
            return node_id

        node_id = len(self.nodes)
        self.nodes.append(Node(node_id=node_id, x=coord[0], y=coord[1]))
        self._grid.setdefault(self._cell(coord), []).append(node_id)
        return node_id


def clean_coords(coords):
    """Drop consecutive duplicate coordinates."""
    result = []
    for point in coords:
        xy = (float(point[0]), float(point[1]))
        if not result or xy != result[-1]:
            result.append(xy)
    return result


@trace(label="build_graph")
def build_graph(lines, coincidence_tolerance=DEFAULT_COINCIDENCE_TOLERANCE):
    """
    Build a SpatialGraph from an ordered collection of line geometries.

    Args:
        lines: iterable of coordinate sequences, each [[x, y], ...]
        coincidence_tolerance: endpoints closer than this share a node

    Returns:
        SpatialGraph with one edge per input line, in input order.

    Raises InvalidGeometryError for a feature with fewer than two distinct
    coordinates or zero length. Features are never dropped silently.
    """
    tracer = get_tracer()

    indexer = NodeIndexer(coincidence_tolerance)
    edges = []

    for feature_idx, line in enumerate(lines):
        coords = clean_coords(line)
        if not all(math.isfinite(v) for xy in coords for v in xy):
            raise InvalidGeometryError(f"Feature {feature_idx} has non-finite coordinates")
        if len(coords) < 2:
            raise InvalidGeometryError(
                f"Feature {feature_idx} has fewer than two distinct coordinates"
            )

        start_id = indexer.get_index_for_coordinate(coords[0])
        end_id = indexer.get_index_for_coordinate(coords[-1])

        # Pin the polyline ends onto the (possibly snapped) node positions
        coords[0] = indexer.nodes[start_id].coord
        coords[-1] = indexer.nodes[end_id].coord

        edge = make_edge(len(edges), start_id, end_id, coords)
        if edge.length <= 0.0:
            raise InvalidGeometryError(f"Feature {feature_idx} has zero length")
        edges.append(edge)

    graph = SpatialGraph(indexer.nodes, edges, coincidence_tolerance=coincidence_tolerance)
    tracer.event(f"Graph: nodes={graph.num_nodes}, edges={graph.num_edges}, length={graph.total_length():.1f}")

    return graph
