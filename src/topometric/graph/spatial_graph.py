"""
Planar road graph for topometric.

Nodes and edges live in flat id-keyed containers; adjacency is an auxiliary
index from node id to incident edge ids. Graphs are immutable once built, and
derived graphs (e.g. resampled ones) are new instances.
"""

import math
from types import MappingProxyType

import numpy as np

from topometric.errors import InvalidGeometryError
from topometric.models import Edge, Node


DEFAULT_COINCIDENCE_TOLERANCE = 1e-6


def planar_distance(a, b):
    """Euclidean distance between two (x, y) coordinates."""
    return math.hypot(b[0] - a[0], b[1] - a[1])


def polyline_length(coords):
    """Total arc length of a polyline."""
    if len(coords) < 2:
        return 0.0
    points = np.asarray(coords, dtype=float)
    return float(np.sum(np.linalg.norm(np.diff(points, axis=0), axis=1)))


def make_edge(edge_id, start_node, end_node, coords):
    """Create an Edge, computing its length from the coordinates."""
    coords = tuple((float(x), float(y)) for x, y in coords)
    return Edge(
        edge_id=edge_id,
        start_node=start_node,
        end_node=end_node,
        coords=coords,
        length=polyline_length(coords),
    )


class SpatialGraph:
    """
    Undirected multigraph of planar nodes and polyline edges.

    Parallel edges and self-loops are allowed. Construction validates that
    every edge has at least two coordinates and positive length, references
    existing nodes, and starts/ends at its nodes' positions.
    """

    def __init__(self, nodes=(), edges=(), coincidence_tolerance=DEFAULT_COINCIDENCE_TOLERANCE):
        self.coincidence_tolerance = coincidence_tolerance

        node_map = {}
        for node in nodes:
            if node.node_id in node_map:
                raise InvalidGeometryError(f"Duplicate node id {node.node_id}")
            node_map[node.node_id] = node

        edge_map = {}
        adjacency = {node_id: [] for node_id in node_map}
        for edge in edges:
            self._validate_edge(edge, node_map, edge_map)
            edge_map[edge.edge_id] = edge
            adjacency[edge.start_node].append(edge.edge_id)
            if not edge.is_self_loop:
                adjacency[edge.end_node].append(edge.edge_id)

        self._nodes = MappingProxyType(node_map)
        self._edges = MappingProxyType(edge_map)
        self._adjacency = MappingProxyType(
            {node_id: tuple(sorted(edge_ids)) for node_id, edge_ids in adjacency.items()}
        )

    def _validate_edge(self, edge, node_map, edge_map):
        if edge.edge_id in edge_map:
            raise InvalidGeometryError(f"Duplicate edge id {edge.edge_id}")
        if len(edge.coords) < 2:
            raise InvalidGeometryError(
                f"Edge {edge.edge_id} has {len(edge.coords)} coordinate(s), at least 2 required"
            )
        for node_id in (edge.start_node, edge.end_node):
            if node_id not in node_map:
                raise InvalidGeometryError(
                    f"Edge {edge.edge_id} references non-existent node {node_id}"
                )
        if not math.isfinite(edge.length):
            raise InvalidGeometryError(f"Edge {edge.edge_id} has non-finite length")
        if edge.length <= 0.0:
            raise InvalidGeometryError(f"Edge {edge.edge_id} has zero length")

        tol = self.coincidence_tolerance
        if planar_distance(edge.coords[0], node_map[edge.start_node].coord) > tol:
            raise InvalidGeometryError(
                f"Edge {edge.edge_id} does not start at node {edge.start_node}"
            )
        if planar_distance(edge.coords[-1], node_map[edge.end_node].coord) > tol:
            raise InvalidGeometryError(
                f"Edge {edge.edge_id} does not end at node {edge.end_node}"
            )

    @property
    def nodes(self):
        return self._nodes

    @property
    def edges(self):
        return self._edges

    @property
    def num_nodes(self):
        return len(self._nodes)

    @property
    def num_edges(self):
        return len(self._edges)

    def node(self, node_id):
        return self._nodes[node_id]

    def edge(self, edge_id):
        return self._edges[edge_id]

    def incident_edges(self, node_id):
        """Sorted ids of edges touching a node; a self-loop appears once."""
        return self._adjacency[node_id]

    def other_end(self, edge_id, node_id):
        """Node at the opposite end of an edge from `node_id`."""
        edge = self._edges[edge_id]
        if edge.start_node == node_id:
            return edge.end_node
        if edge.end_node == node_id:
            return edge.start_node
        raise KeyError(f"Node {node_id} is not an endpoint of edge {edge_id}")

    def neighbors(self, node_id):
        """Sorted unique ids of nodes sharing an edge with `node_id`."""
        return sorted({self.other_end(edge_id, node_id) for edge_id in self._adjacency[node_id]})

    def connected_pairs(self):
        """Set of unordered (node, node) pairs joined by at least one edge."""
        return {
            tuple(sorted((edge.start_node, edge.end_node)))
            for edge in self._edges.values()
        }

    def total_length(self):
        return sum(edge.length for edge in self._edges.values())

    def edge_geometries(self):
        """Edge coordinate sequences in edge id order."""
        return [list(self._edges[edge_id].coords) for edge_id in sorted(self._edges)]

    def with_edges(self, edges):
        """New graph with the same nodes and a replacement edge set."""
        return SpatialGraph(
            self._nodes.values(),
            edges,
            coincidence_tolerance=self.coincidence_tolerance,
        )

    def __repr__(self):
        return f"SpatialGraph(nodes={self.num_nodes}, edges={self.num_edges})"
