"""
Point-level view of a resampled graph.

Every resampled point becomes a station. Graph nodes map to one shared station
("n", node_id); interior points of edge e map to ("e", e, index). Consecutive
stations along an edge are linked, weighted by their arc-length gap. A KD-tree
over station positions serves nearest and radius queries.
"""

import networkx as nx
import numpy as np
from scipy.spatial import cKDTree

from topometric.tracer import get_tracer, trace


def node_station(node_id):
    return ("n", node_id)


def edge_station(edge_id, index):
    return ("e", edge_id, index)


class StationGraph:
    """
    Undirected multigraph of resampled points with spatial lookups.

    Read-only after construction, so one instance can be shared by every
    seed evaluation.
    """

    def __init__(self, graph, stations_by_edge):
        self.graph = graph
        self._stations_by_edge = stations_by_edge

        keys = list(graph.nodes)
        self._keys = keys
        if keys:
            coords = np.array([(graph.nodes[k]["x"], graph.nodes[k]["y"]) for k in keys], dtype=float)
            self._tree = cKDTree(coords)
        else:
            self._tree = None

    @classmethod
    def from_resampled(cls, spatial_graph, points_by_edge):
        """Build the station graph from a resampled SpatialGraph and its points."""
        graph = nx.MultiGraph()

        for node_id, node in spatial_graph.nodes.items():
            graph.add_node(node_station(node_id), x=node.x, y=node.y)

        stations_by_edge = {}
        for edge_id in sorted(points_by_edge):
            edge = spatial_graph.edge(edge_id)
            points = points_by_edge[edge_id]
            last = len(points) - 1

            keys = []
            for point in points:
                if point.index == 0:
                    key = node_station(edge.start_node)
                elif point.index == last:
                    key = node_station(edge.end_node)
                else:
                    key = edge_station(edge_id, point.index)
                    graph.add_node(key, x=point.x, y=point.y)
                keys.append(key)

            for i in range(last):
                gap = points[i + 1].offset - points[i].offset
                graph.add_edge(keys[i], keys[i + 1], length=gap, edge_id=edge_id)

            stations_by_edge[edge_id] = tuple(zip(keys, points))

        return cls(graph, stations_by_edge)

    @property
    def num_nodes(self):
        return self.graph.number_of_nodes()

    @property
    def num_edges(self):
        return self.graph.number_of_edges()

    @property
    def is_empty(self):
        return self._tree is None

    def position(self, key):
        data = self.graph.nodes[key]
        return (data["x"], data["y"])

    def neighbors(self, key):
        """Yield (neighbor_key, link_length) for every link at a station."""
        for neighbor, links in self.graph[key].items():
            for data in links.values():
                yield neighbor, data["length"]

    def links(self, key):
        """
        Yield (neighbor_key, link_length, link_id) for every link at a station.

        link_id is the same from both ends of a link and tells parallel links
        apart.
        """
        for neighbor, links in self.graph[key].items():
            a, b = sorted((key, neighbor))
            for link_key, data in links.items():
                yield neighbor, data["length"], (a, b, link_key)

    def stations_along_edge(self, edge_id):
        """(station_key, ResampledPoint) pairs in order along an edge."""
        return self._stations_by_edge[edge_id]

    def edge_ids(self):
        return sorted(self._stations_by_edge)

    def total_length(self):
        return float(sum(data["length"] for _, _, data in self.graph.edges(data=True)))

    def nearest(self, xy, max_distance):
        """Closest station within max_distance (inclusive) as (key, dist), or None."""
        if self._tree is None:
            return None
        dist, idx = self._tree.query(xy, k=1)
        if not np.isfinite(dist) or dist > max_distance:
            return None
        return self._keys[int(idx)], float(dist)

    def within(self, xy, radius):
        """Stations within radius (inclusive) as [(key, dist), ...], closest first."""
        if self._tree is None:
            return []
        # Pad the query so points exactly on the radius are not lost to rounding
        idxs = self._tree.query_ball_point(xy, r=radius + 1e-9)
        hits = []
        for idx in idxs:
            key = self._keys[idx]
            dist = float(np.hypot(*(np.asarray(self.position(key)) - np.asarray(xy))))
            if dist <= radius:
                hits.append((key, dist))
        hits.sort(key=lambda hit: (hit[1], hit[0]))
        return hits

    def __repr__(self):
        return f"StationGraph(nodes={self.num_nodes}, edges={self.num_edges})"


@trace(label="build_station_graph")
def build_station_graph(spatial_graph, points_by_edge):
    """Build a StationGraph and log its size."""
    tracer = get_tracer()
    stations = StationGraph.from_resampled(spatial_graph, points_by_edge)
    tracer.event(f"Stations: nodes={stations.num_nodes}, links={stations.num_edges}")
    return stations
