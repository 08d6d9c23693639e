"""Tests for graph construction and the SpatialGraph container."""

import pytest


class TestSpatialGraph:
    """Tests for SpatialGraph validation and queries."""

    def test_queries(self):
        """Neighbour, incident-edge and length queries."""
        from topometric.graph.spatial_graph import SpatialGraph, make_edge
        from topometric.models import Node

        nodes = [Node(node_id=0, x=0, y=0), Node(node_id=1, x=10, y=0), Node(node_id=2, x=10, y=10)]
        edges = [
            make_edge(0, 0, 1, [(0, 0), (10, 0)]),
            make_edge(1, 1, 2, [(10, 0), (10, 10)]),
            make_edge(2, 1, 2, [(10, 0), (12, 5), (10, 10)]),
        ]
        graph = SpatialGraph(nodes, edges)

        assert graph.num_nodes == 3
        assert graph.num_edges == 3
        assert graph.incident_edges(1) == (0, 1, 2)
        assert graph.neighbors(1) == [0, 2]
        assert graph.other_end(0, 0) == 1
        assert graph.connected_pairs() == {(0, 1), (1, 2)}
        assert graph.total_length() == pytest.approx(20 + 2 * 29 ** 0.5)

    def test_self_loop_listed_once(self, square_loop):
        """A self-loop is listed once at its node."""
        from topometric.graph.builder import build_graph

        graph = build_graph(square_loop)

        assert graph.num_nodes == 1
        assert graph.incident_edges(0) == (0,)
        assert graph.neighbors(0) == [0]
        assert graph.edge(0).is_self_loop

    def test_containers_read_only(self, straight_road):
        """Node and edge containers cannot be modified."""
        from topometric.graph.builder import build_graph

        graph = build_graph(straight_road)

        with pytest.raises(TypeError):
            graph.nodes[5] = graph.node(0)

    def test_dangling_edge_rejected(self):
        """An edge referencing an unknown node is rejected."""
        from topometric.errors import InvalidGeometryError
        from topometric.graph.spatial_graph import SpatialGraph, make_edge
        from topometric.models import Node

        nodes = [Node(node_id=0, x=0, y=0)]
        with pytest.raises(InvalidGeometryError, match="non-existent node 1"):
            SpatialGraph(nodes, [make_edge(0, 0, 1, [(0, 0), (1, 0)])])

    def test_zero_length_edge_rejected(self):
        """A zero-length edge is rejected."""
        from topometric.errors import InvalidGeometryError
        from topometric.graph.spatial_graph import SpatialGraph, make_edge
        from topometric.models import Node

        nodes = [Node(node_id=0, x=0, y=0)]
        with pytest.raises(InvalidGeometryError, match="zero length"):
            SpatialGraph(nodes, [make_edge(0, 0, 0, [(0, 0), (0, 0)])])

    def test_edge_must_touch_its_nodes(self):
        """Edge ends must lie on their nodes."""
        from topometric.errors import InvalidGeometryError
        from topometric.graph.spatial_graph import SpatialGraph, make_edge
        from topometric.models import Node

        nodes = [Node(node_id=0, x=0, y=0), Node(node_id=1, x=10, y=0)]
        with pytest.raises(InvalidGeometryError, match="does not end"):
            SpatialGraph(nodes, [make_edge(0, 0, 1, [(0, 0), (9, 0)])])

    def test_empty_graph(self):
        """An empty graph is valid."""
        from topometric.graph.spatial_graph import SpatialGraph

        graph = SpatialGraph()

        assert graph.num_nodes == 0
        assert graph.total_length() == 0


class TestGraphBuilder:
    """Tests for build_graph."""

    def test_shared_endpoints_share_nodes(self, cross_roads):
        """Lines meeting at a point share one node."""
        from topometric.graph.builder import build_graph

        graph = build_graph(cross_roads)

        assert graph.num_nodes == 5
        assert graph.num_edges == 4
        centre = graph.edge(0).end_node
        assert len(graph.incident_edges(centre)) == 4

    def test_edge_ids_follow_input_order(self, cross_roads):
        """Edge ids follow the order of the input lines."""
        from topometric.graph.builder import build_graph

        graph = build_graph(cross_roads)

        for edge_id, line in enumerate(cross_roads):
            assert graph.edge(edge_id).coords[0] == line[0]

    def test_near_endpoints_snap_within_tolerance(self):
        """Endpoints within tolerance merge onto the first node."""
        from topometric.graph.builder import build_graph

        lines = [[(0, 0), (10, 0)], [(10.0000004, 0), (20, 0)]]
        graph = build_graph(lines, coincidence_tolerance=1e-6)

        assert graph.num_nodes == 3
        assert graph.edge(1).coords[0] == (10.0, 0.0)

    def test_distant_endpoints_stay_apart(self):
        """Endpoints beyond tolerance get their own nodes."""
        from topometric.graph.builder import build_graph

        lines = [[(0, 0), (10, 0)], [(10.01, 0), (20, 0)]]
        graph = build_graph(lines, coincidence_tolerance=1e-6)

        assert graph.num_nodes == 4

    def test_snapping_across_grid_cells(self):
        """Coordinates in neighbouring grid cells still merge."""
        from topometric.graph.builder import NodeIndexer

        indexer = NodeIndexer(tolerance=1.0)
        a = indexer.get_index_for_coordinate((0.99, 0.0))
        b = indexer.get_index_for_coordinate((1.01, 0.0))

        assert a == b
        assert indexer.get_index_for_coordinate((3.0, 0.0)) != a

    def test_rebuild_is_identical(self, cross_roads):
        """Building twice gives the same graph."""
        from topometric.graph.builder import build_graph

        first = build_graph(cross_roads)
        second = build_graph(cross_roads)

        assert first.edge_geometries() == second.edge_geometries()
        assert dict(first.nodes) == dict(second.nodes)

    def test_single_coordinate_feature_rejected(self):
        """A one-point feature is rejected and named."""
        from topometric.errors import InvalidGeometryError
        from topometric.graph.builder import build_graph

        with pytest.raises(InvalidGeometryError, match="Feature 1"):
            build_graph([[(0, 0), (1, 0)], [(5, 5)]])

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_coordinate_rejected(self, bad):
        """NaN and infinite coordinates are invalid geometry naming the feature."""
        from topometric.errors import InvalidGeometryError
        from topometric.graph.builder import build_graph

        with pytest.raises(InvalidGeometryError, match="Feature 1 has non-finite"):
            build_graph([[(0, 0), (1, 0)], [(0, 0), (bad, 5), (10, 0)]])

    def test_non_finite_length_rejected(self):
        """A hand-built edge with an infinite length is rejected by the graph."""
        from topometric.errors import InvalidGeometryError
        from topometric.graph.spatial_graph import SpatialGraph
        from topometric.models import Edge, Node

        nodes = [Node(node_id=0, x=0.0, y=0.0), Node(node_id=1, x=10.0, y=0.0)]
        edge = Edge(edge_id=0, start_node=0, end_node=1, coords=((0.0, 0.0), (10.0, 0.0)), length=float("inf"))

        with pytest.raises(InvalidGeometryError, match="non-finite"):
            SpatialGraph(nodes, [edge])

    def test_repeated_coordinate_feature_rejected(self):
        """A feature of one repeated point is rejected."""
        from topometric.errors import InvalidGeometryError
        from topometric.graph.builder import build_graph

        with pytest.raises(InvalidGeometryError):
            build_graph([[(2, 2), (2, 2), (2, 2)]])

    def test_empty_input(self):
        """No lines give an empty graph."""
        from topometric.graph.builder import build_graph

        graph = build_graph([])

        assert graph.num_edges == 0

    def test_non_positive_tolerance_rejected(self):
        """The coincidence tolerance must be positive."""
        from topometric.errors import InvalidGeometryError
        from topometric.graph.builder import build_graph

        with pytest.raises(InvalidGeometryError):
            build_graph([[(0, 0), (1, 0)]], coincidence_tolerance=0)
