"""
Uniform-spacing resampling of graph edges.

Each edge polyline is replaced by points exactly `spacing` apart along its arc
length, followed by the true end point. Node ids and edge ids are unchanged,
so the resampled graph has the same topology as the input.
"""

import numpy as np

from topometric.errors import InvalidGeometryError
from topometric.graph.spatial_graph import make_edge
from topometric.models import ResampledPoint
from topometric.tracer import get_tracer, trace


# Offsets closer than this fraction of the edge length to its end collapse
# onto the end point.
END_MERGE_FRACTION = 1e-9


def resample_polyline(polyline, spacing):
    """
    Resample a polyline at a fixed arc-length spacing.

    Returns (points, offsets): points at offsets 0, spacing, 2*spacing, ...
    strictly below the total length, then the exact final coordinate. The
    last gap is in (0, spacing].
    """
    if spacing <= 0:
        raise InvalidGeometryError(f"Resampling distance must be positive, got {spacing}")
    if len(polyline) < 2:
        raise InvalidGeometryError("Cannot resample a polyline with fewer than two points")

    points = np.asarray(polyline, dtype=float)

    # Compute cumulative arc length
    diffs = np.diff(points, axis=0)
    segment_lengths = np.linalg.norm(diffs, axis=1)
    cumulative = np.concatenate([[0.0], np.cumsum(segment_lengths)])
    total_length = cumulative[-1]

    if total_length <= 0:
        raise InvalidGeometryError("Cannot resample a zero-length polyline")

    # Uniform offsets, excluding anything that would coincide with the end
    offsets = np.arange(0.0, total_length, spacing)
    offsets = offsets[offsets < total_length * (1.0 - END_MERGE_FRACTION)]

    # Interpolate
    result = []
    for s in offsets:
        idx = int(np.searchsorted(cumulative, s, side="right")) - 1
        idx = max(0, min(idx, len(points) - 2))
        seg_len = segment_lengths[idx]
        t = (s - cumulative[idx]) / seg_len if seg_len > 0 else 0.0
        point = points[idx] + t * diffs[idx]
        result.append((float(point[0]), float(point[1])))

    # First and last points are the original coordinates, not interpolated ones
    result[0] = (float(points[0][0]), float(points[0][1]))
    result.append((float(points[-1][0]), float(points[-1][1])))

    return result, [float(s) for s in offsets] + [float(total_length)]


@trace(label="resample_graph")
def resample_graph(graph, spacing):
    """
    Resample every edge of a SpatialGraph.

    Returns:
        resampled: new SpatialGraph with the same nodes and edge ids
        points: dict edge_id -> tuple of ResampledPoint, in order along the edge
    """
    tracer = get_tracer()

    if spacing <= 0:
        raise InvalidGeometryError(f"Resampling distance must be positive, got {spacing}")

    new_edges = []
    points_by_edge = {}
    total_points = 0

    for edge_id in sorted(graph.edges):
        edge = graph.edge(edge_id)
        coords, offsets = resample_polyline(edge.coords, spacing)

        new_edges.append(make_edge(edge_id, edge.start_node, edge.end_node, coords))
        points_by_edge[edge_id] = tuple(
            ResampledPoint(edge_id=edge_id, index=i, offset=offset, x=xy[0], y=xy[1])
            for i, (xy, offset) in enumerate(zip(coords, offsets))
        )
        total_points += len(coords)

    resampled = graph.with_edges(new_edges)
    tracer.event(f"Resampled {graph.num_edges} edges at {spacing} -> {total_points} points")

    return resampled, points_by_edge
