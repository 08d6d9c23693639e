"""
Deterministic seed placement on the ground-truth network.
"""

from topometric.errors import InvalidGeometryError
from topometric.models import SeedLocation
from topometric.tracer import get_tracer, trace


SPACING_EPS = 1e-9


@trace(label="sample_seeds")
def sample_seeds(stations, spacing):
    """
    Choose evenly spaced seed stations along a resampled ground-truth graph.

    Edges are walked in id order and stations in order along each edge,
    accumulating arc length across edges. The first station is always a seed;
    after that a seed is emitted whenever `spacing` has been covered since the
    previous one. Shared node stations are never emitted twice.

    Args:
        stations: StationGraph of the resampled ground truth
        spacing: target arc length between consecutive seeds

    Returns:
        list of SeedLocation, possibly empty
    """
    tracer = get_tracer()

    if spacing <= 0:
        raise InvalidGeometryError(f"Seed spacing must be positive, got {spacing}")

    seeds = []
    used = set()
    since_last = None
    prev_offset = None

    for edge_id in stations.edge_ids():
        for key, point in stations.stations_along_edge(edge_id):
            if prev_offset is not None and point.index > 0:
                since_last += point.offset - prev_offset
            prev_offset = point.offset

            due = since_last is None or since_last >= spacing - SPACING_EPS
            if due and key not in used:
                seeds.append(SeedLocation(
                    seed_id=len(seeds),
                    station=key,
                    x=point.x,
                    y=point.y,
                ))
                used.add(key)
                since_last = 0.0

    tracer.event(f"Seeds: {len(seeds)} at spacing {spacing}")

    return seeds
