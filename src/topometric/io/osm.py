"""
Ground truth download from OpenStreetMap.
"""

import hashlib
import json

from topometric.tracer import get_tracer, trace


def bbox_cache_name(bbox):
    """Deterministic cache filename for a (west, south, east, north) box."""
    canonical = json.dumps([round(float(v), 7) for v in bbox])
    digest = hashlib.sha256(canonical.encode()).hexdigest()[:16]
    return f"osm_{digest}.geojson"


def validate_bbox(bbox):
    """Check a (west, south, east, north) WGS84 box and return it as a tuple."""
    if bbox is None or len(bbox) != 4:
        raise ValueError(f"Bounding box must have four values (west, south, east, north), got {bbox}")
    west, south, east, north = (float(v) for v in bbox)
    if west >= east or south >= north:
        raise ValueError(f"Degenerate bounding box: {bbox}")
    if not (-180 <= west <= 180 and -180 <= east <= 180 and -90 <= south <= 90 and -90 <= north <= 90):
        raise ValueError(f"Bounding box outside WGS84 range: {bbox}")
    return west, south, east, north


@trace(label="download_osm_lines")
def download_osm_lines(bbox, network_type="drive"):
    """
    Fetch the road network inside a bbox and return its edges as WGS84 lines.

    Each undirected OSM edge becomes one line.
    """
    import osmnx as ox

    tracer = get_tracer()
    west, south, east, north = validate_bbox(bbox)

    G = ox.graph_from_bbox(bbox=(west, south, east, north), network_type=network_type)
    G = ox.convert.to_undirected(G)
    edges = ox.graph_to_gdfs(G, nodes=False)

    lines = []
    for geom in edges.geometry:
        if geom is None or geom.is_empty:
            continue
        lines.append([(float(x), float(y)) for x, y in geom.coords])

    tracer.event(f"Downloaded {len(lines)} OSM edges for bbox {bbox}")
    return lines
