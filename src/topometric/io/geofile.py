"""
Vector file reading and writing for line networks and point layers.

Files go through geopandas, so any format GDAL reads is accepted as input.
Output format follows the file extension (GeoJSON, GeoPackage, ...).
"""

import os
from dataclasses import dataclass, field
from typing import List

import geopandas as gpd
from shapely.geometry import LineString, Point

from topometric.tracer import get_tracer, trace


DEFAULT_CRS = "EPSG:4326"


@dataclass
class GeoreferencedLines:
    """Line coordinate sequences together with the CRS they are expressed in."""
    lines: List[list] = field(default_factory=list)
    crs: str = DEFAULT_CRS


def crs_name(crs):
    """
    Short name for a CRS read from a file.

    GeoJSON without a CRS reads back as OGC:CRS84, which is reported as
    EPSG:4326.
    """
    if crs is None or crs.equals(DEFAULT_CRS, ignore_axis_order=True):
        return DEFAULT_CRS
    epsg = crs.to_epsg()
    if epsg is not None:
        return f"EPSG:{epsg}"
    return crs.to_string()


def _coords(coordinates):
    """Planar (x, y) tuples, dropping any z or m values."""
    return [(float(c[0]), float(c[1])) for c in coordinates]


@trace(label="read_lines_from_geofile")
def read_lines_from_geofile(path, layer=None):
    """
    Read line geometries from a vector file.

    LineStrings are kept as-is and MultiLineStrings are split into their parts.
    Other geometry types are skipped and reported.

    Raises FileNotFoundError if the path does not exist and ValueError if the
    file cannot be read as vector data.
    """
    tracer = get_tracer()

    if not os.path.exists(path):
        raise FileNotFoundError(f"Geofile not found: {path}")

    try:
        gdf = gpd.read_file(path, layer=layer)
    except (OSError, RuntimeError, ValueError) as e:
        raise ValueError(f"Cannot read geofile {path}: {e}") from e

    lines = []
    line_features = 0
    for geometry in gdf.geometry:
        kind = geometry.geom_type if geometry is not None else None
        if kind == "LineString":
            lines.append(_coords(geometry.coords))
        elif kind == "MultiLineString":
            lines.extend(_coords(part.coords) for part in geometry.geoms)
        else:
            continue
        line_features += 1

    if line_features != len(gdf):
        tracer.event(
            f"Out of {len(gdf)} features read, only {line_features} were line geometries",
            level="WARN",
        )

    crs = crs_name(gdf.crs)
    tracer.event(f"Read {len(lines)} lines from {path} (crs={crs})")

    return GeoreferencedLines(lines=lines, crs=crs)


def _write(gdf, path, geometry_type):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    if os.path.exists(path):
        os.remove(path)
    gdf.to_file(path, engine="pyogrio", geometry_type=geometry_type)


def write_lines_to_geofile(lines, path, crs=None):
    """Write coordinate sequences as LineString features."""
    gdf = gpd.GeoDataFrame(
        {"line_index": list(range(len(lines)))},
        geometry=[LineString(line) for line in lines],
        crs=crs or DEFAULT_CRS,
    )
    _write(gdf, path, "LineString")
    get_tracer().event(f"Saved {len(gdf)} lines: {path}")


def write_points_to_geofile(node_matches, path, crs=None):
    """Write NodeMatch records as Point features carrying their lengths."""
    rows = [node.model_dump(exclude={"x", "y"}) for node in node_matches]
    gdf = gpd.GeoDataFrame(
        rows,
        geometry=[Point(node.x, node.y) for node in node_matches],
        crs=crs or DEFAULT_CRS,
    )
    _write(gdf, path, "Point")
    get_tracer().event(f"Saved {len(gdf)} points: {path}")
