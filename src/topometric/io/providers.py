"""
Sources of line networks: local geofiles or cached OpenStreetMap extracts.
"""

import os
from typing import Protocol, runtime_checkable

from topometric.io.geofile import (
    DEFAULT_CRS,
    GeoreferencedLines,
    read_lines_from_geofile,
    write_lines_to_geofile,
)
from topometric.io.osm import bbox_cache_name, download_osm_lines, validate_bbox
from topometric.tracer import get_tracer


@runtime_checkable
class LineProvider(Protocol):
    """Anything that can produce georeferenced lines for a run."""

    def load(self) -> GeoreferencedLines: ...


class GeofileLineProvider:
    """Lines read from a vector file on disk (GeoJSON, GeoPackage, ...)."""

    def __init__(self, path):
        self.path = path

    def load(self):
        return read_lines_from_geofile(self.path)

    def __repr__(self):
        return f"GeofileLineProvider({self.path!r})"


class OsmLineProvider:
    """
    Lines downloaded from OpenStreetMap for a WGS84 bounding box.

    Downloads are cached as GeoJSON in data_dir under a name derived from the
    bbox, and reused on later runs.
    """

    def __init__(self, bbox, data_dir, downloader=None):
        self.bbox = validate_bbox(bbox)
        self.data_dir = data_dir
        self.downloader = downloader or download_osm_lines

    @property
    def cache_path(self):
        return os.path.join(self.data_dir, bbox_cache_name(self.bbox))

    def load(self):
        tracer = get_tracer()
        path = self.cache_path

        if os.path.exists(path):
            tracer.event(f"Using cached OSM extract: {path}")
            return read_lines_from_geofile(path)

        lines = self.downloader(self.bbox)
        write_lines_to_geofile(lines, path, crs=DEFAULT_CRS)
        return GeoreferencedLines(lines=lines, crs=DEFAULT_CRS)

    def __repr__(self):
        return f"OsmLineProvider({self.bbox!r}, {self.data_dir!r})"


def provider_from_config(input_cfg):
    """
    Ground truth and proposal providers for an InputConfig.

    Returns:
        (ground_truth_provider, proposal_provider)
    """
    if not input_cfg.proposal_path:
        raise ValueError("No proposal geofile configured (input.proposal_path)")

    if input_cfg.ground_truth_path and input_cfg.osm_bbox:
        raise ValueError("Configure either input.ground_truth_path or input.osm_bbox, not both")

    if input_cfg.ground_truth_path:
        ground_truth = GeofileLineProvider(input_cfg.ground_truth_path)
    elif input_cfg.osm_bbox:
        ground_truth = OsmLineProvider(input_cfg.osm_bbox, input_cfg.data_dir)
    else:
        raise ValueError("No ground truth configured (input.ground_truth_path or input.osm_bbox)")

    return ground_truth, GeofileLineProvider(input_cfg.proposal_path)
