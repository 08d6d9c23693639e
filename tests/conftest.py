"""Pytest fixtures for topometric tests."""

import json
import os
import tempfile

import pytest


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture(autouse=True)
def reset_tracer():
    """Leave the global tracer disabled between tests."""
    yield
    from topometric.tracer import configure_tracer
    configure_tracer(enabled=False)


@pytest.fixture
def straight_road():
    """A single 30 m road along the x axis."""
    return [[(0.0, 0.0), (30.0, 0.0)]]


@pytest.fixture
def split_road():
    """The straight road with a 3 m gap in the middle."""
    return [
        [(0.0, 0.0), (13.5, 0.0)],
        [(16.5, 0.0), (30.0, 0.0)],
    ]


@pytest.fixture
def cross_roads():
    """Four 20 m arms meeting at the origin, drawn as two crossing lines split at the centre."""
    return [
        [(-20.0, 0.0), (0.0, 0.0)],
        [(0.0, 0.0), (20.0, 0.0)],
        [(0.0, -20.0), (0.0, 0.0)],
        [(0.0, 0.0), (0.0, 20.0)],
    ]


@pytest.fixture
def square_loop():
    """A closed 10 m square drawn as one ring."""
    return [[(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0), (0.0, 0.0)]]


@pytest.fixture
def make_stations():
    """Build a StationGraph from raw lines at a given resampling distance."""
    from topometric.graph.builder import build_graph
    from topometric.graph.resample import resample_graph
    from topometric.graph.stations import build_station_graph

    def _make(lines, spacing=1.0):
        resampled, points = resample_graph(build_graph(lines), spacing)
        return build_station_graph(resampled, points)

    return _make


@pytest.fixture
def default_config():
    """Create default run configuration."""
    from topometric.config import TopoConfig
    return TopoConfig()


@pytest.fixture
def small_config():
    """Configuration sized for the metre-scale fixture networks."""
    from topometric.config import TopoConfig

    config = TopoConfig()
    config.resample.resampling_distance = 1.0
    config.seeds.seed_spacing = 10.0
    config.matching.hole_radius = 1.0
    config.matching.hole_bridge_distance = 5.0
    config.matching.exploration_radius = 100.0
    config.output.write_artifacts = False
    return config


def write_geojson(path, lines, crs=None):
    """Write coordinate sequences as a LineString FeatureCollection."""
    data = {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {},
                "geometry": {"type": "LineString", "coordinates": [list(c) for c in line]},
            }
            for line in lines
        ],
    }
    if crs:
        data["crs"] = {"type": "name", "properties": {"name": crs}}
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f)
    return path


@pytest.fixture
def geojson_writer():
    """Expose write_geojson to tests."""
    return write_geojson


@pytest.fixture
def projected_inputs(temp_dir, straight_road, split_road):
    """Ground truth and proposal files in a UTM CRS."""
    offset = (500000.0, 5000000.0)

    def shift(lines):
        return [[(x + offset[0], y + offset[1]) for x, y in line] for line in lines]

    gt_path = write_geojson(os.path.join(temp_dir, "gt.geojson"), shift(straight_road), crs="EPSG:32632")
    prop_path = write_geojson(os.path.join(temp_dir, "prop.geojson"), shift(split_road), crs="EPSG:32632")
    return gt_path, prop_path
