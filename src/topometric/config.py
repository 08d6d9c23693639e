"""
Configuration management for topometric.

Loads YAML configuration with sensible defaults for every stage of a run.
"""

import os
from dataclasses import asdict, dataclass, field, fields
from typing import List, Optional

import yaml


@dataclass
class GraphConfig:
    """Configuration for graph construction."""
    coincidence_tolerance: float = 1e-6  # endpoints closer than this share a node


@dataclass
class ResampleConfig:
    """Configuration for edge resampling."""
    resampling_distance: float = 5.0


@dataclass
class SeedConfig:
    """Configuration for seed placement."""
    seed_spacing: float = 50.0


@dataclass
class MatchingConfig:
    """Configuration for hole-punching matching."""
    hole_radius: float = 5.0
    hole_bridge_distance: float = 15.0
    exploration_radius: float = 300.0
    snap_tolerance: Optional[float] = None  # defaults to hole_radius


@dataclass
class WorkerConfig:
    """Configuration for parallel seed evaluation."""
    count: int = 1
    executor: str = "thread"  # "thread" or "process"
    seed_timeout: Optional[float] = None  # seconds per seed


@dataclass
class InputConfig:
    """Configuration for input networks."""
    proposal_path: Optional[str] = None
    ground_truth_path: Optional[str] = None
    osm_bbox: Optional[List[float]] = None  # [west, south, east, north], WGS84
    data_dir: str = "data"


@dataclass
class TracingConfig:
    """Configuration for runtime tracing."""
    enabled: bool = False
    level: str = "INFO"
    file_path: Optional[str] = None
    json_output: bool = False


@dataclass
class OutputConfig:
    """Configuration for artifacts written to the data directory."""
    write_artifacts: bool = True


@dataclass
class TopoConfig:
    """Complete run configuration."""
    graph: GraphConfig = field(default_factory=GraphConfig)
    resample: ResampleConfig = field(default_factory=ResampleConfig)
    seeds: SeedConfig = field(default_factory=SeedConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    workers: WorkerConfig = field(default_factory=WorkerConfig)
    input: InputConfig = field(default_factory=InputConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def matching_params(self):
        """Flat dict of the numeric parameters that determine a score."""
        return {
            "coincidence_tolerance": self.graph.coincidence_tolerance,
            "resampling_distance": self.resample.resampling_distance,
            "seed_spacing": self.seeds.seed_spacing,
            "hole_radius": self.matching.hole_radius,
            "hole_bridge_distance": self.matching.hole_bridge_distance,
            "exploration_radius": self.matching.exploration_radius,
            "snap_tolerance": self.matching.snap_tolerance,
        }


SECTIONS = [f.name for f in fields(TopoConfig)]


def load_config(config_path=None):
    """
    Load configuration from YAML file.

    Falls back to defaults for any missing values. Raises FileNotFoundError
    if a path is given but does not exist.
    """
    config = TopoConfig()

    if config_path:
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Config file not found: {config_path}")
        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

        config = _merge_config(config, yaml_data)

    return config


def _merge_config(config, yaml_data):
    """Merge YAML data into config dataclass, ignoring unknown keys."""
    for section in SECTIONS:
        values = yaml_data.get(section)
        if not isinstance(values, dict):
            continue
        target = getattr(config, section)
        for key, value in values.items():
            if hasattr(target, key):
                setattr(target, key, value)

    return config


def save_default_config(path):
    """Save default configuration to YAML file for reference."""
    yaml_data = asdict(TopoConfig())

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(yaml_data, f, default_flow_style=False, sort_keys=False)
