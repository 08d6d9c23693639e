"""Tests for configuration loading."""

import os

import pytest
import yaml


class TestLoadConfig:
    """Tests for YAML configuration handling."""

    def test_defaults(self):
        """Default values without a config file."""
        from topometric.config import load_config

        config = load_config()

        assert config.resample.resampling_distance == 5.0
        assert config.seeds.seed_spacing == 50.0
        assert config.matching.hole_radius == 5.0
        assert config.matching.hole_bridge_distance == 15.0
        assert config.matching.exploration_radius == 300.0
        assert config.matching.snap_tolerance is None
        assert config.workers.count == 1
        assert config.input.data_dir == "data"
        assert config.output.write_artifacts is True

    def test_partial_yaml_merges_over_defaults(self, temp_dir):
        """Known keys override defaults and unknown keys are ignored."""
        from topometric.config import load_config

        path = os.path.join(temp_dir, "config.yaml")
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump({
                "matching": {"hole_radius": 8.0, "unknown_key": 1},
                "input": {"osm_bbox": [7.0, 50.0, 7.1, 50.1]},
                "not_a_section": {"x": 1},
            }, f)

        config = load_config(path)

        assert config.matching.hole_radius == 8.0
        assert config.matching.hole_bridge_distance == 15.0
        assert config.input.osm_bbox == [7.0, 50.0, 7.1, 50.1]
        assert not hasattr(config.matching, "unknown_key")

    def test_empty_yaml(self, temp_dir):
        """An empty file gives the defaults."""
        from topometric.config import load_config

        path = os.path.join(temp_dir, "empty.yaml")
        open(path, "w").close()

        assert load_config(path).seeds.seed_spacing == 50.0

    def test_missing_file(self, temp_dir):
        """A missing config path raises FileNotFoundError."""
        from topometric.config import load_config

        with pytest.raises(FileNotFoundError):
            load_config(os.path.join(temp_dir, "nope.yaml"))

    def test_default_config_round_trip(self, temp_dir):
        """The saved default config loads back unchanged."""
        from topometric.config import TopoConfig, load_config, save_default_config

        path = os.path.join(temp_dir, "default.yaml")
        save_default_config(path)

        assert load_config(path) == TopoConfig()

    def test_matching_params(self, default_config):
        """Run parameters are collected for the report."""
        params = default_config.matching_params()

        assert params["resampling_distance"] == 5.0
        assert params["hole_radius"] == 5.0
        assert set(params) >= {"seed_spacing", "exploration_radius", "coincidence_tolerance"}
