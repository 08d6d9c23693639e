"""
Artifact saving utilities for topometric.

Handles writing JSON results, text summaries and vector layers into the run's
data directory.
"""

import json
import os

from topometric.io.geofile import write_lines_to_geofile, write_points_to_geofile
from topometric.tracer import get_tracer


def ensure_dir(path):
    """Create directory if it does not exist."""
    if path:
        os.makedirs(path, exist_ok=True)


def save_json(data, path, indent=2):
    """
    Save a dictionary or Pydantic model to JSON.
    """
    tracer = get_tracer()

    ensure_dir(os.path.dirname(path))

    # Handle Pydantic models
    if hasattr(data, "model_dump"):
        data = data.model_dump(mode="json")

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, default=str)

    tracer.event(f"Saved JSON: {path}")


def save_text(text, path):
    """Save a text file."""
    tracer = get_tracer()

    ensure_dir(os.path.dirname(path))
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)

    tracer.event(f"Saved text: {path}")


class ArtifactWriter:
    """
    Helper class to manage artifact writing for a single run.

    All paths are relative to the data directory. Every method is a no-op
    when the writer is disabled.
    """

    def __init__(self, data_dir, enabled=True, crs=None):
        self.data_dir = data_dir
        self.enabled = enabled
        self.crs = crs

    def path(self, filename):
        return os.path.join(self.data_dir, filename)

    def save_json(self, data, filename):
        """Save a JSON artifact."""
        if not self.enabled:
            return None
        path = self.path(filename)
        save_json(data, path)
        return path

    def save_text(self, text, filename):
        """Save a text artifact."""
        if not self.enabled:
            return None
        path = self.path(filename)
        save_text(text, path)
        return path

    def save_lines(self, lines, filename, crs=None):
        """Save line geometries in the format given by the file extension."""
        if not self.enabled:
            return None
        path = self.path(filename)
        write_lines_to_geofile(lines, path, crs=crs or self.crs)
        return path

    def save_points(self, node_matches, filename):
        """Save NodeMatch records as a point layer."""
        if not self.enabled:
            return None
        path = self.path(filename)
        write_points_to_geofile(node_matches, path, crs=self.crs)
        return path
