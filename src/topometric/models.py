"""
Pydantic data models for topometric.

Graph primitives, seeds and per-seed / aggregate results are validated models.
Content-based fingerprints give deterministic identifiers for inputs.
"""

import hashlib
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


Coord = Tuple[float, float]

# Station keys: ("n", node_id) for graph nodes, ("e", edge_id, index) for
# interior resampled points.
StationKey = tuple


class Node(BaseModel):
    """A graph node at a planar position."""
    node_id: int = Field(..., ge=0)
    x: float
    y: float

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def coord(self):
        return (self.x, self.y)


class Edge(BaseModel):
    """An ordered polyline between two nodes."""
    edge_id: int = Field(..., ge=0)
    start_node: int = Field(..., ge=0)
    end_node: int = Field(..., ge=0)
    coords: Tuple[Coord, ...]
    length: float = Field(..., ge=0.0)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def is_self_loop(self):
        return self.start_node == self.end_node


class ResampledPoint(BaseModel):
    """A point on a resampled edge, `offset` metres from the edge start."""
    edge_id: int = Field(..., ge=0)
    index: int = Field(..., ge=0)
    offset: float = Field(..., ge=0.0)
    x: float
    y: float

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def coord(self):
        return (self.x, self.y)


class SeedLocation(BaseModel):
    """A ground-truth station used as a comparison anchor."""
    seed_id: int = Field(..., ge=0)
    station: StationKey
    x: float
    y: float

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def coord(self):
        return (self.x, self.y)


class MatchResult(BaseModel):
    """Matched and explored lengths for a single seed."""
    seed_id: int = Field(..., ge=0)
    matched_ground_truth: float = Field(default=0.0, ge=0.0)
    matched_proposal: float = Field(default=0.0, ge=0.0)
    explored_ground_truth: float = Field(default=0.0, ge=0.0)
    explored_proposal: float = Field(default=0.0, ge=0.0)
    matched_stations: int = Field(default=0, ge=0)
    holes_bridged: int = Field(default=0, ge=0)
    holes_failed: int = Field(default=0, ge=0)
    proposal_anchor: Optional[Coord] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def snapped(self):
        """Whether the seed found a proposal counterpart."""
        return self.proposal_anchor is not None


class AggregateScore(BaseModel):
    """
    Precision, recall and F-score over all seeds.

    A ratio is None when its denominator is zero; callers must treat that as
    undefined rather than as a score of zero.
    """
    precision: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    recall: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    f_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    matched_ground_truth: float = Field(default=0.0, ge=0.0)
    matched_proposal: float = Field(default=0.0, ge=0.0)
    explored_ground_truth: float = Field(default=0.0, ge=0.0)
    explored_proposal: float = Field(default=0.0, ge=0.0)
    num_seeds: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def precision_defined(self):
        return self.precision is not None

    @property
    def recall_defined(self):
        return self.recall is not None

    @property
    def f_score_defined(self):
        return self.f_score is not None


class NodeMatch(BaseModel):
    """A seed or its proposal counterpart, written out as a point artifact."""
    seed_id: int
    x: float
    y: float
    matched_length: float = 0.0
    explored_length: float = 0.0

    model_config = ConfigDict(extra="forbid")


class TopoResult(BaseModel):
    """Everything a TOPO run produces."""
    score: AggregateScore
    seed_results: List[MatchResult] = Field(default_factory=list)
    ground_truth_nodes: List[NodeMatch] = Field(default_factory=list)
    proposal_nodes: List[NodeMatch] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


# Fingerprints for deterministic run identification

def fingerprint_lines(lines, round_digits=3):
    """
    Generate a deterministic fingerprint for a collection of line geometries.

    Rounds coordinates to avoid floating point instability.
    """
    if not lines:
        return "lines_empty"

    h = hashlib.sha256()
    for line in lines:
        rounded = [[round(float(p[0]), round_digits), round(float(p[1]), round_digits)] for p in line]
        h.update(f"{rounded};".encode())
    return f"lines_{h.hexdigest()[:12]}"


def generate_run_id(proposal_fingerprint, ground_truth_fingerprint, params):
    """
    Generate deterministic run ID from both inputs and the matching parameters.
    """
    param_str = ",".join(f"{k}={params[k]}" for k in sorted(params))
    data = f"{proposal_fingerprint}:{ground_truth_fingerprint}:{param_str}"
    h = hashlib.sha256(data.encode()).hexdigest()[:16]
    return f"topo_{h}"


def compute_bbox(points):
    """
    Compute bounding box from a list of [x, y] points.

    Returns [min_x, min_y, max_x, max_y].
    """
    if not points:
        return [0.0, 0.0, 0.0, 0.0]

    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return [min(xs), min(ys), max(xs), max(ys)]
