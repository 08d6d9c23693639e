"""
Exception types for topometric.

Geometry and parameter problems are fatal to the run that finds them. Per-seed
failures are wrapped so they can be traced back to the seed that caused them.
"""


class InvalidGeometryError(ValueError):
    """Malformed or degenerate geometry, or a non-positive spatial parameter."""


class SeedEvaluationError(RuntimeError):
    """Raised when matching a single seed fails unexpectedly."""

    def __init__(self, seed_id, message):
        super().__init__(f"seed {seed_id}: {message}")
        self.seed_id = seed_id
        self.message = message

    def __reduce__(self):
        return (type(self), (self.seed_id, self.message))
