"""
Exceptions raised by the carving engine.

InvalidDimensions is a caller mistake and can be retried with better input.
StructuralInconsistency means the pixel graph no longer matches its index;
the grid cannot be trusted after one is raised.
"""


class CarvingError(Exception):
    """Base class for graphcarve errors."""


class InvalidDimensions(CarvingError, ValueError):
    """Input color matrix is empty, jagged, or not shaped (H, W, 3)."""


class StructuralInconsistency(CarvingError, RuntimeError):
    """The link graph or row index is broken."""
