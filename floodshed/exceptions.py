"""
floodshed exceptions
"""


class FloodshedError(Exception):
    """Base exception for floodshed errors."""

    pass


class InvalidGridError(FloodshedError, ValueError):
    """Raised when a grid is malformed (zero extent, bad cell size, not 2D)."""

    pass


class DimensionMismatchError(FloodshedError, ValueError):
    """Raised when two grids passed to one operation differ in extent."""

    pass


class GridAllocationError(FloodshedError, MemoryError):
    """Raised when a grid or worklist cannot be allocated."""

    pass


class FloodInvariantError(FloodshedError, RuntimeError):
    """Raised when the flood traversal breaks one of its own invariants."""

    pass
