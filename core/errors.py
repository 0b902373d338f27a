# ==================================================
# ================  MODULE: errors  ================
# ==================================================
from __future__ import annotations

from typing import Any, Optional, Sequence

# Public API
__all__ = [
    "CombinerError",
    "ShapeMismatch",
    "UnsupportedElementType",
    "OutOfRange",
]


class CombinerError(Exception):
    """Base class for every error raised while combining ND datasets."""


class ShapeMismatch(CombinerError, ValueError):
    """
    Raised when two datasets do not agree on their number of dimensions.

    Attributes
    ----------
    rank_a, rank_b : int or None
        Ranks of the offending inputs, when known.
    """

    def __init__(self, message: str, rank_a: Optional[int] = None, rank_b: Optional[int] = None) -> None:
        super().__init__(message)
        self.rank_a = rank_a
        self.rank_b = rank_b


class UnsupportedElementType(CombinerError, TypeError):
    """Raised when an element type is not a real numeric type."""

    def __init__(self, element_type: Any, message: Optional[str] = None) -> None:
        self.element_type = element_type
        super().__init__(message or f"Unsupported element type '{element_type}': expected a real numeric type.")


class OutOfRange(CombinerError, IndexError):
    """Raised when a coordinate vector falls outside a dataset's extents."""

    def __init__(self, coord: Sequence[int], extents: Sequence[int]) -> None:
        self.coord = tuple(coord)
        self.extents = tuple(extents)
        super().__init__(f"Coordinate {self.coord} is outside extents {self.extents}.")
