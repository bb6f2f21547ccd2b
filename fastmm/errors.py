"""Exceptions raised by :mod:`fastmm`.

Every error derives from :class:`MatrixError` and from the built-in exception
callers would otherwise expect, so ``except ValueError`` keeps working for
shape problems and ``except IndexError`` for out-of-range access.
"""

from __future__ import annotations

__all__ = [
    "MatrixError",
    "ShapeMismatch",
    "DimensionMismatch",
    "RaggedLiteral",
    "IndexOutOfRange",
    "EmptyShapeQuery",
    "NumericTypeError",
]


class MatrixError(Exception):
    """Base class for all matrix errors."""


class ShapeMismatch(MatrixError, ValueError):
    """Two shapes that must agree do not."""


class DimensionMismatch(ShapeMismatch):
    """Inner dimensions of multiplication operands disagree."""

    def __init__(self, left: tuple[int, int], right: tuple[int, int]) -> None:
        self.left = left
        self.right = right
        super().__init__(
            "inner dimensions do not match for matmul: "
            f"{left[0]}x{left[1]} @ {right[0]}x{right[1]}"
        )


class RaggedLiteral(ShapeMismatch):
    """Nested literal rows differ in length."""

    def __init__(self, row: int, expected: int, actual: int) -> None:
        self.row = row
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Matrix rows must all share the same length: row {row} has "
            f"{actual} elements, expected {expected}"
        )


class IndexOutOfRange(MatrixError, IndexError):
    """Row or element index outside the allocated bounds."""


class EmptyShapeQuery(MatrixError, ValueError):
    """Width requested on a matrix without rows."""


class NumericTypeError(MatrixError, TypeError):
    """Element type is not an integer or floating-point type."""
