"""Generic dense matrices with reference and locality-optimised multiplication."""

from .errors import (
    DimensionMismatch,
    EmptyShapeQuery,
    IndexOutOfRange,
    MatrixError,
    NumericTypeError,
    RaggedLiteral,
    ShapeMismatch,
)
from .matmul import (
    available_strategies,
    default_strategy,
    matmul,
    matmul_naive,
    matmul_transposed,
)
from .matrix import Matrix, Row

__version__ = "0.1.0"

__all__ = [
    "DimensionMismatch",
    "EmptyShapeQuery",
    "IndexOutOfRange",
    "Matrix",
    "MatrixError",
    "NumericTypeError",
    "RaggedLiteral",
    "Row",
    "ShapeMismatch",
    "available_strategies",
    "default_strategy",
    "matmul",
    "matmul_naive",
    "matmul_transposed",
]
