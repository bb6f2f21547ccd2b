"""Dense row-major matrix value type.

Elements live in one contiguous NumPy buffer of length ``rows * cols`` with a
row stride of ``cols``.  Row access hands out :class:`Row` objects that write
straight through to that buffer, while iteration, :meth:`Matrix.tolist` and
every derived matrix (transpose, copies, products) own independent storage.
"""

from __future__ import annotations

from collections.abc import Sequence
import operator
from typing import Any

import numpy as np

from .errors import EmptyShapeQuery, IndexOutOfRange, RaggedLiteral, ShapeMismatch
from .numeric import (
    coerce_scalar,
    infer_dtype,
    require_numbers,
    resolve_dtype,
)

__all__ = ["Matrix", "Row"]

_NO_FILL = object()


def _is_sequence(obj: object) -> bool:
    return isinstance(obj, Sequence) and not isinstance(
        obj, (str, bytes, bytearray, memoryview)
    )


def _coerce_dimension(value: object, label: str) -> int:
    try:
        dim = operator.index(value)
    except TypeError as exc:
        raise TypeError(f"Matrix {label} must be an integer, got {value!r}") from exc
    if dim < 0:
        raise ValueError(f"Matrix {label} must be non-negative, got {dim}")
    return dim


def _check_index(value: object, bound: int, label: str) -> int:
    try:
        index = operator.index(value)
    except TypeError as exc:
        raise TypeError(f"Matrix {label} index must be an integer, got {value!r}") from exc
    if index < 0 or index >= bound:
        raise IndexOutOfRange(f"{label} index {index} out of range for {bound} {label}s")
    return index


def _flatten_literal(data: object) -> tuple[int, int, list[Any]]:
    items = list(data)  # type: ignore[call-overload]
    if not items:
        return 0, 0, []

    cols: int | None = None
    flat: list[Any] = []
    for index, row in enumerate(items):
        if not _is_sequence(row):
            raise TypeError("Matrix literal rows must be sequences of numbers")
        values = list(row)
        if cols is None:
            cols = len(values)
        elif len(values) != cols:
            raise RaggedLiteral(index, cols, len(values))
        flat.extend(values)
    return len(items), (0 if cols is None else cols), flat


class _ShapeView(tuple):
    """``(height, width)`` tuple that can also be called like a method."""

    def __new__(cls, matrix: "Matrix"):
        return super().__new__(cls, (matrix.height, matrix.width))

    def __call__(self) -> tuple[int, int]:
        return tuple(self)


class Row(Sequence):
    """Mutable reference to one row of a :class:`Matrix`.

    Assigning ``row[j] = value`` writes into the owning matrix.  Column
    indices are bounds-checked and must be non-negative.
    """

    __slots__ = ("_view", "_index")

    def __init__(self, view: np.ndarray, index: int) -> None:
        self._view = view
        self._index = index

    def __len__(self) -> int:
        return int(self._view.shape[0])

    def __getitem__(self, key):
        if isinstance(key, slice):
            return tuple(self._view[key].tolist())
        return self._view[_check_index(key, len(self), "column")]

    def __setitem__(self, key, value) -> None:
        column = _check_index(key, len(self), "column")
        self._view[column] = coerce_scalar(value, self._view.dtype)

    def __iter__(self):
        return iter(self._view.tolist())

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Row):
            return bool(np.array_equal(self._view, other._view))
        if _is_sequence(other):
            return self.tolist() == list(other)  # type: ignore[arg-type]
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def fill(self, value) -> None:
        self._view.fill(coerce_scalar(value, self._view.dtype))

    def tolist(self) -> list:
        return self._view.tolist()

    def __repr__(self) -> str:
        return f"Row({self._index}, {self.tolist()!r})"


class Matrix:
    """Dense matrix of integer or floating-point elements.

    Supported constructions::

        Matrix()                  # empty 0x0
        Matrix(n)                 # n x n zeros
        Matrix(m, n)              # m x n zeros
        Matrix(m, n, value)       # m x n filled with value
        Matrix([[1, 2], [3, 4]])  # nested literal, one inner sequence per row

    ``dtype`` selects the NumPy element type.  When omitted it is inferred
    from the literal or fill value and falls back to ``float64``.
    """

    __slots__ = ("_rows", "_cols", "_data")

    def __init__(self, *args, fill=_NO_FILL, dtype=None) -> None:
        if len(args) > 3:
            raise TypeError(
                "Matrix() takes at most 3 positional arguments "
                f"but {len(args)} were given"
            )

        if len(args) == 1 and (
            _is_sequence(args[0]) or isinstance(args[0], (np.ndarray, Matrix))
        ):
            if fill is not _NO_FILL:
                raise TypeError("Matrix() cannot combine a literal with a fill value")
            self._init_from_literal(args[0], dtype)
            return

        if len(args) == 3:
            if fill is not _NO_FILL:
                raise TypeError("Matrix() got multiple values for fill")
            fill = args[2]
            args = args[:2]

        if not args:
            rows = cols = 0
        elif len(args) == 1:
            rows = cols = _coerce_dimension(args[0], "size")
        else:
            rows = _coerce_dimension(args[0], "rows")
            cols = _coerce_dimension(args[1], "cols")

        if fill is _NO_FILL:
            resolved = resolve_dtype(dtype)
            buffer = np.zeros(rows * cols, dtype=resolved)
        else:
            require_numbers([fill])
            resolved = resolve_dtype(dtype) if dtype is not None else infer_dtype([fill])
            buffer = np.empty(rows * cols, dtype=resolved)
            buffer.fill(coerce_scalar(fill, resolved))

        self._rows = rows
        self._cols = cols
        self._data = buffer

    def _init_from_literal(self, data: object, dtype) -> None:
        if isinstance(data, Matrix):
            source = data._data
            rows, cols = data._rows, data._cols
        elif isinstance(data, np.ndarray):
            if data.ndim != 2:
                raise ValueError(f"Matrix expects a 2D array, got {data.ndim}D")
            source = data.reshape(-1)
            rows, cols = (int(dim) for dim in data.shape)
        else:
            rows, cols, flat = _flatten_literal(data)
            require_numbers(flat)
            resolved = resolve_dtype(dtype) if dtype is not None else infer_dtype(flat)
            self._rows = rows
            self._cols = cols
            self._data = np.array(flat, dtype=resolved).reshape(-1)
            return

        resolved = resolve_dtype(dtype if dtype is not None else source.dtype)
        self._rows = rows
        self._cols = cols
        self._data = np.array(source, dtype=resolved, copy=True).reshape(-1)

    @classmethod
    def _from_buffer(cls, rows: int, cols: int, buffer: np.ndarray) -> "Matrix":
        if buffer.ndim != 1 or buffer.shape[0] != rows * cols:
            raise ValueError("buffer does not match requested matrix shape")
        instance = cls.__new__(cls)
        instance._rows = int(rows)
        instance._cols = int(cols)
        instance._data = buffer
        return instance

    @classmethod
    def identity(cls, size: int, *, dtype=None) -> "Matrix":
        size = _coerce_dimension(size, "size")
        resolved = resolve_dtype(dtype)
        return cls._from_buffer(size, size, np.eye(size, dtype=resolved).reshape(-1))

    @classmethod
    def from_numpy(cls, array: np.ndarray, *, dtype=None) -> "Matrix":
        matrix = np.asarray(array)
        if matrix.ndim != 2:
            raise ValueError(f"Matrix expects a 2D array, got {matrix.ndim}D")
        return cls(matrix, dtype=dtype)

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def height(self) -> int:
        return self._rows

    @property
    def width(self) -> int:
        if self._rows == 0:
            raise EmptyShapeQuery("width is undefined for a matrix without rows")
        return self._cols

    @property
    def shape(self) -> _ShapeView:
        """``(height, width)``; usable both as a tuple and as ``shape()``."""

        return _ShapeView(self)

    @property
    def size(self) -> int:
        return self._rows * self._cols

    def _row_view(self, row: int) -> np.ndarray:
        base = row * self._cols
        return self._data[base : base + self._cols]

    def __len__(self) -> int:
        return self._rows

    def __getitem__(self, key):
        if isinstance(key, tuple):
            row, col = self._element_index(key)
            return self._data[row * self._cols + col]
        row = _check_index(key, self._rows, "row")
        return Row(self._row_view(row), row)

    def __setitem__(self, key, value) -> None:
        if isinstance(key, tuple):
            row, col = self._element_index(key)
            self._data[row * self._cols + col] = coerce_scalar(value, self.dtype)
            return
        row = _check_index(key, self._rows, "row")
        if not _is_sequence(value):
            raise TypeError("Matrix rows can only be replaced with a sequence of numbers")
        values = list(value)
        if len(values) != self._cols:
            raise ShapeMismatch(
                f"row replacement needs {self._cols} elements, got {len(values)}"
            )
        require_numbers(values)
        self._row_view(row)[:] = np.array(values, dtype=self.dtype)

    def _element_index(self, key: tuple) -> tuple[int, int]:
        if len(key) != 2:
            raise TypeError(f"Matrix element access takes (row, col), got {key!r}")
        row = _check_index(key[0], self._rows, "row")
        col = _check_index(key[1], self._cols, "column")
        return row, col

    def __iter__(self):
        for row in range(self._rows):
            yield tuple(self._row_view(row).tolist())

    def fill(self, value) -> None:
        self._data.fill(coerce_scalar(value, self.dtype))

    def transpose(self) -> "Matrix":
        rows, cols = self._rows, self._cols
        transposed = np.ascontiguousarray(self._data.reshape(rows, cols).T)
        return type(self)._from_buffer(cols, rows, transposed.reshape(-1))

    @property
    def T(self) -> "Matrix":
        return self.transpose()

    def tolist(self) -> list[list]:
        return [list(row) for row in self]

    def to_numpy(self) -> np.ndarray:
        return self._data.reshape(self._rows, self._cols).copy()

    def copy(self) -> "Matrix":
        return type(self)._from_buffer(self._rows, self._cols, self._data.copy())

    def __copy__(self) -> "Matrix":
        return self.copy()

    def __deepcopy__(self, memo) -> "Matrix":
        return self.copy()

    def allclose(self, other: "Matrix", *, rtol: float = 1e-9, atol: float = 0.0) -> bool:
        if not isinstance(other, Matrix):
            raise TypeError("allclose expects another Matrix instance")
        if (self._rows, self._cols) != (other._rows, other._cols):
            return False
        return bool(np.allclose(self._data, other._data, rtol=rtol, atol=atol))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        if (self._rows, self._cols) != (other._rows, other._cols):
            return False
        return bool(np.array_equal(self._data, other._data))

    __hash__ = None  # type: ignore[assignment]

    def matmul(self, other: "Matrix", *, strategy: str | None = None) -> "Matrix":
        from .matmul import matmul

        return matmul(self, other, strategy=strategy)

    def __matmul__(self, other) -> "Matrix":
        if not isinstance(other, Matrix):
            return NotImplemented
        from .matmul import matmul_transposed

        return matmul_transposed(self, other)

    def __array__(self, dtype=None, copy=None):  # interoperability hook
        matrix = self.to_numpy()
        if dtype is not None:
            matrix = matrix.astype(dtype, copy=False)
        return matrix

    def __repr__(self) -> str:
        return f"Matrix(shape=({self._rows}, {self._cols}), dtype='{self.dtype}')"
