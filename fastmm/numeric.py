"""Numeric element-type constraint shared by :class:`fastmm.Matrix`.

Matrices accept NumPy integer (signed or unsigned) and floating-point dtypes.
Those are the types that provide an additive identity together with native
addition and multiplication, which is everything the multiplication kernels
rely on.
"""

from __future__ import annotations

import numbers
from typing import Any

import numpy as np

from .errors import NumericTypeError

__all__ = [
    "DEFAULT_DTYPE",
    "is_numeric_dtype",
    "resolve_dtype",
    "require_numbers",
    "infer_dtype",
    "coerce_scalar",
    "zero",
]

DEFAULT_DTYPE = np.dtype(np.float64)


def is_numeric_dtype(dtype: Any) -> bool:
    try:
        candidate = np.dtype(dtype)
    except TypeError:
        return False
    return bool(
        np.issubdtype(candidate, np.integer) or np.issubdtype(candidate, np.floating)
    )


def resolve_dtype(dtype: Any) -> np.dtype:
    """Normalise ``dtype`` and reject anything that is not integer or float."""

    if dtype is None:
        return DEFAULT_DTYPE
    try:
        candidate = np.dtype(dtype)
    except TypeError as exc:
        raise NumericTypeError(f"unsupported Matrix dtype: {dtype!r}") from exc
    if not is_numeric_dtype(candidate):
        raise NumericTypeError(
            f"Matrix elements must be integer or floating point, got {candidate}"
        )
    return candidate


def require_numbers(values: list[Any]) -> None:
    for value in values:
        _require_number(value)


def infer_dtype(values: list[Any]) -> np.dtype:
    """Pick the dtype NumPy would use for ``values``; float64 when empty."""

    if not values:
        return DEFAULT_DTYPE
    return resolve_dtype(np.asarray(values).dtype)


def coerce_scalar(value: Any, dtype: np.dtype):
    """Convert ``value`` to a scalar of ``dtype``."""

    _require_number(value)
    return dtype.type(value)


def zero(dtype: np.dtype):
    """Additive identity of ``dtype``."""

    return dtype.type(0)


def _require_number(value: Any) -> None:
    if isinstance(value, (bool, np.bool_)):
        raise NumericTypeError(f"Matrix elements must be numbers, got {value!r}")
    if isinstance(value, np.generic):
        if not is_numeric_dtype(value.dtype):
            raise NumericTypeError(f"Matrix elements must be numbers, got {value!r}")
        return
    if not isinstance(value, numbers.Real):
        raise NumericTypeError(f"Matrix elements must be numbers, got {value!r}")
