"""Matrix multiplication strategies.

Two kernels share one mathematical and error contract and differ only in how
they walk memory:

``naive``
    Reference triple loop.  Each output cell starts at the additive identity
    and accumulates ``a[i, k] * b[k, j]`` for ``k`` in ascending order.

``transposed``
    Materialises ``b.T`` once so both operands of every inner product are
    contiguous rows, then performs the same zero-seeded, left-to-right
    accumulation.  Products are therefore bit-identical to ``naive`` for every
    supported dtype, including wrapping fixed-width integers.

The default strategy for :func:`matmul` can be pinned with the
``FASTMM_MATMUL_STRATEGY`` environment variable.
"""

from __future__ import annotations

import logging
import os
from typing import Callable
import warnings

import numpy as np

from .errors import DimensionMismatch
from .matrix import Matrix
from .numeric import zero

__all__ = [
    "available_strategies",
    "default_strategy",
    "resolve_strategy",
    "matmul",
    "matmul_naive",
    "matmul_transposed",
]

logger = logging.getLogger(__name__)

_STRATEGY_ENV = "FASTMM_MATMUL_STRATEGY"
_DEFAULT_STRATEGY = "transposed"
_STRATEGY_ALIASES = {
    "naive": "naive",
    "reference": "naive",
    "transposed": "transposed",
    "locality": "transposed",
}


def available_strategies() -> tuple[str, ...]:
    return ("naive", "transposed")


def default_strategy() -> str:
    """Strategy used when callers do not request one explicitly."""

    hint = os.environ.get(_STRATEGY_ENV, "").strip().lower()
    if not hint or hint == "auto":
        return _DEFAULT_STRATEGY
    resolved = _STRATEGY_ALIASES.get(hint)
    if resolved is None:
        warnings.warn(
            f"Ignoring invalid {_STRATEGY_ENV} value {hint!r}; expected one of "
            f"{', '.join(sorted(_STRATEGY_ALIASES))}",
            RuntimeWarning,
        )
        return _DEFAULT_STRATEGY
    return resolved


def resolve_strategy(label: str | None) -> str:
    """Normalise strategy labels to the canonical ``naive``/``transposed``."""

    if label is None:
        return default_strategy()
    normalized = str(label).strip().lower()
    if normalized == "auto":
        return default_strategy()
    try:
        return _STRATEGY_ALIASES[normalized]
    except KeyError:
        raise ValueError(
            "strategy must be one of 'auto', 'naive', 'reference', "
            "'transposed', 'locality', or None"
        ) from None


def _check_operands(a: Matrix, b: Matrix) -> tuple[int, int, int]:
    if not isinstance(a, Matrix) or not isinstance(b, Matrix):
        raise TypeError("matmul expects two Matrix instances")
    if a._cols != b._rows:
        raise DimensionMismatch((a._rows, a._cols), (b._rows, b._cols))
    if a.dtype != b.dtype:
        raise TypeError(
            f"matmul operands must share a dtype, got {a.dtype} and {b.dtype}"
        )
    return a._rows, a._cols, b._cols


def matmul_naive(a: Matrix, b: Matrix) -> Matrix:
    rows, inner, cols = _check_operands(a, b)
    logger.debug("naive matmul %dx%d @ %dx%d", rows, inner, inner, cols)

    dtype = a.dtype
    out = np.zeros(rows * cols, dtype=dtype)
    left, right = a._data, b._data
    seed = zero(dtype)

    # Overflow follows the dtype: integers wrap, floats saturate to inf.
    with np.errstate(over="ignore"):
        for i in range(rows):
            lhs_base = i * inner
            out_base = i * cols
            for j in range(cols):
                acc = seed
                for k in range(inner):
                    acc = acc + left[lhs_base + k] * right[k * cols + j]
                out[out_base + j] = acc
    return Matrix._from_buffer(rows, cols, out)


def matmul_transposed(a: Matrix, b: Matrix) -> Matrix:
    rows, inner, cols = _check_operands(a, b)
    logger.debug("transposed matmul %dx%d @ %dx%d", rows, inner, inner, cols)

    dtype = a.dtype
    out = np.zeros(rows * cols, dtype=dtype)
    if rows == 0 or cols == 0 or inner == 0:
        return Matrix._from_buffer(rows, cols, out)

    rhs_t = b.transpose()._data.reshape(cols, inner)
    left = a._data.reshape(rows, inner)

    # Column 0 holds the additive identity so the running sums along each row
    # reproduce the naive accumulation order exactly.
    products = np.empty((cols, inner + 1), dtype=dtype)
    products[:, 0] = zero(dtype)
    sums = np.empty_like(products)
    with np.errstate(over="ignore"):
        for i in range(rows):
            np.multiply(rhs_t, left[i], out=products[:, 1:])
            np.add.accumulate(products, axis=1, dtype=dtype, out=sums)
            out[i * cols : (i + 1) * cols] = sums[:, -1]
    return Matrix._from_buffer(rows, cols, out)


_STRATEGIES: dict[str, Callable[[Matrix, Matrix], Matrix]] = {
    "naive": matmul_naive,
    "transposed": matmul_transposed,
}


def matmul(a: Matrix, b: Matrix, *, strategy: str | None = None) -> Matrix:
    """Multiply ``a`` by ``b`` with the requested (or configured) strategy.

    Raises :class:`~fastmm.errors.DimensionMismatch` when ``a``'s column count
    differs from ``b``'s row count, whichever strategy is selected.
    """

    name = resolve_strategy(strategy)
    logger.debug("dispatching matmul to %s strategy", name)
    return _STRATEGIES[name](a, b)
