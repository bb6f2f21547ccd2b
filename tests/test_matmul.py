"""Tests for the naive and transposed multiplication strategies."""

from __future__ import annotations

import logging

import numpy as np
import pytest

import fastmm
from fastmm import DimensionMismatch, Matrix, matmul, matmul_naive, matmul_transposed
from fastmm.matmul import resolve_strategy


STRATEGIES = [matmul_naive, matmul_transposed]


def _random_pair(rng, rows, inner, cols, dtype):
    if np.issubdtype(np.dtype(dtype), np.integer):
        low = 0 if np.issubdtype(np.dtype(dtype), np.unsignedinteger) else -50
        left = rng.integers(low, 50, size=(rows, inner))
        right = rng.integers(low, 50, size=(inner, cols))
    else:
        left = rng.normal(size=(rows, inner))
        right = rng.normal(size=(inner, cols))
    return Matrix.from_numpy(left, dtype=dtype), Matrix.from_numpy(right, dtype=dtype)


@pytest.mark.parametrize("kernel", STRATEGIES)
def test_two_by_two_product(kernel):
    a = Matrix([[1, 2], [3, 4]])
    b = Matrix([[5, 6], [7, 8]])
    assert kernel(a, b).tolist() == [[19, 22], [43, 50]]


def test_operator_and_dispatcher_agree_on_concrete_product():
    a = Matrix([[1, 2], [3, 4]])
    b = Matrix([[5, 6], [7, 8]])
    expected = Matrix([[19, 22], [43, 50]])
    assert a @ b == expected
    assert matmul(a, b, strategy="naive") == expected
    assert a.matmul(b, strategy="transposed") == expected


@pytest.mark.parametrize("kernel", STRATEGIES)
def test_incompatible_shapes_raise_dimension_mismatch(kernel):
    a = Matrix(2, 3, 1)
    b = Matrix(2, 2, 1)
    with pytest.raises(DimensionMismatch) as excinfo:
        kernel(a, b)
    assert excinfo.value.left == (2, 3)
    assert excinfo.value.right == (2, 2)
    assert "2x3 @ 2x2" in str(excinfo.value)
    assert isinstance(excinfo.value, ValueError)


def test_operator_reports_dimension_mismatch():
    with pytest.raises(DimensionMismatch):
        Matrix(2, 3) @ Matrix(2, 2)


@pytest.mark.parametrize("kernel", STRATEGIES)
def test_operands_are_not_mutated(kernel):
    a = Matrix([[1, 2, 3], [4, 5, 6]])
    b = Matrix([[1, 0], [0, 1], [1, 1]])
    kernel(a, b)
    assert a.tolist() == [[1, 2, 3], [4, 5, 6]]
    assert b.tolist() == [[1, 0], [0, 1], [1, 1]]


@pytest.mark.parametrize("dtype", ["int8", "int32", "int64", "uint16", "float32", "float64"])
def test_strategies_agree_on_random_inputs(dtype):
    rng = np.random.default_rng(7)
    for rows, inner, cols in [(1, 1, 1), (3, 5, 2), (4, 4, 4), (7, 3, 6)]:
        a, b = _random_pair(rng, rows, inner, cols, dtype)
        naive = matmul_naive(a, b)
        transposed = matmul_transposed(a, b)
        assert naive.dtype == transposed.dtype == np.dtype(dtype)
        # Identical accumulation order makes the results bit-for-bit equal.
        assert np.array_equal(naive.to_numpy(), transposed.to_numpy())


def test_float_results_match_numpy_within_tolerance():
    rng = np.random.default_rng(11)
    a, b = _random_pair(rng, 6, 9, 5, "float64")
    expected = Matrix.from_numpy(a.to_numpy() @ b.to_numpy())
    assert matmul_naive(a, b).allclose(expected, rtol=1e-12, atol=1e-12)
    assert matmul_transposed(a, b).allclose(expected, rtol=1e-12, atol=1e-12)


@pytest.mark.parametrize("kernel", STRATEGIES)
def test_fixed_width_integers_wrap(kernel):
    a = Matrix([[100, 100]], dtype=np.int8)
    b = Matrix([[2], [1]], dtype=np.int8)
    product = kernel(a, b)
    assert product.dtype == np.int8
    # 100 * 2 wraps to -56, plus 100 gives 44.
    assert product.tolist() == [[44]]


@pytest.mark.parametrize("kernel", STRATEGIES)
def test_result_shape_is_height_by_width(kernel):
    rng = np.random.default_rng(3)
    for rows, inner, cols in [(1, 4, 3), (5, 2, 1), (2, 6, 7)]:
        a, b = _random_pair(rng, rows, inner, cols, "int64")
        assert kernel(a, b).shape == (a.height, b.width)


@pytest.mark.parametrize("kernel", STRATEGIES)
def test_identity_is_neutral(kernel):
    rng = np.random.default_rng(5)
    a, _ = _random_pair(rng, 4, 3, 1, "float64")
    assert kernel(a, Matrix.identity(3)) == a
    assert kernel(Matrix.identity(4), a) == a


@pytest.mark.parametrize("kernel", STRATEGIES)
def test_zero_inner_dimension_yields_zeros(kernel):
    a = Matrix(2, 0)
    b = Matrix(0, 3)
    product = kernel(a, b)
    assert product.shape == (2, 3)
    assert product.tolist() == [[0.0] * 3, [0.0] * 3]


@pytest.mark.parametrize("kernel", STRATEGIES)
def test_rowless_left_operand(kernel):
    product = kernel(Matrix(0, 3), Matrix(3, 2))
    assert product.height == 0
    assert product.tolist() == []


@pytest.mark.parametrize("kernel", STRATEGIES)
def test_mismatched_dtypes_are_rejected(kernel):
    with pytest.raises(TypeError):
        kernel(Matrix(2, 2, dtype=np.int32), Matrix(2, 2, dtype=np.float64))


@pytest.mark.parametrize("kernel", STRATEGIES)
def test_non_matrix_operands_are_rejected(kernel):
    with pytest.raises(TypeError):
        kernel(Matrix(2, 2), [[1, 0], [0, 1]])


def test_operator_with_non_matrix_returns_not_implemented():
    with pytest.raises(TypeError):
        Matrix(2, 2) @ [[1, 0], [0, 1]]


def test_result_owns_its_storage():
    a = Matrix([[1, 2], [3, 4]])
    identity = Matrix.identity(2, dtype=a.dtype)
    product = a @ identity
    product[0, 0] = 100
    assert a[0, 0] == 1


def test_available_strategies():
    assert fastmm.available_strategies() == ("naive", "transposed")


@pytest.mark.parametrize(
    "label, expected",
    [
        ("naive", "naive"),
        ("reference", "naive"),
        ("Transposed", "transposed"),
        (" locality ", "transposed"),
    ],
)
def test_resolve_strategy_aliases(label, expected):
    assert resolve_strategy(label) == expected


def test_unknown_strategy_is_rejected():
    with pytest.raises(ValueError):
        matmul(Matrix(1, 1), Matrix(1, 1), strategy="strassen")


def test_default_strategy_honours_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("FASTMM_MATMUL_STRATEGY", raising=False)
    assert fastmm.default_strategy() == "transposed"

    monkeypatch.setenv("FASTMM_MATMUL_STRATEGY", "naive")
    assert fastmm.default_strategy() == "naive"
    assert resolve_strategy(None) == "naive"
    assert resolve_strategy("auto") == "naive"

    monkeypatch.setenv("FASTMM_MATMUL_STRATEGY", "auto")
    assert fastmm.default_strategy() == "transposed"


def test_invalid_environment_strategy_warns(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FASTMM_MATMUL_STRATEGY", "gpu")
    with pytest.warns(RuntimeWarning, match="FASTMM_MATMUL_STRATEGY"):
        assert fastmm.default_strategy() == "transposed"


def test_dispatch_is_logged(monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture):
    monkeypatch.setenv("FASTMM_MATMUL_STRATEGY", "naive")
    with caplog.at_level(logging.DEBUG, logger="fastmm.matmul"):
        Matrix([[1]]).matmul(Matrix([[2]]))
    messages = [record.getMessage() for record in caplog.records]
    assert "dispatching matmul to naive strategy" in messages
    assert "naive matmul 1x1 @ 1x1" in messages
