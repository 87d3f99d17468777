from __future__ import annotations

from importlib import import_module

import pytest

matrix_algebra = import_module("nm_toolkit.matrix_algebra")
errors = import_module("nm_toolkit.errors")
config = import_module("nm_toolkit.config")


def test_add_and_subtract_round_to_six_decimals() -> None:
    a = [[0.1, 0.2], [1.0, 2.0]]
    b = [[0.2, 0.1], [3.0, 4.0]]
    assert matrix_algebra.add(a, b) == ((0.3, 0.3), (4.0, 6.0))
    assert matrix_algebra.subtract(b, a) == ((0.1, -0.1), (2.0, 2.0))


def test_multiply_rectangular() -> None:
    a = [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]
    b = [[7.0, 8.0], [9.0, 10.0], [11.0, 12.0]]
    assert matrix_algebra.multiply(a, b) == ((58.0, 64.0), (139.0, 154.0))


def test_dimension_mismatch_messages() -> None:
    with pytest.raises(errors.InvalidInput, match="Addition Error: Matrices must have the same dimensions. Matrix A is 2×2, Matrix B is 1×2"):
        matrix_algebra.add([[1, 2], [3, 4]], [[1, 2]])
    with pytest.raises(errors.InvalidInput, match="Subtraction Error"):
        matrix_algebra.subtract([[1, 2], [3, 4]], [[1, 2]])
    with pytest.raises(errors.InvalidInput, match=r"Number of columns in Matrix A \(2\) must equal number of rows in Matrix B \(3\)"):
        matrix_algebra.multiply([[1, 2]], [[1], [2], [3]])


def test_determinant_of_2x2_records_one_step() -> None:
    result = matrix_algebra.determinant([[3.0, 8.0], [4.0, 6.0]])
    assert result.value == -14.0
    assert len(result.steps) == 1
    assert result.steps[0].description == "2×2 Determinant"
    assert result.steps[0].calculation == "(3 × 6) - (8 × 4) = -14"


def test_determinant_of_3x3_expands_row_one() -> None:
    matrix = [[4.0, 1.0, 2.0], [1.0, 3.0, 1.0], [1.0, 1.0, 5.0]]
    result = matrix_algebra.determinant(matrix)
    assert result.value == pytest.approx(48.0)
    assert [s.description for s in result.steps] == ["2×2 Determinant"] * 3 + ["3×3 Cofactor Expansion (Row 1)"]
    assert result.steps[-1].calculation == "4(14) - 1(4) + 2(-2) = 48"


def test_fast_determinant_matches_cofactor_expansion() -> None:
    matrix = [
        [2.0, -1.0, 0.0, 3.0],
        [1.0, 4.0, -2.0, 0.5],
        [0.0, 1.0, 1.0, -1.0],
        [3.0, 0.0, 2.0, 1.0],
    ]
    assert matrix_algebra.fast_determinant(matrix) == pytest.approx(matrix_algebra.determinant(matrix).value)


def test_determinant_requires_square_matrix() -> None:
    with pytest.raises(errors.InvalidInput, match="Matrix A must be square. Current dimensions are 2×3"):
        matrix_algebra.determinant([[1, 2, 3], [4, 5, 6]])


def test_size_limit() -> None:
    big = [[1.0] * 11 for _ in range(11)]
    with pytest.raises(errors.InvalidInput, match="at most 10×10"):
        matrix_algebra.determinant(big)


def test_matrix_operation_dispatch() -> None:
    assert matrix_algebra.matrix_operation("add", [[1]], [[2]]) == ((3.0,),)
    assert matrix_algebra.matrix_operation("determinant", [[5]]).value == 5.0
    with pytest.raises(errors.InvalidInput, match="needs a second matrix"):
        matrix_algebra.matrix_operation("multiply", [[1]])
    with pytest.raises(errors.InvalidInput, match="Unknown matrix operation"):
        matrix_algebra.matrix_operation("invert", [[1]])


def test_matrix_size_cap_is_configurable() -> None:
    big = [[1.0] * 11 for _ in range(11)]
    with pytest.raises(errors.InvalidInput, match="at most 10×10"):
        matrix_algebra.add(big, big)

    relaxed = config.DEFAULT_LIMITS.replace(max_matrix_size=12)
    total = matrix_algebra.matrix_operation("add", big, big, limits=relaxed)
    assert total == tuple(tuple(2.0 for _ in range(11)) for _ in range(11))
    assert matrix_algebra.fast_determinant(big, limits=relaxed) == pytest.approx(0.0)

    tight = config.DEFAULT_LIMITS.replace(max_matrix_size=2)
    with pytest.raises(errors.InvalidInput, match="Matrix A is 3×3"):
        matrix_algebra.determinant([[1, 0, 0], [0, 1, 0], [0, 0, 1]], limits=tight)
