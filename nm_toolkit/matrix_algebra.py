"""Elementary matrix algebra for small dense matrices.

Addition, subtraction and multiplication round every entry to 6 decimals (the
classroom convention for hand-checkable answers). The determinant is computed by
recursive cofactor expansion along the first row so each level of the recursion
can be displayed; :func:`fast_determinant` is the untraced NumPy path.

>>> determinant([[1, 2], [3, 4]]).value
-2.0
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import numpy as np

from .config import DEFAULT_LIMITS, SolverLimits
from .errors import InvalidInput
from .formatting import format_number

__all__ = [
    "Matrix",
    "MatrixOperation",
    "DeterminantStep",
    "DeterminantResult",
    "as_matrix",
    "add",
    "subtract",
    "multiply",
    "determinant",
    "fast_determinant",
    "matrix_operation",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

Matrix = tuple[tuple[float, ...], ...]


class MatrixOperation(str, Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DETERMINANT = "determinant"


@dataclass(frozen=True)
class DeterminantStep:
    """One displayed line of the cofactor expansion."""

    description: str
    calculation: str


@dataclass(frozen=True)
class DeterminantResult:
    value: float
    steps: tuple[DeterminantStep, ...]


def as_matrix(rows: Sequence[Sequence[float]], *, name: str = "Matrix", limits: SolverLimits = DEFAULT_LIMITS) -> Matrix:
    """Copy ``rows`` into an immutable rectangular matrix, validating its shape."""
    matrix = tuple(tuple(float(v) for v in row) for row in rows)
    if not matrix or not matrix[0]:
        raise InvalidInput(f"{name} must have at least one row and one column.")
    width = len(matrix[0])
    if any(len(row) != width for row in matrix):
        raise InvalidInput(f"{name} rows must all have the same length.")
    if len(matrix) > limits.max_matrix_size or width > limits.max_matrix_size:
        raise InvalidInput(
            f"{name} is {len(matrix)}×{width}; at most "
            f"{limits.max_matrix_size}×{limits.max_matrix_size} is supported."
        )
    return matrix


def _shape(m: Matrix) -> str:
    return f"{len(m)}×{len(m[0])}"


def _round6(value: float) -> float:
    return round(value, 6) + 0.0


def add(
    a: Sequence[Sequence[float]], b: Sequence[Sequence[float]], *, limits: SolverLimits = DEFAULT_LIMITS
) -> Matrix:
    """Entry-wise ``a + b``."""
    ma = as_matrix(a, name="Matrix A", limits=limits)
    mb = as_matrix(b, name="Matrix B", limits=limits)
    if len(ma) != len(mb) or len(ma[0]) != len(mb[0]):
        raise InvalidInput(
            "Addition Error: Matrices must have the same dimensions. "
            f"Matrix A is {_shape(ma)}, Matrix B is {_shape(mb)}"
        )
    return tuple(tuple(_round6(x + y) for x, y in zip(ra, rb)) for ra, rb in zip(ma, mb))


def subtract(
    a: Sequence[Sequence[float]], b: Sequence[Sequence[float]], *, limits: SolverLimits = DEFAULT_LIMITS
) -> Matrix:
    """Entry-wise ``a - b``."""
    ma = as_matrix(a, name="Matrix A", limits=limits)
    mb = as_matrix(b, name="Matrix B", limits=limits)
    if len(ma) != len(mb) or len(ma[0]) != len(mb[0]):
        raise InvalidInput(
            "Subtraction Error: Matrices must have the same dimensions. "
            f"Matrix A is {_shape(ma)}, Matrix B is {_shape(mb)}"
        )
    return tuple(tuple(_round6(x - y) for x, y in zip(ra, rb)) for ra, rb in zip(ma, mb))


def multiply(
    a: Sequence[Sequence[float]], b: Sequence[Sequence[float]], *, limits: SolverLimits = DEFAULT_LIMITS
) -> Matrix:
    """Matrix product ``a @ b``."""
    ma = as_matrix(a, name="Matrix A", limits=limits)
    mb = as_matrix(b, name="Matrix B", limits=limits)
    if len(ma[0]) != len(mb):
        raise InvalidInput(
            f"Multiplication Error: Cannot multiply {_shape(ma)} matrix with {_shape(mb)} matrix. "
            f"Number of columns in Matrix A ({len(ma[0])}) must equal number of rows in Matrix B ({len(mb)})"
        )
    cols = len(mb[0])
    out = []
    for row in ma:
        out.append(tuple(
            _round6(sum(row[k] * mb[k][j] for k in range(len(mb))))
            for j in range(cols)
        ))
    return tuple(out)


def _cofactor(matrix: Matrix, steps: list[DeterminantStep]) -> float:
    n = len(matrix)
    if n == 1:
        return matrix[0][0]
    if n == 2:
        val = matrix[0][0] * matrix[1][1] - matrix[0][1] * matrix[1][0]
        steps.append(DeterminantStep(
            description="2×2 Determinant",
            calculation=(
                f"({format_number(matrix[0][0])} × {format_number(matrix[1][1])}) - "
                f"({format_number(matrix[0][1])} × {format_number(matrix[1][0])}) = {format_number(val)}"
            ),
        ))
        return val

    det = 0.0
    expansion = ""
    for j in range(n):
        minor = tuple(row[:j] + row[j + 1:] for row in matrix[1:])
        minor_det = _cofactor(minor, steps)
        sign = 1 if j % 2 == 0 else -1
        det += sign * matrix[0][j] * minor_det
        if j == 0:
            op = "" if sign == 1 else "-"
        else:
            op = " + " if sign == 1 else " - "
        expansion += f"{op}{format_number(abs(matrix[0][j]))}({format_number(minor_det)})"

    steps.append(DeterminantStep(
        description=f"{n}×{n} Cofactor Expansion (Row 1)",
        calculation=f"{expansion} = {format_number(det)}",
    ))
    return det


def determinant(matrix: Sequence[Sequence[float]], *, limits: SolverLimits = DEFAULT_LIMITS) -> DeterminantResult:
    """Determinant by cofactor expansion along row 1, with the expansion trace.

    Minors are expanded depth first, so the trace lists every 2×2 determinant
    before the expansion line that consumes it.
    """
    m = as_matrix(matrix, name="Matrix A", limits=limits)
    if len(m) != len(m[0]):
        raise InvalidInput(
            f"Determinant Error: Matrix A must be square. Current dimensions are {_shape(m)}."
        )
    steps: list[DeterminantStep] = []
    value = _cofactor(m, steps)
    logger.debug("cofactor determinant of %s matrix: %d trace lines", _shape(m), len(steps))
    return DeterminantResult(value=value, steps=tuple(steps))


def fast_determinant(matrix: Sequence[Sequence[float]], *, limits: SolverLimits = DEFAULT_LIMITS) -> float:
    """Untraced LU determinant for callers that only need the value."""
    m = as_matrix(matrix, name="Matrix A", limits=limits)
    if len(m) != len(m[0]):
        raise InvalidInput(
            f"Determinant Error: Matrix A must be square. Current dimensions are {_shape(m)}."
        )
    return float(np.linalg.det(np.asarray(m, dtype=float)))


def matrix_operation(
    operation: MatrixOperation | str,
    a: Sequence[Sequence[float]],
    b: Sequence[Sequence[float]] | None = None,
    *,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> Matrix | DeterminantResult:
    """Dispatch one of the four calculator operations."""
    try:
        op = MatrixOperation(operation)
    except ValueError as exc:
        raise InvalidInput(f"Unknown matrix operation: {operation!r}") from exc
    if op is MatrixOperation.DETERMINANT:
        return determinant(a, limits=limits)
    if b is None:
        raise InvalidInput(f"Operation {op.value!r} needs a second matrix.")
    if op is MatrixOperation.ADD:
        return add(a, b, limits=limits)
    if op is MatrixOperation.SUBTRACT:
        return subtract(a, b, limits=limits)
    return multiply(a, b, limits=limits)
