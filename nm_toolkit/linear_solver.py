"""Direct and iterative solution of small dense systems ``A x = b``.

Direct methods work on the augmented matrix ``[A|b]`` and record a snapshot of
the matrix after every row swap, normalization and elimination, so the whole
derivation can be replayed:

- ``gauss``         -- pivot on ``A[k][k]``, swapping only when it is (near) zero.
- ``gauss-pivot``   -- partial pivoting: always bring the largest ``|A[i][k]|`` up.
- ``gauss-jordan``  -- normalize each pivot row and clear the column above and below.

Iterative methods (``jacobi`` and ``gauss-seidel``) start from the zero vector and
stop when the largest component change drops below the tolerance, or after
``SolverLimits.max_iterations`` sweeps. Jacobi reads only the previous iterate;
Gauss-Seidel reuses components already updated during the current sweep.

The elimination routine is shared with :mod:`nm_toolkit.curve_fitting` through
:func:`gaussian_elimination`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

from .config import DEFAULT_LIMITS, SolverLimits
from .errors import InvalidInput, NotConverged, SingularMatrix, ZeroDiagonal
from .formatting import format_number

__all__ = [
    "LinearMethod",
    "EliminationStep",
    "DirectSolution",
    "IterationRow",
    "IterativeSolution",
    "gaussian_elimination",
    "solve_direct",
    "solve_iterative",
    "iteration_formulas",
    "solve_linear_system",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

Matrix = tuple[tuple[float, ...], ...]

_K = "⁽ᵏ⁾"
_K1 = "⁽ᵏ⁺¹⁾"


class LinearMethod(str, Enum):
    GAUSS = "gauss"
    GAUSS_PIVOT = "gauss-pivot"
    GAUSS_JORDAN = "gauss-jordan"
    JACOBI = "jacobi"
    GAUSS_SEIDEL = "gauss-seidel"

    @property
    def is_iterative(self) -> bool:
        return self in (LinearMethod.JACOBI, LinearMethod.GAUSS_SEIDEL)


@dataclass(frozen=True)
class EliminationStep:
    """Snapshot of the augmented matrix after one row operation."""

    title: str
    description: str
    matrix: Matrix
    highlight_row: Optional[int] = None


@dataclass(frozen=True)
class DirectSolution:
    method: LinearMethod
    steps: tuple[EliminationStep, ...]
    solution: tuple[float, ...]

    @property
    def final_matrix(self) -> Matrix:
        return self.steps[-1].matrix


@dataclass(frozen=True)
class IterationRow:
    iteration: int
    values: tuple[float, ...]
    error: float


@dataclass(frozen=True)
class IterativeSolution:
    """Outcome of Jacobi / Gauss-Seidel.

    ``rows[0]`` is the zero starting vector. When ``converged`` is false the
    ``solution`` is the last iterate and ``warning`` explains why.
    """

    method: LinearMethod
    formulas: tuple[str, ...]
    samples: tuple[str, ...]
    rows: tuple[IterationRow, ...]
    solution: tuple[float, ...]
    converged: bool
    tolerance: float
    warning: Optional[NotConverged] = None

    @property
    def iterations(self) -> int:
        return self.rows[-1].iteration


def _coerce_method(method: LinearMethod | str) -> LinearMethod:
    try:
        return LinearMethod(method)
    except ValueError as exc:
        choices = ", ".join(m.value for m in LinearMethod)
        raise InvalidInput(f"Unknown linear method {method!r}; expected one of: {choices}.") from exc


def _validate_augmented(augmented: Sequence[Sequence[float]], limits: SolverLimits) -> list[list[float]]:
    rows = [[float(v) for v in row] for row in augmented]
    n = len(rows)
    if n < 2 or n > limits.max_linear_unknowns:
        raise InvalidInput(
            f"Number of variables must be between 2 and {limits.max_linear_unknowns}, got {n}."
        )
    for i, row in enumerate(rows):
        if len(row) != n + 1:
            raise InvalidInput(
                f"Row {i + 1} of the augmented matrix has {len(row)} entries; expected {n + 1}."
            )
    return rows


def _snapshot(work: list[list[float]]) -> Matrix:
    return tuple(tuple(row) for row in work)


def _select_pivot_row(work: list[list[float]], k: int, partial_pivoting: bool, tolerance: float) -> int:
    n = len(work)
    pivot_row = k
    if partial_pivoting:
        max_val = abs(work[k][k])
        for i in range(k + 1, n):
            if abs(work[i][k]) > max_val:
                max_val = abs(work[i][k])
                pivot_row = i
    elif abs(work[k][k]) < tolerance:
        for i in range(k + 1, n):
            if abs(work[i][k]) > tolerance:
                pivot_row = i
                break
    return pivot_row


def _forward_eliminate(
    work: list[list[float]],
    method: LinearMethod,
    tolerance: float,
    record: Optional[Callable[[EliminationStep], None]] = None,
) -> None:
    """Run the elimination phase in place, reporting each row operation to ``record``."""
    n = len(work)
    width = len(work[0])

    def _emit(title: str, description: str, row: Optional[int] = None) -> None:
        if record is not None:
            record(EliminationStep(title, description, _snapshot(work), row))

    for k in range(n):
        pivot_row = _select_pivot_row(work, k, method is not LinearMethod.GAUSS, tolerance)
        if abs(work[pivot_row][k]) < tolerance:
            raise SingularMatrix(f"Singular matrix encountered. Column {k + 1} has no valid pivot.")

        if pivot_row != k:
            work[k], work[pivot_row] = work[pivot_row], work[k]
            _emit(
                f"Pivoting (Column {k + 1})",
                f"Swap Row {k + 1} with Row {pivot_row + 1} to get a better pivot.",
                k,
            )

        if method is LinearMethod.GAUSS_JORDAN:
            pivot = work[k][k]
            if abs(pivot - 1) > tolerance:
                for j in range(k, width):
                    work[k][j] /= pivot
                _emit(
                    f"Normalize Row {k + 1}",
                    f"Divide Row {k + 1} by {format_number(pivot)} to make pivot 1.",
                    k,
                )
            for i in range(n):
                if i == k:
                    continue
                factor = work[i][k]
                if abs(factor) > tolerance:
                    for j in range(k, width):
                        work[i][j] -= factor * work[k][j]
                    _emit(
                        f"Eliminate Var {k + 1} from Row {i + 1}",
                        f"R{i + 1} -> R{i + 1} - ({format_number(factor)}) * R{k + 1}",
                        i,
                    )
        else:
            for i in range(k + 1, n):
                factor = work[i][k] / work[k][k]
                if abs(factor) > tolerance:
                    for j in range(k, width):
                        work[i][j] -= factor * work[k][j]
                    work[i][k] = 0.0
                    _emit(
                        f"Eliminate Var {k + 1} from Row {i + 1}",
                        f"R{i + 1} -> R{i + 1} - ({format_number(factor)}) * R{k + 1}",
                        i,
                    )


def _back_substitute(work: list[list[float]]) -> tuple[float, ...]:
    n = len(work)
    x = [0.0] * n
    for i in range(n - 1, -1, -1):
        s = sum(work[i][j] * x[j] for j in range(i + 1, n))
        x[i] = (work[i][n] - s) / work[i][i]
    return tuple(x)


def gaussian_elimination(augmented: Sequence[Sequence[float]], *, pivot_tolerance: float = 1e-12) -> tuple[float, ...]:
    """Solve ``[A|b]`` by elimination with partial pivoting and back substitution.

    Untraced variant for callers that only need the solution vector (the
    least-squares normal equations, for instance). No size limit is applied.
    """
    work = [[float(v) for v in row] for row in augmented]
    if not work or any(len(row) != len(work) + 1 for row in work):
        raise InvalidInput("Augmented matrix must be n×(n+1).")
    _forward_eliminate(work, LinearMethod.GAUSS_PIVOT, pivot_tolerance)
    return _back_substitute(work)


def solve_direct(
    augmented: Sequence[Sequence[float]],
    method: LinearMethod | str = LinearMethod.GAUSS,
    *,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> DirectSolution:
    """Solve ``[A|b]`` with Gauss, Gauss with max pivot, or Gauss-Jordan.

    Raises
    ------
    InvalidInput
        If the matrix is not n×(n+1) with 2 <= n <= ``limits.max_linear_unknowns``.
    SingularMatrix
        If a column has no usable pivot.
    """
    method = _coerce_method(method)
    if method.is_iterative:
        raise InvalidInput(f"{method.value!r} is an iterative method; use solve_iterative().")
    work = _validate_augmented(augmented, limits)

    steps: list[EliminationStep] = [
        EliminationStep("Initial Augmented Matrix", "Setup the system as [A|B]", _snapshot(work))
    ]
    _forward_eliminate(work, method, limits.pivot_tolerance, steps.append)

    if method is LinearMethod.GAUSS_JORDAN:
        n = len(work)
        solution = tuple(work[i][n] for i in range(n))
        steps.append(EliminationStep(
            "Reduced Row Echelon Form Reached",
            "The matrix is now in RREF. The last column contains the solution.",
            _snapshot(work),
        ))
    else:
        steps.append(EliminationStep(
            "Row Echelon Form Reached",
            "Now performing back substitution to find variables.",
            _snapshot(work),
        ))
        solution = _back_substitute(work)

    logger.info("%s solved %d×%d system in %d steps", method.value, len(work), len(work), len(steps))
    return DirectSolution(method=method, steps=tuple(steps), solution=solution)


def _split(augmented: list[list[float]]) -> tuple[list[list[float]], list[float]]:
    n = len(augmented)
    return [row[:n] for row in augmented], [row[n] for row in augmented]


def iteration_formulas(augmented: Sequence[Sequence[float]], method: LinearMethod | str) -> tuple[str, ...]:
    """Human-readable update rule for every unknown.

    Gauss-Seidel tags unknowns that were already updated in the current sweep
    with ``⁽ᵏ⁺¹⁾``; everything else reads the previous iterate ``⁽ᵏ⁾``.
    """
    method = _coerce_method(method)
    a, b = _split([[float(v) for v in row] for row in augmented])
    n = len(a)
    formulas = []
    for i in range(n):
        rhs = [format_number(b[i])]
        for j in range(n):
            if i == j or abs(a[i][j]) < 1e-10:
                continue
            sign = "-" if a[i][j] >= 0 else "+"
            tag = _K1 if (method is LinearMethod.GAUSS_SEIDEL and j < i) else _K
            rhs.append(f"{sign} {format_number(abs(a[i][j]))}x_{j + 1}{tag}")
        formulas.append(f"x_{i + 1}{_K1} = ({' '.join(rhs)}) / {format_number(a[i][i])}")
    return tuple(formulas)


def solve_iterative(
    augmented: Sequence[Sequence[float]],
    method: LinearMethod | str,
    tolerance: float,
    *,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> IterativeSolution:
    """Run Jacobi or Gauss-Seidel from ``x = 0``.

    Raises
    ------
    InvalidInput
        For bad dimensions or a non-positive tolerance.
    ZeroDiagonal
        If some ``|A[i][i]| < limits.pivot_tolerance``.
    """
    method = _coerce_method(method)
    if not method.is_iterative:
        raise InvalidInput(f"{method.value!r} is a direct method; use solve_direct().")
    work = _validate_augmented(augmented, limits)
    if tolerance is None or not tolerance > 0:
        raise InvalidInput("Please enter a valid positive tolerance value.")

    a, b = _split(work)
    n = len(a)
    for i in range(n):
        if abs(a[i][i]) < limits.pivot_tolerance:
            raise ZeroDiagonal(
                f"Diagonal element in row {i + 1} is zero or too close to zero. Iterative methods "
                "require non-zero diagonal elements. Please reorder your equations."
            )

    formulas = iteration_formulas(work, method)
    jacobi = method is LinearMethod.JACOBI

    x = [0.0] * n
    rows = [IterationRow(0, tuple(x), 0.0)]
    samples: list[str] = []
    converged = False

    for iteration in range(1, limits.max_iterations + 1):
        prev = list(x)
        nxt = [0.0] * n if jacobi else x
        for i in range(n):
            s = 0.0
            parts = []
            for j in range(n):
                if i == j:
                    continue
                val = prev[j] if jacobi else x[j]
                s += a[i][j] * val
                if iteration == 1:
                    sign = "-" if a[i][j] >= 0 else "+"
                    parts.append(f"{sign} {format_number(abs(a[i][j]))}({format_number(val)})")
            new_val = (b[i] - s) / a[i][i]
            if iteration == 1:
                samples.append(
                    f"x_{i + 1}⁽¹⁾ = ({format_number(b[i])} {' '.join(parts)}) / "
                    f"{format_number(a[i][i])} = {format_number(new_val)}"
                )
            nxt[i] = new_val
        x = nxt

        error = max(abs(x[i] - prev[i]) for i in range(n))
        rows.append(IterationRow(iteration, tuple(x), error))
        logger.debug("%s iteration %d: x=%s error=%g", method.value, iteration, x, error)
        if error < tolerance:
            converged = True
            break

    warning = None
    if not converged:
        warning = NotConverged(
            f"Method did not converge within {limits.max_iterations} iterations. "
            "The system might not be diagonally dominant.",
            iterations=limits.max_iterations,
        )
        logger.warning("%s: %s", method.value, warning)

    return IterativeSolution(
        method=method,
        formulas=formulas,
        samples=tuple(samples),
        rows=tuple(rows),
        solution=tuple(x),
        converged=converged,
        tolerance=float(tolerance),
        warning=warning,
    )


def solve_linear_system(
    augmented: Sequence[Sequence[float]],
    method: LinearMethod | str = LinearMethod.GAUSS,
    tolerance: Optional[float] = None,
    *,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> DirectSolution | IterativeSolution:
    """Dispatch to :func:`solve_direct` or :func:`solve_iterative` by method tag."""
    method = _coerce_method(method)
    if method.is_iterative:
        return solve_iterative(augmented, method, tolerance, limits=limits)  # type: ignore[arg-type]
    return solve_direct(augmented, method, limits=limits)
