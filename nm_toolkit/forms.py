"""Boundary adapter between free-text form fields and the solvers.

Each ``run_*`` function takes the raw strings a front end collects, converts
them with :func:`~nm_toolkit.InputConvert.InputConvert` before any algorithm
runs, calls the matching solver and wraps the outcome in a
:class:`SolveOutcome`. Every :class:`~nm_toolkit.errors.NumericalMethodError`
is caught here and turned into ``SolveOutcome(error=<message>)``; nothing else
is caught.

>>> outcome = run_root_finding("x^2 - 2", "bisection", tol="0.0001", xl="0", xu="2")
>>> outcome.ok, round(outcome.result.summary.value, 4)
(True, 1.4142)
>>> run_root_finding("x^2 - 2", "bisection", tol="", xl="0", xu="2").error
'Please fill in tolerance.'
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from .InputConvert import InputConvert
from .config import DEFAULT_LIMITS, SolverLimits
from .curve_fitting import fit_curve, model_from_name
from .differentiation import finite_difference
from .errors import InvalidInput, NumericalMethodError
from .integration import integrate
from .interpolation import interpolate
from .linear_solver import LinearMethod, solve_linear_system
from .matrix_algebra import matrix_operation
from .ode import rk4, rk4_second_order
from .root_finding import RootMethod, find_root

__all__ = [
    "SolveOutcome",
    "parse_matrix",
    "parse_points",
    "run_linear_system",
    "run_matrix_operation",
    "run_root_finding",
    "run_curve_fit",
    "run_interpolation",
    "run_differentiation",
    "run_integration",
    "run_rk4",
    "run_rk4_second_order",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


@dataclass(frozen=True)
class SolveOutcome:
    """Either a solver result or a user-facing error message.

    ``warning`` carries the text of a recoverable
    :class:`~nm_toolkit.errors.NotConverged` warning when the result has one.
    """

    result: Any = None
    error: Optional[str] = None
    warning: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _warning_of(result: Any) -> Optional[str]:
    warning = getattr(result, "warning", None)
    if warning is None:
        summary = getattr(result, "summary", None)
        warning = getattr(summary, "warning", None)
    return None if warning is None else str(warning)


def _guarded(action: Callable[[], Any]) -> SolveOutcome:
    try:
        result = action()
    except NumericalMethodError as exc:
        logger.info("solve rejected: %s", exc)
        return SolveOutcome(error=str(exc))
    return SolveOutcome(result=result, warning=_warning_of(result))


def _optional(text: Optional[str], field: str) -> Optional[float]:
    if text is None or not str(text).strip():
        return None
    return InputConvert(text, float, field=field)


def _require_expression(expression: Optional[str]) -> str:
    if expression is None or not expression.strip():
        raise InvalidInput("Please enter a function expression.")
    return expression.strip()


def parse_matrix(cells: Sequence[Sequence[str]], *, name: str = "matrix") -> list[list[float]]:
    """Convert a grid of cell strings; every cell is required."""
    rows = []
    for i, row in enumerate(cells):
        rows.append([
            InputConvert(cell, float, field=f"{name} cell ({i + 1}, {j + 1})")
            for j, cell in enumerate(row)
        ])
    return rows


def _lenient(text: Any) -> float:
    try:
        return InputConvert(text, float)
    except InvalidInput:
        return math.nan


def parse_points(xs: Sequence[str], ys: Sequence[str]) -> list[tuple[float, float]]:
    """Pair up point columns; unreadable entries become NaN and are dropped later."""
    return [(_lenient(x), _lenient(y)) for x, y in zip(xs, ys)]


def run_linear_system(
    cells: Sequence[Sequence[str]],
    method: LinearMethod | str = LinearMethod.GAUSS,
    tolerance: Optional[str] = None,
    *,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> SolveOutcome:
    """Solve the augmented system typed into ``cells`` (n rows of n + 1 entries)."""

    def action():
        augmented = parse_matrix(cells, name="augmented matrix")
        try:
            iterative = LinearMethod(method).is_iterative
        except ValueError as exc:
            raise InvalidInput(f"Unknown linear-system method {method!r}.") from exc
        tol = InputConvert(tolerance, float, field="tolerance") if iterative else None
        return solve_linear_system(augmented, method, tol, limits=limits)

    return _guarded(action)


def run_matrix_operation(
    operation: str,
    a_cells: Sequence[Sequence[str]],
    b_cells: Optional[Sequence[Sequence[str]]] = None,
    *,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> SolveOutcome:
    def action():
        a = parse_matrix(a_cells, name="Matrix A")
        b = parse_matrix(b_cells, name="Matrix B") if b_cells is not None else None
        return matrix_operation(operation, a, b, limits=limits)

    return _guarded(action)


def run_root_finding(
    expression: str,
    method: RootMethod | str,
    *,
    tol: str,
    xl: Optional[str] = None,
    xu: Optional[str] = None,
    x0: Optional[str] = None,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> SolveOutcome:
    def action():
        expr = _require_expression(expression)
        tolerance = InputConvert(tol, float, field="tolerance")
        return find_root(
            expr,
            method,
            tol=tolerance,
            xl=_optional(xl, "xl"),
            xu=_optional(xu, "xu"),
            x0=_optional(x0, "initial guess"),
            limits=limits,
        )

    return _guarded(action)


def run_curve_fit(
    xs: Sequence[str],
    ys: Sequence[str],
    model: str,
    basis: Optional[str] = None,
    *,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> SolveOutcome:
    def action():
        return fit_curve(parse_points(xs, ys), model_from_name(model, basis), limits=limits)

    return _guarded(action)


def run_interpolation(
    xs: Sequence[str],
    ys: Sequence[str],
    x: str,
    method: str = "newton",
    *,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> SolveOutcome:
    def action():
        target = InputConvert(x, float, field="x")
        return interpolate(parse_points(xs, ys), target, method, limits=limits)

    return _guarded(action)


def run_differentiation(expression: str, x: str, h: str, method: str = "forward", order: str | int = 1) -> SolveOutcome:
    def action():
        return finite_difference(
            _require_expression(expression),
            InputConvert(x, float, field="x"),
            InputConvert(h, float, field="h"),
            method,
            InputConvert(order, int, field="order"),
        )

    return _guarded(action)


def run_integration(
    expression: str,
    a: str,
    b: str,
    n: str,
    method: str = "trapezoidal",
    *,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> SolveOutcome:
    def action():
        return integrate(
            _require_expression(expression),
            InputConvert(a, float, field="a"),
            InputConvert(b, float, field="b"),
            InputConvert(n, float, field="n"),
            method,
            limits=limits,
        )

    return _guarded(action)


def run_rk4(
    expression: str,
    x0: str,
    y0: str,
    h: str,
    x_end: str,
    *,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> SolveOutcome:
    def action():
        return rk4(
            _require_expression(expression),
            InputConvert(x0, float, field="x0"),
            InputConvert(y0, float, field="y0"),
            InputConvert(h, float, field="h"),
            InputConvert(x_end, float, field="target x"),
            limits=limits,
        )

    return _guarded(action)


def run_rk4_second_order(
    expression: str,
    x0: str,
    y0: str,
    z0: str,
    h: str,
    x_end: str,
    *,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> SolveOutcome:
    def action():
        return rk4_second_order(
            _require_expression(expression),
            InputConvert(x0, float, field="x0"),
            InputConvert(y0, float, field="y0"),
            InputConvert(z0, float, field="y'(x0)"),
            InputConvert(h, float, field="h"),
            InputConvert(x_end, float, field="target x"),
            limits=limits,
        )

    return _guarded(action)
