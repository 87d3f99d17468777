"""Root finding for ``f(x) = 0``: bisection, false position and Newton-Raphson.

Each method records one row per iteration, holding exactly the columns of the
textbook table for that method, and stops at the first row meeting the
tolerance or after ``SolverLimits.max_iterations`` rows.

Convergence tests differ by family:

- bracketing methods (bisection, false position) stop when ``|f(xm)| < tol``;
- Newton-Raphson stops when the relative change ``|(x_{k+1} - x_k) / x_{k+1}| < tol``.

Running out of iterations is not an error; the summary of the last row is
returned with ``converged=False`` and a :class:`~nm_toolkit.errors.NotConverged`
warning attached.

Examples
--------
>>> result = bisection("x^2 - 2", 0, 2, 1e-4)
>>> round(result.summary.value, 4)
1.4142
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .config import DEFAULT_LIMITS, SolverLimits
from .errors import DivisionByZero, InvalidInput, NoSignChange, NotConverged, ZeroDerivative
from .expression import DEFAULT_EVALUATOR, ExpressionEvaluator
from .formatting import format_tolerance

__all__ = [
    "RootMethod",
    "BracketRow",
    "NewtonRow",
    "RootSummary",
    "RootResult",
    "bisection",
    "false_position",
    "newton_raphson",
    "find_root",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class RootMethod(str, Enum):
    BISECTION = "bisection"
    # Shown as "Secant" in the classroom menus.
    FALSE_POSITION = "secant"
    NEWTON = "newton"


@dataclass(frozen=True)
class BracketRow:
    """One bisection / false-position iteration."""

    k: int
    xl: float
    xu: float
    xm: float
    f_xm: float
    abs_f_xm: float
    remark: str


@dataclass(frozen=True)
class NewtonRow:
    """One Newton-Raphson iteration; ``d_k`` is the relative change."""

    k: int
    x_k: float
    f_x_k: float
    df_x_k: float
    x_next: float
    d_k: float
    remark: str


@dataclass(frozen=True)
class RootSummary:
    """Accepted root, taken from the last recorded row.

    ``k`` is zero based; the accepted iterate is ``x^(k+1)``.
    """

    k: int
    value: float
    converged: bool
    warning: Optional[NotConverged] = None

    @property
    def accepted_iteration(self) -> int:
        return self.k + 1


@dataclass(frozen=True)
class RootResult:
    method: RootMethod
    expression: str
    tolerance: float
    rows: tuple[Union[BracketRow, NewtonRow], ...]
    summary: RootSummary
    derivative: Optional[str] = None


def _remark(metric: float, tol: float) -> str:
    return f"{'<' if metric < tol else '>'} {format_tolerance(tol)}"


def _check_tolerance(tol: float) -> float:
    if tol is None or not tol > 0:
        raise InvalidInput("Invalid tolerance: it must be a positive number.")
    return float(tol)


def _summarize(method: RootMethod, rows: list, value: float, converged: bool, limits: SolverLimits) -> RootSummary:
    k = rows[-1].k
    warning = None
    if not converged:
        warning = NotConverged(
            f"{method.value} did not reach the tolerance within {limits.max_iterations} iterations; "
            f"returning the last estimate x = {value!r}.",
            iterations=len(rows),
        )
        logger.warning("%s", warning)
    else:
        logger.info("%s converged to %r after %d iteration(s)", method.value, value, len(rows))
    return RootSummary(k=k, value=value, converged=converged, warning=warning)


def _bracketing(
    method: RootMethod,
    expression: str,
    xl: float,
    xu: float,
    tol: float,
    evaluator: ExpressionEvaluator,
    limits: SolverLimits,
) -> RootResult:
    tol = _check_tolerance(tol)
    f = evaluator.compile(expression, ("x",))
    lower, upper = float(xl), float(xu)

    if f(lower) * f(upper) >= 0:
        raise NoSignChange("f(xl) and f(xu) must have opposite signs.")

    rows: list[BracketRow] = []
    converged = False
    xm = lower
    for k in range(limits.max_iterations):
        if method is RootMethod.BISECTION:
            xm = (lower + upper) / 2
        else:
            fl, fu = f(lower), f(upper)
            if abs(fu - fl) < limits.division_tolerance:
                raise DivisionByZero("Division by zero in False Position: f(xu) equals f(xl).")
            xm = (lower * fu - upper * fl) / (fu - fl)

        f_xm = f(xm)
        is_converged = abs(f_xm) < tol
        rows.append(BracketRow(k, lower, upper, xm, f_xm, abs(f_xm), _remark(abs(f_xm), tol)))
        logger.debug("%s k=%d xl=%r xu=%r xm=%r f(xm)=%r", method.value, k, lower, upper, xm, f_xm)
        if is_converged:
            converged = True
            break

        if f(lower) * f_xm < 0:
            upper = xm
        else:
            lower = xm

    return RootResult(
        method=method,
        expression=expression,
        tolerance=tol,
        rows=tuple(rows),
        summary=_summarize(method, rows, xm, converged, limits),
    )


def bisection(
    expression: str,
    xl: float,
    xu: float,
    tol: float,
    *,
    evaluator: ExpressionEvaluator = DEFAULT_EVALUATOR,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> RootResult:
    """Bisection on the bracket ``[xl, xu]``.

    Raises
    ------
    NoSignChange
        If ``f(xl) * f(xu) >= 0``.
    """
    return _bracketing(RootMethod.BISECTION, expression, xl, xu, tol, evaluator, limits)


def false_position(
    expression: str,
    xl: float,
    xu: float,
    tol: float,
    *,
    evaluator: ExpressionEvaluator = DEFAULT_EVALUATOR,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> RootResult:
    """False position (regula falsi) on the bracket ``[xl, xu]``.

    ``xm = (xl f(xu) - xu f(xl)) / (f(xu) - f(xl))``; the bracket is updated as
    in bisection.

    Raises
    ------
    NoSignChange
        If ``f(xl) * f(xu) >= 0``.
    DivisionByZero
        If ``|f(xu) - f(xl)|`` falls below ``limits.division_tolerance``.
    """
    return _bracketing(RootMethod.FALSE_POSITION, expression, xl, xu, tol, evaluator, limits)


def newton_raphson(
    expression: str,
    x0: float,
    tol: float,
    *,
    evaluator: ExpressionEvaluator = DEFAULT_EVALUATOR,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> RootResult:
    """Newton-Raphson from ``x0`` using the symbolic derivative of ``expression``.

    Raises
    ------
    ZeroDerivative
        If ``|f'(x_k)|`` falls below ``limits.division_tolerance``.
    DifferentiationUnsupported
        If no symbolic derivative is available.
    """
    tol = _check_tolerance(tol)
    f = evaluator.compile(expression, ("x",))
    derivative = evaluator.differentiate(expression, "x")
    df = evaluator.compile(derivative, ("x",))

    rows: list[NewtonRow] = []
    converged = False
    curr = float(x0)
    nxt = curr
    for k in range(limits.max_iterations):
        fx = f(curr)
        dfx = df(curr)
        if abs(dfx) < limits.division_tolerance:
            raise ZeroDerivative("Derivative is zero. Newton-Raphson fails.")

        nxt = curr - fx / dfx
        if nxt == 0:
            # relative change is undefined at an exact zero root
            d_k = abs(nxt - curr)
        else:
            d_k = abs((nxt - curr) / nxt)
        is_converged = d_k < tol
        rows.append(NewtonRow(k, curr, fx, dfx, nxt, d_k, _remark(d_k, tol)))
        logger.debug("newton k=%d x_k=%r x_k+1=%r d_k=%r", k, curr, nxt, d_k)
        if is_converged:
            converged = True
            break
        curr = nxt

    return RootResult(
        method=RootMethod.NEWTON,
        expression=expression,
        tolerance=tol,
        rows=tuple(rows),
        summary=_summarize(RootMethod.NEWTON, rows, nxt, converged, limits),
        derivative=derivative,
    )


def find_root(
    expression: str,
    method: RootMethod | str,
    *,
    tol: float,
    xl: Optional[float] = None,
    xu: Optional[float] = None,
    x0: Optional[float] = None,
    evaluator: ExpressionEvaluator = DEFAULT_EVALUATOR,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> RootResult:
    """Dispatch on the method tag; bracketing methods need ``xl``/``xu``, Newton needs ``x0``."""
    try:
        method = RootMethod(method)
    except ValueError as exc:
        raise InvalidInput(f"Unknown root-finding method {method!r}.") from exc

    if method is RootMethod.NEWTON:
        if x0 is None:
            raise InvalidInput("Please enter initial guess.")
        return newton_raphson(expression, x0, tol, evaluator=evaluator, limits=limits)

    if xl is None or xu is None:
        raise InvalidInput("Please enter upper and lower bounds.")
    if method is RootMethod.BISECTION:
        return bisection(expression, xl, xu, tol, evaluator=evaluator, limits=limits)
    return false_position(expression, xl, xu, tol, evaluator=evaluator, limits=limits)
