"""Composite Newton-Cotes rules and Romberg integration of ``f(x)`` over ``[a, b]``.

Every result carries the sample table it was computed from, the named partial
sums that appear in the textbook formula, and a reference value from
:func:`scipy.integrate.quad` so the truncation error can be read off directly.
"""

from __future__ import annotations

import logging
import math
import warnings
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from scipy.integrate import IntegrationWarning, quad

from .config import DEFAULT_LIMITS, SolverLimits
from .errors import EvalError, InvalidInput, InvalidSegmentCount, OddSegmentCount
from .expression import DEFAULT_EVALUATOR, CompiledExpression, ExpressionEvaluator
from .formatting import format_number

__all__ = [
    "IntegrationMethod",
    "SamplePoint",
    "IntegrationResult",
    "RombergLevel",
    "RombergResult",
    "reference_integral",
    "trapezoidal",
    "simpson_one_third",
    "simpson_three_eighths",
    "romberg",
    "integrate",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class IntegrationMethod(str, Enum):
    TRAPEZOIDAL = "trapezoidal"
    SIMPSON_13 = "simpson13"
    SIMPSON_38 = "simpson38"
    ROMBERG = "romberg"


@dataclass(frozen=True)
class SamplePoint:
    i: int
    x: float
    y: float


@dataclass(frozen=True)
class IntegrationResult:
    """Outcome of a composite rule.

    ``sums`` maps the partial-sum names used in ``formula`` (for example
    ``"odd"`` and ``"even"`` for Simpson's 1/3 rule) to their values; the
    mapping is read-only.
    ``reference`` is ``None`` when the adaptive quadrature could not produce
    a value.
    """

    method: IntegrationMethod
    expression: str
    a: float
    b: float
    n: int
    h: float
    points: tuple[SamplePoint, ...]
    sums: Mapping[str, float] = field(hash=False)
    formula: str
    substitution: str
    value: float
    reference: Optional[float]

    @property
    def true_error(self) -> Optional[float]:
        if self.reference is None:
            return None
        return abs(self.reference - self.value)


@dataclass(frozen=True)
class RombergLevel:
    level: int
    segments: int
    h: float
    value: float
    substitution: str
    points: tuple[SamplePoint, ...]


@dataclass(frozen=True)
class RombergResult:
    """Trapezoid levels plus the Richardson table.

    ``table[i][j]`` is defined for ``j <= i``; the accepted value is the last
    diagonal entry.
    """

    expression: str
    a: float
    b: float
    n: int
    levels: tuple[RombergLevel, ...]
    table: tuple[tuple[float, ...], ...]
    value: float
    reference: Optional[float]

    method = IntegrationMethod.ROMBERG

    @property
    def true_error(self) -> Optional[float]:
        if self.reference is None:
            return None
        return abs(self.reference - self.value)


def reference_integral(f: CompiledExpression, a: float, b: float) -> Optional[float]:
    """Adaptive-quadrature value of the integral, or ``None`` if quad fails."""
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error", IntegrationWarning)
            value, _error = quad(f, a, b)
    except (EvalError, IntegrationWarning) as exc:
        logger.warning("Reference integral of %r over [%r, %r] unavailable: %s", f.text, a, b, exc)
        return None
    return float(value)


def _segment_count(n: int) -> int:
    if isinstance(n, bool) or not float(n).is_integer() or n <= 0:
        raise InvalidSegmentCount(f"n must be a positive integer, got {n!r}.")
    return int(n)


def _grid(f: CompiledExpression, a: float, b: float, n: int) -> tuple[float, tuple[SamplePoint, ...]]:
    h = (b - a) / n
    return h, tuple(SamplePoint(i, a + i * h, f(a + i * h)) for i in range(n + 1))


def _composite(
    method: IntegrationMethod,
    expression: str,
    a: float,
    b: float,
    n: int,
    evaluator: ExpressionEvaluator,
) -> IntegrationResult:
    n = _segment_count(n)
    if method is IntegrationMethod.SIMPSON_13 and n % 2 != 0:
        raise OddSegmentCount("Simpson's 1/3 Rule requires n to be even.")
    if method is IntegrationMethod.SIMPSON_38 and n % 3 != 0:
        raise InvalidSegmentCount("Simpson's 3/8 Rule requires n to be a multiple of 3.")

    a, b = float(a), float(b)
    f = evaluator.compile(expression, ("x",))
    h, points = _grid(f, a, b, n)
    f0, fn = points[0].y, points[n].y
    inner = points[1:n]
    num = format_number

    if method is IntegrationMethod.TRAPEZOIDAL:
        total = math.fsum(p.y for p in inner)
        value = (h / 2) * (f0 + 2 * total + fn)
        sums = {"interior": total}
        formula = "I ≈ (h/2)[f(x₀) + 2Σf(xᵢ) + f(xₙ)]"
        substitution = f"I ≈ ({num(h)}/2)[{num(f0)} + 2({num(total)}) + {num(fn)}]"
    elif method is IntegrationMethod.SIMPSON_13:
        odd = math.fsum(p.y for p in inner if p.i % 2 != 0)
        even = math.fsum(p.y for p in inner if p.i % 2 == 0)
        value = (h / 3) * (f0 + 4 * odd + 2 * even + fn)
        sums = {"odd": odd, "even": even}
        formula = "I ≈ (h/3)[f(x₀) + 4Σf(odd) + 2Σf(even) + f(xₙ)]"
        substitution = f"I ≈ ({num(h)}/3)[{num(f0)} + 4({num(odd)}) + 2({num(even)}) + {num(fn)}]"
    else:
        mult3 = math.fsum(p.y for p in inner if p.i % 3 == 0)
        rest = math.fsum(p.y for p in inner if p.i % 3 != 0)
        value = (3 * h / 8) * (f0 + 3 * rest + 2 * mult3 + fn)
        sums = {"non_multiple_of_3": rest, "multiple_of_3": mult3}
        formula = "I ≈ (3h/8)[f(x₀) + 3Σf(non-3k) + 2Σf(3k) + f(xₙ)]"
        substitution = f"I ≈ (3({num(h)})/8)[{num(f0)} + 3({num(rest)}) + 2({num(mult3)}) + {num(fn)}]"

    logger.info("%s of %r over [%r, %r] with n=%d: %r", method.value, expression, a, b, n, value)
    return IntegrationResult(
        method=method,
        expression=expression,
        a=a,
        b=b,
        n=n,
        h=h,
        points=points,
        sums=MappingProxyType(sums),
        formula=formula,
        substitution=substitution,
        value=value,
        reference=reference_integral(f, a, b),
    )


def trapezoidal(expression: str, a: float, b: float, n: int, *, evaluator: ExpressionEvaluator = DEFAULT_EVALUATOR) -> IntegrationResult:
    """Composite trapezoidal rule with ``n`` equal segments."""
    return _composite(IntegrationMethod.TRAPEZOIDAL, expression, a, b, n, evaluator)


def simpson_one_third(expression: str, a: float, b: float, n: int, *, evaluator: ExpressionEvaluator = DEFAULT_EVALUATOR) -> IntegrationResult:
    """Composite Simpson's 1/3 rule; ``n`` must be even.

    Raises
    ------
    OddSegmentCount
        If ``n`` is odd.
    """
    return _composite(IntegrationMethod.SIMPSON_13, expression, a, b, n, evaluator)


def simpson_three_eighths(expression: str, a: float, b: float, n: int, *, evaluator: ExpressionEvaluator = DEFAULT_EVALUATOR) -> IntegrationResult:
    """Composite Simpson's 3/8 rule; ``n`` must be a multiple of 3.

    Raises
    ------
    InvalidSegmentCount
        If ``n % 3 != 0``.
    """
    return _composite(IntegrationMethod.SIMPSON_38, expression, a, b, n, evaluator)


def romberg(
    expression: str,
    a: float,
    b: float,
    n: int,
    *,
    evaluator: ExpressionEvaluator = DEFAULT_EVALUATOR,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> RombergResult:
    """Romberg integration with ``n`` levels.

    Level ``i`` is the trapezoidal estimate on ``2**i`` segments. Richardson
    extrapolation fills ``R[i][j] = (4^j R[i][j-1] - R[i-1][j-1]) / (4^j - 1)``.

    Raises
    ------
    InvalidSegmentCount
        If ``n`` is not a positive integer or exceeds ``limits.max_romberg_levels``.
    """
    n = _segment_count(n)
    if n > limits.max_romberg_levels:
        raise InvalidSegmentCount(f"Romberg supports at most {limits.max_romberg_levels} levels, got {n}.")

    a, b = float(a), float(b)
    f = evaluator.compile(expression, ("x",))
    num = format_number

    levels: list[RombergLevel] = []
    table: list[list[float]] = []
    for i in range(n):
        segments = 2 ** i
        h, points = _grid(f, a, b, segments)
        interior = math.fsum(p.y for p in points[1:segments])
        fa, fb = points[0].y, points[segments].y
        value = (h / 2) * (fa + 2 * interior + fb)
        middle = f"2({num(interior)}) + " if segments > 1 else ""
        levels.append(
            RombergLevel(
                level=i,
                segments=segments,
                h=h,
                value=value,
                substitution=f"J = ({num(h)}/2) [ {num(fa)} + {middle}{num(fb)} ]",
                points=points,
            )
        )
        table.append([value])
        logger.debug("romberg level %d (%d segments): %r", i, segments, value)

    for j in range(1, n):
        factor = 4 ** j
        for i in range(j, n):
            table[i].append((factor * table[i][j - 1] - table[i - 1][j - 1]) / (factor - 1))

    value = table[n - 1][n - 1]
    logger.info("romberg of %r over [%r, %r] with %d level(s): %r", expression, a, b, n, value)
    return RombergResult(
        expression=expression,
        a=a,
        b=b,
        n=n,
        levels=tuple(levels),
        table=tuple(tuple(row) for row in table),
        value=value,
        reference=reference_integral(f, a, b),
    )


def integrate(
    expression: str,
    a: float,
    b: float,
    n: int,
    method: IntegrationMethod | str = IntegrationMethod.TRAPEZOIDAL,
    *,
    evaluator: ExpressionEvaluator = DEFAULT_EVALUATOR,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> IntegrationResult | RombergResult:
    """Dispatch on the method tag; ``n`` is the segment count, or the level count for Romberg."""
    try:
        method = IntegrationMethod(method)
    except ValueError as exc:
        raise InvalidInput(f"Unknown integration method {method!r}.") from exc
    if method is IntegrationMethod.ROMBERG:
        return romberg(expression, a, b, n, evaluator=evaluator, limits=limits)
    return _composite(method, expression, a, b, n, evaluator)
