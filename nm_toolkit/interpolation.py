"""Polynomial interpolation through a point set.

Two constructions of the same interpolating polynomial:

- Newton divided differences: a triangular table ``D`` with ``D[i][0] = y_i`` and
  ``D[i][j] = (D[i+1][j-1] - D[i][j-1]) / (x_{i+j} - x_i)``; the top row holds
  the coefficients of ``b0 + b1(x - x0) + b2(x - x0)(x - x1) + ...``.
- Lagrange: ``Σ yᵢ Π_{j≠i} (x - x_j) / (x_i - x_j)``, shown term by term.

Point order matters for the divided-difference table but not for the value.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from .config import DEFAULT_LIMITS, SolverLimits
from .errors import DuplicateAbscissa, InvalidInput
from .formatting import format_number
from .points import Point, PointLike, clean_points

__all__ = [
    "InterpolationMethod",
    "DividedDifferenceTable",
    "InterpolationResult",
    "divided_differences",
    "newton_divided_difference",
    "lagrange",
    "interpolate",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class InterpolationMethod(str, Enum):
    NEWTON = "newton"
    LAGRANGE = "lagrange"


@dataclass(frozen=True)
class DividedDifferenceTable:
    """Row ``i`` holds ``D[i][0] … D[i][n-1-i]`` (the triangle, no padding)."""

    rows: tuple[tuple[float, ...], ...]

    @property
    def coefficients(self) -> tuple[float, ...]:
        return self.rows[0]


@dataclass(frozen=True)
class InterpolationResult:
    method: InterpolationMethod
    points: tuple[Point, ...]
    x: float
    value: float
    polynomial: str
    terms: tuple[str, ...]
    table: Optional[DividedDifferenceTable] = None


def _num(v: float) -> str:
    return format_number(v)


def _prepare(points: Iterable[PointLike], limits: SolverLimits) -> tuple[Point, ...]:
    data = clean_points(points, limits=limits)
    seen: dict[float, int] = {}
    for i, p in enumerate(data):
        if p.x in seen:
            raise DuplicateAbscissa(
                f"Points {seen[p.x] + 1} and {i + 1} share x = {_num(p.x)}; "
                "interpolation needs distinct x values."
            )
        seen[p.x] = i
    return data


def divided_differences(points: Iterable[PointLike], *, limits: SolverLimits = DEFAULT_LIMITS) -> DividedDifferenceTable:
    """Build the Newton divided-difference triangle for ``points``."""
    data = _prepare(points, limits)
    n = len(data)
    table = [[0.0] * n for _ in range(n)]
    for i in range(n):
        table[i][0] = data[i].y
    for j in range(1, n):
        for i in range(n - j):
            table[i][j] = (table[i + 1][j - 1] - table[i][j - 1]) / (data[i + j].x - data[i].x)
    return DividedDifferenceTable(rows=tuple(tuple(table[i][: n - i]) for i in range(n)))


def newton_divided_difference(
    points: Iterable[PointLike], x: float, *, limits: SolverLimits = DEFAULT_LIMITS
) -> InterpolationResult:
    """Evaluate the Newton form of the interpolating polynomial at ``x``."""
    data = _prepare(points, limits)
    table = divided_differences(data, limits=limits)
    b = table.coefficients
    n = len(data)

    value = b[0]
    terms = [_num(b[0])]
    for i in range(1, n):
        term_val = b[i]
        for k in range(i):
            term_val *= x - data[k].x
        value += term_val

        term = f"{'+' if b[i] >= 0 else '-'} {_num(abs(b[i]))}"
        term += "".join(f"(x - {_num(data[k].x)})" for k in range(i))
        terms.append(term)

    logger.debug("newton interpolation over %d points: P(%r) = %r", n, x, value)
    return InterpolationResult(
        method=InterpolationMethod.NEWTON,
        points=data,
        x=float(x),
        value=value,
        polynomial=" ".join(terms),
        terms=tuple(terms),
        table=table,
    )


def lagrange(points: Iterable[PointLike], x: float, *, limits: SolverLimits = DEFAULT_LIMITS) -> InterpolationResult:
    """Evaluate the Lagrange form of the interpolating polynomial at ``x``."""
    data = _prepare(points, limits)
    n = len(data)
    total = 0.0
    terms = []
    for i in range(n):
        term = data[i].y
        num = ""
        den = ""
        for j in range(n):
            if i == j:
                continue
            term *= (x - data[j].x) / (data[i].x - data[j].x)
            num += f"(x - {_num(data[j].x)})"
            den += f"({_num(data[i].x)} - {_num(data[j].x)})"
        total += term
        terms.append(f"{_num(data[i].y)}[ {num} / {den} ]")

    logger.debug("lagrange interpolation over %d points: L(%r) = %r", n, x, total)
    return InterpolationResult(
        method=InterpolationMethod.LAGRANGE,
        points=data,
        x=float(x),
        value=total,
        polynomial="L(x) = " + " + ".join(terms),
        terms=tuple(terms),
    )


def interpolate(
    points: Iterable[PointLike],
    x: float,
    method: InterpolationMethod | str = InterpolationMethod.NEWTON,
    *,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> InterpolationResult:
    try:
        method = InterpolationMethod(method)
    except ValueError as exc:
        raise InvalidInput(f"Unknown interpolation method {method!r}.") from exc
    if method is InterpolationMethod.NEWTON:
        return newton_divided_difference(points, x, limits=limits)
    return lagrange(points, x, limits=limits)
