"""Least-squares curve fitting with an auditable summation table.

Supported models (one dataclass per variant):

- :class:`LinearModel`       -- ``y = c0 + c1 x``
- :class:`QuadraticModel`    -- ``y = c0 + c1 x + c2 x²``
- :class:`CustomBasisModel`  -- ``y = Σ cᵢ φᵢ(x)`` for user expressions ``φᵢ``
- :class:`ExponentialModel`  -- ``y = a e^(bx)``, fitted on ``ln y = ln a + b x``

Linear-in-parameters models build the normal equations
``A[i][j] = Σ φᵢ(x_k) φⱼ(x_k)`` and ``B[i] = Σ y_k φᵢ(x_k)`` and solve them with
:func:`nm_toolkit.linear_solver.gaussian_elimination`. The exponential model
solves its 2×2 system in closed form (Cramer's rule).

Each fit also returns the summation table used to build the system: one row per
point with every power/product term, plus the column totals.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from .config import DEFAULT_LIMITS, SolverLimits
from .errors import InvalidInput, NonPositiveY, SingularMatrix
from .expression import DEFAULT_EVALUATOR, ExpressionEvaluator
from .formatting import format_number
from .linear_solver import gaussian_elimination
from .points import Point, PointLike, clean_points

__all__ = [
    "LinearModel",
    "QuadraticModel",
    "ExponentialModel",
    "CustomBasisModel",
    "FitModel",
    "SummationTable",
    "FitResult",
    "model_from_name",
    "fit_curve",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


@dataclass(frozen=True)
class LinearModel:
    name: str = field(default="linear", init=False)
    basis: tuple[str, ...] = field(default=("1", "x"), init=False)


@dataclass(frozen=True)
class QuadraticModel:
    name: str = field(default="quadratic", init=False)
    basis: tuple[str, ...] = field(default=("1", "x", "x^2"), init=False)


@dataclass(frozen=True)
class ExponentialModel:
    name: str = field(default="exponential", init=False)


@dataclass(frozen=True)
class CustomBasisModel:
    """Arbitrary basis ``φ₀ … φ_{M-1}`` given as expression strings in ``x``."""

    basis: tuple[str, ...]
    name: str = field(default="custom", init=False)

    def __post_init__(self) -> None:
        if not self.basis:
            raise InvalidInput("Please enter basis functions.")

    @classmethod
    def from_text(cls, text: str) -> "CustomBasisModel":
        """Build from a comma separated list such as ``"1, x, cos(x)"``."""
        basis = tuple(part.strip() for part in (text or "").split(",") if part.strip())
        return cls(basis=basis)


FitModel = Union[LinearModel, QuadraticModel, ExponentialModel, CustomBasisModel]


def model_from_name(name: str, basis_text: Optional[str] = None) -> FitModel:
    """Map a menu tag (``linear``/``quadratic``/``exponential``/``custom``) to a model."""
    if name == "linear":
        return LinearModel()
    if name == "quadratic":
        return QuadraticModel()
    if name == "exponential":
        return ExponentialModel()
    if name == "custom":
        return CustomBasisModel.from_text(basis_text or "")
    raise InvalidInput(f"Unknown curve-fitting model {name!r}.")


@dataclass(frozen=True)
class SummationTable:
    headers: tuple[str, ...]
    rows: tuple[tuple[float, ...], ...]
    sums: tuple[float, ...]

    def total(self, header: str) -> float:
        return self.sums[self.headers.index(header)]

    def column(self, header: str) -> tuple[float, ...]:
        idx = self.headers.index(header)
        return tuple(row[idx] for row in self.rows)


@dataclass(frozen=True)
class FitResult:
    """Fitted coefficients with the normal-equation system that produced them.

    For the exponential model ``coefficients`` is ``(a, b)`` while the system
    is solved for ``(ln a, b)``; ``unknowns`` names the solved quantities.
    """

    model: FitModel
    points: tuple[Point, ...]
    matrix_a: tuple[tuple[float, ...], ...]
    vector_b: tuple[float, ...]
    coefficients: tuple[float, ...]
    unknowns: tuple[str, ...]
    equation: str
    summation_table: SummationTable
    evaluator: ExpressionEvaluator = field(default=DEFAULT_EVALUATOR, repr=False, compare=False)

    def predict(self, x: float) -> float:
        """Evaluate the fitted curve at ``x``."""
        if isinstance(self.model, ExponentialModel):
            a, b = self.coefficients
            return a * math.exp(b * x)
        total = 0.0
        for c, phi in zip(self.coefficients, self.model.basis):
            total += c * self.evaluator.evaluate(phi, {"x": x})
        return total


def _table(headers: list[str], rows: list[tuple[float, ...]]) -> SummationTable:
    sums = tuple(math.fsum(row[i] for row in rows) for i in range(len(headers)))
    return SummationTable(headers=tuple(headers), rows=tuple(rows), sums=sums)


def _label(expr: str) -> str:
    return f"({expr})" if ("+" in expr or "-" in expr) else expr


def _basis_table(model: FitModel, data: tuple[Point, ...], phi: list[list[float]]) -> SummationTable:
    if isinstance(model, LinearModel):
        headers = ["x", "y", "x²", "xy"]
        rows = [(p.x, p.y, p.x * p.x, p.x * p.y) for p in data]
    elif isinstance(model, QuadraticModel):
        headers = ["x", "y", "x²", "x³", "x⁴", "xy", "x²y"]
        rows = [
            (p.x, p.y, p.x ** 2, p.x ** 3, p.x ** 4, p.x * p.y, p.x ** 2 * p.y)
            for p in data
        ]
    else:
        basis = model.basis
        m = len(basis)
        headers = ["x", "y", *basis]
        pairs = [(i, j) for i in range(m) for j in range(i, m)]
        headers += [f"{_label(basis[i])}·{_label(basis[j])}" for i, j in pairs]
        headers += [f"y·{_label(b)}" for b in basis]
        rows = []
        for k, p in enumerate(data):
            values = phi[k]
            rows.append((
                p.x,
                p.y,
                *values,
                *(values[i] * values[j] for i, j in pairs),
                *(p.y * v for v in values),
            ))
    return _table(headers, rows)


def _equation(coefficients: tuple[float, ...], basis: tuple[str, ...]) -> str:
    terms = []
    for c, base in zip(coefficients, basis):
        c_str = format_number(c)
        if base == "1":
            terms.append(c_str)
        else:
            terms.append(f"({c_str}){_label(base)}")
    return ("y = " + " + ".join(terms)).replace("+ -", "- ")


def _fit_linear_in_parameters(
    model: Union[LinearModel, QuadraticModel, CustomBasisModel],
    data: tuple[Point, ...],
    evaluator: ExpressionEvaluator,
    limits: SolverLimits,
) -> FitResult:
    basis = model.basis
    funcs = [evaluator.compile(expr, ("x",)) for expr in basis]
    phi = [[fn(p.x) for fn in funcs] for p in data]
    m = len(basis)

    matrix_a = tuple(
        tuple(math.fsum(phi[k][i] * phi[k][j] for k in range(len(data))) for j in range(m))
        for i in range(m)
    )
    vector_b = tuple(math.fsum(data[k].y * phi[k][i] for k in range(len(data))) for i in range(m))

    augmented = [list(row) + [vector_b[i]] for i, row in enumerate(matrix_a)]
    try:
        coefficients = gaussian_elimination(augmented, pivot_tolerance=limits.fit_pivot_tolerance)
    except SingularMatrix as exc:
        raise SingularMatrix("Singular matrix - improper basis functions or insufficient data.") from exc

    return FitResult(
        model=model,
        points=data,
        matrix_a=matrix_a,
        vector_b=vector_b,
        coefficients=coefficients,
        unknowns=tuple(f"c{i}" for i in range(m)),
        equation=_equation(coefficients, basis),
        summation_table=_basis_table(model, data, phi),
        evaluator=evaluator,
    )


def _fit_exponential(model: ExponentialModel, data: tuple[Point, ...], evaluator: ExpressionEvaluator) -> FitResult:
    for p in data:
        if p.y <= 0:
            raise NonPositiveY("Exponential fit requires positive Y values.")

    rows = []
    for p in data:
        ln_y = math.log(p.y)
        rows.append((p.x, p.y, ln_y, p.x * p.x, p.x * ln_y))
    table = _table(["x", "y", "ln(y)", "x²", "x·ln(y)"], rows)

    n = float(len(data))
    sum_x, sum_ln_y = table.total("x"), table.total("ln(y)")
    sum_x2, sum_x_ln_y = table.total("x²"), table.total("x·ln(y)")

    matrix_a = ((n, sum_x), (sum_x, sum_x2))
    vector_b = (sum_ln_y, sum_x_ln_y)
    det = matrix_a[0][0] * matrix_a[1][1] - matrix_a[0][1] * matrix_a[1][0]
    if abs(det) < 1e-12:
        raise SingularMatrix("Singular matrix - all x values are equal, the exponent cannot be fitted.")

    big_a = (vector_b[0] * matrix_a[1][1] - vector_b[1] * matrix_a[0][1]) / det
    big_b = (matrix_a[0][0] * vector_b[1] - matrix_a[1][0] * vector_b[0]) / det
    a, b = math.exp(big_a), big_b

    return FitResult(
        model=model,
        points=data,
        matrix_a=matrix_a,
        vector_b=vector_b,
        coefficients=(a, b),
        unknowns=("ln(a)", "b"),
        equation=f"y = {format_number(a)}e^({format_number(b)}x)",
        summation_table=table,
        evaluator=evaluator,
    )


def fit_curve(
    points: Iterable[PointLike],
    model: FitModel,
    *,
    evaluator: ExpressionEvaluator = DEFAULT_EVALUATOR,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> FitResult:
    """Fit ``model`` to ``points`` by least squares.

    Raises
    ------
    InsufficientData
        If fewer than two valid (non-NaN) points are given.
    NonPositiveY
        If the exponential model meets ``y <= 0``.
    SingularMatrix
        If the normal equations have no usable pivot.
    """
    data = clean_points(points, limits=limits)
    if isinstance(model, ExponentialModel):
        result = _fit_exponential(model, data, evaluator)
    elif isinstance(model, (LinearModel, QuadraticModel, CustomBasisModel)):
        result = _fit_linear_in_parameters(model, data, evaluator, limits)
    else:
        raise InvalidInput(f"Unsupported fit model: {model!r}")
    logger.info("%s fit over %d points: %s", model.name, len(data), result.equation)
    return result
