"""Finite-difference derivatives compared against the analytic derivative.

======  ========  =================================================
order   method    approximation
======  ========  =================================================
1       forward   ``(f(x+h) - f(x)) / h``
1       backward  ``(f(x) - f(x-h)) / h``
1       central   ``(f(x+h) - f(x-h)) / (2h)``
2       forward   ``(f(x+2h) - 2f(x+h) + f(x)) / h²``
2       backward  ``(f(x) - 2f(x-h) + f(x-2h)) / h²``
2       central   ``(f(x+h) - 2f(x) + f(x-h)) / h²``
======  ========  =================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import DifferentiationUnsupported, InvalidInput, ZeroStepSize
from .expression import DEFAULT_EVALUATOR, ExpressionEvaluator
from .formatting import format_number

__all__ = ["DifferenceMethod", "DifferenceResult", "finite_difference"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class DifferenceMethod(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"
    CENTRAL = "central"


# (order, method) -> (title, formula, offsets in units of h)
_RULES: dict[tuple[int, DifferenceMethod], tuple[str, str, tuple[int, ...]]] = {
    (1, DifferenceMethod.FORWARD): (
        "Forward Finite Divided Difference",
        "f'(x) ≈ ( f(x+h) - f(x) ) / h",
        (0, 1),
    ),
    (1, DifferenceMethod.BACKWARD): (
        "Backward Finite Divided Difference",
        "f'(x) ≈ ( f(x) - f(x-h) ) / h",
        (-1, 0),
    ),
    (1, DifferenceMethod.CENTRAL): (
        "Central Finite Divided Difference",
        "f'(x) ≈ ( f(x+h) - f(x-h) ) / 2h",
        (-1, 1),
    ),
    (2, DifferenceMethod.FORWARD): (
        "Second Order Forward Difference",
        "f''(x) ≈ ( f(x+2h) - 2f(x+h) + f(x) ) / h²",
        (0, 1, 2),
    ),
    (2, DifferenceMethod.BACKWARD): (
        "Second Order Backward Difference",
        "f''(x) ≈ ( f(x) - 2f(x-h) + f(x-2h) ) / h²",
        (-2, -1, 0),
    ),
    (2, DifferenceMethod.CENTRAL): (
        "Second Order Central Difference",
        "f''(x) ≈ ( f(x+h) - 2f(x) + f(x-h) ) / h²",
        (-1, 0, 1),
    ),
}


@dataclass(frozen=True)
class DifferenceResult:
    """Approximation, the points it used, and its error against the exact derivative.

    ``true_value`` and the error fields are ``None`` when no symbolic
    derivative is available for the expression.
    """

    expression: str
    method: DifferenceMethod
    order: int
    x: float
    h: float
    title: str
    formula: str
    substitution: str
    approximation: float
    samples: tuple[tuple[float, float], ...]
    true_value: Optional[float]
    absolute_error: Optional[float]
    relative_error_percent: Optional[float]


def _combine(order: int, method: DifferenceMethod, f: dict[int, float], h: float) -> tuple[float, str]:
    n = format_number
    if order == 1:
        if method is DifferenceMethod.FORWARD:
            return (f[1] - f[0]) / h, f"({n(f[1])} - {n(f[0])}) / {n(h)}"
        if method is DifferenceMethod.BACKWARD:
            return (f[0] - f[-1]) / h, f"({n(f[0])} - {n(f[-1])}) / {n(h)}"
        return (f[1] - f[-1]) / (2 * h), f"({n(f[1])} - {n(f[-1])}) / {n(2 * h)}"
    if method is DifferenceMethod.FORWARD:
        value = (f[2] - 2 * f[1] + f[0]) / (h * h)
        return value, f"({n(f[2])} - 2({n(f[1])}) + {n(f[0])}) / {n(h)}^2"
    if method is DifferenceMethod.BACKWARD:
        value = (f[0] - 2 * f[-1] + f[-2]) / (h * h)
        return value, f"({n(f[0])} - 2({n(f[-1])}) + {n(f[-2])}) / {n(h)}^2"
    value = (f[1] - 2 * f[0] + f[-1]) / (h * h)
    return value, f"({n(f[1])} - 2({n(f[0])}) + {n(f[-1])}) / {n(h)}^2"


def finite_difference(
    expression: str,
    x: float,
    h: float,
    method: DifferenceMethod | str = DifferenceMethod.FORWARD,
    order: int = 1,
    *,
    evaluator: ExpressionEvaluator = DEFAULT_EVALUATOR,
) -> DifferenceResult:
    """Approximate the ``order``-th derivative of ``expression`` at ``x`` with step ``h``.

    Raises
    ------
    ZeroStepSize
        If ``h == 0``.
    InvalidInput
        If ``order`` is not 1 or 2, or the method tag is unknown.
    """
    try:
        method = DifferenceMethod(method)
    except ValueError as exc:
        raise InvalidInput(f"Unknown difference method {method!r}.") from exc
    if order not in (1, 2):
        raise InvalidInput(f"Derivative order must be 1 or 2, got {order!r}.")
    if h == 0:
        raise ZeroStepSize("Step size h cannot be zero")

    x, h = float(x), float(h)
    title, formula, offsets = _RULES[(order, method)]
    f = evaluator.compile(expression, ("x",))
    values = {k: f(x + k * h) for k in offsets}
    approximation, substitution = _combine(order, method, values, h)

    true_value: Optional[float] = None
    absolute_error: Optional[float] = None
    relative_error: Optional[float] = None
    try:
        derivative = evaluator.differentiate(expression, "x", order=order)
        true_value = evaluator.evaluate(derivative, {"x": x})
    except DifferentiationUnsupported as exc:
        logger.warning("Could not calculate analytical derivative: %s", exc)
    else:
        absolute_error = abs(true_value - approximation)
        relative_error = abs(absolute_error / true_value) * 100 if true_value != 0 else 0.0

    logger.info("%s (order %d) of %r at x=%r: %r", method.value, order, expression, x, approximation)
    return DifferenceResult(
        expression=expression,
        method=method,
        order=order,
        x=x,
        h=h,
        title=title,
        formula=formula,
        substitution=substitution,
        approximation=approximation,
        samples=tuple((x + k * h, values[k]) for k in offsets),
        true_value=true_value,
        absolute_error=absolute_error,
        relative_error_percent=relative_error,
    )
