"""Classical fourth-order Runge-Kutta for initial value problems.

Two entry points:

- :func:`rk4` for ``y' = f(x, y)``;
- :func:`rk4_second_order` for ``y'' = f(x, y, z)`` with ``z = y'``, integrated
  as the first-order system ``y' = z``, ``z' = f(x, y, z)``.

The step size is fixed. Stepping continues while ``x < x_end - slack``, so the
last step may end past ``x_end`` when ``h`` does not divide the interval.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from .config import DEFAULT_LIMITS, SolverLimits
from .errors import InvalidInput, StepSizeTooSmall
from .expression import DEFAULT_EVALUATOR, ExpressionEvaluator

__all__ = ["RK4Step", "SystemRK4Step", "ODEResult", "rk4", "rk4_second_order"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


@dataclass(frozen=True)
class RK4Step:
    i: int
    x: float
    y: float
    k1: float
    k2: float
    k3: float
    k4: float
    slope: float
    x_next: float
    y_next: float


@dataclass(frozen=True)
class SystemRK4Step:
    """One joint step; each ``k`` is a ``(k_y, k_z)`` pair."""

    i: int
    x: float
    y: float
    z: float
    k1: tuple[float, float]
    k2: tuple[float, float]
    k3: tuple[float, float]
    k4: tuple[float, float]
    slope_y: float
    slope_z: float
    x_next: float
    y_next: float
    z_next: float


@dataclass(frozen=True)
class ODEResult:
    expression: str
    h: float
    x_end: float
    steps: tuple
    x_final: float
    y_final: float

    @property
    def z_final(self) -> float | None:
        last = self.steps[-1]
        return getattr(last, "z_next", None)


def _check_run(x0: float, h: float, x_end: float, limits: SolverLimits) -> None:
    if h <= 0:
        raise InvalidInput("Step size must be positive.")
    if x_end <= x0:
        raise InvalidInput("Target X must be greater than Initial X.")
    if math.ceil((x_end - x0) / h) > limits.max_ode_steps:
        raise StepSizeTooSmall("Step size too small (too many iterations). Increase h.")


def rk4(
    expression: str,
    x0: float,
    y0: float,
    h: float,
    x_end: float,
    *,
    evaluator: ExpressionEvaluator = DEFAULT_EVALUATOR,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> ODEResult:
    """Integrate ``y' = f(x, y)`` from ``(x0, y0)`` to ``x_end`` with step ``h``.

    Raises
    ------
    InvalidInput
        If ``h <= 0`` or ``x_end <= x0``.
    StepSizeTooSmall
        If the run would need more than ``limits.max_ode_steps`` steps.
    """
    x0, y0, h, x_end = float(x0), float(y0), float(h), float(x_end)
    _check_run(x0, h, x_end, limits)
    f = evaluator.compile(expression, ("x", "y"))

    steps: list[RK4Step] = []
    x, y = x0, y0
    i = 0
    while x < x_end - limits.ode_end_slack and i < limits.max_ode_steps:
        k1 = f(x, y)
        k2 = f(x + 0.5 * h, y + 0.5 * k1 * h)
        k3 = f(x + 0.5 * h, y + 0.5 * k2 * h)
        k4 = f(x + h, y + k3 * h)
        slope = (k1 + 2 * k2 + 2 * k3 + k4) / 6
        x_next, y_next = x + h, y + slope * h
        steps.append(RK4Step(i, x, y, k1, k2, k3, k4, slope, x_next, y_next))
        logger.debug("rk4 step %d: x=%r y=%r -> y=%r", i, x, y, y_next)
        x, y = x_next, y_next
        i += 1

    logger.info("rk4 on %r: y(%r) = %r after %d step(s)", expression, x, y, len(steps))
    return ODEResult(expression=expression, h=h, x_end=x_end, steps=tuple(steps), x_final=x, y_final=y)


def rk4_second_order(
    expression: str,
    x0: float,
    y0: float,
    z0: float,
    h: float,
    x_end: float,
    *,
    evaluator: ExpressionEvaluator = DEFAULT_EVALUATOR,
    limits: SolverLimits = DEFAULT_LIMITS,
) -> ODEResult:
    """Integrate ``y'' = f(x, y, z)`` with ``y(x0) = y0`` and ``y'(x0) = z0``.

    ``expression`` may use ``x``, ``y`` and ``z`` (the first derivative).
    """
    x0, y0, z0 = float(x0), float(y0), float(z0)
    h, x_end = float(h), float(x_end)
    _check_run(x0, h, x_end, limits)
    f2 = evaluator.compile(expression, ("x", "y", "z"))

    def derivs(x: float, y: float, z: float) -> tuple[float, float]:
        return z, f2(x, y, z)

    steps: list[SystemRK4Step] = []
    x, y, z = x0, y0, z0
    i = 0
    while x < x_end - limits.ode_end_slack and i < limits.max_ode_steps:
        k1 = derivs(x, y, z)
        k2 = derivs(x + 0.5 * h, y + 0.5 * k1[0] * h, z + 0.5 * k1[1] * h)
        k3 = derivs(x + 0.5 * h, y + 0.5 * k2[0] * h, z + 0.5 * k2[1] * h)
        k4 = derivs(x + h, y + k3[0] * h, z + k3[1] * h)
        slope_y = (k1[0] + 2 * k2[0] + 2 * k3[0] + k4[0]) / 6
        slope_z = (k1[1] + 2 * k2[1] + 2 * k3[1] + k4[1]) / 6
        x_next, y_next, z_next = x + h, y + slope_y * h, z + slope_z * h
        steps.append(
            SystemRK4Step(i, x, y, z, k1, k2, k3, k4, slope_y, slope_z, x_next, y_next, z_next)
        )
        logger.debug("rk4 system step %d: x=%r y=%r z=%r", i, x_next, y_next, z_next)
        x, y, z = x_next, y_next, z_next
        i += 1

    logger.info("rk4 system on %r: y(%r) = %r, y'(%r) = %r", expression, x, y, x, z)
    return ODEResult(expression=expression, h=h, x_end=x_end, steps=tuple(steps), x_final=x, y_final=y)
