"""Iteration caps and numerical thresholds used across the solvers.

The defaults reproduce the classroom limits (15 iterations for root finding
and iterative linear methods, 100 steps for Runge-Kutta). Every solver takes a
keyword-only ``limits=`` argument, so callers can relax them per call:

>>> from nm_toolkit.config import DEFAULT_LIMITS
>>> relaxed = DEFAULT_LIMITS.replace(max_iterations=50)
>>> relaxed.max_iterations
50
"""

from __future__ import annotations

from dataclasses import dataclass, replace as _dc_replace
from typing import Any

__all__ = ["SolverLimits", "DEFAULT_LIMITS"]


@dataclass(frozen=True)
class SolverLimits:
    """Immutable bundle of caps and tolerances.

    Parameters
    ----------
    max_iterations : int
        Cap for bisection, false position, Newton-Raphson, Jacobi and
        Gauss-Seidel.
    max_ode_steps : int
        Cap on the estimated number of Runge-Kutta steps.
    pivot_tolerance : float
        Entries with smaller magnitude are treated as zero pivots/diagonals.
    fit_pivot_tolerance : float
        Pivot threshold used when solving least-squares normal equations.
    division_tolerance : float
        Smallest admissible denominator for false position and Newton steps.
    ode_end_slack : float
        Integration stops once ``x >= x_end - ode_end_slack``.
    max_linear_unknowns : int
        Largest system accepted by the linear solver.
    max_matrix_size : int
        Largest matrix accepted by matrix algebra.
    max_points : int
        Largest point set accepted by fitting and interpolation.
    max_romberg_levels : int
        Largest Romberg level count (level i evaluates 2**i + 1 points).
    """

    max_iterations: int = 15
    max_ode_steps: int = 100
    pivot_tolerance: float = 1e-10
    fit_pivot_tolerance: float = 1e-12
    division_tolerance: float = 1e-12
    ode_end_slack: float = 1e-9
    max_linear_unknowns: int = 5
    max_matrix_size: int = 10
    max_points: int = 20
    max_romberg_levels: int = 16

    def __post_init__(self) -> None:
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be >= 1")
        if self.max_ode_steps < 1:
            raise ValueError("max_ode_steps must be >= 1")

    def replace(self, **changes: Any) -> "SolverLimits":
        """Return a copy with ``changes`` applied."""
        return _dc_replace(self, **changes)


DEFAULT_LIMITS = SolverLimits()
