"""Top-level public API for the ``nm_toolkit`` package.

This module re-exports the solvers and their result types so users can import
from a single namespace, for example:

>>> from nm_toolkit import bisection, format_number
>>> format_number(bisection("x^2 - 2", 0, 2, 1e-4).summary.value)
'1.414185'

Raw form input (strings) goes through :mod:`nm_toolkit.forms`, which returns
``SolveOutcome`` objects instead of raising.
"""

# Optional explicit module handles to avoid callable/module name ambiguity.
from . import forms as forms
from . import topics as topics
from .config import DEFAULT_LIMITS, SolverLimits
from .curve_fitting import (
    CustomBasisModel,
    ExponentialModel,
    FitResult,
    LinearModel,
    QuadraticModel,
    SummationTable,
    fit_curve,
    model_from_name,
)
from .differentiation import DifferenceMethod, DifferenceResult, finite_difference
from .errors import *
from .expression import (
    DEFAULT_EVALUATOR,
    CompiledExpression,
    ExpressionEvaluator,
    differentiate,
    evaluate,
)
from .formatting import format_matrix, format_number, format_tolerance, format_vector
from .InputConvert import InputConvert
from .integration import (
    IntegrationMethod,
    IntegrationResult,
    RombergResult,
    integrate,
    romberg,
    simpson_one_third,
    simpson_three_eighths,
    trapezoidal,
)
from .interpolation import (
    DividedDifferenceTable,
    InterpolationMethod,
    InterpolationResult,
    divided_differences,
    interpolate,
    lagrange,
    newton_divided_difference,
)
from .linear_solver import (
    DirectSolution,
    IterativeSolution,
    LinearMethod,
    solve_direct,
    solve_iterative,
    solve_linear_system,
)
from .matrix_algebra import (
    DeterminantResult,
    DeterminantStep,
    MatrixOperation,
    add,
    determinant,
    fast_determinant,
    matrix_operation,
    multiply,
    subtract,
)
from .ode import ODEResult, rk4, rk4_second_order
from .points import Point
from .root_finding import (
    RootMethod,
    RootResult,
    bisection,
    false_position,
    find_root,
    newton_raphson,
)
