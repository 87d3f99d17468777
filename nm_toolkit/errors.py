"""Exception taxonomy shared by every solver in the toolkit.

All fatal failures derive from :class:`NumericalMethodError` (itself a
``ValueError``) so the boundary adapter in :mod:`nm_toolkit.forms` can catch a
single type and turn it into a user-facing message. Non-convergence is not an
error: iterative solvers attach a :class:`NotConverged` warning instance to
their result and still return the last iterate.
"""

from __future__ import annotations

__all__ = [
    "NumericalMethodError",
    "InvalidInput",
    "MissingInput",
    "InvalidNumber",
    "InsufficientData",
    "NonPositiveY",
    "SingularMatrix",
    "ZeroDiagonal",
    "DuplicateAbscissa",
    "DivisionByZero",
    "ZeroDerivative",
    "ZeroStepSize",
    "NoSignChange",
    "OddSegmentCount",
    "InvalidSegmentCount",
    "StepSizeTooSmall",
    "ExpressionError",
    "ParseError",
    "EvalError",
    "DifferentiationUnsupported",
    "NotConverged",
]


class NumericalMethodError(ValueError):
    """Base class for fatal solver failures."""


class InvalidInput(NumericalMethodError):
    """Raised for blank, non-numeric or badly dimensioned input."""


class MissingInput(InvalidInput):
    """Raised when a required field is blank."""


class InvalidNumber(InvalidInput):
    """Raised when a field cannot be read as a real number."""


class InsufficientData(InvalidInput):
    """Raised when fewer valid points are supplied than a method needs."""


class NonPositiveY(InvalidInput):
    """Raised when an exponential fit receives ``y <= 0``."""


class SingularMatrix(NumericalMethodError):
    """Raised when elimination finds no usable pivot in a column."""


class ZeroDiagonal(NumericalMethodError):
    """Raised when an iterative method meets a (near) zero diagonal entry."""


class DuplicateAbscissa(NumericalMethodError):
    """Raised when interpolation points share an x value."""


class DivisionByZero(NumericalMethodError):
    """Raised when false position meets ``f(xu) == f(xl)``."""


class ZeroDerivative(NumericalMethodError):
    """Raised when Newton-Raphson meets a (near) zero slope."""


class ZeroStepSize(NumericalMethodError):
    """Raised when a finite difference is requested with ``h == 0``."""


class NoSignChange(NumericalMethodError):
    """Raised when a bracketing method gets ``f(xl) * f(xu) >= 0``."""


class OddSegmentCount(NumericalMethodError):
    """Raised when Simpson's 1/3 rule receives an odd segment count."""


class InvalidSegmentCount(NumericalMethodError):
    """Raised for non-positive segment counts or Simpson 3/8 with n % 3 != 0."""


class StepSizeTooSmall(NumericalMethodError):
    """Raised when an ODE run would exceed the step cap."""


class ExpressionError(NumericalMethodError):
    """Base class for failures of the expression service."""


class ParseError(ExpressionError):
    """Raised when an expression string cannot be parsed."""


class EvalError(ExpressionError):
    """Raised when an expression cannot be evaluated to a finite real."""


class DifferentiationUnsupported(ExpressionError):
    """Raised when no closed-form derivative can be produced."""


class NotConverged(RuntimeWarning):
    """Recoverable warning: the iteration cap was hit before convergence.

    Instances are attached to results (``result.warning``) rather than raised.
    """

    def __init__(self, message: str, *, iterations: int) -> None:
        super().__init__(message)
        self.iterations = iterations
