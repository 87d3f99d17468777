"""Expression service used by the root finder, differentiator, integrator and ODE solver.

User expressions are typed in calculator syntax (``3x^2 + 2``, ``sin(x) - 0.52``,
``e^(-x)``, ``ln(x)``), parsed with SymPy, compiled once with
:func:`nm_toolkit.numpify.numpify_cached` and then evaluated at scalar points.

The service has three operations:

- :meth:`ExpressionEvaluator.evaluate` -- value of an expression for a set of bindings.
- :meth:`ExpressionEvaluator.differentiate` -- symbolic derivative as a new expression string.
- :meth:`ExpressionEvaluator.compile` -- a reusable scalar callable for inner loops.

Failures are reported as :class:`~nm_toolkit.errors.ParseError`,
:class:`~nm_toolkit.errors.EvalError` or
:class:`~nm_toolkit.errors.DifferentiationUnsupported`.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Iterable, Sequence

import numpy as np
import sympy as sp
from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_multiplication_application,
    parse_expr,
    standard_transformations,
)

from .errors import DifferentiationUnsupported, EvalError, ParseError
from .numpify import NumpifiedFunction, numpify_cached

__all__ = [
    "CompiledExpression",
    "ExpressionEvaluator",
    "DEFAULT_EVALUATOR",
    "evaluate",
    "differentiate",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


_TRANSFORMATIONS = standard_transformations + (
    implicit_multiplication_application,
    convert_xor,
)

# Calculator-style names that differ from SymPy's defaults.
_CALCULATOR_NAMES: dict[str, object] = {
    "e": sp.E,
    "pi": sp.pi,
    "ln": sp.log,
    "log10": lambda arg: sp.log(arg, 10),
}


def _as_real(value: object, expression: str, bindings: Mapping[str, float]) -> float:
    """Convert a raw NumPy/Python result to a finite float or raise ``EvalError``."""
    if isinstance(value, (complex, np.complexfloating)):
        if value.imag != 0:
            raise EvalError(
                f"{expression!r} is not real at {dict(bindings)} (got {value})."
            )
        value = value.real
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise EvalError(f"Could not evaluate {expression!r} at {dict(bindings)}.") from exc
    if not math.isfinite(out):
        raise EvalError(
            f"{expression!r} is undefined at {dict(bindings)} (got {out})."
        )
    return out


class CompiledExpression:
    """Scalar callable for one expression and a fixed variable order."""

    __slots__ = ("text", "variables", "symbolic", "_fn")

    def __init__(self, text: str, variables: tuple[str, ...], fn: NumpifiedFunction) -> None:
        self.text = text
        self.variables = variables
        self.symbolic = fn.symbolic
        self._fn = fn

    def __call__(self, *values: float) -> float:
        bindings = dict(zip(self.variables, values))
        try:
            with np.errstate(all="ignore"):
                raw = self._fn(*(float(v) for v in values))
        except (ArithmeticError, ValueError, TypeError) as exc:
            raise EvalError(f"Could not evaluate {self.text!r} at {bindings}: {exc}") from exc
        return _as_real(raw, self.text, bindings)

    def __repr__(self) -> str:
        return f"CompiledExpression({self.text!r}, variables={self.variables})"


class ExpressionEvaluator:
    """Parse, evaluate and differentiate calculator-syntax expressions."""

    def __init__(self, *, extra_names: Mapping[str, object] | None = None) -> None:
        self._names = dict(_CALCULATOR_NAMES)
        if extra_names:
            self._names.update(extra_names)

    def parse(self, expression: str, variables: Iterable[str] = ("x",)) -> sp.Expr:
        """Parse ``expression`` and check that it only uses ``variables``."""
        if not isinstance(expression, str) or not expression.strip():
            raise ParseError("Please enter a function expression.")
        names = tuple(variables)
        local_dict = dict(self._names)
        local_dict.update({name: sp.Symbol(name) for name in names})
        try:
            parsed = parse_expr(expression.strip(), local_dict=local_dict, transformations=_TRANSFORMATIONS)
        except Exception as exc:
            raise ParseError(f"Could not parse expression {expression!r}: {exc}") from exc
        if not isinstance(parsed, sp.Expr):
            raise ParseError(f"{expression!r} is not a numeric expression.")

        unknown = sorted(s.name for s in parsed.free_symbols if s.name not in names)
        if unknown:
            raise EvalError(
                f"Undefined symbol(s) in {expression!r}: {', '.join(unknown)}. "
                f"Allowed variables: {', '.join(names)}."
            )
        return parsed

    def compile(self, expression: str, variables: Sequence[str] = ("x",)) -> CompiledExpression:
        """Compile ``expression`` into a scalar callable taking ``variables`` positionally."""
        names = tuple(variables)
        parsed = self.parse(expression, names)
        try:
            fn = numpify_cached(parsed, vars=tuple(sp.Symbol(n) for n in names))
        except ValueError as exc:
            raise EvalError(str(exc)) from exc
        logger.debug("compiled %r with variables %s", expression, names)
        return CompiledExpression(expression, names, fn)

    def evaluate(self, expression: str, bindings: Mapping[str, float]) -> float:
        """Evaluate ``expression`` with every free variable bound by name."""
        names = tuple(bindings.keys())
        compiled = self.compile(expression, names)
        return compiled(*(bindings[n] for n in names))

    def differentiate(self, expression: str, variable: str = "x", *, order: int = 1, variables: Iterable[str] | None = None) -> str:
        """Return the ``order``-th symbolic derivative of ``expression`` as a string.

        The returned text parses back through :meth:`parse`, so it can be fed
        to :meth:`compile` or :meth:`evaluate` directly.
        """
        names = tuple(variables) if variables is not None else (variable,)
        if variable not in names:
            names = names + (variable,)
        parsed = self.parse(expression, names)
        try:
            derivative = sp.diff(parsed, sp.Symbol(variable), order)
        except Exception as exc:
            raise DifferentiationUnsupported(
                f"Could not differentiate {expression!r} with respect to {variable}: {exc}"
            ) from exc
        if derivative.has(sp.Derivative) or derivative.has(sp.Subs):
            raise DifferentiationUnsupported(
                f"No closed-form derivative of {expression!r} with respect to {variable}."
            )
        return sp.sstr(derivative)


DEFAULT_EVALUATOR = ExpressionEvaluator()


def evaluate(expression: str, bindings: Mapping[str, float]) -> float:
    """Module-level shortcut for :meth:`ExpressionEvaluator.evaluate`."""
    return DEFAULT_EVALUATOR.evaluate(expression, bindings)


def differentiate(expression: str, variable: str = "x", *, order: int = 1) -> str:
    """Module-level shortcut for :meth:`ExpressionEvaluator.differentiate`."""
    return DEFAULT_EVALUATOR.differentiate(expression, variable, order=order)
