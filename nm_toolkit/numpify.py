"""
numpify: Compile parsed expressions to NumPy-callable Python functions
======================================================================

Purpose
-------
Every solver evaluates the same user expression many times (one evaluation per
bisection step, four per Runge-Kutta step), so the parsed SymPy expression is
turned into Python source once, executed, and the resulting function reused.

Public API
----------
- :func:`numpify`
- :func:`numpify_cached`

Examples
--------
>>> import sympy as sp
>>> x, y = sp.symbols("x y")
>>> f = numpify(x + y, vars=(x, y))
>>> float(f(1.0, 2.0))
3.0
>>> print(f.source)
def _generated(x, y):
    return x + y

Logging
-------
Silent by default. Compile timings and cache misses are logged at DEBUG:

>>> import logging
>>> logging.getLogger("nm_toolkit.numpify").setLevel(logging.DEBUG)
"""

from __future__ import annotations

from functools import lru_cache
import builtins
import keyword

import logging
import time
from typing import Any, Callable, Dict, Iterable, Tuple, cast

import numpy as np
import sympy as sp
from sympy.printing.numpy import NumPyPrinter


__all__ = [
    "numpify",
    "numpify_cached",
    "NumpifiedFunction",
]


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

_RESERVED_NAMES = frozenset(keyword.kwlist) | frozenset(dir(builtins)) | {"numpy"}


class NumpifiedFunction:
    """Compiled callable with its symbolic origin and generated source."""

    __slots__ = ("_fn", "symbolic", "vars", "source")

    def __init__(self, fn: Callable[..., Any], symbolic: sp.Basic, vars: Tuple[sp.Symbol, ...], source: str) -> None:
        self._fn = fn
        self.symbolic = symbolic
        self.vars = vars
        self.source = source

    def __call__(self, *positional_args: Any) -> Any:
        if len(positional_args) != len(self.vars):
            raise TypeError(
                f"Expected {len(self.vars)} positional argument(s) "
                f"({', '.join(self.var_names)}), got {len(positional_args)}"
            )
        return self._fn(*positional_args)

    @property
    def var_names(self) -> tuple[str, ...]:
        return tuple(sym.name for sym in self.vars)

    def __repr__(self) -> str:
        return f"NumpifiedFunction({self.symbolic!r}, vars=({', '.join(self.var_names)}))"


def _check_vars(vars: Iterable[sp.Symbol]) -> Tuple[sp.Symbol, ...]:
    vars_tuple = tuple(vars)
    for sym in vars_tuple:
        if not isinstance(sym, sp.Symbol):
            raise TypeError(f"vars must contain only SymPy Symbols, got {type(sym)}")
        if not sym.name.isidentifier() or sym.name in _RESERVED_NAMES:
            raise ValueError(f"{sym.name!r} cannot be used as a variable name.")
    if len({sym.name for sym in vars_tuple}) != len(vars_tuple):
        raise ValueError("Variable names must be distinct.")
    return vars_tuple


def numpify(expr: sp.Basic, *, vars: Iterable[sp.Symbol]) -> NumpifiedFunction:
    """Compile ``expr`` into a function taking ``vars`` positionally (uncached).

    Raises
    ------
    TypeError
        If ``expr`` is not a SymPy expression or ``vars`` holds non-Symbols.
    ValueError
        If ``expr`` uses symbols outside ``vars``, a variable name would clash
        with the generated code, or a function has no NumPy counterpart.

    Notes
    -----
    The function body is built with ``exec``; only parsed expressions reach it.
    """
    if not isinstance(expr, sp.Basic):
        raise TypeError(f"numpify expects a SymPy expression, got {type(expr)}")
    vars_tuple = _check_vars(vars)

    log_debug = logger.isEnabledFor(logging.DEBUG)
    t0 = time.perf_counter() if log_debug else 0.0

    missing = {s.name for s in expr.free_symbols} - {v.name for v in vars_tuple}
    if missing:
        raise ValueError(
            f"Expression contains unbound symbols: {', '.join(sorted(missing))}. "
            f"Allowed variables: ({', '.join(v.name for v in vars_tuple)})."
        )

    printer = NumPyPrinter(settings={"user_functions": {}, "allow_unknown_functions": True})
    _require_known_functions(expr, printer)

    arg_names = ", ".join(v.name for v in vars_tuple)
    src = f"def _generated({arg_names}):\n    return {printer.doprint(expr)}"

    glb: Dict[str, Any] = {"numpy": np}
    loc: Dict[str, Any] = {}
    exec(src, glb, loc)
    fn = cast(Callable[..., Any], loc["_generated"])

    if log_debug:
        logger.debug("numpify compiled %r in %.2f ms", expr, 1000.0 * (time.perf_counter() - t0))
    return NumpifiedFunction(fn, expr, vars_tuple, src)


def _require_known_functions(expr: sp.Basic, printer: NumPyPrinter) -> None:
    """Reject function calls the printer can only emit as bare, undefined names."""
    missing = sorted({
        app.func.__name__
        for app in expr.atoms(sp.Function)
        if printer.doprint(app).strip().startswith(f"{app.func.__name__}(")
    })
    if missing:
        raise ValueError(
            "Expression contains function(s) without a NumPy implementation: " + ", ".join(missing)
        )


# ---------------------------------------------------------------------------
# Cached compilation
# ---------------------------------------------------------------------------

_NUMPIFY_CACHE_MAXSIZE = 256


@lru_cache(maxsize=_NUMPIFY_CACHE_MAXSIZE)
def _numpify_cached_impl(expr: sp.Basic, vars_tuple: Tuple[sp.Symbol, ...]) -> NumpifiedFunction:
    logger.debug("numpify_cached: cache MISS (vars=%s)", [v.name for v in vars_tuple])
    return numpify(expr, vars=vars_tuple)


def numpify_cached(expr: sp.Basic, *, vars: Iterable[sp.Symbol]) -> NumpifiedFunction:
    """Cached :func:`numpify`, keyed on the expression and the vars tuple.

    Compiled functions hold no mutable state and are shared between solves.
    """
    return _numpify_cached_impl(expr, tuple(vars))


# Expose cache controls on the public wrapper.
numpify_cached.cache_info = _numpify_cached_impl.cache_info  # type: ignore[attr-defined]
numpify_cached.cache_clear = _numpify_cached_impl.cache_clear  # type: ignore[attr-defined]
