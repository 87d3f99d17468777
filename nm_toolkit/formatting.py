"""Canonical display strings for numbers, vectors and matrices.

Every trace produced by the solvers is rendered through :func:`format_number`:

- magnitudes below ``1e-12`` render as ``"0"``;
- otherwise the value is rounded to 6 decimals, or to 7 decimals when the
  6-decimal rendering ends in ``"99"``;
- trailing zeros (and a dangling decimal point) are dropped.

>>> format_number(0.1234999)
'0.1235'
>>> format_number(0.123499)
'0.123499'
>>> format_number(2.0)
'2'
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

__all__ = ["format_number", "format_vector", "format_matrix", "format_tolerance"]

_ZERO_THRESHOLD = 1e-12


def _trim(text: str) -> str:
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        return "0"
    return text


def format_number(value: float) -> str:
    """Return the canonical display string for ``value``."""
    val = float(value)
    if math.isnan(val):
        return "NaN"
    if math.isinf(val):
        return "Infinity" if val > 0 else "-Infinity"
    if abs(val) < _ZERO_THRESHOLD:
        return "0"
    s6 = f"{val:.6f}"
    if s6.endswith("99"):
        return _trim(f"{val:.7f}")
    return _trim(s6)


def format_tolerance(value: float) -> str:
    """Render a user tolerance as typed (``1e-4`` stays ``0.0001``)."""
    text = repr(float(value))
    if "e" in text:
        text = f"{float(value):.15f}"
    return _trim(text)


def format_vector(values: Iterable[float]) -> list[str]:
    return [format_number(v) for v in values]


def format_matrix(rows: Sequence[Sequence[float]]) -> list[list[str]]:
    return [format_vector(row) for row in rows]
