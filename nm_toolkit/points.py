"""Point sets shared by curve fitting and interpolation."""

from __future__ import annotations

import math
from typing import Iterable, NamedTuple, Sequence, Tuple, Union

from .config import DEFAULT_LIMITS, SolverLimits
from .errors import InsufficientData, InvalidInput

__all__ = ["Point", "clean_points"]


class Point(NamedTuple):
    x: float
    y: float


PointLike = Union[Point, Tuple[float, float], Sequence[float]]


def clean_points(points: Iterable[PointLike], *, minimum: int = 2, limits: SolverLimits = DEFAULT_LIMITS) -> tuple[Point, ...]:
    """Copy ``points`` in order, dropping rows with a NaN coordinate.

    Raises
    ------
    InsufficientData
        If fewer than ``minimum`` valid points remain.
    InvalidInput
        If more than ``limits.max_points`` points are given.
    """
    out: list[Point] = []
    for p in points:
        x, y = float(p[0]), float(p[1])
        if math.isnan(x) or math.isnan(y):
            continue
        out.append(Point(x, y))
    if len(out) < minimum:
        raise InsufficientData(f"Need at least {minimum} valid points, got {len(out)}.")
    if len(out) > limits.max_points:
        raise InvalidInput(f"At most {limits.max_points} points are supported, got {len(out)}.")
    return tuple(out)
