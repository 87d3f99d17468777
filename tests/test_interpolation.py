from __future__ import annotations

import math
from importlib import import_module

import pytest

interpolation = import_module("nm_toolkit.interpolation")
errors = import_module("nm_toolkit.errors")
config = import_module("nm_toolkit.config")

from hypothesis import given
from hypothesis import strategies as st

SQUARES = [(1, 1), (2, 4), (3, 9)]


def test_divided_difference_table() -> None:
    table = interpolation.divided_differences(SQUARES)
    assert table.rows == ((1.0, 3.0, 1.0), (4.0, 5.0), (9.0,))
    assert table.coefficients == (1.0, 3.0, 1.0)


def test_newton_form_terms_and_value() -> None:
    result = interpolation.newton_divided_difference(SQUARES, 2.5)
    assert result.value == pytest.approx(6.25)
    assert result.terms == ("1", "+ 3(x - 1)", "+ 1(x - 1)(x - 2)")
    assert result.polynomial == "1 + 3(x - 1) + 1(x - 1)(x - 2)"
    assert result.table is not None


def test_newton_form_shows_negative_coefficients_with_minus() -> None:
    result = interpolation.newton_divided_difference([(0, 0), (1, 1), (2, 0)], 0.5)
    assert result.terms[-1] == "- 1(x - 0)(x - 1)"
    assert result.value == pytest.approx(0.75)


def test_lagrange_terms_and_value() -> None:
    result = interpolation.lagrange(SQUARES, 2.5)
    assert result.value == pytest.approx(6.25)
    assert result.terms[0] == "1[ (x - 2)(x - 3) / (1 - 2)(1 - 3) ]"
    assert result.polynomial.startswith("L(x) = 1[ ")
    assert result.table is None


def test_interpolant_reproduces_the_nodes() -> None:
    for x, y in SQUARES:
        assert interpolation.interpolate(SQUARES, x, "newton").value == pytest.approx(y)
        assert interpolation.interpolate(SQUARES, x, "lagrange").value == pytest.approx(y)


def test_duplicate_abscissa_is_rejected() -> None:
    with pytest.raises(errors.DuplicateAbscissa, match="share x = 2"):
        interpolation.lagrange([(1, 1), (2, 4), (2, 5)], 1.5)
    with pytest.raises(errors.DuplicateAbscissa):
        interpolation.divided_differences([(1, 1), (1, 2)])


def test_single_point_is_insufficient() -> None:
    with pytest.raises(errors.InsufficientData):
        interpolation.interpolate([(1, 1)], 1.0)


def test_unknown_method() -> None:
    with pytest.raises(errors.InvalidInput, match="Unknown interpolation method"):
        interpolation.interpolate(SQUARES, 1.0, "spline")


@st.composite
def point_sets(draw):
    xs = draw(st.lists(st.integers(min_value=-5, max_value=5), min_size=2, max_size=6, unique=True))
    ys = draw(st.lists(st.integers(min_value=-10, max_value=10), min_size=len(xs), max_size=len(xs)))
    return [(float(x), float(y)) for x, y in zip(xs, ys)]


@given(points=point_sets(), x=st.floats(min_value=-5, max_value=5, allow_nan=False))
def test_newton_and_lagrange_agree(points, x: float) -> None:
    newton = interpolation.newton_divided_difference(points, x).value
    lagrange = interpolation.lagrange(points, x).value
    assert math.isclose(newton, lagrange, rel_tol=1e-9, abs_tol=1e-6)


@given(points=point_sets())
def test_point_order_does_not_change_the_value(points) -> None:
    forward = interpolation.newton_divided_difference(points, 0.5).value
    backward = interpolation.newton_divided_difference(list(reversed(points)), 0.5).value
    assert math.isclose(forward, backward, rel_tol=1e-9, abs_tol=1e-6)


LINE_21 = [(float(i), 2.0 * i + 1.0) for i in range(21)]


def test_point_cap_defaults_to_twenty() -> None:
    with pytest.raises(errors.InvalidInput, match="At most 20 points"):
        interpolation.interpolate(LINE_21, 1.0, "newton")


@pytest.mark.parametrize("method", ["newton", "lagrange"])
def test_point_cap_is_configurable(method: str) -> None:
    relaxed = config.DEFAULT_LIMITS.replace(max_points=25)
    result = interpolation.interpolate(LINE_21, 1.5, method, limits=relaxed)
    assert len(result.points) == 21
    assert result.value == pytest.approx(4.0)
    assert len(interpolation.divided_differences(LINE_21, limits=relaxed).rows) == 21
