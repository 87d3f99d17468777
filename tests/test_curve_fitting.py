from __future__ import annotations

import logging
import math
from importlib import import_module

import pytest

curve_fitting = import_module("nm_toolkit.curve_fitting")
errors = import_module("nm_toolkit.errors")

LINE = [(1, 3), (2, 5), (3, 7), (4, 9)]


def test_exact_line_recovers_its_coefficients() -> None:
    result = curve_fitting.fit_curve(LINE, curve_fitting.LinearModel())
    assert result.coefficients == pytest.approx((1.0, 2.0))
    assert result.equation == "y = 1 + (2)x"
    assert result.unknowns == ("c0", "c1")
    assert result.predict(5) == pytest.approx(11.0)


def test_linear_summation_table_builds_the_normal_equations() -> None:
    result = curve_fitting.fit_curve(LINE, curve_fitting.LinearModel())
    table = result.summation_table

    assert table.headers == ("x", "y", "x²", "xy")
    assert table.column("xy") == (3.0, 10.0, 21.0, 36.0)
    assert (table.total("x"), table.total("y"), table.total("x²"), table.total("xy")) == (10.0, 24.0, 30.0, 70.0)
    assert result.matrix_a == ((4.0, 10.0), (10.0, 30.0))
    assert result.vector_b == (24.0, 70.0)


def test_quadratic_fit_of_a_parabola() -> None:
    points = [(0, 1), (1, 2), (2, 5), (3, 10)]
    result = curve_fitting.fit_curve(points, curve_fitting.QuadraticModel())
    assert result.coefficients == pytest.approx((1.0, 0.0, 1.0), abs=1e-9)
    table = result.summation_table
    assert table.headers == ("x", "y", "x²", "x³", "x⁴", "xy", "x²y")
    assert result.matrix_a[2][2] == table.total("x⁴")
    assert result.vector_b[2] == table.total("x²y")


def test_negative_coefficients_in_the_equation() -> None:
    slope = curve_fitting.fit_curve([(0, 4), (1, 1), (2, -2)], curve_fitting.LinearModel())
    assert slope.equation == "y = 4 + (-3)x"

    trailing_constant = curve_fitting.fit_curve(LINE, curve_fitting.CustomBasisModel(("x", "1")))
    shifted = curve_fitting.fit_curve([(x, y - 2) for x, y in LINE], curve_fitting.CustomBasisModel(("x", "1")))
    assert trailing_constant.equation == "y = (2)x + 1"
    assert shifted.equation == "y = (2)x - 1"


def test_exponential_fit() -> None:
    points = [(x, 2 * math.exp(0.5 * x)) for x in range(4)]
    result = curve_fitting.fit_curve(points, curve_fitting.ExponentialModel())
    a, b = result.coefficients
    assert a == pytest.approx(2.0)
    assert b == pytest.approx(0.5)
    assert result.unknowns == ("ln(a)", "b")
    assert result.equation == "y = 2e^(0.5x)"
    assert result.summation_table.headers == ("x", "y", "ln(y)", "x²", "x·ln(y)")
    assert result.predict(2) == pytest.approx(2 * math.e)


def test_exponential_fit_rejects_non_positive_y() -> None:
    with pytest.raises(errors.NonPositiveY, match="positive Y values"):
        curve_fitting.fit_curve([(0, 1), (1, 0), (2, 3)], curve_fitting.ExponentialModel())


def test_custom_basis_matches_the_linear_model() -> None:
    custom = curve_fitting.fit_curve(LINE, curve_fitting.CustomBasisModel.from_text("1, x"))
    linear = curve_fitting.fit_curve(LINE, curve_fitting.LinearModel())
    assert custom.coefficients == pytest.approx(linear.coefficients)
    assert custom.matrix_a == linear.matrix_a


def test_custom_basis_summation_columns() -> None:
    model = curve_fitting.CustomBasisModel(("1", "cos(x)"))
    result = curve_fitting.fit_curve([(0, 3), (math.pi, 1), (math.pi / 2, 2)], model)
    assert result.summation_table.headers == ("x", "y", "1", "cos(x)", "1·1", "1·cos(x)", "cos(x)·cos(x)", "y·1", "y·cos(x)")
    assert result.coefficients == pytest.approx((2.0, 1.0), abs=1e-9)
    assert result.equation == "y = 2 + (1)cos(x)"


def test_dependent_basis_is_singular() -> None:
    with pytest.raises(errors.SingularMatrix, match="improper basis functions"):
        curve_fitting.fit_curve(LINE, curve_fitting.CustomBasisModel(("x", "2x")))


def test_empty_basis_is_invalid() -> None:
    with pytest.raises(errors.InvalidInput, match="basis functions"):
        curve_fitting.CustomBasisModel.from_text(" , ")


def test_nan_points_are_dropped_before_fitting() -> None:
    points = LINE + [(float("nan"), 1.0), (5.0, float("nan"))]
    result = curve_fitting.fit_curve(points, curve_fitting.LinearModel())
    assert len(result.points) == 4


def test_too_few_points() -> None:
    with pytest.raises(errors.InsufficientData):
        curve_fitting.fit_curve([(1, 2), (float("nan"), 3)], curve_fitting.LinearModel())


def test_model_from_name() -> None:
    assert isinstance(curve_fitting.model_from_name("quadratic"), curve_fitting.QuadraticModel)
    assert curve_fitting.model_from_name("custom", "1, x, x^2").basis == ("1", "x", "x^2")
    with pytest.raises(errors.InvalidInput, match="Unknown curve-fitting model"):
        curve_fitting.model_from_name("cubic")


def test_fit_logs_the_equation(caplog) -> None:
    with caplog.at_level(logging.INFO, logger="nm_toolkit.curve_fitting"):
        curve_fitting.fit_curve(LINE, curve_fitting.LinearModel())
    assert "linear fit over 4 points: y = 1 + (2)x" in caplog.text
