from __future__ import annotations

import logging
import math
from importlib import import_module

import pytest

root_finding = import_module("nm_toolkit.root_finding")
errors = import_module("nm_toolkit.errors")
config = import_module("nm_toolkit.config")


def test_bisection_on_sqrt_two() -> None:
    result = root_finding.bisection("x^2 - 2", 0, 2, 1e-4)

    assert result.summary.converged
    assert len(result.rows) == 14
    assert result.summary.k == 13
    assert result.summary.accepted_iteration == 14
    assert result.summary.value == 1.4141845703125

    first = result.rows[0]
    assert (first.xl, first.xu, first.xm, first.f_xm) == (0.0, 2.0, 1.0, -1.0)
    assert first.remark == "> 0.0001"
    assert result.rows[-1].remark == "< 0.0001"


def test_bisection_keeps_the_sign_change_inside_the_bracket() -> None:
    result = root_finding.bisection("x^3 - x - 2", 1, 2, 1e-6)
    f = lambda x: x**3 - x - 2
    for row in result.rows:
        assert f(row.xl) * f(row.xu) < 0
        assert row.xl <= row.xm <= row.xu


def test_newton_raphson_converges_quadratically() -> None:
    result = root_finding.newton_raphson("x^2 - 2", 1, 1e-6)

    assert result.summary.converged
    assert len(result.rows) == 5
    assert result.summary.k == 4
    assert result.summary.value == pytest.approx(math.sqrt(2), abs=1e-12)
    assert result.derivative == "2*x"
    assert result.rows[0].x_next == pytest.approx(1.5)
    assert result.rows[0].d_k == pytest.approx(1 / 3)


def test_bisection_and_newton_agree() -> None:
    bis = root_finding.bisection("x^2 - 2", 0, 2, 1e-4)
    newton = root_finding.newton_raphson("x^2 - 2", 1, 1e-6)
    assert abs(bis.summary.value - newton.summary.value) < 1e-3


def test_false_position_converges_from_one_side() -> None:
    result = root_finding.false_position("x^2 - 2", 0, 2, 1e-4)
    assert result.method is root_finding.RootMethod.FALSE_POSITION
    assert result.summary.converged
    assert result.rows[0].xm == 1.0
    assert result.rows[1].xm == pytest.approx(4 / 3)
    assert abs(result.summary.value - math.sqrt(2)) < 1e-4
    # f is convex here, so the upper end never moves
    assert all(row.xu == 2.0 for row in result.rows)


def test_no_sign_change_is_rejected() -> None:
    with pytest.raises(errors.NoSignChange, match="opposite signs"):
        root_finding.bisection("x^2 - 2", 2, 3, 1e-4)
    with pytest.raises(errors.NoSignChange):
        root_finding.false_position("x^2 + 1", -1, 1, 1e-4)


def test_flat_secant_stops_false_position() -> None:
    # f(xu) - f(xl) = 2e-13, below the division tolerance
    with pytest.raises(errors.DivisionByZero, match=r"f\(xu\) equals f\(xl\)"):
        root_finding.false_position("1e-13*x", -1, 1, 1e-20)


def test_zero_derivative_stops_newton() -> None:
    with pytest.raises(errors.ZeroDerivative, match="Derivative is zero"):
        root_finding.newton_raphson("x^2 - 2", 0, 1e-6)


@pytest.mark.parametrize("tol", [0, -1e-3])
def test_tolerance_must_be_positive(tol: float) -> None:
    with pytest.raises(errors.InvalidInput, match="Invalid tolerance"):
        root_finding.bisection("x^2 - 2", 0, 2, tol)


def test_iteration_cap_returns_last_estimate_with_warning(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="nm_toolkit.root_finding"):
        result = root_finding.bisection("x^2 - 2", 0, 2, 1e-12)

    assert not result.summary.converged
    assert len(result.rows) == 15
    assert result.summary.value == result.rows[-1].xm
    assert isinstance(result.summary.warning, errors.NotConverged)
    assert result.summary.warning.iterations == 15
    assert "did not reach the tolerance" in caplog.text


def test_iteration_cap_is_configurable() -> None:
    limits = config.DEFAULT_LIMITS.replace(max_iterations=50)
    result = root_finding.bisection("x^2 - 2", 0, 2, 1e-12, limits=limits)
    assert result.summary.converged
    assert len(result.rows) > 15


def test_find_root_dispatch() -> None:
    assert root_finding.find_root("x^2 - 2", "newton", tol=1e-6, x0=1).method is root_finding.RootMethod.NEWTON
    assert root_finding.find_root("x^2 - 2", "secant", tol=1e-4, xl=0, xu=2).method is root_finding.RootMethod.FALSE_POSITION
    with pytest.raises(errors.InvalidInput, match="initial guess"):
        root_finding.find_root("x^2 - 2", "newton", tol=1e-6)
    with pytest.raises(errors.InvalidInput, match="upper and lower bounds"):
        root_finding.find_root("x^2 - 2", "bisection", tol=1e-6, xl=0)
    with pytest.raises(errors.InvalidInput, match="Unknown root-finding method"):
        root_finding.find_root("x^2 - 2", "brent", tol=1e-6, xl=0, xu=2)


def test_calculator_syntax_reaches_the_solver() -> None:
    result = root_finding.newton_raphson("e^(-x) - x", 0, 1e-8)
    assert result.summary.converged
    assert result.summary.value == pytest.approx(0.5671433, abs=1e-6)
