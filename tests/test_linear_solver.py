from __future__ import annotations

import logging
from importlib import import_module

import pytest

linear_solver = import_module("nm_toolkit.linear_solver")
errors = import_module("nm_toolkit.errors")
config = import_module("nm_toolkit.config")

LinearMethod = linear_solver.LinearMethod

# 4x + y + 2z = 4, x + 3y + z = 5, x + y + 5z = 6
SYSTEM = [
    [4.0, 1.0, 2.0, 4.0],
    [1.0, 3.0, 1.0, 5.0],
    [1.0, 1.0, 5.0, 6.0],
]
EXACT = (11 / 48, 62 / 48, 43 / 48)

DIRECT = [LinearMethod.GAUSS, LinearMethod.GAUSS_PIVOT, LinearMethod.GAUSS_JORDAN]


@pytest.mark.parametrize("method", DIRECT)
def test_direct_methods_recover_the_exact_solution(method) -> None:
    result = linear_solver.solve_direct(SYSTEM, method)
    assert result.solution == pytest.approx(EXACT, abs=1e-9)


def test_direct_methods_agree_with_each_other() -> None:
    solutions = [linear_solver.solve_direct(SYSTEM, m).solution for m in DIRECT]
    for other in solutions[1:]:
        assert other == pytest.approx(solutions[0], abs=1e-6)


def test_direct_trace_starts_and_ends_with_named_snapshots() -> None:
    gauss = linear_solver.solve_direct(SYSTEM, "gauss")
    assert gauss.steps[0].title == "Initial Augmented Matrix"
    assert gauss.steps[0].matrix == tuple(tuple(row) for row in SYSTEM)
    assert gauss.steps[-1].title == "Row Echelon Form Reached"

    jordan = linear_solver.solve_direct(SYSTEM, "gauss-jordan")
    assert jordan.steps[-1].title == "Reduced Row Echelon Form Reached"
    final = jordan.final_matrix
    for i in range(3):
        for j in range(3):
            assert final[i][j] == pytest.approx(1.0 if i == j else 0.0, abs=1e-12)


def test_direct_trace_does_not_mutate_the_input() -> None:
    data = [row[:] for row in SYSTEM]
    linear_solver.solve_direct(data, "gauss-pivot")
    assert data == SYSTEM


def test_plain_gauss_swaps_only_on_zero_pivot() -> None:
    result = linear_solver.solve_direct([[0.0, 1.0, 1.0], [1.0, 1.0, 2.0]], "gauss")
    assert result.solution == pytest.approx((1.0, 1.0))
    assert result.steps[1].title == "Pivoting (Column 1)"

    no_swap = linear_solver.solve_direct(SYSTEM, "gauss")
    assert not any(step.title.startswith("Pivoting") for step in no_swap.steps)


def test_partial_pivoting_brings_largest_entry_up() -> None:
    result = linear_solver.solve_direct([[1.0, 1.0, 3.0], [2.0, -1.0, 0.0]], "gauss-pivot")
    assert result.steps[1].title == "Pivoting (Column 1)"
    assert result.steps[1].matrix[0][0] == 2.0
    assert result.solution == pytest.approx((1.0, 2.0))


@pytest.mark.parametrize("method", [LinearMethod.GAUSS_PIVOT, LinearMethod.GAUSS_JORDAN])
def test_max_pivot_records_no_swap_when_pivot_is_already_largest(method) -> None:
    result = linear_solver.solve_direct(SYSTEM, method)
    assert not any(step.title.startswith("Pivoting") for step in result.steps)


@pytest.mark.parametrize("method", DIRECT)
def test_singular_system_is_rejected_by_every_direct_method(method) -> None:
    with pytest.raises(errors.SingularMatrix, match="Column 2 has no valid pivot"):
        linear_solver.solve_direct([[1.0, 2.0, 3.0], [2.0, 4.0, 6.0]], method)


@pytest.mark.parametrize(
    "augmented",
    [
        [[1.0, 2.0]],
        [[1.0] * 7 for _ in range(6)],
        [[1.0, 2.0, 3.0], [1.0, 2.0]],
    ],
)
def test_bad_dimensions_are_invalid_input(augmented) -> None:
    with pytest.raises(errors.InvalidInput):
        linear_solver.solve_direct(augmented, "gauss")


def test_unknown_method_tag_is_invalid_input() -> None:
    with pytest.raises(errors.InvalidInput, match="Unknown linear method"):
        linear_solver.solve_linear_system(SYSTEM, "cholesky")


def test_gauss_seidel_converges_within_default_cap() -> None:
    result = linear_solver.solve_iterative(SYSTEM, "gauss-seidel", 1e-4)
    assert result.converged
    assert result.warning is None
    assert result.iterations <= 15
    assert result.solution == pytest.approx(EXACT, abs=1e-3)
    assert result.rows[0].values == (0.0, 0.0, 0.0)
    assert result.rows[-1].error < 1e-4


def test_jacobi_needs_more_sweeps_than_the_default_cap(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="nm_toolkit.linear_solver"):
        capped = linear_solver.solve_iterative(SYSTEM, "jacobi", 1e-4)
    assert not capped.converged
    assert isinstance(capped.warning, errors.NotConverged)
    assert capped.iterations == 15
    assert "did not converge within 15 iterations" in caplog.text

    relaxed = linear_solver.solve_iterative(
        SYSTEM, "jacobi", 1e-4, limits=config.DEFAULT_LIMITS.replace(max_iterations=30)
    )
    assert relaxed.converged
    assert relaxed.solution == pytest.approx(EXACT, abs=1e-3)


def test_jacobi_converges_at_a_coarser_tolerance() -> None:
    result = linear_solver.solve_iterative(SYSTEM, "jacobi", 1e-2)
    assert result.converged
    assert result.solution == pytest.approx(EXACT, abs=5e-2)


def test_first_sweep_samples_show_the_substitution() -> None:
    seidel = linear_solver.solve_iterative(SYSTEM, "gauss-seidel", 1e-4)
    assert seidel.samples[0] == "x_1⁽¹⁾ = (4 - 1(0) - 2(0)) / 4 = 1"
    # Gauss-Seidel already uses x_1 = 1 in the second equation.
    assert seidel.samples[1] == "x_2⁽¹⁾ = (5 - 1(1) - 1(0)) / 3 = 1.333333"

    jacobi = linear_solver.solve_iterative(SYSTEM, "jacobi", 1e-4)
    assert jacobi.samples[1] == "x_2⁽¹⁾ = (5 - 1(0) - 1(0)) / 3 = 1.666667"


def test_iteration_formulas_mark_fresh_components() -> None:
    jacobi = linear_solver.iteration_formulas(SYSTEM, "jacobi")
    seidel = linear_solver.iteration_formulas(SYSTEM, "gauss-seidel")
    assert jacobi[0] == "x_1⁽ᵏ⁺¹⁾ = (4 - 1x_2⁽ᵏ⁾ - 2x_3⁽ᵏ⁾) / 4"
    assert seidel[1] == "x_2⁽ᵏ⁺¹⁾ = (5 - 1x_1⁽ᵏ⁺¹⁾ - 1x_3⁽ᵏ⁾) / 3"


def test_zero_diagonal_is_rejected_for_iterative_methods() -> None:
    with pytest.raises(errors.ZeroDiagonal, match="row 1"):
        linear_solver.solve_iterative([[0.0, 1.0, 1.0], [1.0, 1.0, 2.0]], "jacobi", 1e-4)


@pytest.mark.parametrize("tolerance", [None, 0.0, -1e-3])
def test_iterative_methods_need_a_positive_tolerance(tolerance) -> None:
    with pytest.raises(errors.InvalidInput, match="positive tolerance"):
        linear_solver.solve_linear_system(SYSTEM, "gauss-seidel", tolerance)


def test_gaussian_elimination_is_shared_with_curve_fitting() -> None:
    assert linear_solver.gaussian_elimination(SYSTEM) == pytest.approx(EXACT)
