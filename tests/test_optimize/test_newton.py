import math

import pytest

from numopt.optimize import ConfigurationError, NewtonRaphson, SolverStatus


def test_square_root_of_two():
    solver = NewtonRaphson(1.0, lambda x: x * x - 2, lambda x: 2 * x, max_iterations=10)
    assert solver.status is SolverStatus.NOT_RUN
    res = solver.solve()
    assert res.status is SolverStatus.NORMAL
    assert res.root == pytest.approx(math.sqrt(2), abs=1e-10)
    assert res.nit <= 10
    assert solver.result == res.root
    assert solver.iterations == res.nit


def test_numerical_derivative_fallback():
    res = NewtonRaphson(1.0, lambda x: x * x - 2, max_iterations=20).solve()
    assert res.success
    assert res.root == pytest.approx(math.sqrt(2), abs=1e-9)


def test_solve_for_target():
    solver = NewtonRaphson(1.0, lambda x: x**3, lambda x: 3 * x**2, max_iterations=50)
    res = solver.solve(target=8.0)
    assert res.root == pytest.approx(2.0, abs=1e-9)
    assert abs(res.error) <= solver.absolute_tolerance


def test_flat_slope_is_bad_function():
    res = NewtonRaphson(0.0, lambda x: x * x + 1, lambda x: 2 * x, max_iterations=10).solve()
    assert res.status is SolverStatus.BAD_FUNCTION
    assert res.nit == 0


def test_iteration_cap():
    res = NewtonRaphson(0.5, lambda x: x * x + 1, lambda x: 2 * x, max_iterations=5).solve()
    assert res.status is SolverStatus.ITERATION_EXCEEDED
    assert res.nit == 5
    assert len(res.convergence) == 6


def test_non_finite_iterate_diverges():
    res = NewtonRaphson(1.0, lambda x: math.nan, lambda x: 1.0).solve()
    assert res.status is SolverStatus.DIVERGED
    assert not res.success


def test_convergence_starts_at_initial_guess():
    res = NewtonRaphson(1.0, lambda x: x * x - 2, lambda x: 2 * x).solve()
    assert res.convergence[0].metric == 1.0
    assert res.convergence[0].value == -1.0
    assert res.convergence[-1].metric == res.root


def test_invalid_configuration():
    with pytest.raises(ConfigurationError):
        NewtonRaphson(1.0, None)
    with pytest.raises(ConfigurationError):
        NewtonRaphson(1.0, lambda x: x, max_iterations=0)
    with pytest.raises(ConfigurationError):
        NewtonRaphson(1.0, lambda x: x, absolute_tolerance=-1.0)


def test_nfev_counts_every_call_to_f():
    calls = []

    def f(x):
        calls.append(x)
        return x * x - 2

    res = NewtonRaphson(1.0, f, max_iterations=20).solve()
    assert res.nfev == len(calls)
    assert res.nfev == 3 * (res.nit + 1)

    calls.clear()
    res = NewtonRaphson(1.0, f, lambda x: 2 * x, max_iterations=20).solve()
    assert res.nfev == len(calls) == res.nit + 1
