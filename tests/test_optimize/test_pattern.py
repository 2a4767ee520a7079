import numpy as np
import pytest

from numopt.optimize import (
    ConfigurationError,
    OptimizationType,
    PatternSearch,
    SolverStatus,
)

TARGET = np.array([3.0, -2.0])


def shifted_sphere(x: np.ndarray) -> float:
    return float(np.sum((x - TARGET) ** 2))


def test_reaches_minimum_and_goes_stationary():
    solver = PatternSearch(shifted_sphere, np.zeros(2), np.ones(2))
    assert solver.status is SolverStatus.NOT_RUN
    res = solver.optimize()
    assert np.allclose(res.x, TARGET)
    assert res.status is SolverStatus.STATIONARY_FUNCTION
    assert res.success


def test_parallel_probes_match_sequential():
    sequential = PatternSearch(shifted_sphere, np.zeros(2), [0.7, 0.3]).optimize()
    parallel = PatternSearch(shifted_sphere, np.zeros(2), [0.7, 0.3], parallel=True).optimize()
    assert sequential.convergence == parallel.convergence
    assert np.array_equal(sequential.x, parallel.x)


def test_shocks_shrink_towards_non_grid_minimum():
    solver = PatternSearch(
        lambda x: float(np.sum((x - 0.3) ** 2)),
        np.zeros(3),
        np.ones(3),
        max_iterations=500,
        max_static_iterations=20,
    )
    res = solver.optimize()
    assert np.allclose(res.x, 0.3, atol=1e-3)


def test_maximization():
    res = PatternSearch(
        lambda x: -shifted_sphere(x),
        np.zeros(2),
        np.ones(2),
        optimization_type=OptimizationType.MAX,
    ).optimize()
    assert np.allclose(res.x, TARGET)


def test_infeasible_probes_are_skipped():
    def feasible(x: np.ndarray) -> bool:
        return bool(x[0] <= 1.0)

    res = PatternSearch(shifted_sphere, np.zeros(2), np.ones(2), feasibility=feasible).optimize()
    assert res.x[0] == pytest.approx(1.0)
    assert res.x[1] == pytest.approx(-2.0)
    assert all(feasible(point) for point in res.history)


def test_iteration_cap():
    res = PatternSearch(shifted_sphere, np.zeros(2), [0.01, 0.01], max_iterations=5).optimize()
    assert res.status is SolverStatus.ITERATION_EXCEEDED
    assert res.nit == 5


@pytest.mark.parametrize(
    "kwargs",
    [
        {"shocks": [1.0, 0.0]},
        {"shocks": [1.0]},
        {"epsilon": 0.0},
        {"max_iterations": 0},
        {"max_static_iterations": 0},
        {"shrinkage_factor": 1.5},
        {"feasibility": lambda x: False},
    ],
)
def test_invalid_configuration(kwargs):
    args = {"shocks": [1.0, 1.0]}
    args.update(kwargs)
    with pytest.raises(ConfigurationError):
        PatternSearch(shifted_sphere, np.zeros(2), **args)
