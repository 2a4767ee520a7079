import numpy as np
import pytest

from numopt.optimize import (
    ConfigurationError,
    OptimizationType,
    SimulatedAnnealing,
    SolverStatus,
    gaussian_neighbour,
    geometric_cooling,
)


def sphere(x: np.ndarray) -> float:
    return float(np.sum(x**2))


def make_annealing(function=sphere, **kwargs) -> SimulatedAnnealing:
    kwargs.setdefault("temperature", geometric_cooling(0.1, 0.95))
    kwargs.setdefault("neighbour", gaussian_neighbour(0.1))
    kwargs.setdefault("max_iterations", 2000)
    kwargs.setdefault("seed", 1)
    return SimulatedAnnealing(function, np.array([2.0, 2.0]), **kwargs)


def test_sphere_cools_into_minimum():
    solver = make_annealing()
    assert solver.status is SolverStatus.NOT_RUN
    res = solver.optimize()
    assert res.fun < 1e-2
    assert res.status is SolverStatus.ITERATION_EXCEEDED
    assert res.nit == 2000
    assert res.nfev == 2001
    assert solver.evaluations == res.nfev
    assert np.array_equal(solver.result, res.x)


def test_same_seed_same_walk():
    first = make_annealing(max_iterations=300).optimize()
    second = make_annealing(max_iterations=300).optimize()
    assert first.convergence == second.convergence
    assert np.array_equal(first.x, second.x)


def test_maximization():
    res = make_annealing(
        lambda x: -sphere(x), optimization_type=OptimizationType.MAX
    ).optimize()
    assert res.fun > -1e-2


def test_zero_temperature_only_accepts_improvements():
    res = make_annealing(temperature=lambda i: 0.0, max_iterations=500).optimize()
    values = [point.value for point in res.convergence]
    assert all(b < a for a, b in zip(values, values[1:]))


def test_hot_walk_accepts_uphill_moves():
    res = make_annealing(temperature=lambda i: 100.0, max_iterations=200).optimize()
    values = [point.value for point in res.convergence]
    assert any(b > a for a, b in zip(values, values[1:]))


def test_neighbours_stay_feasible():
    def right_half(x: np.ndarray) -> bool:
        return bool(x[0] >= 0.5)

    res = make_annealing(feasibility=right_half).optimize()
    assert all(point[0] >= 0.5 for point in res.history)
    assert res.x[0] == pytest.approx(0.5, abs=0.1)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_iterations": 0},
        {"feasibility": lambda x: False},
    ],
)
def test_invalid_configuration(kwargs):
    with pytest.raises(ConfigurationError):
        make_annealing(**kwargs)


def test_invalid_schedules():
    with pytest.raises(ConfigurationError):
        geometric_cooling(1.0, 1.5)
    with pytest.raises(ConfigurationError):
        gaussian_neighbour(0.0)
    with pytest.raises(ConfigurationError):
        SimulatedAnnealing(None, np.zeros(2))
