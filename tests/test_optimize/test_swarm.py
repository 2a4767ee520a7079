import numpy as np
import pytest

from numopt.optimize import (
    ConfigurationError,
    OptimizationType,
    ParticleSwarmOptimizer,
    SolverStatus,
)


def sphere(x: np.ndarray) -> float:
    return float(np.sum(x**2))


@pytest.fixture
def population(rng):
    return list(rng.uniform(-5.0, 5.0, size=(20, 2)))


def make_swarm(population, **kwargs) -> ParticleSwarmOptimizer:
    kwargs.setdefault("lower", [-5.0, -5.0])
    kwargs.setdefault("upper", [5.0, 5.0])
    kwargs.setdefault("max_iterations", 300)
    kwargs.setdefault("max_static_iterations", 30)
    kwargs.setdefault("seed", 42)
    return ParticleSwarmOptimizer(population, sphere, **kwargs)


@pytest.mark.parametrize("batched", [False, True])
def test_sphere_converges(population, batched):
    solver = make_swarm(population)
    assert solver.status is SolverStatus.NOT_RUN
    res = solver.optimize(batched=batched)
    assert res.fun < 1e-2
    assert res.status in (SolverStatus.STATIONARY_FUNCTION, SolverStatus.ITERATION_EXCEEDED)
    assert solver.status is res.status


@pytest.mark.parametrize("batched", [False, True])
def test_fixed_seed_is_deterministic(population, batched):
    first = make_swarm(population).optimize(batched=batched)
    second = make_swarm(population).optimize(batched=batched)
    assert first.convergence == second.convergence
    assert np.array_equal(first.x, second.x)


def test_batched_is_independent_of_worker_count(population):
    one = make_swarm(population, max_workers=1).optimize_batched()
    many = make_swarm(population, max_workers=8).optimize_batched()
    assert one.convergence == many.convergence


def test_sweep_orders_follow_different_trajectories(population):
    sequential = make_swarm(population).optimize_sequential()
    batched = make_swarm(population).optimize_batched()
    assert sequential.convergence != batched.convergence


def test_global_best_never_worsens(population):
    res = make_swarm(population).optimize()
    values = [point.value for point in res.convergence]
    assert all(b <= a for a, b in zip(values, values[1:]))
    assert res.convergence[0].metric == 0.0


def test_maximization(population):
    solver = ParticleSwarmOptimizer(
        population,
        lambda x: -sphere(x - 1.0),
        lower=[-5.0, -5.0],
        upper=[5.0, 5.0],
        optimization_type=OptimizationType.MAX,
        max_static_iterations=30,
        seed=1,
    )
    res = solver.optimize()
    assert np.allclose(res.x, [1.0, 1.0], atol=0.1)


def test_iteration_cap_and_evaluation_count(population):
    res = make_swarm(population, max_iterations=3, max_static_iterations=10).optimize()
    assert res.status is SolverStatus.ITERATION_EXCEEDED
    assert res.nit == 3
    assert res.nfev == 20 * 4


def test_positions_clamped_into_box(rng):
    start = list(rng.uniform(0.0, 1.0, size=(10, 2)))
    solver = ParticleSwarmOptimizer(
        start,
        lambda x: sphere(x - 3.0),
        lower=[0.0, 0.0],
        upper=[1.0, 1.0],
        max_static_iterations=30,
        seed=0,
    )
    res = solver.optimize()
    for best in res.history:
        assert np.all(best >= 0.0) and np.all(best <= 1.0)
    assert np.allclose(res.x, [1.0, 1.0], atol=1e-3)


def test_feasibility_predicate_is_respected(rng):
    start = list(rng.uniform(0.0, 2.0, size=(10, 2)))

    def feasible(x: np.ndarray) -> bool:
        return bool(x[0] >= 0.0)

    solver = ParticleSwarmOptimizer(
        start,
        lambda x: sphere(x + np.array([1.0, 0.0])),
        feasibility=feasible,
        max_static_iterations=30,
        seed=0,
    )
    res = solver.optimize()
    assert all(feasible(best) for best in res.history)
    assert res.x[0] >= 0.0
    assert res.x[0] < 0.1


def test_input_population_is_not_mutated(population):
    snapshot = [p.copy() for p in population]
    make_swarm(population).optimize()
    for before, after in zip(snapshot, population):
        assert np.array_equal(before, after)


def test_swarm_too_small():
    with pytest.raises(ConfigurationError):
        ParticleSwarmOptimizer([np.zeros(2)], sphere)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"velocity_inertia": -0.1},
        {"attraction_to_particle_best": -1.0},
        {"epsilon": 0.0},
        {"max_iterations": 0},
        {"max_static_iterations": 0},
        {"shrinkage_factor": 1.0},
        {"lower": [-5.0, -5.0]},
        {"lower": [0.0, 0.0], "upper": [1.0, 1.0]},
        {"feasibility": lambda x: False},
    ],
)
def test_invalid_configuration(population, kwargs):
    with pytest.raises(ConfigurationError):
        ParticleSwarmOptimizer(population, sphere, **kwargs)


def undefined_left_half(x: np.ndarray) -> float:
    return float("nan") if x[0] < 0 else float(np.sum(x**2))


@pytest.mark.parametrize("batched", [False, True])
def test_nan_particle_never_becomes_overall_best(batched):
    population = [[-1.0, 0.0], [2.0, 2.0], [1.0, 1.0], [3.0, 1.0]]
    solver = ParticleSwarmOptimizer(
        population,
        undefined_left_half,
        lower=[-5.0, -5.0],
        upper=[5.0, 5.0],
        max_iterations=50,
        seed=3,
    )
    res = solver.optimize(batched=batched)
    assert np.isfinite(res.fun)
    assert res.fun <= 2.0
    assert res.x[0] >= 0
    assert all(np.isfinite(point.value) for point in res.convergence)
