"""
Example: Iterative optimizers and root finders in numopt

This example runs each solver family on a small textbook problem: gradient
descent variants on Rosenbrock, the derivative-free and population-based
optimizers on a shifted sphere, and the scalar root finders on a cubic.
"""

import numpy as np

from numopt import (
    BrentMethod,
    DifferentialEvolutionOptimizer,
    EndCriteria,
    GradientDescent,
    GaussianHillClimb,
    NelderMead,
    NewtonRaphson,
    ParticleSwarmOptimizer,
    PatternSearch,
    Problem,
    RootBracketing,
    RootBracketingMethod,
    SimulatedAnnealing,
)
from numopt.optimize import geometric_cooling, uniform_population

TARGET = np.array([3.0, -2.0])


def rosen(x):
    return (1 - x[0]) ** 2 + 100 * (x[1] - x[0] ** 2) ** 2


def rosen_grad(x):
    return np.array(
        [
            -2 * (1 - x[0]) - 400 * x[0] * (x[1] - x[0] ** 2),
            200 * (x[1] - x[0] ** 2),
        ]
    )


def shifted_sphere(x):
    return float(np.sum((x - TARGET) ** 2))


def example_gradient_descent():
    """Example: BFGS and box-constrained descent."""
    print("=" * 60)
    print("Example 1: Gradient Descent")
    print("=" * 60)

    problem = Problem(fun=rosen, grad=rosen_grad, dim=2)
    solver = GradientDescent(
        problem,
        np.array([-1.2, 1.0]),
        end_criteria=EndCriteria(max_iterations=2000, gradient_epsilon=1e-8),
        lower=[-2.0, -2.0],
        upper=[0.5, 2.0],
    )
    result = solver.optimize_bfgs()
    print(f"BFGS status: {result.status.value}")
    print(f"BFGS solution: {result.x}, value {result.fun:.3e}")

    boxed = solver.optimize_box(momentum=0.3)
    print(f"Box status: {boxed.status.value}")
    print(f"Box solution: {boxed.x}, value {boxed.fun:.3e}")
    print()


def example_derivative_free():
    """Example: Nelder-Mead, pattern search, annealing and hill climbing."""
    print("=" * 60)
    print("Example 2: Derivative-free search")
    print("=" * 60)

    lower, upper = [-5.0, -5.0], [5.0, 5.0]
    simplex = NelderMead(lower, upper, shifted_sphere, uniform_population(lower, upper, seed=0))
    result = simplex.solve()
    print(f"Nelder-Mead: {result.x} after {result.nit} iterations ({result.status.value})")

    pattern = PatternSearch(shifted_sphere, np.zeros(2), np.ones(2), parallel=True)
    result = pattern.optimize()
    print(f"Pattern search: {result.x} after {result.nit} iterations ({result.status.value})")

    annealing = SimulatedAnnealing(
        shifted_sphere, np.zeros(2), temperature=geometric_cooling(0.1, 0.95), seed=0
    )
    result = annealing.optimize()
    print(f"Simulated annealing: {result.x}, value {result.fun:.4f}")

    climb = GaussianHillClimb.from_bounds(lambda x: (x - 3.0) ** 2, 0.0, -5.0, 5.0, seed=0)
    result = climb.optimize()
    print(f"Gaussian hill climb: x = {result.x[0]:.4f}")
    print()


def example_population():
    """Example: particle swarm (both sweep orders) and differential evolution."""
    print("=" * 60)
    print("Example 3: Population-based optimizers")
    print("=" * 60)

    rng = np.random.default_rng(0)
    population = list(rng.uniform(-5.0, 5.0, size=(20, 2)))

    swarm = ParticleSwarmOptimizer(
        population, shifted_sphere, lower=[-5.0, -5.0], upper=[5.0, 5.0], seed=1
    )
    for batched in (False, True):
        result = swarm.optimize(batched=batched)
        label = "batched" if batched else "sequential"
        print(f"PSO ({label}): {result.x}, value {result.fun:.3e}")

    evolution = DifferentialEvolutionOptimizer(population, shifted_sphere, seed=1)
    result = evolution.optimize()
    print(f"Differential evolution: {result.x}, value {result.fun:.3e}")
    print()


def example_root_finding():
    """Example: root of x^3 - x - 2."""
    print("=" * 60)
    print("Example 4: Scalar root finding")
    print("=" * 60)

    def cubic(x):
        return x**3 - x - 2

    newton = NewtonRaphson(1.0, cubic, lambda x: 3 * x**2 - 1, max_iterations=50).solve()
    print(f"Newton-Raphson: {newton.root:.10f} ({newton.status.value})")

    for method in RootBracketingMethod:
        result = RootBracketing(1.0, 2.0, cubic, method=method).solve()
        print(f"Bracketing ({method.value}): {result.root:.10f} in {result.nit} iterations")

    brent = BrentMethod(1.0, 2.0, cubic).solve()
    print(f"Brent: {brent.root:.10f} in {brent.nit} iterations")
    print()


if __name__ == "__main__":
    print("\n" + "=" * 60)
    print("numopt - Optimization Examples")
    print("=" * 60 + "\n")

    example_gradient_descent()
    example_derivative_free()
    example_population()
    example_root_finding()

    print("=" * 60)
    print("All examples completed successfully!")
    print("=" * 60)
