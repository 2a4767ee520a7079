"""Particle swarm optimization.

Two sweep orders are provided and deliberately kept apart:

* :meth:`ParticleSwarmOptimizer.optimize_sequential` moves particles one at a
  time and updates the global best as soon as a particle improves on it, so
  later particles in the same sweep are attracted to the new best. All random
  draws come from one generator in particle order.
* :meth:`ParticleSwarmOptimizer.optimize_batched` moves every particle
  against the global best of the previous sweep, possibly on a thread pool,
  then reduces the personal bests into a new global best. Each particle owns
  its own generator spawned from the run seed, so results do not depend on
  thread scheduling.

For the same seed the two orders follow different trajectories.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from ..logging import get_logger
from .core import (
    Array,
    ConfigurationError,
    ConvergencePoint,
    Feasibility,
    Objective,
    OptimizationType,
    OptimizeResult,
    SolverStatus,
    as_vector,
    check_bounds,
    status_message,
)
from .criteria import EndCriteria
from .utils import clamp, parallel_map

logger = get_logger(__name__)


class _Swarm:
    """Mutable run state: positions, velocities and personal bests."""

    def __init__(self, population: List[Array], values: List[float]) -> None:
        self.positions = [p.copy() for p in population]
        self.velocities = [np.zeros_like(p) for p in population]
        self.best_positions = [p.copy() for p in population]
        self.best_values = list(values)


class ParticleSwarmOptimizer:
    """Particle swarm optimizer over an optionally bounded space.

    Args:
        initial_population: Starting particle positions (at least two).
        function: Fitness function.
        lower, upper: Optional box; positions are clamped into it.
        optimization_type: ``MIN`` or ``MAX``.
        max_iterations: Iteration cap.
        max_static_iterations: Window over which an unchanged global best
            (within ``epsilon``) stops the run as stationary.
        epsilon: Plateau tolerance.
        attraction_to_particle_best: Cognitive coefficient ``c1``.
        attraction_to_overall_best: Social coefficient ``c2``.
        velocity_inertia: Inertia weight.
        feasibility: Optional predicate; an infeasible move is retried with
            its velocity scaled by ``shrinkage_factor`` up to
            ``max_shrinkage_attempts`` times before the particle stays put.
        seed: Seed for the run's random generators.
        max_workers: Thread-pool size for the batched sweep.
    """

    def __init__(
        self,
        initial_population: Sequence,
        function: Objective,
        lower=None,
        upper=None,
        optimization_type: OptimizationType = OptimizationType.MIN,
        max_iterations: int = 100,
        max_static_iterations: int = 10,
        epsilon: float = 1e-8,
        attraction_to_particle_best: float = 2.0,
        attraction_to_overall_best: float = 2.0,
        velocity_inertia: float = 0.5,
        feasibility: Optional[Feasibility] = None,
        shrinkage_factor: float = 0.5,
        max_shrinkage_attempts: int = 20,
        seed: Optional[int] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        if function is None:
            raise ConfigurationError("The fitness function should not be None")
        population = [as_vector(p, "particle") for p in initial_population]
        if len(population) < 2:
            raise ConfigurationError("The swarm size should be at least 2")
        dimension = population[0].size
        if any(p.size != dimension for p in population):
            raise ConfigurationError("All particles should have the same dimension")

        if (lower is None) != (upper is None):
            raise ConfigurationError("Provide both lower and upper bounds or neither")
        self._lower: Optional[Array] = None
        self._upper: Optional[Array] = None
        if lower is not None:
            self._lower, self._upper = check_bounds(lower, upper)
            if self._lower.size != dimension:
                raise ConfigurationError("Bounds and particles should be the same size")
            if any(np.any(p < self._lower) or np.any(p > self._upper) for p in population):
                raise ConfigurationError("Some particles of the initial population are out of bounds")
        if feasibility is not None and not all(feasibility(p) for p in population):
            raise ConfigurationError("Some agents of the initial population are not feasible")

        if min(attraction_to_particle_best, attraction_to_overall_best, velocity_inertia) < 0:
            raise ConfigurationError(
                "The attraction to overall best, attraction to particle best and "
                "velocity inertia should all be >=0"
            )
        if not (0 < shrinkage_factor < 1):
            raise ConfigurationError("The shrinkage factor should lie in (0, 1)")
        if max_shrinkage_attempts <= 0:
            raise ConfigurationError("max_shrinkage_attempts should be positive")
        if epsilon <= 0:
            raise ConfigurationError("The epsilon should be >0")
        if max_iterations <= 0 or max_static_iterations <= 0:
            raise ConfigurationError(
                "The maximum number of iterations and static iterations should both be >0"
            )

        self._population = population
        self._function = function
        self._optimization_type = optimization_type
        self._max_iterations = max_iterations
        self._max_static_iterations = max_static_iterations
        self._epsilon = epsilon
        self._c1 = attraction_to_particle_best
        self._c2 = attraction_to_overall_best
        self._inertia = velocity_inertia
        self._feasibility = feasibility
        self._shrinkage_factor = shrinkage_factor
        self._max_shrinkage_attempts = max_shrinkage_attempts
        self._seed = seed
        self._max_workers = max_workers

        self._result: Optional[Array] = None
        self._error = float("nan")
        self._status = SolverStatus.NOT_RUN
        self._evaluations = 0
        self._convergence: List[ConvergencePoint] = []
        self._history: List[Array] = []

    @property
    def swarm_size(self) -> int:
        return len(self._population)

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    @property
    def max_static_iterations(self) -> int:
        return self._max_static_iterations

    @property
    def epsilon(self) -> float:
        return self._epsilon

    @property
    def velocity_inertia(self) -> float:
        return self._inertia

    @property
    def attraction_to_particle_best(self) -> float:
        return self._c1

    @property
    def attraction_to_overall_best(self) -> float:
        return self._c2

    @property
    def optimization_type(self) -> OptimizationType:
        return self._optimization_type

    @property
    def status(self) -> SolverStatus:
        return self._status

    @property
    def result(self) -> Optional[Array]:
        return None if self._result is None else self._result.copy()

    @property
    def error(self) -> float:
        return self._error

    @property
    def evaluations(self) -> int:
        return self._evaluations

    @property
    def convergence(self) -> List[ConvergencePoint]:
        """(iteration, global best value), starting with the initial swarm."""
        return list(self._convergence)

    def optimize(self, batched: bool = False) -> OptimizeResult:
        """Run the sequential sweep, or the batched one when ``batched``."""
        if batched:
            return self.optimize_batched()
        return self.optimize_sequential()

    # ------------------------------------------------------------------
    # Particle move
    # ------------------------------------------------------------------
    def _move(
        self,
        swarm: _Swarm,
        i: int,
        overall_best: Array,
        rng: np.random.Generator,
    ) -> tuple[Array, Array, float]:
        """New (position, velocity, value) for particle ``i``; does not mutate ``swarm``."""
        position = swarm.positions[i]
        r1, r2 = rng.random(2)
        velocity = (
            self._inertia * swarm.velocities[i]
            + self._c1 * r1 * (swarm.best_positions[i] - position)
            + self._c2 * r2 * (overall_best - position)
        )
        candidate = self._place(position + velocity)
        if self._feasibility is not None:
            attempts = 0
            while not self._feasibility(candidate):
                attempts += 1
                if attempts > self._max_shrinkage_attempts:
                    velocity = np.zeros_like(position)
                    candidate = position.copy()
                    break
                velocity = velocity * self._shrinkage_factor
                candidate = self._place(position + velocity)
        return candidate, candidate - position, float(self._function(candidate))

    def _place(self, x: Array) -> Array:
        if self._lower is None:
            return x
        return clamp(x, self._lower, self._upper)

    def _accept(self, swarm: _Swarm, i: int, position: Array, velocity: Array, value: float) -> None:
        swarm.positions[i] = position
        swarm.velocities[i] = velocity
        if self._optimization_type.improves(value, swarm.best_values[i]):
            swarm.best_positions[i] = position.copy()
            swarm.best_values[i] = value

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------
    def _start(self, parallel: bool) -> tuple[_Swarm, int, EndCriteria]:
        self._evaluations = 0
        self._convergence = []
        self._history = []
        self._status = SolverStatus.NOT_RUN
        size = len(self._population)
        values = parallel_map(
            lambda i: float(self._function(self._population[i])),
            size,
            parallel,
            self._max_workers,
        )
        self._evaluations += size
        swarm = _Swarm(self._population, values)
        best_index = self._best_index(swarm.best_values)
        criteria = EndCriteria(
            max_iterations=self._max_iterations,
            max_static_iterations=self._max_static_iterations,
            gradient_epsilon=self._epsilon,
        )
        return swarm, best_index, criteria

    def _best_index(self, values: List[float]) -> int:
        best = 0
        for i in range(1, len(values)):
            if self._optimization_type.improves(values[i], values[best]):
                best = i
        return best

    def _record(self, iteration: int, best: Array, best_value: float) -> None:
        self._convergence.append(ConvergencePoint(float(iteration), best_value))
        self._history.append(best.copy())

    def optimize_sequential(self) -> OptimizeResult:
        """Sweep particles in order, updating the global best immediately."""
        logger.debug("Starting sequential PSO with %d particles", self.swarm_size)
        swarm, best_index, criteria = self._start(parallel=False)
        rng = np.random.default_rng(self._seed)
        overall_best = swarm.best_positions[best_index].copy()
        overall_value = swarm.best_values[best_index]
        iteration = 0
        self._record(iteration, overall_best, overall_value)

        while not criteria.should_stop(overall_value):
            for i in range(self.swarm_size):
                position, velocity, value = self._move(swarm, i, overall_best, rng)
                self._evaluations += 1
                self._accept(swarm, i, position, velocity, value)
                if self._optimization_type.improves(swarm.best_values[i], overall_value):
                    overall_best = swarm.best_positions[i].copy()
                    overall_value = swarm.best_values[i]
            iteration += 1
            self._record(iteration, overall_best, overall_value)

        return self._finish(overall_best, overall_value, iteration, criteria)

    def optimize_batched(self) -> OptimizeResult:
        """Move all particles against last sweep's global best, then reduce."""
        logger.debug("Starting batched PSO with %d particles", self.swarm_size)
        swarm, best_index, criteria = self._start(parallel=True)
        generators = [
            np.random.default_rng(child)
            for child in np.random.SeedSequence(self._seed).spawn(self.swarm_size)
        ]
        overall_best = swarm.best_positions[best_index].copy()
        overall_value = swarm.best_values[best_index]
        iteration = 0
        self._record(iteration, overall_best, overall_value)

        while not criteria.should_stop(overall_value):
            target = overall_best
            moves = parallel_map(
                lambda i: self._move(swarm, i, target, generators[i]),
                self.swarm_size,
                True,
                self._max_workers,
            )
            self._evaluations += self.swarm_size
            for i, (position, velocity, value) in enumerate(moves):
                self._accept(swarm, i, position, velocity, value)
            for i in range(self.swarm_size):
                if self._optimization_type.improves(swarm.best_values[i], overall_value):
                    overall_best = swarm.best_positions[i].copy()
                    overall_value = swarm.best_values[i]
            iteration += 1
            self._record(iteration, overall_best, overall_value)

        return self._finish(overall_best, overall_value, iteration, criteria)

    def _finish(
        self, best: Array, value: float, iteration: int, criteria: EndCriteria
    ) -> OptimizeResult:
        self._result = best.copy()
        self._error = value
        self._status = criteria.status
        logger.debug("PSO finished: status=%s value=%.6g", self._status.value, value)
        return OptimizeResult(
            x=best.copy(),
            fun=value,
            status=self._status,
            nit=iteration,
            nfev=self._evaluations,
            message=status_message(self._status),
            convergence=list(self._convergence),
            history=[h.copy() for h in self._history],
        )


__all__ = ["ParticleSwarmOptimizer"]
