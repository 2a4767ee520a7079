"""Differential evolution over a feasibility-restricted space.

Candidates are replaced in place during a generation, so a candidate later
in the sweep may build its trial vector from neighbours already replaced in
the same generation. Runs stop only on the iteration cap.
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
    status_message,
)
from .criteria import EndCriteria

logger = get_logger(__name__)


class DifferentialEvolutionOptimizer:
    """Classic DE/rand/1/bin-style optimizer.

    For each candidate ``k`` three distinct other members ``a, b, c`` are
    drawn and every coordinate of the trial is, with probability
    ``crossover_probability``, ``a_i + weight * (b_i - c_i)``, otherwise
    ``x_i``. Trials are redrawn until ``feasibility`` accepts them, with no
    cap; a feasibility region the mutation cannot reach loops forever.
    """

    def __init__(
        self,
        initial_population: Sequence,
        function: Objective,
        optimization_type: OptimizationType = OptimizationType.MIN,
        max_iterations: int = 100,
        crossover_probability: float = 0.5,
        differential_weight: float = 0.8,
        feasibility: Optional[Feasibility] = None,
        seed: Optional[int] = None,
    ) -> None:
        if function is None:
            raise ConfigurationError("The fitness function should not be None")
        population = [as_vector(p, "agent") for p in initial_population]
        if len(population) <= 4:
            raise ConfigurationError(
                "The initial population is too small to perform a differential evolution"
            )
        dimension = population[0].size
        if any(p.size != dimension for p in population):
            raise ConfigurationError("All agents should have the same dimension")
        feasibility = feasibility or (lambda v: True)
        if not all(feasibility(p) for p in population):
            raise ConfigurationError("Some agents of the initial population are not feasible")
        if max_iterations <= 0:
            raise ConfigurationError("The maximum number of iterations should be >0")
        if not (0 < crossover_probability < 1):
            raise ConfigurationError("The crossover probability should lie in (0, 1)")
        if differential_weight == 0:
            raise ConfigurationError("The differential weight should not be equal to zero")

        self._population = population
        self._function = function
        self._optimization_type = optimization_type
        self._max_iterations = max_iterations
        self._crossover_probability = crossover_probability
        self._differential_weight = differential_weight
        self._feasibility = feasibility
        self._seed = seed

        self._result: Optional[Array] = None
        self._error = float("nan")
        self._status = SolverStatus.NOT_RUN
        self._evaluations = 0
        self._convergence: List[ConvergencePoint] = []
        self._history: List[Array] = []

    @property
    def population_size(self) -> int:
        return len(self._population)

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    @property
    def crossover_probability(self) -> float:
        return self._crossover_probability

    @property
    def differential_weight(self) -> float:
        return self._differential_weight

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
        """(generation, best fitness) after every generation."""
        return list(self._convergence)

    def _trial(self, population: List[Array], k: int, rng: np.random.Generator) -> Array:
        size = len(population)
        others = [i for i in range(size) if i != k]
        a, b, c = (population[i] for i in rng.choice(others, size=3, replace=False))
        x = population[k]
        while True:
            mask = rng.random(x.size) < self._crossover_probability
            trial = np.where(mask, a + self._differential_weight * (b - c), x)
            if self._feasibility(trial):
                return trial

    def optimize(self) -> OptimizeResult:
        """Evolve the population until the iteration cap."""
        logger.debug("Starting differential evolution with %d agents", self.population_size)
        rng = np.random.default_rng(self._seed)
        population = [p.copy() for p in self._population]
        fitnesses = [float(self._function(p)) for p in population]
        self._evaluations = len(population)
        self._convergence = []
        self._history = []
        self._status = SolverStatus.NOT_RUN

        criteria = EndCriteria(max_iterations=self._max_iterations)
        best_index = self._best_index(fitnesses)
        generation = 0
        while not criteria.should_stop():
            for k in range(len(population)):
                trial = self._trial(population, k, rng)
                fitness = float(self._function(trial))
                self._evaluations += 1
                if self._optimization_type.improves(fitness, fitnesses[k]):
                    population[k] = trial
                    fitnesses[k] = fitness
            generation += 1
            best_index = self._best_index(fitnesses)
            self._convergence.append(ConvergencePoint(float(generation), fitnesses[best_index]))
            self._history.append(population[best_index].copy())

        self._result = population[best_index].copy()
        self._error = fitnesses[best_index]
        self._status = criteria.status
        logger.debug("Differential evolution finished: value=%.6g", self._error)
        return OptimizeResult(
            x=self._result.copy(),
            fun=self._error,
            status=self._status,
            nit=generation,
            nfev=self._evaluations,
            message=status_message(self._status),
            convergence=list(self._convergence),
            history=[h.copy() for h in self._history],
        )

    def _best_index(self, fitnesses: List[float]) -> int:
        best = 0
        for i in range(1, len(fitnesses)):
            if self._optimization_type.improves(fitnesses[i], fitnesses[best]):
                best = i
        return best


__all__ = ["DifferentialEvolutionOptimizer"]
