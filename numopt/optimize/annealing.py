"""Simulated annealing over a feasibility-restricted space."""

from __future__ import annotations

import math
from typing import Callable, List, Optional

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

Temperature = Callable[[int], float]
Neighbour = Callable[[Array, np.random.Generator], Array]


def geometric_cooling(initial: float = 1.0, rate: float = 0.99) -> Temperature:
    """Return ``i -> initial * rate**i``."""
    if initial <= 0 or not (0 < rate < 1):
        raise ConfigurationError("Cooling needs initial > 0 and rate in (0, 1)")
    return lambda i: initial * rate**i


def gaussian_neighbour(step_size: float) -> Neighbour:
    """Return ``(x, rng) -> x + step_size * N(0, I)``."""
    if step_size <= 0:
        raise ConfigurationError("The step size should be >0")
    return lambda x, rng: x + step_size * rng.standard_normal(x.size)


class SimulatedAnnealing:
    """Metropolis walk with a decreasing temperature.

    Each iteration draws neighbours of the current point until one is
    feasible. A strictly better neighbour is always taken; otherwise it is
    taken when ``exp(sign * (new - current) / T(i))`` exceeds a uniform draw,
    so equal values are always accepted. The run ends on the iteration cap
    and reports the current point, not the best one visited.

    Neighbours are redrawn without limit, like the trial vectors of
    :class:`DifferentialEvolutionOptimizer`.
    """

    def __init__(
        self,
        function: Objective,
        initial_point,
        temperature: Optional[Temperature] = None,
        neighbour: Optional[Neighbour] = None,
        optimization_type: OptimizationType = OptimizationType.MIN,
        max_iterations: int = 1000,
        feasibility: Optional[Feasibility] = None,
        seed: Optional[int] = None,
    ) -> None:
        if function is None:
            raise ConfigurationError("The fitness function should not be None")
        point = as_vector(initial_point, "initial point")
        feasibility = feasibility or (lambda v: True)
        if not feasibility(point):
            raise ConfigurationError("The initial point is not feasible")
        if max_iterations <= 0:
            raise ConfigurationError("The maximum number of iterations should be positive")

        self._function = function
        self._initial_point = point
        self._temperature = temperature or geometric_cooling()
        self._neighbour = neighbour or gaussian_neighbour(0.1)
        self._optimization_type = optimization_type
        self._max_iterations = max_iterations
        self._feasibility = feasibility
        self._seed = seed

        self._result: Optional[Array] = None
        self._error = float("nan")
        self._status = SolverStatus.NOT_RUN
        self._evaluations = 0
        self._convergence: List[ConvergencePoint] = []
        self._history: List[Array] = []

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

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
        """(iteration, value) for the start and every accepted move."""
        return list(self._convergence)

    def _accepts(self, value: float, current: float, temperature: float, rng) -> bool:
        if self._optimization_type.improves(value, current):
            return True
        if temperature <= 0 or math.isnan(value):
            return False
        ratio = self._optimization_type.sign * (value - current) / temperature
        return math.exp(min(ratio, 0.0)) > rng.random()

    def optimize(self) -> OptimizeResult:
        """Walk from the initial point until the iteration cap."""
        rng = np.random.default_rng(self._seed)
        current = self._initial_point.copy()
        value = float(self._function(current))
        logger.debug("Starting simulated annealing in dimension %d", current.size)
        self._evaluations = 1
        self._convergence = [ConvergencePoint(0.0, value)]
        self._history = [current.copy()]

        criteria = EndCriteria(max_iterations=self._max_iterations)
        iteration = 0
        while not criteria.should_stop():
            candidate = np.asarray(self._neighbour(current, rng), dtype=float)
            while not self._feasibility(candidate):
                candidate = np.asarray(self._neighbour(current, rng), dtype=float)
            candidate_value = float(self._function(candidate))
            self._evaluations += 1
            iteration += 1
            if self._accepts(candidate_value, value, self._temperature(iteration - 1), rng):
                current, value = candidate, candidate_value
                self._convergence.append(ConvergencePoint(float(iteration), value))
                self._history.append(current.copy())

        self._result = current.copy()
        self._error = value
        self._status = criteria.status
        logger.debug("Simulated annealing finished: value=%.6g", value)
        return OptimizeResult(
            x=current.copy(),
            fun=value,
            status=self._status,
            nit=iteration,
            nfev=self._evaluations,
            message=status_message(self._status),
            convergence=list(self._convergence),
            history=[h.copy() for h in self._history],
        )


__all__ = ["SimulatedAnnealing", "gaussian_neighbour", "geometric_cooling"]
