"""Gaussian hill climbing for functions of one variable."""

from __future__ import annotations

import math
from typing import List, Optional

import numpy as np

from ..logging import get_logger
from .core import (
    ConfigurationError,
    ConvergencePoint,
    OptimizationType,
    OptimizeResult,
    ScalarFunction,
    SolverStatus,
    status_message,
)
from .criteria import EndCriteria

logger = get_logger(__name__)


class GaussianHillClimb:
    """Random local search on the real line with a shrinking Gaussian step.

    At iteration ``i`` a feasible point ``x + s_i * z`` is drawn, with ``z``
    standard normal and ``s_i = sigma0 * exp(-gamma * i / (N - 1))``, and
    kept only when it strictly improves. Use :meth:`from_bounds` to derive
    ``sigma0`` and ``gamma`` from an interval and a final accuracy.

    Example:
        >>> climb = GaussianHillClimb.from_bounds(lambda x: (x - 1) ** 2, 0.0, -4.0, 4.0, seed=0)
        >>> abs(climb.optimize().x[0] - 1) < 1e-2
        True
    """

    def __init__(
        self,
        function: ScalarFunction,
        initial_guess: float,
        sigma0: float,
        gamma: float,
        optimization_type: OptimizationType = OptimizationType.MIN,
        max_iterations: int = 1000,
        feasibility=None,
        seed: Optional[int] = None,
    ) -> None:
        if function is None:
            raise ConfigurationError("The fitness function should not be None")
        if sigma0 <= 0:
            raise ConfigurationError("The initial standard deviation should be >0")
        if gamma < 0:
            raise ConfigurationError("The cooling speed should be >=0")
        if max_iterations <= 0:
            raise ConfigurationError("The maximum number of iterations should be positive")
        feasibility = feasibility or (lambda x: True)
        if not feasibility(float(initial_guess)):
            raise ConfigurationError("The initial guess is not feasible")

        self._function = function
        self._initial_guess = float(initial_guess)
        self._sigma0 = sigma0
        self._gamma = gamma
        self._optimization_type = optimization_type
        self._max_iterations = max_iterations
        self._feasibility = feasibility
        self._seed = seed

        self._result = math.nan
        self._error = math.nan
        self._status = SolverStatus.NOT_RUN
        self._evaluations = 0
        self._convergence: List[ConvergencePoint] = []

    @classmethod
    def from_bounds(
        cls,
        function: ScalarFunction,
        initial_guess: float,
        lower: float,
        upper: float,
        tolerance: float = 1e-6,
        optimization_type: OptimizationType = OptimizationType.MIN,
        max_iterations: int = 1000,
        seed: Optional[int] = None,
    ) -> "GaussianHillClimb":
        """Search the open interval ``(lower, upper)``.

        The step starts at half the interval width and decays to
        ``tolerance`` by the last iteration.
        """
        width = upper - lower
        if width <= 0:
            raise ConfigurationError("The lower bound should be below the upper bound")
        if not (0 < tolerance < width / 2):
            raise ConfigurationError("The tolerance should lie in (0, (upper - lower) / 2)")
        return cls(
            function,
            initial_guess,
            sigma0=width / 2,
            gamma=-math.log(2 * tolerance / width),
            optimization_type=optimization_type,
            max_iterations=max_iterations,
            feasibility=lambda x: lower < x < upper,
            seed=seed,
        )

    @property
    def sigma0(self) -> float:
        return self._sigma0

    @property
    def gamma(self) -> float:
        return self._gamma

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    @property
    def status(self) -> SolverStatus:
        return self._status

    @property
    def result(self) -> float:
        return self._result

    @property
    def error(self) -> float:
        return self._error

    @property
    def evaluations(self) -> int:
        return self._evaluations

    @property
    def convergence(self) -> List[ConvergencePoint]:
        """(x, f(x)) for the start and every accepted move."""
        return list(self._convergence)

    def step_size(self, iteration: int) -> float:
        return self._sigma0 * math.exp(-self._gamma * iteration / max(self._max_iterations - 1, 1))

    def optimize(self) -> OptimizeResult:
        rng = np.random.default_rng(self._seed)
        current = self._initial_guess
        value = float(self._function(current))
        self._evaluations = 1
        self._convergence = [ConvergencePoint(current, value)]
        logger.debug("Starting Gaussian hill climb from x0=%.6g", current)

        criteria = EndCriteria(max_iterations=self._max_iterations)
        iteration = 0
        while not criteria.should_stop():
            stdev = self.step_size(iteration)
            candidate = current + stdev * float(rng.standard_normal())
            while not self._feasibility(candidate):
                candidate = current + stdev * float(rng.standard_normal())
            candidate_value = float(self._function(candidate))
            self._evaluations += 1
            iteration += 1
            if self._optimization_type.improves(candidate_value, value):
                current, value = candidate, candidate_value
                self._convergence.append(ConvergencePoint(current, value))

        self._result = current
        self._error = value
        self._status = criteria.status
        logger.debug("Gaussian hill climb finished: x=%.10g value=%.6g", current, value)
        return OptimizeResult(
            x=np.array([current]),
            fun=value,
            status=self._status,
            nit=iteration,
            nfev=self._evaluations,
            message=status_message(self._status),
            convergence=list(self._convergence),
            history=[np.array([p.metric]) for p in self._convergence],
        )


__all__ = ["GaussianHillClimb"]
