"""Derivative-free Nelder-Mead simplex search over a box."""

from __future__ import annotations

from typing import List, Optional

import numpy as np

from ..logging import get_logger
from .core import (
    Array,
    ConfigurationError,
    ConvergencePoint,
    Objective,
    OptimizationType,
    OptimizeResult,
    PopulationGenerator,
    SolverStatus,
    check_bounds,
    status_message,
)
from .utils import clamp, combine, parallel_map

logger = get_logger(__name__)


class NelderMead:
    """Nelder-Mead optimizer on ``[lower, upper]``.

    Vertices are ranked on ``-sign * f`` so that maximization reuses the
    minimizing comparisons. Every candidate vertex is clamped into the box.
    The run stops with ``FUNCTION_CONVERGENCE`` once
    ``|f(centroid) - f(best)| < epsilon``, otherwise after ``max_iterations``
    with ``ITERATION_EXCEEDED``.

    The initial simplex evaluation and the shrink step evaluate independent
    vertices and run on a thread pool when ``parallel`` is set.
    """

    def __init__(
        self,
        lower,
        upper,
        function: Objective,
        initial_population_generator: PopulationGenerator,
        optimization_type: OptimizationType = OptimizationType.MIN,
        max_iterations: int = 1000,
        epsilon: float = 1e-8,
        alpha: float = 1.0,
        gamma: float = 2.0,
        rho: float = 0.5,
        sigma: float = 0.5,
        parallel: bool = False,
    ) -> None:
        if function is None:
            raise ConfigurationError("The objective function should not be None")
        if initial_population_generator is None:
            raise ConfigurationError("An initial population generator is required")
        self._lower, self._upper = check_bounds(lower, upper)
        if min(alpha, gamma, rho, sigma) < 0:
            raise ConfigurationError("The alpha, gamma, rho, sigma should all be >=0")
        if epsilon <= 0:
            raise ConfigurationError("The epsilon should be >0")
        if max_iterations <= 0:
            raise ConfigurationError("The maximum number of iterations should be >0")

        self._dimension = self._lower.size
        self._function = function
        self._generator = initial_population_generator
        self._optimization_type = optimization_type
        self._sign = optimization_type.sign
        self._max_iterations = max_iterations
        self._epsilon = epsilon
        self._alpha = alpha
        self._gamma = gamma
        self._rho = rho
        self._sigma = sigma
        self._parallel = parallel

        self._result: Optional[Array] = None
        self._error = float("nan")
        self._status = SolverStatus.NOT_RUN
        self._evaluations = 0
        self._convergence: List[ConvergencePoint] = []
        self._history: List[Array] = []

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def lower(self) -> Array:
        return self._lower.copy()

    @property
    def upper(self) -> Array:
        return self._upper.copy()

    @property
    def epsilon(self) -> float:
        return self._epsilon

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    @property
    def optimization_type(self) -> OptimizationType:
        return self._optimization_type

    @property
    def coefficients(self) -> tuple[float, float, float, float]:
        """Reflection, expansion, contraction and shrink coefficients."""
        return self._alpha, self._gamma, self._rho, self._sigma

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
        """(iteration, best value) recorded at the top of every iteration."""
        return list(self._convergence)

    def _rank(self, x: Array) -> float:
        """Value to minimize; NaN ranks last."""
        value = -self._sign * float(self._function(x))
        return np.inf if np.isnan(value) else value

    def _evaluate(self, x: Array) -> float:
        self._evaluations += 1
        return self._rank(x)

    def _initial_simplex(self) -> List[Array]:
        vertices = [np.array(v, dtype=float).reshape(-1) for v in self._generator(self._dimension + 1)]
        if len(vertices) != self._dimension + 1:
            raise ConfigurationError(
                f"Population generator returned {len(vertices)} vertices, "
                f"expected {self._dimension + 1}"
            )
        if any(v.size != self._dimension for v in vertices):
            raise ConfigurationError("Seed vertices should match the bounds dimension")
        return [clamp(v, self._lower, self._upper) for v in vertices]

    def solve(self) -> OptimizeResult:
        """Run the simplex search from a freshly generated initial simplex."""
        n = self._dimension
        vertices = self._initial_simplex()
        logger.debug("Starting Nelder-Mead in dimension %d", n)
        self._evaluations = 0
        self._convergence = []
        self._history = []

        values = parallel_map(lambda i: self._rank(vertices[i]), n + 1, self._parallel)
        self._evaluations += n + 1
        simplex = list(zip(vertices, values))

        iterations = 0
        converged = False
        while iterations < self._max_iterations:
            simplex.sort(key=lambda pair: pair[1])
            best, best_value = simplex[0]
            worst, worst_value = simplex[n]
            centroid = np.mean([v for v, _ in simplex[:n]], axis=0)

            self._convergence.append(ConvergencePoint(float(iterations), -self._sign * best_value))
            self._history.append(best.copy())
            if abs(self._evaluate(centroid) - best_value) < self._epsilon:
                converged = True
                break

            reflection = self._bound(combine(1 + self._alpha, centroid, -self._alpha, worst))
            reflection_value = self._evaluate(reflection)
            if best_value <= reflection_value < simplex[n - 1][1]:
                simplex[n] = (reflection, reflection_value)
                iterations += 1
                continue

            if reflection_value < best_value:
                expansion = self._bound(combine(1 - self._gamma, centroid, self._gamma, reflection))
                expansion_value = self._evaluate(expansion)
                if expansion_value < reflection_value:
                    simplex[n] = (expansion, expansion_value)
                else:
                    simplex[n] = (reflection, reflection_value)
                iterations += 1
                continue

            contraction = self._bound(combine(1 - self._rho, centroid, self._rho, worst))
            contraction_value = self._evaluate(contraction)
            if contraction_value < worst_value:
                simplex[n] = (contraction, contraction_value)
                iterations += 1
                continue

            shrunk = [
                self._bound(combine(1 - self._sigma, best, self._sigma, simplex[s][0]))
                for s in range(1, n + 1)
            ]
            shrunk_values = parallel_map(lambda i: self._rank(shrunk[i]), n, self._parallel)
            self._evaluations += n
            simplex[1:] = list(zip(shrunk, shrunk_values))
            iterations += 1

        simplex.sort(key=lambda pair: pair[1])
        best, best_value = simplex[0]
        self._result = best.copy()
        self._error = -self._sign * best_value
        self._status = (
            SolverStatus.FUNCTION_CONVERGENCE if converged else SolverStatus.ITERATION_EXCEEDED
        )
        logger.debug("Nelder-Mead finished: status=%s value=%.6g", self._status.value, self._error)
        return OptimizeResult(
            x=best.copy(),
            fun=self._error,
            status=self._status,
            nit=iterations,
            nfev=self._evaluations,
            message=status_message(self._status),
            convergence=list(self._convergence),
            history=[h.copy() for h in self._history],
        )

    def _bound(self, x: Array) -> Array:
        return clamp(x, self._lower, self._upper)


__all__ = ["NelderMead"]
