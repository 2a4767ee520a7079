"""Compass (pattern) search."""

from __future__ import annotations

from typing import List, Optional

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
from .utils import parallel_map

logger = get_logger(__name__)


class PatternSearch:
    """Probe ``x +/- shock_i * e_i`` for every coordinate and move to the best
    strictly improving feasible probe. When no probe improves, every shock is
    multiplied by ``shrinkage_factor``.

    The run stops through :class:`EndCriteria` on the iteration cap or when
    the best value has stayed within ``epsilon`` for
    ``max_static_iterations`` iterations.
    """

    def __init__(
        self,
        function: Objective,
        initial_point,
        shocks,
        optimization_type: OptimizationType = OptimizationType.MIN,
        max_iterations: int = 1000,
        max_static_iterations: int = 10,
        epsilon: float = 1e-8,
        shrinkage_factor: float = 0.5,
        feasibility: Optional[Feasibility] = None,
        parallel: bool = False,
    ) -> None:
        if function is None:
            raise ConfigurationError("The fitness function should not be None")
        point = as_vector(initial_point, "initial point")
        shock = as_vector(shocks, "shocks")
        if shock.size != point.size:
            raise ConfigurationError("The shocks and the initial point should be the same size")
        if shock.min() <= 0:
            raise ConfigurationError("The shocks should be positive")
        feasibility = feasibility or (lambda v: True)
        if not feasibility(point):
            raise ConfigurationError("The initial point is not feasible")
        if not (0 < shrinkage_factor < 1):
            raise ConfigurationError("The shrinkage factor should lie in (0, 1)")
        if epsilon <= 0:
            raise ConfigurationError("The epsilon should be >0")
        if max_iterations <= 0 or max_static_iterations <= 0:
            raise ConfigurationError(
                "The maximum number of iterations and static iterations should both be >0"
            )

        self._function = function
        self._initial_point = point
        self._shocks = shock
        self._optimization_type = optimization_type
        self._max_iterations = max_iterations
        self._max_static_iterations = max_static_iterations
        self._epsilon = epsilon
        self._shrinkage_factor = shrinkage_factor
        self._feasibility = feasibility
        self._parallel = parallel

        self._result: Optional[Array] = None
        self._error = float("nan")
        self._status = SolverStatus.NOT_RUN
        self._evaluations = 0
        self._convergence: List[ConvergencePoint] = []
        self._history: List[Array] = []

    @property
    def shrinkage_factor(self) -> float:
        return self._shrinkage_factor

    @property
    def epsilon(self) -> float:
        return self._epsilon

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    @property
    def max_static_iterations(self) -> int:
        return self._max_static_iterations

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
        return list(self._convergence)

    def _probe(self, current: Array, shock: Array, k: int):
        n = current.size
        candidate = current.copy()
        if k < n:
            candidate[k] += shock[k]
        else:
            candidate[k - n] -= shock[k - n]
        if not self._feasibility(candidate):
            return None
        return candidate, float(self._function(candidate))

    def optimize(self) -> OptimizeResult:
        """Run the search from the initial point with the initial shocks."""
        current = self._initial_point.copy()
        shock = self._shocks.copy()
        n = current.size
        logger.debug("Starting pattern search in dimension %d", n)

        reference = float(self._function(current))
        self._evaluations = 1
        self._convergence = [ConvergencePoint(0.0, reference)]
        self._history = [current.copy()]

        criteria = EndCriteria(
            max_iterations=self._max_iterations,
            max_static_iterations=self._max_static_iterations,
            gradient_epsilon=self._epsilon,
        )
        iteration = 0
        while not criteria.should_stop(reference):
            probes = parallel_map(
                lambda k: self._probe(current, shock, k), 2 * n, self._parallel
            )
            evaluated = [p for p in probes if p is not None]
            self._evaluations += len(evaluated)

            best = None
            for candidate, value in evaluated:
                target = reference if best is None else best[1]
                if self._optimization_type.improves(value, target):
                    best = (candidate, value)
            if best is None:
                shock = shock * self._shrinkage_factor
            else:
                current, reference = best

            iteration += 1
            self._convergence.append(ConvergencePoint(float(iteration), reference))
            self._history.append(current.copy())

        self._result = current.copy()
        self._error = reference
        self._status = criteria.status
        logger.debug("Pattern search finished: status=%s value=%.6g", self._status.value, reference)
        return OptimizeResult(
            x=current.copy(),
            fun=reference,
            status=self._status,
            nit=iteration,
            nfev=self._evaluations,
            message=status_message(self._status),
            convergence=list(self._convergence),
            history=[h.copy() for h in self._history],
        )


__all__ = ["PatternSearch"]
