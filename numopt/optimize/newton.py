"""Newton-Raphson root finding for scalar equations."""

from __future__ import annotations

import math
from typing import List, Optional

from ..logging import get_logger
from .core import (
    ERR_EPSILON,
    GRADIENT_EPSILON,
    ConfigurationError,
    ConvergencePoint,
    RootResult,
    ScalarFunction,
    SolverStatus,
    status_message,
)
from .utils import symmetric_derivative

logger = get_logger(__name__)


class NewtonRaphson:
    """Solve ``f(x) = target`` with Newton steps ``x <- x - (f(x) - target) / f'(x)``.

    The derivative falls back to a central difference when ``df`` is not
    given, and ``nfev`` then includes its two extra calls per iterate. A run
    ends with ``NORMAL`` once ``|f(x) - target| <= absolute_tolerance``,
    ``BAD_FUNCTION`` when the slope flattens below ``slope_tolerance``,
    ``ITERATION_EXCEEDED`` past ``max_iterations`` and ``DIVERGED`` when the
    iterate stops being finite.

    Example:
        >>> solver = NewtonRaphson(1.0, lambda x: x * x - 2, lambda x: 2 * x, max_iterations=10)
        >>> round(solver.solve().root, 8)
        1.41421356
    """

    def __init__(
        self,
        initial_guess: float,
        f: ScalarFunction,
        df: Optional[ScalarFunction] = None,
        max_iterations: int = 100,
        absolute_tolerance: float = ERR_EPSILON,
        slope_tolerance: float = GRADIENT_EPSILON,
    ) -> None:
        if f is None:
            raise ConfigurationError("Newton-Raphson function should not be None")
        if max_iterations <= 0:
            raise ConfigurationError("The maximum number of iterations should be positive")
        if absolute_tolerance < 0 or slope_tolerance < 0:
            raise ConfigurationError("Tolerances should be >=0")

        self._initial_guess = float(initial_guess)
        self._f = f
        self._df = df if df is not None else symmetric_derivative(f)
        # f calls spent per derivative
        self._derivative_cost = 0 if df is not None else 2
        self._max_iterations = max_iterations
        self._absolute_tolerance = absolute_tolerance
        self._slope_tolerance = slope_tolerance

        self._result = math.nan
        self._error = math.nan
        self._iterations = 0
        self._status = SolverStatus.NOT_RUN
        self._convergence: List[ConvergencePoint] = []

    @property
    def initial_guess(self) -> float:
        return self._initial_guess

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    @property
    def absolute_tolerance(self) -> float:
        return self._absolute_tolerance

    @property
    def slope_tolerance(self) -> float:
        return self._slope_tolerance

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
    def iterations(self) -> int:
        return self._iterations

    @property
    def convergence(self) -> List[ConvergencePoint]:
        """(x, f(x) - target) for every iterate, starting with the guess."""
        return list(self._convergence)

    def solve(self, target: float = 0.0) -> RootResult:
        """Solve ``f(x) = target`` starting from the initial guess."""
        logger.debug("Starting Newton-Raphson from x0=%.6g", self._initial_guess)
        self._convergence = []
        x = self._initial_guess
        error = self._f(x) - target
        slope = self._df(x)
        nfev = 1 + self._derivative_cost
        self._convergence.append(ConvergencePoint(x, error))
        iterations = 1

        while (
            abs(error) > self._absolute_tolerance
            and abs(slope) > self._slope_tolerance
            and iterations <= self._max_iterations
        ):
            x = x - error / slope
            error = self._f(x) - target
            slope = self._df(x)
            nfev += 1 + self._derivative_cost
            self._convergence.append(ConvergencePoint(x, error))
            iterations += 1

        if abs(error) <= self._absolute_tolerance:
            status = SolverStatus.NORMAL
        elif iterations > self._max_iterations:
            status = SolverStatus.ITERATION_EXCEEDED
        elif abs(slope) <= self._slope_tolerance:
            status = SolverStatus.BAD_FUNCTION
        else:
            status = SolverStatus.DIVERGED
            logger.warning("Newton-Raphson produced a non-finite iterate at x=%r", x)

        self._result = x
        self._error = error
        self._iterations = iterations - 1
        self._status = status
        logger.debug("Newton-Raphson finished: status=%s x=%.10g", status.value, x)
        return RootResult(
            root=x,
            error=error,
            status=status,
            nit=self._iterations,
            nfev=nfev,
            message=status_message(status),
            convergence=list(self._convergence),
        )


__all__ = ["NewtonRaphson"]
