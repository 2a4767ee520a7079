"""Stopping rules shared by every iterative solver.

An :class:`EndCriteria` holds up to four optional thresholds. Unset
thresholds never fire. Each call to :meth:`EndCriteria.should_stop` counts as
one iteration and checks, in order:

1. gradient norm strictly below ``gradient_epsilon`` (only when a gradient
   norm is supplied) -> ``GRADIENT_CONVERGENCE``;
2. absolute change from the previous value strictly below
   ``function_epsilon`` -> ``FUNCTION_CONVERGENCE``;
3. the last ``max_static_iterations`` values, together with the value
   before them, spread by no more than the plateau tolerance
   -> ``STATIONARY_FUNCTION``;
4. more calls than ``max_iterations`` -> ``ITERATION_EXCEEDED``.

The plateau tolerance is ``gradient_epsilon`` when set, else
``function_epsilon``, else zero.
"""

from __future__ import annotations

import math
from collections import deque
from typing import Deque, Optional

from .core import ConfigurationError, SolverStatus


class EndCriteria:
    """Thresholds plus the per-run state needed to classify why a loop stops."""

    def __init__(
        self,
        max_iterations: Optional[int] = None,
        max_static_iterations: Optional[int] = None,
        function_epsilon: Optional[float] = None,
        gradient_epsilon: Optional[float] = None,
    ) -> None:
        if max_iterations is not None and max_iterations < 0:
            raise ConfigurationError("max_iterations must be non-negative")
        if max_static_iterations is not None and max_static_iterations <= 0:
            raise ConfigurationError("max_static_iterations must be positive")
        if function_epsilon is not None and function_epsilon < 0:
            raise ConfigurationError("function_epsilon must be non-negative")
        if gradient_epsilon is not None and gradient_epsilon < 0:
            raise ConfigurationError("gradient_epsilon must be non-negative")
        self._max_iterations = max_iterations
        self._max_static_iterations = max_static_iterations
        self._function_epsilon = function_epsilon
        self._gradient_epsilon = gradient_epsilon
        self.reset()

    @property
    def max_iterations(self) -> Optional[int]:
        return self._max_iterations

    @property
    def max_static_iterations(self) -> Optional[int]:
        return self._max_static_iterations

    @property
    def function_epsilon(self) -> Optional[float]:
        return self._function_epsilon

    @property
    def gradient_epsilon(self) -> Optional[float]:
        return self._gradient_epsilon

    @property
    def plateau_tolerance(self) -> float:
        if self._gradient_epsilon is not None:
            return self._gradient_epsilon
        if self._function_epsilon is not None:
            return self._function_epsilon
        return 0.0

    @property
    def status(self) -> SolverStatus:
        return self._status

    @property
    def iterations(self) -> int:
        return self._iterations

    def reset(self) -> None:
        """Forget the run state, keeping the thresholds."""
        self._iterations = 0
        self._previous: Optional[float] = None
        # reference value plus the static window
        size = self._max_static_iterations + 1 if self._max_static_iterations else 1
        self._window: Deque[float] = deque(maxlen=size)
        self._status = SolverStatus.NOT_RUN

    def spawn(self) -> "EndCriteria":
        """Return a fresh instance with the same thresholds."""
        return EndCriteria(
            max_iterations=self._max_iterations,
            max_static_iterations=self._max_static_iterations,
            function_epsilon=self._function_epsilon,
            gradient_epsilon=self._gradient_epsilon,
        )

    def should_stop(self, value: float = math.nan, gradient_norm: Optional[float] = None) -> bool:
        """Record one iteration and report whether the loop should stop."""
        self._iterations += 1
        previous = self._previous
        self._previous = value
        self._window.append(value)

        if self._below_gradient_epsilon(gradient_norm):
            self._status = SolverStatus.GRADIENT_CONVERGENCE
            return True
        if self._below_function_epsilon(value, previous):
            self._status = SolverStatus.FUNCTION_CONVERGENCE
            return True
        if self._stationary():
            self._status = SolverStatus.STATIONARY_FUNCTION
            return True
        if self._max_iterations is not None and self._iterations > self._max_iterations:
            self._status = SolverStatus.ITERATION_EXCEEDED
            return True
        return False

    def _below_gradient_epsilon(self, gradient_norm: Optional[float]) -> bool:
        if self._gradient_epsilon is None or gradient_norm is None:
            return False
        return abs(gradient_norm) < self._gradient_epsilon

    def _below_function_epsilon(self, value: float, previous: Optional[float]) -> bool:
        if self._function_epsilon is None or previous is None:
            return False
        return abs(value - previous) < self._function_epsilon

    def _stationary(self) -> bool:
        window = self._max_static_iterations
        if window is None or len(self._window) <= window:
            return False
        if any(math.isnan(v) for v in self._window):
            return False
        spread = max(self._window) - min(self._window)
        return spread <= self.plateau_tolerance

    def __repr__(self) -> str:
        return (
            f"EndCriteria(max_iterations={self._max_iterations}, "
            f"max_static_iterations={self._max_static_iterations}, "
            f"function_epsilon={self._function_epsilon}, "
            f"gradient_epsilon={self._gradient_epsilon})"
        )


__all__ = ["EndCriteria"]
