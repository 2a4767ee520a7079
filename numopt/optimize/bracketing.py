"""Bracketed root finders for scalar equations.

Both solvers need ``f(lower) - target`` and ``f(upper) - target`` to have
opposite signs and report ``BAD_FUNCTION`` without iterating otherwise.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import List

from ..logging import get_logger
from .core import (
    ERR_EPSILON,
    ConfigurationError,
    ConvergencePoint,
    RootResult,
    ScalarFunction,
    SolverStatus,
    status_message,
)
from .criteria import EndCriteria

logger = get_logger(__name__)


class RootBracketingMethod(Enum):
    """Rule choosing the next point inside the bracket."""

    DICHOTOMY = "dichotomy"
    FALSE_POSITION = "false_position"


def _same_sign(a: float, b: float) -> bool:
    return a * b > 0


class _BracketSolver:
    """Shared bracket bookkeeping for the interval-based solvers."""

    _name = "bracket"

    def __init__(
        self,
        lower_bound: float,
        upper_bound: float,
        f: ScalarFunction,
        max_iterations: int,
        tolerance: float,
        track_convergence: bool,
    ) -> None:
        if f is None:
            raise ConfigurationError(f"{self._name} function should not be None")
        if max_iterations <= 0:
            raise ConfigurationError("The maximum number of iterations should be positive")
        if tolerance < 0:
            raise ConfigurationError("The tolerance should be >=0")
        self._lower_bound = float(lower_bound)
        self._upper_bound = float(upper_bound)
        self._f = f
        self._max_iterations = max_iterations
        self._tolerance = tolerance
        self._track_convergence = track_convergence

        self._result = math.nan
        self._error = math.nan
        self._iterations = 0
        self._status = SolverStatus.NOT_RUN
        self._convergence: List[ConvergencePoint] = []

    @property
    def lower_bound(self) -> float:
        return self._lower_bound

    @property
    def upper_bound(self) -> float:
        return self._upper_bound

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    @property
    def tolerance(self) -> float:
        return self._tolerance

    @property
    def track_convergence(self) -> bool:
        return self._track_convergence

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
        """(candidate, f(candidate) - target); empty unless tracking is on."""
        return list(self._convergence)

    def _track(self, x: float, error: float) -> None:
        if self._track_convergence:
            self._convergence.append(ConvergencePoint(x, error))

    def _finish(self, root: float, error: float, status: SolverStatus, nfev: int) -> RootResult:
        self._result = root
        self._error = error
        self._status = status
        if status is SolverStatus.BAD_FUNCTION:
            logger.warning(
                "%s: f - target has the same sign at both ends of [%g, %g]",
                self._name,
                self._lower_bound,
                self._upper_bound,
            )
        logger.debug("%s finished: status=%s x=%.10g", self._name, status.value, root)
        return RootResult(
            root=root,
            error=error,
            status=status,
            nit=self._iterations,
            nfev=nfev,
            message=status_message(status),
            convergence=list(self._convergence),
        )


class RootBracketing(_BracketSolver):
    """Dichotomy or false-position search inside ``[lower_bound, upper_bound]``.

    Each iteration evaluates a point ``m`` in the bracket and keeps the half
    across which ``f - target`` changes sign. The run returns ``NORMAL`` once
    the bracket is narrower than ``tolerance`` or ``|f(m) - target|`` falls
    below it, and ``ITERATION_EXCEEDED`` with the bracket midpoint otherwise.
    """

    _name = "Root bracketing"

    def __init__(
        self,
        lower_bound: float,
        upper_bound: float,
        f: ScalarFunction,
        method: RootBracketingMethod = RootBracketingMethod.DICHOTOMY,
        max_iterations: int = 100,
        tolerance: float = ERR_EPSILON,
        track_convergence: bool = False,
    ) -> None:
        super().__init__(lower_bound, upper_bound, f, max_iterations, tolerance, track_convergence)
        self._method = method

    @property
    def method(self) -> RootBracketingMethod:
        return self._method

    def _next_point(self, lo: float, hi: float, fl: float, fu: float) -> float:
        if self._method is RootBracketingMethod.DICHOTOMY:
            return 0.5 * (lo + hi)
        return hi - fu * (hi - lo) / (fu - fl)

    def solve(self, target: float = 0.0) -> RootResult:
        """Solve ``f(x) = target`` inside the bracket."""
        self._convergence = []
        self._iterations = 0
        lo, hi = self._lower_bound, self._upper_bound
        fl = self._f(lo) - target
        fu = self._f(hi) - target
        nfev = 2
        if _same_sign(fl, fu):
            return self._finish(math.nan, math.nan, SolverStatus.BAD_FUNCTION, nfev)

        criteria = EndCriteria(max_iterations=self._max_iterations)
        error = math.nan
        while not criteria.should_stop(error):
            m = self._next_point(lo, hi, fl, fu)
            fm = self._f(m) - target
            nfev += 1
            self._iterations += 1
            error = fm
            self._track(m, fm)

            if abs(fm) < self._tolerance or abs(hi - lo) < self._tolerance:
                return self._finish(m, fm, SolverStatus.NORMAL, nfev)
            if math.isnan(fm):
                return self._finish(m, fm, SolverStatus.DIVERGED, nfev)

            if _same_sign(fm, fl):
                lo, fl = m, fm
            else:
                hi, fu = m, fm

        root = 0.5 * (lo + hi)
        error = self._f(root) - target
        return self._finish(root, error, criteria.status, nfev + 1)


class BrentMethod(_BracketSolver):
    """Brent's method: inverse quadratic interpolation or secant steps,
    falling back to bisection whenever the interpolated point is not
    trustworthy."""

    _name = "Brent"

    def __init__(
        self,
        lower_bound: float,
        upper_bound: float,
        f: ScalarFunction,
        max_iterations: int = 100,
        tolerance: float = ERR_EPSILON,
        track_convergence: bool = False,
    ) -> None:
        super().__init__(lower_bound, upper_bound, f, max_iterations, tolerance, track_convergence)

    def solve(self, target: float = 0.0) -> RootResult:
        """Solve ``f(x) = target`` inside the bracket."""
        self._convergence = []
        self._iterations = 0
        a, b = self._lower_bound, self._upper_bound
        fa = self._f(a) - target
        fb = self._f(b) - target
        nfev = 2
        if not fa * fb < 0:
            return self._finish(math.nan, math.nan, SolverStatus.BAD_FUNCTION, nfev)

        if abs(fa) < abs(fb):
            a, b, fa, fb = b, a, fb, fa
        c, fc = a, fa
        s = b
        d = 0.0
        bisected = True
        tol = self._tolerance

        criteria = EndCriteria(max_iterations=self._max_iterations)
        error = math.inf
        while not criteria.should_stop(error):
            if abs(b - a) < tol:
                root = 0.5 * (a + b)
                return self._finish(root, self._f(root) - target, SolverStatus.NORMAL, nfev + 1)

            if fa != fc and fb != fc:
                s = (
                    a * fb * fc / ((fa - fb) * (fa - fc))
                    + b * fa * fc / ((fb - fa) * (fb - fc))
                    + c * fa * fb / ((fc - fa) * (fc - fb))
                )
            else:
                s = b - fb * (b - a) / (fb - fa)

            quarter = (3 * a + b) / 4
            outside = not (quarter < s < b or b < s < quarter)
            if (
                outside
                or (bisected and (abs(s - b) >= 0.5 * abs(b - c) or abs(b - c) < tol))
                or (not bisected and (abs(s - b) >= 0.5 * abs(c - d) or abs(c - d) < tol))
            ):
                s = 0.5 * (a + b)
                bisected = True
            else:
                bisected = False

            fs = self._f(s) - target
            nfev += 1
            self._iterations += 1
            error = fs
            self._track(s, fs)
            if fs == 0:
                return self._finish(s, fs, SolverStatus.NORMAL, nfev)

            d, c, fc = c, b, fb
            if fa * fs < 0:
                b, fb = s, fs
            else:
                a, fa = s, fs
            if abs(fa) < abs(fb):
                a, b, fa, fb = b, a, fb, fa

        return self._finish(s, self._f(s) - target, criteria.status, nfev + 1)


__all__ = ["BrentMethod", "RootBracketing", "RootBracketingMethod"]
