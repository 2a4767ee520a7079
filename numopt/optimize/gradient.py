"""Gradient-based descent with momentum, BFGS, conjugate-gradient and box modes.

Minimization and maximization share one code path: internally the solver
always minimizes ``h(x) = -sign * f(x)`` where ``sign`` is -1 for MIN and +1
for MAX, so the descent direction ``-grad h`` equals ``sign * grad f``.
Reported values are always in the caller's sign.
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np

from ..logging import get_logger
from .core import (
    GRADIENT_EPSILON,
    STEP_EPSILON,
    Array,
    ConfigurationError,
    ConvergencePoint,
    OptimizationType,
    OptimizeResult,
    Problem,
    SolverStatus,
    as_vector,
    check_bounds,
    status_message,
)
from .criteria import EndCriteria
from .line_search import LineSearch, line_search
from .utils import approx_hessian, clamp, forward_grad

logger = get_logger(__name__)

_TINY = float(np.finfo(float).eps)


class GradientDescent:
    """Iterative descent on a multivariate objective.

    Args:
        problem: Objective plus optional analytic gradient and Hessian. A
            missing gradient is replaced by forward differences.
        x0: Initial guess.
        line_search: Step-length rule used by the momentum, BFGS and box modes.
        optimization_type: ``MIN`` or ``MAX``.
        end_criteria: Stopping thresholds; defaults to 1000 iterations and a
            gradient tolerance of ``GRADIENT_EPSILON``.
        max_line_search_iter: Trial cap for each line search.
        lower, upper: Box used by :meth:`optimize_box`.
        step: Finite-difference increment.
        parallel: Evaluate finite-difference components on a thread pool.
    """

    def __init__(
        self,
        problem: Problem,
        x0,
        line_search: LineSearch = LineSearch.ARMIJO,
        optimization_type: OptimizationType = OptimizationType.MIN,
        end_criteria: Optional[EndCriteria] = None,
        max_line_search_iter: int = 50,
        lower=None,
        upper=None,
        step: float = STEP_EPSILON,
        parallel: bool = False,
    ) -> None:
        if problem is None or problem.fun is None:
            raise ConfigurationError("The objective function should not be None")
        x0 = as_vector(x0, "x0")
        if problem.dim is not None and problem.dim != x0.size:
            raise ConfigurationError(
                f"Initial guess has dimension {x0.size}, problem expects {problem.dim}"
            )
        if max_line_search_iter <= 0:
            raise ConfigurationError("max_line_search_iter should be positive")
        if step <= 0:
            raise ConfigurationError("step should be positive")
        if (lower is None) != (upper is None):
            raise ConfigurationError("Provide both lower and upper bounds or neither")
        self._lower: Optional[Array] = None
        self._upper: Optional[Array] = None
        if lower is not None:
            self._lower, self._upper = check_bounds(lower, upper)
            if self._lower.size != x0.size:
                raise ConfigurationError("Bounds and initial guess should be the same size")
            if np.any(x0 < self._lower) or np.any(x0 > self._upper):
                raise ConfigurationError("The initial guess should lie inside the bounds")

        self._problem = problem
        self._x0 = x0
        self._line_search = line_search
        self._optimization_type = optimization_type
        self._sign = optimization_type.sign
        self._end_criteria = end_criteria or EndCriteria(
            max_iterations=1000, gradient_epsilon=GRADIENT_EPSILON
        )
        self._max_line_search_iter = max_line_search_iter
        self._step = step
        self._parallel = parallel

        self._result: Optional[Array] = None
        self._error = float("nan")
        self._status = SolverStatus.NOT_RUN
        self._evaluations = 0
        self._iterations = 0
        self._convergence: List[ConvergencePoint] = []
        self._history: List[Array] = []

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def line_search(self) -> LineSearch:
        return self._line_search

    @property
    def optimization_type(self) -> OptimizationType:
        return self._optimization_type

    @property
    def end_criteria(self) -> EndCriteria:
        return self._end_criteria

    @property
    def status(self) -> SolverStatus:
        return self._status

    @property
    def result(self) -> Optional[Array]:
        return None if self._result is None else self._result.copy()

    @property
    def error(self) -> float:
        """Objective value at :attr:`result`."""
        return self._error

    @property
    def iterations(self) -> int:
        return self._iterations

    @property
    def evaluations(self) -> int:
        """Objective evaluations performed by the last run."""
        return self._evaluations

    @property
    def convergence(self) -> List[ConvergencePoint]:
        """(gradient norm, value) for the start point and every accepted iterate."""
        return list(self._convergence)

    # ------------------------------------------------------------------
    # Evaluation helpers
    # ------------------------------------------------------------------
    def _raw_loss(self, x: Array) -> float:
        return -self._sign * float(self._problem.fun(x))

    def _loss(self, x: Array) -> float:
        self._evaluations += 1
        return self._raw_loss(x)

    def _gradient(self, x: Array, hx: float) -> Array:
        if self._problem.grad is not None:
            return -self._sign * np.asarray(self._problem.grad(x), dtype=float).reshape(-1)
        grad = forward_grad(self._raw_loss, x, hx, self._step, self._parallel)
        self._evaluations += x.size
        return grad

    def _gradient_at(self, x: Array) -> Array:
        if self._problem.grad is not None:
            return self._gradient(x, float("nan"))
        return self._gradient(x, self._loss(x))

    def _hessian(self, x: Array) -> Array:
        if self._problem.hess is not None:
            return -self._sign * np.asarray(self._problem.hess(x), dtype=float)
        hess, evals = approx_hessian(
            self._raw_loss, x, parallel=self._parallel, return_evals=True
        )
        self._evaluations += int(evals)
        return hess

    def _value(self, hx: float) -> float:
        return -self._sign * hx

    def _search(self, x: Array, direction: Array, grad: Array, hx: float) -> float:
        alpha, _ = line_search(
            self._line_search,
            self._loss,
            self._gradient_at,
            x,
            direction,
            grad,
            hx,
            max_iter=self._max_line_search_iter,
        )
        return alpha

    # ------------------------------------------------------------------
    # Run bookkeeping
    # ------------------------------------------------------------------
    def _start(self, mode: str) -> tuple[Array, float, Array, EndCriteria]:
        logger.debug("Starting %s descent from %s", mode, self._x0)
        self._evaluations = 0
        self._iterations = 0
        self._convergence = []
        self._history = []
        self._status = SolverStatus.NOT_RUN
        x = self._x0.copy()
        hx = self._loss(x)
        grad = self._gradient(x, hx)
        return x, hx, grad, self._end_criteria.spawn()

    def _record(self, x: Array, hx: float, metric: float) -> None:
        self._convergence.append(ConvergencePoint(float(metric), self._value(hx)))
        self._history.append(x.copy())

    def _diverged(self, hx: float, grad: Optional[Array] = None) -> bool:
        if not np.isfinite(hx) or (grad is not None and not np.all(np.isfinite(grad))):
            logger.warning("Non-finite objective or gradient, stopping descent")
            self._status = SolverStatus.DIVERGED
            return True
        return False

    def _finish(self, x: Array, hx: float, criteria: EndCriteria) -> OptimizeResult:
        if self._status is SolverStatus.NOT_RUN:
            self._status = criteria.status
        self._iterations = max(len(self._convergence) - 1, 0)
        self._result = x.copy()
        self._error = self._value(hx)
        logger.debug(
            "Descent finished: status=%s value=%.6g evaluations=%d",
            self._status.value,
            self._error,
            self._evaluations,
        )
        return OptimizeResult(
            x=x.copy(),
            fun=self._error,
            status=self._status,
            nit=self._iterations,
            nfev=self._evaluations,
            message=status_message(self._status),
            convergence=list(self._convergence),
            history=[h.copy() for h in self._history],
        )

    # ------------------------------------------------------------------
    # Algorithms
    # ------------------------------------------------------------------
    def optimize(self, momentum: float = 0.0) -> OptimizeResult:
        """Steepest descent; ``momentum`` blends in the previous direction."""
        return self._momentum_descent(momentum, boxed=False)

    def optimize_box(self, momentum: float = 0.0) -> OptimizeResult:
        """Descent constrained to the configured box.

        Each direction coordinate is clamped to ``[lower - x, upper - x]`` so
        every step of length at most one stays feasible.
        """
        if self._lower is None:
            raise ConfigurationError("optimize_box requires lower and upper bounds")
        return self._momentum_descent(momentum, boxed=True)

    def _momentum_descent(self, momentum: float, boxed: bool) -> OptimizeResult:
        if momentum < 0:
            raise ConfigurationError("momentum should be non-negative")
        x, hx, grad, criteria = self._start("box" if boxed else "momentum")
        metric = self._metric(x, grad, boxed)
        self._record(x, hx, metric)
        if self._diverged(hx, grad):
            return self._finish(x, hx, criteria)
        previous = np.zeros_like(x)

        while not criteria.should_stop(self._value(hx), metric):
            direction = momentum * previous - grad
            if boxed:
                direction = clamp(direction, self._lower - x, self._upper - x)
            if momentum > 0 and not float(np.dot(direction, grad)) < 0:
                # restart when momentum points uphill
                direction = -grad
                if boxed:
                    direction = clamp(direction, self._lower - x, self._upper - x)
            alpha = self._search(x, direction, grad, hx)
            x_new = x + alpha * direction
            if boxed:
                x_new = clamp(x_new, self._lower, self._upper)
            h_new = self._loss(x_new)
            if self._diverged(h_new):
                break
            grad_new = self._gradient(x_new, h_new)
            if self._diverged(h_new, grad_new):
                break
            x, hx, grad = x_new, h_new, grad_new
            previous = direction
            metric = self._metric(x, grad, boxed)
            self._record(x, hx, metric)

        return self._finish(x, hx, criteria)

    def _metric(self, x: Array, grad: Array, boxed: bool) -> float:
        if boxed:
            return float(np.linalg.norm(clamp(-grad, self._lower - x, self._upper - x)))
        return float(np.linalg.norm(grad))

    def optimize_bfgs(self) -> OptimizeResult:
        """Quasi-Newton descent with a BFGS inverse-curvature update.

        The update is skipped when ``y.s`` is within machine epsilon of zero;
        a non-descent direction resets the approximation to the identity.
        """
        x, hx, grad, criteria = self._start("BFGS")
        n = x.size
        identity = np.eye(n)
        inv_hessian = identity.copy()
        self._record(x, hx, np.linalg.norm(grad))
        if self._diverged(hx, grad):
            return self._finish(x, hx, criteria)

        while not criteria.should_stop(self._value(hx), float(np.linalg.norm(grad))):
            direction = -inv_hessian @ grad
            if not float(np.dot(direction, grad)) < 0:
                inv_hessian = identity.copy()
                direction = -grad
            alpha = self._search(x, direction, grad, hx)
            s = alpha * direction
            x_new = x + s
            h_new = self._loss(x_new)
            if self._diverged(h_new):
                break
            grad_new = self._gradient(x_new, h_new)
            if self._diverged(h_new, grad_new):
                break
            y = grad_new - grad
            ys = float(np.dot(y, s))
            if abs(ys) > _TINY:
                rho = 1.0 / ys
                outer_sy = np.outer(s, y)
                inv_hessian = (
                    (identity - rho * outer_sy)
                    @ inv_hessian
                    @ (identity - rho * outer_sy.T)
                    + rho * np.outer(s, s)
                )
            x, hx, grad = x_new, h_new, grad_new
            self._record(x, hx, np.linalg.norm(grad))

        return self._finish(x, hx, criteria)

    def optimize_conjugate(self) -> OptimizeResult:
        """Nonlinear conjugate gradient with exact quadratic steps.

        Each outer iteration runs one sweep of ``n`` conjugate steps using the
        Hessian at the current point: ``alpha = -(g.d) / (d'Hd)`` and
        ``beta = (g'Hd) / (d'Hd)``. A vanishing curvature ``d'Hd`` stops the
        run with ``BAD_FUNCTION``.
        """
        x, hx, grad, criteria = self._start("conjugate gradient")
        n = x.size
        inner_tol = self._end_criteria.gradient_epsilon or 0.0
        self._record(x, hx, np.linalg.norm(grad))
        if self._diverged(hx, grad):
            return self._finish(x, hx, criteria)

        while not criteria.should_stop(self._value(hx), float(np.linalg.norm(grad))):
            direction = -grad
            for _ in range(n):
                if float(np.linalg.norm(grad)) <= inner_tol or not np.any(direction):
                    break
                hess = self._hessian(x)
                hd = hess @ direction
                curvature = float(np.dot(direction, hd))
                if not np.isfinite(curvature) or abs(curvature) <= _TINY * float(
                    np.dot(direction, direction)
                ):
                    logger.warning("Vanishing curvature along conjugate direction")
                    self._status = SolverStatus.BAD_FUNCTION
                    break
                alpha = -float(np.dot(grad, direction)) / curvature
                x = x + alpha * direction
                grad = self._gradient_at(x)
                if not np.all(np.isfinite(grad)):
                    self._status = SolverStatus.DIVERGED
                    break
                beta = float(np.dot(grad, hd)) / curvature
                direction = -grad + beta * direction
            hx = self._loss(x)
            if self._status is not SolverStatus.NOT_RUN or self._diverged(hx):
                break
            self._record(x, hx, np.linalg.norm(grad))

        return self._finish(x, hx, criteria)


__all__ = ["GradientDescent"]
