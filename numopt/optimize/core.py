"""Core interfaces shared across the iterative solvers."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, NamedTuple, Optional

import numpy as np

Array = np.ndarray
Objective = Callable[[Array], float]
Gradient = Callable[[Array], Array]
Hessian = Callable[[Array], Array]
Feasibility = Callable[[Array], bool]
PopulationGenerator = Callable[[int], List[Array]]
ScalarFunction = Callable[[float], float]

ERR_EPSILON = 1e-10
GRADIENT_EPSILON = 1e-10
STEP_EPSILON = 1e-8


class ConfigurationError(ValueError):
    """Raised when a solver is built with an unusable configuration."""


class OptimizationType(Enum):
    """Direction of the optimization."""

    MIN = "min"
    MAX = "max"

    @property
    def sign(self) -> int:
        """-1 for minimization, +1 for maximization."""
        return -1 if self is OptimizationType.MIN else 1

    def improves(self, candidate: float, reference: float) -> bool:
        """True when ``candidate`` is strictly better than ``reference``.

        NaN ranks below every number: it never improves anything, and any
        non-NaN candidate improves a NaN reference.
        """
        if math.isnan(candidate):
            return False
        if math.isnan(reference):
            return True
        if self is OptimizationType.MIN:
            return bool(candidate < reference)
        return bool(candidate > reference)


class SolverStatus(Enum):
    """Terminal classification of a solver run."""

    NOT_RUN = "not_run"
    NORMAL = "normal"
    FUNCTION_CONVERGENCE = "function_convergence"
    GRADIENT_CONVERGENCE = "gradient_convergence"
    STATIONARY_FUNCTION = "stationary_function"
    ITERATION_EXCEEDED = "iteration_exceeded"
    BAD_FUNCTION = "bad_function"
    DIVERGED = "diverged"


CONVERGED_STATUSES = frozenset(
    {
        SolverStatus.NORMAL,
        SolverStatus.FUNCTION_CONVERGENCE,
        SolverStatus.GRADIENT_CONVERGENCE,
        SolverStatus.STATIONARY_FUNCTION,
    }
)


class ConvergencePoint(NamedTuple):
    """One accepted iteration: a solver-specific metric and the objective value."""

    metric: float
    value: float


@dataclass(frozen=True)
class Problem:
    """Container describing an optimization problem."""

    fun: Optional[Objective]
    grad: Optional[Gradient] = None
    hess: Optional[Hessian] = None
    dim: Optional[int] = None


@dataclass
class OptimizeResult:
    """Standard result object returned by every solver run."""

    x: Optional[Array]
    fun: float
    status: SolverStatus
    nit: int
    nfev: int
    message: str
    convergence: List[ConvergencePoint] = field(default_factory=list)
    history: List[Array] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status in CONVERGED_STATUSES


@dataclass
class RootResult:
    """Result of a scalar root search for ``f(x) = target``."""

    root: float
    error: float
    status: SolverStatus
    nit: int
    nfev: int
    message: str
    convergence: List[ConvergencePoint] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status in CONVERGED_STATUSES


def as_vector(x, name: str = "x") -> Array:
    """Return a private 1-D float copy of ``x``."""
    vec = np.array(x, dtype=float).reshape(-1)
    if vec.size == 0:
        raise ConfigurationError(f"{name} must not be empty")
    return vec


def check_bounds(lower, upper) -> tuple[Array, Array]:
    """Validate and copy a pair of box bounds."""
    lo = as_vector(lower, "lower bounds")
    hi = as_vector(upper, "upper bounds")
    if lo.shape != hi.shape:
        raise ConfigurationError("The lower and upper bounds should be the same size")
    if np.any(lo > hi):
        raise ConfigurationError("Each lower bound should not exceed its upper bound")
    return lo, hi


def status_message(status: SolverStatus) -> str:
    return _MESSAGES[status]


_MESSAGES = {
    SolverStatus.NOT_RUN: "Solver has not run.",
    SolverStatus.NORMAL: "Converged.",
    SolverStatus.FUNCTION_CONVERGENCE: "Function tolerance satisfied.",
    SolverStatus.GRADIENT_CONVERGENCE: "Gradient tolerance satisfied.",
    SolverStatus.STATIONARY_FUNCTION: "Objective stationary over the static window.",
    SolverStatus.ITERATION_EXCEEDED: "Maximum iterations reached.",
    SolverStatus.BAD_FUNCTION: "Function is not suited to the solver.",
    SolverStatus.DIVERGED: "Solver diverged.",
}


__all__ = [
    "Array",
    "CONVERGED_STATUSES",
    "ConfigurationError",
    "ConvergencePoint",
    "ERR_EPSILON",
    "Feasibility",
    "GRADIENT_EPSILON",
    "Gradient",
    "Hessian",
    "Objective",
    "OptimizationType",
    "OptimizeResult",
    "PopulationGenerator",
    "Problem",
    "RootResult",
    "STEP_EPSILON",
    "ScalarFunction",
    "SolverStatus",
    "as_vector",
    "check_bounds",
    "status_message",
]
