"""Iterative numerical optimizers and scalar root finders.

Example
-------
>>> import numpy as np
>>> from numopt.optimize import GradientDescent, Problem
>>> target = np.array([3.0, -2.0])
>>> problem = Problem(
...     fun=lambda x: float(np.sum((x - target) ** 2)),
...     grad=lambda x: 2 * (x - target),
...     dim=2,
... )
>>> res = GradientDescent(problem, np.zeros(2)).optimize()
>>> np.allclose(res.x, target)
True
"""

from .annealing import SimulatedAnnealing, gaussian_neighbour, geometric_cooling
from .bracketing import BrentMethod, RootBracketing, RootBracketingMethod
from .core import (
    ERR_EPSILON,
    GRADIENT_EPSILON,
    STEP_EPSILON,
    ConfigurationError,
    ConvergencePoint,
    OptimizationType,
    OptimizeResult,
    Problem,
    RootResult,
    SolverStatus,
)
from .criteria import EndCriteria
from .evolution import DifferentialEvolutionOptimizer
from .gradient import GradientDescent
from .hill_climb import GaussianHillClimb
from .line_search import LineSearch, line_search
from .nelder_mead import NelderMead
from .newton import NewtonRaphson
from .pattern import PatternSearch
from .swarm import ParticleSwarmOptimizer
from .utils import (
    approx_hessian,
    clamp,
    combine,
    forward_grad,
    parallel_map,
    symmetric_derivative,
    uniform_population,
)

__all__ = [
    "BrentMethod",
    "ConfigurationError",
    "ConvergencePoint",
    "DifferentialEvolutionOptimizer",
    "ERR_EPSILON",
    "EndCriteria",
    "GRADIENT_EPSILON",
    "GaussianHillClimb",
    "GradientDescent",
    "LineSearch",
    "NelderMead",
    "NewtonRaphson",
    "OptimizationType",
    "OptimizeResult",
    "ParticleSwarmOptimizer",
    "PatternSearch",
    "Problem",
    "RootBracketing",
    "RootBracketingMethod",
    "RootResult",
    "STEP_EPSILON",
    "SimulatedAnnealing",
    "SolverStatus",
    "approx_hessian",
    "clamp",
    "combine",
    "forward_grad",
    "gaussian_neighbour",
    "geometric_cooling",
    "line_search",
    "parallel_map",
    "symmetric_derivative",
    "uniform_population",
]
