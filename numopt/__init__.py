"""numopt - iterative numerical optimizers and root finders on NumPy."""

__version__ = "0.1.0"

from .logging import configure_logging, get_logger, set_log_level
from .optimize import (
    BrentMethod,
    ConfigurationError,
    DifferentialEvolutionOptimizer,
    EndCriteria,
    GaussianHillClimb,
    GradientDescent,
    LineSearch,
    NelderMead,
    NewtonRaphson,
    OptimizationType,
    OptimizeResult,
    ParticleSwarmOptimizer,
    PatternSearch,
    Problem,
    RootBracketing,
    RootBracketingMethod,
    RootResult,
    SimulatedAnnealing,
    SolverStatus,
)

__all__ = [
    # Version
    "__version__",
    # Logging
    "configure_logging",
    "get_logger",
    "set_log_level",
    # Core types
    "ConfigurationError",
    "EndCriteria",
    "OptimizationType",
    "OptimizeResult",
    "Problem",
    "RootResult",
    "SolverStatus",
    # Multivariate solvers
    "DifferentialEvolutionOptimizer",
    "GradientDescent",
    "LineSearch",
    "NelderMead",
    "ParticleSwarmOptimizer",
    "PatternSearch",
    "SimulatedAnnealing",
    # Scalar optimizers
    "GaussianHillClimb",
    # Scalar root finders
    "BrentMethod",
    "NewtonRaphson",
    "RootBracketing",
    "RootBracketingMethod",
]
