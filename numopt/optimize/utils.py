"""Vector helpers, finite differences and the parallel index map.

Everything here is pure NumPy; the only concurrency primitive is a thread
pool mapping over an index range where each task writes its own slot.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, TypeVar

import numpy as np

from .core import STEP_EPSILON, Array, Objective, PopulationGenerator, ScalarFunction

T = TypeVar("T")


def clamp(x: Array, lower: Array, upper: Array) -> Array:
    """Return a copy of ``x`` clamped coordinate-wise into ``[lower, upper]``."""
    return np.minimum(np.maximum(x, lower), upper)


def combine(a: float, x: Array, b: float, y: Array) -> Array:
    """Linear combination ``a * x + b * y`` as a new vector."""
    return a * x + b * y


def parallel_map(
    func: Callable[[int], T],
    n: int,
    parallel: bool = False,
    max_workers: Optional[int] = None,
) -> List[T]:
    """Evaluate ``func(i)`` for ``i in range(n)`` and return results in index order.

    With ``parallel=True`` the calls run on a thread pool. ``func`` must only
    touch state owned by its own index.
    """
    if n <= 0:
        return []
    if not parallel or n == 1:
        return [func(i) for i in range(n)]
    results: List[Optional[T]] = [None] * n

    def run(i: int) -> None:
        results[i] = func(i)

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        # list() re-raises the first worker exception
        list(pool.map(run, range(n)))
    return results  # type: ignore[return-value]


def forward_grad(
    fun: Objective,
    x: Array,
    fx: float,
    step: float = STEP_EPSILON,
    parallel: bool = False,
) -> Array:
    """Forward-difference gradient reusing the known value ``fx = fun(x)``.

    Costs one evaluation per coordinate.
    """
    if step <= 0:
        raise ValueError("step must be positive")
    x = np.asarray(x, dtype=float)

    def component(i: int) -> float:
        shifted = x.copy()
        shifted[i] += step
        return (fun(shifted) - fx) / step

    return np.array(parallel_map(component, x.size, parallel), dtype=float)


def approx_hessian(
    fun: Objective,
    x: Array,
    fx: Optional[float] = None,
    step: float = 1e-4,
    parallel: bool = False,
    return_evals: bool = False,
) -> Array | tuple[Array, int]:
    """Central second-difference Hessian of ``fun`` at ``x``.

    Row ``i`` holds the diagonal term from ``x +/- h e_i`` and the upper
    off-diagonal terms from the four corners ``x +/- h e_i +/- h e_j``;
    rows are independent and may run on the thread pool. Passing the known
    ``fx`` saves the centre evaluation.
    """
    if step <= 0:
        raise ValueError("step must be positive")
    x = np.asarray(x, dtype=float)
    n = x.size
    evals = 0
    if fx is None:
        fx = float(fun(x))
        evals += 1
    offsets = np.eye(n) * step
    h2 = step * step

    def row(i: int) -> Array:
        out = np.zeros(n, dtype=float)
        ei = offsets[i]
        out[i] = (fun(x + ei) - 2.0 * fx + fun(x - ei)) / h2
        for j in range(i + 1, n):
            ej = offsets[j]
            corners = fun(x + ei + ej) - fun(x + ei - ej) - fun(x - ei + ej) + fun(x - ei - ej)
            out[j] = corners / (4.0 * h2)
        return out

    upper = np.array(parallel_map(row, n, parallel), dtype=float).reshape(n, n)
    hess = np.triu(upper) + np.triu(upper, 1).T
    evals += 2 * n + 2 * n * (n - 1)
    if return_evals:
        return hess, evals
    return hess


def symmetric_derivative(f: ScalarFunction, step: float = 1e-7) -> ScalarFunction:
    """Return ``x -> (f(x + h) - f(x - h)) / 2h``."""
    if step <= 0:
        raise ValueError("step must be positive")

    def derivative(x: float) -> float:
        return (f(x + step) - f(x - step)) / (2.0 * step)

    return derivative


def uniform_population(lower, upper, seed: Optional[int] = None) -> PopulationGenerator:
    """Build an ``int -> list of vectors`` generator sampling a box uniformly.

    The generator owns one seeded :class:`numpy.random.Generator` created on
    each call, so the same seed always yields the same population.
    """
    lo = np.asarray(lower, dtype=float).reshape(-1)
    hi = np.asarray(upper, dtype=float).reshape(-1)
    if lo.shape != hi.shape:
        raise ValueError("lower and upper must have the same shape")

    def generate(count: int) -> List[Array]:
        rng = np.random.default_rng(seed)
        return [rng.uniform(lo, hi) for _ in range(count)]

    return generate


__all__ = [
    "approx_hessian",
    "clamp",
    "combine",
    "forward_grad",
    "parallel_map",
    "symmetric_derivative",
    "uniform_population",
]
