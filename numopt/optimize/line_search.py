"""Backtracking line searches used by :class:`GradientDescent`.

All routines minimize ``f`` along ``x + alpha * p`` for ``alpha`` in
``(0, 1]`` and return ``(alpha, nfev)``. A NaN trial value never counts as
an improvement. Each search stops after ``max_iter`` trials and returns the
last step it tried, except :func:`lowest_line_search` which returns ``0.0``
when no trial improves on ``fx``.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

import numpy as np

from .core import Array, Gradient, Objective

C1 = 1e-4
C2 = 0.9
LOWEST_FACTOR = 0.8


class LineSearch(Enum):
    """Step-length selection rule."""

    NAIVE = "naive"
    LOWEST = "lowest"
    ARMIJO = "armijo"
    ARMIJO_GOLDSTEIN = "armijo_goldstein"
    STRONG_WOLFE = "strong_wolfe"


def _check_constants(c1: float, c2: Optional[float] = None) -> None:
    if not (0 < c1 < 1):
        raise ValueError("Armijo constant c1 must lie in (0, 1)")
    if c2 is not None and not (c1 < c2 < 1):
        raise ValueError("Require 0 < c1 < c2 < 1 for curvature conditions.")


def naive_line_search(
    f: Objective,
    x: Array,
    p: Array,
    fx: float,
    rho: float = 0.5,
    max_iter: int = 50,
) -> tuple[float, int]:
    """Shrink ``alpha`` until the objective decreases at all."""
    if not (0 < rho < 1):
        raise ValueError("rho must lie in (0, 1)")
    alpha = 1.0
    nfev = 0
    for _ in range(max_iter):
        f_new = f(x + alpha * p)
        nfev += 1
        if f_new < fx:
            return alpha, nfev
        alpha *= rho
    return alpha, nfev


def armijo_line_search(
    f: Objective,
    x: Array,
    p: Array,
    grad_fx: Array,
    fx: float,
    c1: float = C1,
    rho: float = 0.5,
    max_iter: int = 50,
) -> tuple[float, int]:
    """Classic Armijo backtracking: ``f(x + a p) <= f(x) + c1 a p.g``."""
    _check_constants(c1)
    if not (0 < rho < 1):
        raise ValueError("rho must lie in (0, 1)")
    slope = float(np.dot(p, grad_fx))
    alpha = 1.0
    nfev = 0
    for _ in range(max_iter):
        f_new = f(x + alpha * p)
        nfev += 1
        if f_new <= fx + c1 * alpha * slope:
            return alpha, nfev
        alpha *= rho
    return alpha, nfev


def armijo_goldstein_line_search(
    f: Objective,
    grad: Gradient,
    x: Array,
    p: Array,
    grad_fx: Array,
    fx: float,
    c1: float = C1,
    c2: float = C2,
    rho: float = 0.5,
    max_iter: int = 50,
) -> tuple[float, int]:
    """Armijo sufficient decrease plus the curvature test ``p.g(a) >= c2 p.g(0)``."""
    _check_constants(c1, c2)
    slope = float(np.dot(p, grad_fx))
    alpha = 1.0
    nfev = 0
    for _ in range(max_iter):
        candidate = x + alpha * p
        f_new = f(candidate)
        nfev += 1
        if f_new <= fx + c1 * alpha * slope:
            curvature = float(np.dot(p, grad(candidate)))
            if curvature >= c2 * slope:
                return alpha, nfev
        alpha *= rho
    return alpha, nfev


def strong_wolfe_line_search(
    f: Objective,
    grad: Gradient,
    x: Array,
    p: Array,
    grad_fx: Array,
    fx: float,
    c1: float = C1,
    c2: float = C2,
    rho: float = 0.5,
    max_iter: int = 50,
) -> tuple[float, int]:
    """Armijo decrease plus ``|p.g(a)| <= c2 |p.g(0)|``."""
    _check_constants(c1, c2)
    slope = float(np.dot(p, grad_fx))
    alpha = 1.0
    nfev = 0
    for _ in range(max_iter):
        candidate = x + alpha * p
        f_new = f(candidate)
        nfev += 1
        if f_new <= fx + c1 * alpha * slope:
            curvature = float(np.dot(p, grad(candidate)))
            if abs(curvature) <= c2 * abs(slope):
                return alpha, nfev
        alpha *= rho
    return alpha, nfev


def lowest_line_search(
    f: Objective,
    x: Array,
    p: Array,
    fx: float,
    factor: float = LOWEST_FACTOR,
    max_iter: int = 50,
) -> tuple[float, int]:
    """Sample ``alpha = factor**k`` and keep the lowest improving trial."""
    if not (0 < factor < 1):
        raise ValueError("factor must lie in (0, 1)")
    best_alpha = 0.0
    best_value = fx
    alpha = 1.0
    nfev = 0
    for _ in range(max_iter):
        f_new = f(x + alpha * p)
        nfev += 1
        if f_new < best_value:
            best_alpha = alpha
            best_value = f_new
        alpha *= factor
    return best_alpha, nfev


def line_search(
    method: LineSearch,
    f: Objective,
    grad: Gradient,
    x: Array,
    p: Array,
    grad_fx: Array,
    fx: float,
    max_iter: int = 50,
) -> tuple[float, int]:
    """Dispatch to the routine selected by ``method``."""
    if method is LineSearch.NAIVE:
        return naive_line_search(f, x, p, fx, max_iter=max_iter)
    if method is LineSearch.LOWEST:
        return lowest_line_search(f, x, p, fx, max_iter=max_iter)
    if method is LineSearch.ARMIJO:
        return armijo_line_search(f, x, p, grad_fx, fx, max_iter=max_iter)
    if method is LineSearch.ARMIJO_GOLDSTEIN:
        return armijo_goldstein_line_search(f, grad, x, p, grad_fx, fx, max_iter=max_iter)
    if method is LineSearch.STRONG_WOLFE:
        return strong_wolfe_line_search(f, grad, x, p, grad_fx, fx, max_iter=max_iter)
    raise ValueError(f"Unknown line search {method!r}")


__all__ = [
    "C1",
    "C2",
    "LOWEST_FACTOR",
    "LineSearch",
    "armijo_goldstein_line_search",
    "armijo_line_search",
    "line_search",
    "lowest_line_search",
    "naive_line_search",
    "strong_wolfe_line_search",
]
