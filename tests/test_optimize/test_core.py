import math

import numpy as np
import pytest

from numopt.optimize.core import (
    ConfigurationError,
    OptimizationType,
    OptimizeResult,
    SolverStatus,
    as_vector,
    check_bounds,
    status_message,
)


def test_optimization_type_sign_and_comparison():
    assert OptimizationType.MIN.sign == -1
    assert OptimizationType.MAX.sign == 1
    assert OptimizationType.MIN.improves(1.0, 2.0)
    assert not OptimizationType.MIN.improves(2.0, 2.0)
    assert OptimizationType.MAX.improves(3.0, 2.0)
    assert not OptimizationType.MIN.improves(math.nan, 2.0)
    assert not OptimizationType.MAX.improves(math.nan, 2.0)


def test_any_number_improves_on_nan():
    for kind in OptimizationType:
        assert kind.improves(1e300, math.nan)
        assert kind.improves(-1e300, math.nan)
        assert not kind.improves(math.nan, math.nan)


def test_as_vector_copies_and_flattens():
    source = np.array([[1, 2], [3, 4]])
    vec = as_vector(source)
    assert vec.dtype == float
    assert vec.shape == (4,)
    vec[0] = 99
    assert source[0, 0] == 1
    with pytest.raises(ConfigurationError):
        as_vector([])


def test_check_bounds():
    lo, hi = check_bounds([0, 0], [1, 2])
    assert np.array_equal(hi, [1.0, 2.0])
    with pytest.raises(ConfigurationError):
        check_bounds([0, 0], [1])
    with pytest.raises(ConfigurationError):
        check_bounds([2, 0], [1, 1])
    # ConfigurationError stays catchable as ValueError
    with pytest.raises(ValueError):
        check_bounds([2], [1])


def test_result_success_flag():
    ok = OptimizeResult(x=None, fun=0.0, status=SolverStatus.NORMAL, nit=0, nfev=0, message="")
    bad = OptimizeResult(x=None, fun=0.0, status=SolverStatus.DIVERGED, nit=0, nfev=0, message="")
    assert ok.success
    assert not bad.success


def test_every_status_has_a_message():
    for status in SolverStatus:
        assert status_message(status)
