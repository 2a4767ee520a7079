"""Pytest configuration and shared fixtures for numopt tests.

This module provides:
- A deterministic numpy RNG fixture
- Global numpy seeding for every test
"""

import os

import numpy as np
import pytest


@pytest.fixture(scope="function")
def rng() -> np.random.Generator:
    """Provide a deterministic numpy RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).
    This ensures tests are reproducible while allowing override for debugging.

    Returns:
        A seeded numpy.random.Generator instance.
    """
    seed = int(os.environ.get("TEST_RNG_SEED", "0"))
    return np.random.default_rng(seed)


@pytest.fixture(scope="function", autouse=True)
def set_random_seeds() -> None:
    """Auto-use fixture to seed numpy's global state for every test."""
    np.random.seed(int(os.environ.get("TEST_RNG_SEED", "0")))
