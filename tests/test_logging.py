"""Tests for logging utilities."""

import logging
from io import StringIO

import pytest

from numopt.logging import (
    configure_logging,
    get_logger,
    set_log_level,
)
from numopt.optimize import RootBracketing


@pytest.fixture
def stream():
    """Route numopt logging into a buffer for one test."""
    buffer = StringIO()
    yield buffer
    configure_logging(level=logging.WARNING)


def test_get_logger_namespaces_names():
    assert get_logger("test_module").name == "numopt.test_module"
    assert get_logger("numopt.optimize.gradient").name == "numopt.optimize.gradient"
    assert get_logger().name == "numopt"
    assert get_logger("numopt") is get_logger()


def test_get_logger_caching():
    assert get_logger("test_module") is get_logger("test_module")
    assert get_logger("module1") is not get_logger("module2")


def test_configure_logging_redirects_existing_loggers(stream):
    logger = get_logger("test_module")
    configure_logging(level=logging.INFO, stream=stream)
    logger.info("Test message")
    logger.debug("hidden")
    output = stream.getvalue()
    assert "[INFO] numopt.test_module: Test message" in output
    assert "hidden" not in output


def test_configure_logging_applies_to_new_loggers(stream):
    configure_logging(level=logging.DEBUG, format_string="%(levelname)s|%(message)s", stream=stream)
    get_logger("created_after_configure").debug("late logger")
    assert "DEBUG|late logger" in stream.getvalue()


def test_set_log_level_accepts_names():
    logger = get_logger("test_module")
    try:
        set_log_level("DEBUG")
        assert logger.level == logging.DEBUG
        assert all(h.level == logging.DEBUG for h in logger.handlers)
        set_log_level(logging.ERROR)
        assert logger.level == logging.ERROR
        assert get_logger("created_after_set_level").level == logging.ERROR
    finally:
        set_log_level(logging.WARNING)


def test_logger_does_not_propagate():
    assert get_logger("test_module").propagate is False
    assert len(get_logger("test_module").handlers) == 1


def test_solver_failure_logged_at_warning(stream):
    configure_logging(level=logging.WARNING, stream=stream)
    result = RootBracketing(3.0, 4.0, lambda x: x**3 - x - 2).solve()
    assert not result.success
    assert "[WARNING] numopt.optimize.bracketing" in stream.getvalue()


def test_successful_run_is_quiet_by_default(stream):
    configure_logging(level=logging.WARNING, stream=stream)
    RootBracketing(1.0, 2.0, lambda x: x**3 - x - 2).solve()
    assert stream.getvalue() == ""


def test_solver_run_boundaries_at_debug(stream):
    configure_logging(level=logging.DEBUG, stream=stream)
    RootBracketing(1.0, 2.0, lambda x: x**3 - x - 2).solve()
    assert "Root bracketing finished: status=normal" in stream.getvalue()
