"""Package-wide logging for numopt.

Every solver module owns ``logger = get_logger(__name__)``. Runs report their
start and terminal status at DEBUG; numeric trouble (non-finite values,
vanishing curvature, brackets without a sign change) goes out at WARNING, the
default threshold, so a quiet run prints nothing.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

_PACKAGE = "numopt"

_level = logging.WARNING
_format = "[%(levelname)s] %(name)s: %(message)s"
_stream: Optional[TextIO] = None

_loggers: dict[str, logging.Logger] = {}


def _to_level(level: int | str) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return level


def _attach_handler(logger: logging.Logger) -> None:
    """Replace ``logger``'s handlers with one stream handler using current settings."""
    for old in logger.handlers[:]:
        logger.removeHandler(old)
    handler = logging.StreamHandler(_stream if _stream is not None else sys.stderr)
    handler.setLevel(_level)
    handler.setFormatter(logging.Formatter(_format))
    logger.addHandler(handler)
    logger.setLevel(_level)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the cached logger for ``name`` inside the ``numopt`` namespace.

    Names outside the namespace are prefixed, so ``get_logger("scratch")``
    yields ``numopt.scratch`` while ``get_logger(__name__)`` from a package
    module keeps its dotted path. Loggers do not propagate to the root logger.

    Example:
        >>> from numopt.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.debug("Starting Nelder-Mead run")
    """
    if name is None or name == _PACKAGE:
        full_name = _PACKAGE
    elif name.startswith(_PACKAGE + "."):
        full_name = name
    else:
        full_name = f"{_PACKAGE}.{name}"

    cached = _loggers.get(full_name)
    if cached is not None:
        return cached

    logger = logging.getLogger(full_name)
    if not logger.handlers:
        _attach_handler(logger)
    logger.propagate = False
    _loggers[full_name] = logger
    return logger


def set_log_level(level: int | str) -> None:
    """Change the threshold of every numopt logger, existing and future.

    Accepts a numeric level or its name (``"DEBUG"``, ``"info"``...).
    """
    global _level
    _level = _to_level(level)
    for logger in _loggers.values():
        logger.setLevel(_level)
        for handler in logger.handlers:
            handler.setLevel(_level)


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """Route all numopt loggers to ``stream`` (stderr by default).

    Existing loggers get a fresh handler; loggers created afterwards use the
    same level, format and stream.
    """
    global _level, _format, _stream
    _level = _to_level(level)
    _format = format_string or "[%(levelname)s] %(name)s: %(message)s"
    _stream = stream
    for logger in _loggers.values():
        _attach_handler(logger)


__all__ = ["configure_logging", "get_logger", "set_log_level"]
