"""
Structured logging for cachespine.

The store and every backend log through ``get_logger(__name__)``. Events are
snake_case names with key/value fields (``cache_miss``, ``key=...``), emitted
at debug level except the ``cache_flush`` warning.

cachespine is a library, so importing it configures nothing and structlog's
defaults apply. ``configure_logging`` routes events through the standard
``logging`` logger named after the module (``cachespine.store``,
``cachespine.backends.redis`` ...), renders them on a stderr handler and
filters them by level.

Examples:
    >>> from cachespine.logging import configure_logging
    >>> configure_logging(level="DEBUG", json_format=True)

Tags:
    logging, structlog, observability, cachespine
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

LOGGER_NAME = "cachespine"


def configure_logging(level: str = "INFO", json_format: bool | None = None) -> None:
    """Render cachespine events on stderr.

    Installs a structlog pipeline (context vars, level, ISO timestamp, then
    a JSON or console renderer) and a stream handler on the ``cachespine``
    stdlib logger. Calling it again replaces both; handlers the application
    added itself are left alone.

    Args:
        level: Minimum level for cachespine events (DEBUG shows hits/misses).
        json_format: True for JSON lines, False for console, None picks JSON
            when stderr is not a terminal.
    """
    if json_format is None:
        json_format = not sys.stderr.isatty()
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level {level!r}")

    renderer: Processor
    if json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Module loggers are created at import time and must pick up a later
        # reconfiguration.
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    stdlib_logger = logging.getLogger(LOGGER_NAME)
    for existing in list(stdlib_logger.handlers):
        if getattr(existing, "_cachespine", False):
            stdlib_logger.removeHandler(existing)
    handler._cachespine = True  # type: ignore[attr-defined]
    stdlib_logger.addHandler(handler)
    stdlib_logger.setLevel(numeric_level)
    stdlib_logger.propagate = False


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name or LOGGER_NAME)


__all__ = ["LOGGER_NAME", "configure_logging", "get_logger"]
