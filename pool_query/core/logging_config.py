"""Structured logging configuration.

The library only emits structlog events; applications that do not configure
structlog themselves can call configure_logging() once at startup.
"""

from __future__ import annotations

import logging

import structlog

# Map log level string to logging constant
_LOG_LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def configure_logging(level: str = "info", json_logs: bool = False) -> None:
    """Configure structlog with level filtering and a JSON or console renderer."""
    numeric_level = _LOG_LEVEL_MAP.get(level.lower())
    if numeric_level is None:
        raise ValueError(f"Unknown log level: {level!r}")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
