"""Logging setup and configuration."""

import logging
import sys
from typing import TYPE_CHECKING, TextIO

from auth_retry.logging.context import set_log_context
from auth_retry.logging.formatters import ConsoleFormatter, JSONFormatter

if TYPE_CHECKING:
    from auth_retry.config import AuthRetryConfig

# Library logger; every module logger in the package is a child of it
ROOT_LOGGER_NAME = "auth_retry"

DEFAULT_LEVEL = logging.INFO

# Noisy loggers to suppress
NOISY_LOGGERS = [
    "aiohttp",
    "asyncio",
]


def resolve_level(level: int | str) -> int:
    """
    Turn a level name or number into a logging level.

    Raises:
        ValueError: If level is an unknown name
    """
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def setup_logging(
    level: int | str = DEFAULT_LEVEL,
    json_format: bool = False,
    stream: TextIO | None = None,
    coordinator: str | None = None,
    suppress_noisy: bool = True,
) -> logging.Logger:
    """
    Configure the auth_retry logger with a single stream handler.

    Only the package logger is touched; the application's root logger and
    handlers are left alone. Calling this again replaces the handler.

    Args:
        level: Log level for the package logger (default: INFO)
        json_format: Emit one JSON object per line instead of console text
        stream: Output stream (default: sys.stderr)
        coordinator: Coordinator name to put in the log context
        suppress_noisy: Quiet down aiohttp and asyncio loggers

    Returns:
        Configured package logger
    """
    if coordinator:
        set_log_context(coordinator=coordinator)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter() if json_format else ConsoleFormatter())

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(resolve_level(level))
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False

    if suppress_noisy:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug(
        "Logging configured",
        extra={"operation": "setup_logging"},
    )
    return logger


def setup_logging_from_config(
    config: "AuthRetryConfig",
    stream: TextIO | None = None,
) -> logging.Logger:
    """
    Configure the auth_retry logger from log_level, json_logs and name.

    Args:
        config: Validated AuthRetryConfig
        stream: Output stream (default: sys.stderr)

    Returns:
        Configured package logger
    """
    return setup_logging(
        level=config.log_level,
        json_format=config.json_logs,
        stream=stream,
        coordinator=config.name,
    )
