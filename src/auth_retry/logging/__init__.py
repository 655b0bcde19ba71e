"""
Structured logging module.

Provides JSON and console logging with refresh-cycle correlation ids.
"""

from auth_retry.logging.context import (
    clear_log_context,
    generate_refresh_id,
    get_log_context,
    set_log_context,
)
from auth_retry.logging.formatters import ConsoleFormatter, JSONFormatter
from auth_retry.logging.setup import (
    resolve_level,
    setup_logging,
    setup_logging_from_config,
)
from auth_retry.logging.utilities import log_exception, log_with_context

__all__ = [
    # Setup
    "setup_logging",
    "setup_logging_from_config",
    "resolve_level",
    # Formatters
    "JSONFormatter",
    "ConsoleFormatter",
    # Context
    "set_log_context",
    "get_log_context",
    "clear_log_context",
    "generate_refresh_id",
    # Utilities
    "log_with_context",
    "log_exception",
]
