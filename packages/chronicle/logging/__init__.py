"""Logging helpers used by Chronicle itself and by ``LoggingSink``.

This package wraps Python's ``logging`` module with stdout defaults, a
contextvars-based structured context, and the Chronicle-to-stdlib level map.
"""

from .config import (
    STDLIB_LEVELS,
    ContextFilter,
    JsonFormatter,
    PlainFormatter,
    configure_logging,
    get_logger,
    register_level_names,
)
from .context import bind_context, get_context, handle_context, log_context

__all__ = [
    "STDLIB_LEVELS",
    "ContextFilter",
    "JsonFormatter",
    "PlainFormatter",
    "bind_context",
    "configure_logging",
    "get_context",
    "get_logger",
    "handle_context",
    "log_context",
    "register_level_names",
]
