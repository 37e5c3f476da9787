"""Global constants shared across Chronicle modules."""

from __future__ import annotations

import os
import socket
from typing import Final, Literal

LogLevel = Literal[
    "fatal",
    "critical",
    "alert",
    "error",
    "warn",
    "audit",
    "info",
    "debug",
    "trace",
]

# Lower numbers are more severe.
LOG_LEVELS: Final[dict[str, int]] = {
    "fatal": 0,
    "critical": 1,
    "alert": 2,
    "error": 3,
    "warn": 4,
    "audit": 5,
    "info": 6,
    "debug": 7,
    "trace": 8,
}

REQUIRED_LEVELS: Final[tuple[str, ...]] = tuple(LOG_LEVELS)

DEFAULT_CORRELATION_TIMEOUT_MS: Final[int] = 5 * 60 * 1000

ROOT_FORK_ID: Final[str] = "0"
FORK_ID_SEPARATOR: Final[str] = "."

SYSTEM_EVENT_PREFIX: Final[str] = "chronicle."

DEFAULT_MAX_CONTEXT_KEYS: Final[int] = 100
DEFAULT_MAX_FORK_DEPTH: Final[int] = 10
DEFAULT_MAX_ACTIVE_CORRELATIONS: Final[int] = 1000

DEFAULT_HOSTNAME: Final[str] = os.environ.get("HOSTNAME") or socket.gethostname() or "unknown-host"


def is_log_level(value: object) -> bool:
    """Return ``True`` when ``value`` names one of the nine Chronicle levels."""
    return isinstance(value, str) and value in LOG_LEVELS


def level_passes(level: str, min_level: str) -> bool:
    """Return ``True`` when ``level`` is at least as severe as ``min_level``."""
    return LOG_LEVELS[level] <= LOG_LEVELS[min_level]
