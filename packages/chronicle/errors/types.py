"""Hard-failure error taxonomy for Chronicle.

Only misconfiguration and resource exhaustion raise. Data-quality problems
(missing fields, collisions, reserved-key attempts) are reported as
diagnostics on emitted payloads instead.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from . import codes


class ErrorCategory(str, Enum):
    """High-level categories for Chronicle hard failures."""

    CONFIGURATION = "configuration"
    SINK = "sink"
    RESOURCE = "resource"


class ChronicleError(Exception):
    """Base error type for all Chronicle hard failures."""

    code: str = codes.INVALID_CONFIG
    category: ErrorCategory = ErrorCategory.CONFIGURATION

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        """Return the human-readable error message."""
        return self.message


class InvalidConfigError(ChronicleError):
    """Raised when construction-time configuration is unusable."""

    code = codes.INVALID_CONFIG


class UnsupportedLogLevelError(ChronicleError):
    """Raised when a sink lacks required levels or a level name is unknown."""

    code = codes.UNSUPPORTED_LOG_LEVEL

    def __init__(self, levels: Iterable[str]) -> None:
        self.levels = tuple(levels)
        super().__init__(f"Log sink is missing level(s): {', '.join(self.levels)}")


class ReservedFieldError(ChronicleError):
    """Raised when base metadata uses reserved payload field names."""

    code = codes.RESERVED_FIELD

    def __init__(self, keys: Iterable[str]) -> None:
        self.keys = tuple(keys)
        super().__init__(
            f"Reserved fields cannot be used in metadata: {', '.join(self.keys)}"
        )


class SinkMethodError(ChronicleError):
    """Raised when a validated sink no longer exposes a level method."""

    code = codes.SINK_METHOD
    category = ErrorCategory.SINK

    def __init__(self, level: str) -> None:
        self.level = level
        super().__init__(f"Log sink has no callable for level '{level}'")


class ForkDepthExceededError(ChronicleError):
    """Raised when a fork would nest deeper than ``max_fork_depth``."""

    code = codes.FORK_DEPTH_EXCEEDED
    category = ErrorCategory.RESOURCE

    def __init__(self, *, attempted_depth: int, max_depth: int) -> None:
        self.attempted_depth = attempted_depth
        self.max_depth = max_depth
        super().__init__(
            f"Fork depth {attempted_depth} exceeds configured maximum of {max_depth}"
        )


class CorrelationLimitExceededError(ChronicleError):
    """Raised when too many correlations are active at once."""

    code = codes.CORRELATION_LIMIT_EXCEEDED
    category = ErrorCategory.RESOURCE

    def __init__(self, *, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Active correlation limit of {limit} reached")
