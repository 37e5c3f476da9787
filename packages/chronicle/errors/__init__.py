"""Public error API for Chronicle."""

from . import codes
from .types import (
    ChronicleError,
    CorrelationLimitExceededError,
    ErrorCategory,
    ForkDepthExceededError,
    InvalidConfigError,
    ReservedFieldError,
    SinkMethodError,
    UnsupportedLogLevelError,
)

__all__ = [
    "ChronicleError",
    "CorrelationLimitExceededError",
    "ErrorCategory",
    "ForkDepthExceededError",
    "InvalidConfigError",
    "ReservedFieldError",
    "SinkMethodError",
    "UnsupportedLogLevelError",
    "codes",
]
