"""Chronicle: schema-typed structured event logging.

Typical use::

    chronicle = create_chronicle(sink=my_sink, metadata={"service": "api"})
    request = chronicle.start_correlation(REQUEST_GROUP, {"route": "/users"})
    request.event(REQUEST_GROUP.events["validated"], {"user_id": "u-1"})
    request.complete()
"""

from .constants import LOG_LEVELS, REQUIRED_LEVELS, LogLevel
from .correlation import Correlation, CorrelationState
from .errors import (
    ChronicleError,
    CorrelationLimitExceededError,
    ErrorCategory,
    ForkDepthExceededError,
    InvalidConfigError,
    ReservedFieldError,
    SinkMethodError,
    UnsupportedLogLevelError,
)
from .events import (
    SYSTEM_EVENTS,
    CorrelationGroup,
    EventGroup,
    EventSchema,
    FieldSchema,
    boolean_field,
    define_correlation_group,
    define_event,
    define_event_group,
    error_field,
    number_field,
    string_field,
)
from .handle import Chronicle, create_chronicle, create_chronicle_from_settings
from .payload import LogPayload, PerformanceSample, ValidationMetadata
from .sinks import LEVEL_FALLBACK_CHAINS, LoggingSink, build_sink

__all__ = [
    "LEVEL_FALLBACK_CHAINS",
    "LOG_LEVELS",
    "REQUIRED_LEVELS",
    "SYSTEM_EVENTS",
    "Chronicle",
    "ChronicleError",
    "Correlation",
    "CorrelationGroup",
    "CorrelationLimitExceededError",
    "CorrelationState",
    "ErrorCategory",
    "EventGroup",
    "EventSchema",
    "FieldSchema",
    "ForkDepthExceededError",
    "InvalidConfigError",
    "LogLevel",
    "LogPayload",
    "LoggingSink",
    "PerformanceSample",
    "ReservedFieldError",
    "SinkMethodError",
    "UnsupportedLogLevelError",
    "ValidationMetadata",
    "boolean_field",
    "build_sink",
    "create_chronicle",
    "create_chronicle_from_settings",
    "define_correlation_group",
    "define_event",
    "define_event_group",
    "error_field",
    "number_field",
    "string_field",
]
