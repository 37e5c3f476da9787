"""Event schema model consumed by Chronicle handles."""

from .fields import (
    FIELD_TYPES,
    FieldSchema,
    FieldType,
    boolean_field,
    error_field,
    number_field,
    string_field,
)
from .schema import (
    CorrelationAutoEvents,
    CorrelationGroup,
    EventGroup,
    EventSchema,
    build_auto_events,
    define_correlation_group,
    define_event,
    define_event_group,
    normalize_correlation_group,
    prefix_event_keys,
)
from .system import SYSTEM_EVENTS

__all__ = [
    "FIELD_TYPES",
    "SYSTEM_EVENTS",
    "CorrelationAutoEvents",
    "CorrelationGroup",
    "EventGroup",
    "EventSchema",
    "FieldSchema",
    "FieldType",
    "boolean_field",
    "build_auto_events",
    "define_correlation_group",
    "define_event",
    "define_event_group",
    "error_field",
    "normalize_correlation_group",
    "number_field",
    "prefix_event_keys",
    "string_field",
]
