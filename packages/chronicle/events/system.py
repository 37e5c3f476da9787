"""Internal ``chronicle.*`` diagnostic events.

Handles emit these when ``add_context`` rejects keys. One event is emitted
per call and per kind of rejection, with the affected keys joined by commas.
"""

from __future__ import annotations

from packages.chronicle.constants import SYSTEM_EVENT_PREFIX

from .fields import number_field, string_field
from .schema import define_event, define_event_group

SYSTEM_EVENTS = define_event_group(
    key=SYSTEM_EVENT_PREFIX.rstrip("."),
    type="system",
    doc="Internal Chronicle events for diagnostics and warnings",
    events={
        "contextCollision": define_event(
            key=f"{SYSTEM_EVENT_PREFIX}contextCollision",
            level="warn",
            message="Context key collisions detected",
            doc="Emitted when add_context() attempts to override existing context keys",
            fields={
                "keys": string_field("Comma-separated list of keys that collided"),
                "count": number_field("Number of collisions"),
            },
        ),
        "contextLimitReached": define_event(
            key=f"{SYSTEM_EVENT_PREFIX}contextLimitReached",
            level="warn",
            message="Context key limit reached, keys dropped",
            doc="Emitted when add_context() exceeds the configured max_context_keys limit",
            fields={
                "keys": string_field("Comma-separated list of dropped keys"),
                "count": number_field("Number of dropped keys"),
            },
        ),
        "reservedFieldAttempt": define_event(
            key=f"{SYSTEM_EVENT_PREFIX}reservedFieldAttempt",
            level="warn",
            message="Attempted to use reserved field names",
            doc="Emitted when add_context() attempts to use reserved field names",
            fields={
                "keys": string_field("Comma-separated list of reserved names attempted"),
                "count": number_field("Number of reserved field attempts"),
            },
        ),
    },
)

CONTEXT_COLLISION = SYSTEM_EVENTS.events["contextCollision"]
CONTEXT_LIMIT_REACHED = SYSTEM_EVENTS.events["contextLimitReached"]
RESERVED_FIELD_ATTEMPT = SYSTEM_EVENTS.events["reservedFieldAttempt"]
