"""Canonical field names for Chronicle payloads and library log records.

Payload names double as the reserved top-level keys that user metadata may
never use, so keeping them centralized prevents drift between the payload
builder and the reserved-key registry.
"""

# LogPayload top-level fields.
EVENT_KEY = "event_key"
LEVEL = "level"
MESSAGE = "message"
FIELDS = "fields"
CORRELATION_ID = "correlation_id"
FORK_ID = "fork_id"
METADATA = "metadata"
TIMESTAMP = "timestamp"
HOSTNAME = "hostname"
VALIDATION = "_validation"
PERF = "_perf"

# Diagnostics block fields.
MISSING_FIELDS = "missing_fields"
TYPE_ERRORS = "type_errors"
UNKNOWN_FIELDS = "unknown_fields"
CONTEXT_COLLISIONS = "context_collisions"
MULTIPLE_COMPLETES = "multiple_completes"

# Performance sample fields.
RSS = "rss"
VMS = "vms"
CPU_USER = "cpu_user"
CPU_SYSTEM = "cpu_system"

# Library log record fields.
LOGGER = "logger"
EXCEPTION = "exception"
PAYLOAD = "payload"
SERVICE = "service"
ENVIRONMENT = "environment"
