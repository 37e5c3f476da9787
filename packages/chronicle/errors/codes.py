"""Stable machine-readable codes carried by every ``ChronicleError``.

Callers should branch on these values rather than on exception messages.
"""

# Configuration
INVALID_CONFIG = "INVALID_CONFIG"
UNSUPPORTED_LOG_LEVEL = "UNSUPPORTED_LOG_LEVEL"
RESERVED_FIELD = "RESERVED_FIELD"

# Sink
SINK_METHOD = "SINK_METHOD"

# Resource exhaustion
FORK_DEPTH_EXCEEDED = "FORK_DEPTH_EXCEEDED"
CORRELATION_LIMIT_EXCEEDED = "CORRELATION_LIMIT_EXCEEDED"
