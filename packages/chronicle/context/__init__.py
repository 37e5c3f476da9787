"""Context accumulation and reserved-key guarding."""

from .reserved import (
    RESERVED_FIELD_PATHS,
    RESERVED_PERF_FIELDS,
    RESERVED_TOP_LEVEL_FIELDS,
    RESERVED_VALIDATION_FIELDS,
    find_reserved_keys,
    is_pollution_key,
    is_reserved_field_path,
    is_reserved_key,
    is_reserved_top_level_field,
)
from .store import (
    CollisionDetail,
    ContextRecord,
    ContextStore,
    ContextValidationResult,
    ContextValue,
    normalize_context_value,
    sanitize_context_input,
)

__all__ = [
    "RESERVED_FIELD_PATHS",
    "RESERVED_PERF_FIELDS",
    "RESERVED_TOP_LEVEL_FIELDS",
    "RESERVED_VALIDATION_FIELDS",
    "CollisionDetail",
    "ContextRecord",
    "ContextStore",
    "ContextValidationResult",
    "ContextValue",
    "find_reserved_keys",
    "is_pollution_key",
    "is_reserved_field_path",
    "is_reserved_key",
    "is_reserved_top_level_field",
    "normalize_context_value",
    "sanitize_context_input",
]
