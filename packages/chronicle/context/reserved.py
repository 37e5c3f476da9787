"""Reserved key registry for user-supplied metadata.

A key is reserved when it would shadow a ``LogPayload`` field, address a
diagnostics or perf sub-field, or name an object-model attribute that JSON
consumers and Python reflection treat specially.
"""

from __future__ import annotations

from typing import Final, Iterable

from packages.chronicle.logging import fields

RESERVED_TOP_LEVEL_FIELDS: Final[tuple[str, ...]] = (
    fields.EVENT_KEY,
    fields.LEVEL,
    fields.MESSAGE,
    fields.CORRELATION_ID,
    fields.FORK_ID,
    fields.TIMESTAMP,
    fields.HOSTNAME,
    fields.FIELDS,
    fields.METADATA,
    fields.PERF,
    fields.VALIDATION,
)

RESERVED_VALIDATION_FIELDS: Final[tuple[str, ...]] = (
    fields.MISSING_FIELDS,
    fields.TYPE_ERRORS,
    fields.UNKNOWN_FIELDS,
    fields.CONTEXT_COLLISIONS,
    fields.MULTIPLE_COMPLETES,
)

RESERVED_PERF_FIELDS: Final[tuple[str, ...]] = (
    fields.RSS,
    fields.VMS,
    fields.CPU_USER,
    fields.CPU_SYSTEM,
)

POLLUTION_KEYS: Final[frozenset[str]] = frozenset(
    {
        "__proto__",
        "constructor",
        "prototype",
        "__defineGetter__",
        "__defineSetter__",
        "__lookupGetter__",
        "__lookupSetter__",
    }
)

_TOP_LEVEL = frozenset(RESERVED_TOP_LEVEL_FIELDS)
_VALIDATION = frozenset(RESERVED_VALIDATION_FIELDS)
_PERF = frozenset(RESERVED_PERF_FIELDS)

RESERVED_FIELD_PATHS: Final[frozenset[str]] = frozenset(
    [
        *RESERVED_TOP_LEVEL_FIELDS,
        *(f"{fields.VALIDATION}.{name}" for name in RESERVED_VALIDATION_FIELDS),
        *(f"{fields.PERF}.{name}" for name in RESERVED_PERF_FIELDS),
    ]
)


def is_reserved_top_level_field(key: str) -> bool:
    """Return ``True`` when ``key`` names a top-level payload field."""
    return key in _TOP_LEVEL


def is_pollution_key(key: str) -> bool:
    """Return ``True`` for object-model keys and Python dunder names."""
    if key in POLLUTION_KEYS:
        return True
    return len(key) > 4 and key.startswith("__") and key.endswith("__")


def is_reserved_field_path(key: str) -> bool:
    """Return ``True`` for reserved top-level names and dotted sub-field paths."""
    if key in _TOP_LEVEL:
        return True
    prefix, _, name = key.partition(".")
    if prefix == fields.VALIDATION:
        return name in _VALIDATION
    if prefix == fields.PERF:
        return name in _PERF
    return False


def is_reserved_key(key: str) -> bool:
    """Return ``True`` when ``key`` may never enter a context store."""
    return is_reserved_field_path(key) or is_pollution_key(key)


def find_reserved_keys(keys: Iterable[str]) -> list[str]:
    """Return reserved keys in input order."""
    return [key for key in keys if is_reserved_key(key)]
