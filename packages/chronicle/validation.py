"""Field validation and normalization for typed events.

Validation never raises. The schema is advisory: declared fields are type
checked and normalized, undeclared fields pass through and are flagged, and
every anomaly is returned as data for the diagnostics block.
"""

from __future__ import annotations

import math
import re
import traceback
from dataclasses import dataclass, field
from typing import Any, Mapping

from packages.chronicle.events import EventSchema

from .payload import ValidationMetadata

_ANSI_ESCAPE_RE = re.compile(r"\x1b(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
_NEWLINE_RE = re.compile(r"[\r\n]")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


@dataclass(frozen=True)
class FieldValidationResult:
    """Outcome of validating provided fields against one event schema."""

    missing_fields: list[str] = field(default_factory=list)
    type_errors: list[str] = field(default_factory=list)
    unknown_fields: list[str] = field(default_factory=list)
    normalized_fields: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Return ``True`` when no required field is missing or mistyped."""
        return not (self.missing_fields or self.type_errors)


def sanitize_string(value: str) -> str:
    """Strip terminal escapes and control bytes; make newlines visible."""
    stripped = _ANSI_ESCAPE_RE.sub("", value)
    escaped = _NEWLINE_RE.sub(r"\\n", stripped)
    return _CONTROL_RE.sub("", escaped)


def sanitize_log_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Apply ``sanitize_string`` to every string value of an untyped record."""
    return {
        key: sanitize_string(value) if isinstance(value, str) else value
        for key, value in fields.items()
    }


def serialize_error(value: BaseException | str) -> str:
    """Render an exception (with traceback when available) as plain text."""
    if isinstance(value, str):
        return value
    if value.__traceback__ is None and value.__cause__ is None and value.__context__ is None:
        return "".join(traceback.format_exception_only(value)).rstrip()
    return "".join(traceback.format_exception(value)).rstrip()


def matches_type(value: object, field_type: str) -> bool:
    """Return ``True`` when ``value`` satisfies the declared field type.

    Unknown types always fail so new types surface as type errors.
    """
    if field_type == "string":
        return isinstance(value, str)
    if field_type == "number":
        return (
            isinstance(value, (int, float))
            and not isinstance(value, bool)
            and math.isfinite(value)
        )
    if field_type == "boolean":
        return isinstance(value, bool)
    if field_type == "error":
        return isinstance(value, (BaseException, str))
    return False


def validate_fields(
    schema: EventSchema,
    provided: Mapping[str, Any] | None,
    *,
    sanitize_strings: bool = False,
) -> FieldValidationResult:
    """Validate ``provided`` against ``schema`` and normalize values."""
    values = dict(provided or {})
    result = FieldValidationResult()

    for name, field_schema in schema.fields.items():
        value = values.get(name)
        if value is None:
            if field_schema.required:
                result.missing_fields.append(name)
            continue

        if not matches_type(value, field_schema.type):
            result.type_errors.append(name)
            continue

        if field_schema.type == "error":
            result.normalized_fields[name] = serialize_error(value)
        elif field_schema.type == "string" and sanitize_strings:
            result.normalized_fields[name] = sanitize_string(value)
        else:
            result.normalized_fields[name] = value

    for name, value in values.items():
        if name in schema.fields or value is None:
            continue
        result.unknown_fields.append(name)
        if isinstance(value, BaseException):
            value = serialize_error(value)
        elif sanitize_strings and isinstance(value, str):
            value = sanitize_string(value)
        result.normalized_fields[name] = value

    return result


def build_validation_metadata(
    result: FieldValidationResult | None = None,
    *,
    context_collisions: list[str] | None = None,
    multiple_completes: bool = False,
) -> ValidationMetadata | None:
    """Collapse diagnostics into ``ValidationMetadata``; ``None`` when empty."""
    metadata = ValidationMetadata(
        missing_fields=tuple(result.missing_fields) if result else (),
        type_errors=tuple(result.type_errors) if result else (),
        unknown_fields=tuple(result.unknown_fields) if result else (),
        context_collisions=tuple(context_collisions or ()),
        multiple_completes=multiple_completes,
    )
    return None if metadata.empty else metadata
