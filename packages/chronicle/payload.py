"""Final log record assembly.

``LogPayload`` is the only artifact handed to sinks. It is immutable; use
``to_dict`` for the wire shape, where the diagnostics and perf blocks appear
as ``_validation`` and ``_perf`` only when present.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any, Mapping

from packages.chronicle.logging import fields


@dataclass(frozen=True)
class ValidationMetadata:
    """Diagnostics attached to a payload instead of raising."""

    missing_fields: tuple[str, ...] = ()
    type_errors: tuple[str, ...] = ()
    unknown_fields: tuple[str, ...] = ()
    context_collisions: tuple[str, ...] = ()
    multiple_completes: bool = False

    @property
    def empty(self) -> bool:
        """Return ``True`` when no diagnostic is recorded."""
        return not (
            self.missing_fields
            or self.type_errors
            or self.unknown_fields
            or self.context_collisions
            or self.multiple_completes
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the wire shape, omitting empty entries."""
        output: dict[str, Any] = {}
        if self.missing_fields:
            output[fields.MISSING_FIELDS] = list(self.missing_fields)
        if self.type_errors:
            output[fields.TYPE_ERRORS] = list(self.type_errors)
        if self.unknown_fields:
            output[fields.UNKNOWN_FIELDS] = list(self.unknown_fields)
        if self.context_collisions:
            output[fields.CONTEXT_COLLISIONS] = list(self.context_collisions)
        if self.multiple_completes:
            output[fields.MULTIPLE_COMPLETES] = True
        return output


@dataclass(frozen=True)
class PerformanceSample:
    """Process resource sample; CPU values are deltas in milliseconds."""

    rss: int | None = None
    vms: int | None = None
    cpu_user: float | None = None
    cpu_system: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the wire shape, omitting fields that were not sampled."""
        values = {
            fields.RSS: self.rss,
            fields.VMS: self.vms,
            fields.CPU_USER: self.cpu_user,
            fields.CPU_SYSTEM: self.cpu_system,
        }
        return {key: value for key, value in values.items() if value is not None}


@dataclass(frozen=True)
class LogPayload:
    """One finished structured log record."""

    event_key: str
    fields: Mapping[str, Any]
    correlation_id: str
    fork_id: str
    metadata: Mapping[str, Any]
    timestamp: str
    validation: ValidationMetadata | None = None
    perf: PerformanceSample | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a plain mapping suitable for JSON serialization."""
        output: dict[str, Any] = {
            fields.EVENT_KEY: self.event_key,
            fields.FIELDS: dict(self.fields),
            fields.CORRELATION_ID: self.correlation_id,
            fields.FORK_ID: self.fork_id,
            fields.METADATA: {
                key: list(value) if isinstance(value, tuple) else value
                for key, value in self.metadata.items()
            },
            fields.TIMESTAMP: self.timestamp,
        }
        if self.validation is not None:
            output[fields.VALIDATION] = self.validation.to_dict()
        if self.perf is not None:
            output[fields.PERF] = self.perf.to_dict()
        return output


def utc_timestamp() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(UTC).isoformat()


def build_payload(
    *,
    event_key: str,
    normalized_fields: Mapping[str, Any],
    correlation_id: str,
    fork_id: str,
    metadata: Mapping[str, Any],
    validation: ValidationMetadata | None = None,
    perf: PerformanceSample | None = None,
    timestamp: str | None = None,
) -> LogPayload:
    """Assemble an immutable ``LogPayload``; empty diagnostics are omitted."""
    if validation is not None and validation.empty:
        validation = None
    return LogPayload(
        event_key=event_key,
        fields=MappingProxyType(dict(normalized_fields)),
        correlation_id=correlation_id,
        fork_id=fork_id,
        metadata=metadata,
        timestamp=timestamp or utc_timestamp(),
        validation=validation,
        perf=perf,
    )
