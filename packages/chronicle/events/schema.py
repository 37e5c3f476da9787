"""Immutable event and event-group definitions.

Schemas are authored once per process and consumed as plain data by handles.
Group helpers qualify child event keys with the group key and, for
correlation groups, synthesize the five lifecycle auto-events.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Literal, Mapping

from packages.chronicle.constants import DEFAULT_CORRELATION_TIMEOUT_MS, LogLevel, is_log_level
from packages.chronicle.errors import InvalidConfigError

from .fields import FIELD_TYPES, FieldSchema, error_field, number_field, string_field

GroupType = Literal["system", "correlation"]


@dataclass(frozen=True, slots=True)
class EventSchema:
    """One typed event: key, severity, message template and field schemas."""

    key: str
    level: LogLevel
    message: str
    fields: Mapping[str, FieldSchema] = field(default_factory=dict)
    doc: str | None = None

    def __post_init__(self) -> None:
        """Validate the level and freeze the field mapping."""
        if not self.key:
            raise InvalidConfigError("event key must be a non-empty string")
        if not is_log_level(self.level):
            raise InvalidConfigError(f"event '{self.key}' has unknown level '{self.level}'")
        for name, schema in self.fields.items():
            if schema.type not in FIELD_TYPES:
                raise InvalidConfigError(
                    f"event '{self.key}' field '{name}' has unknown type '{schema.type}'"
                )
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))


@dataclass(frozen=True, slots=True)
class CorrelationAutoEvents:
    """Lifecycle events synthesized for every correlation group."""

    start: EventSchema
    complete: EventSchema
    fail: EventSchema
    timeout: EventSchema
    metadata_warning: EventSchema

    def as_mapping(self) -> dict[str, EventSchema]:
        """Return auto-events keyed by their group-relative names."""
        return {
            "start": self.start,
            "complete": self.complete,
            "fail": self.fail,
            "timeout": self.timeout,
            "metadataWarning": self.metadata_warning,
        }


@dataclass(frozen=True)
class EventGroup:
    """Key-prefixed namespace of events and nested groups."""

    key: str
    type: GroupType = "system"
    doc: str | None = None
    events: Mapping[str, EventSchema] = field(default_factory=dict)
    groups: Mapping[str, EventGroup] = field(default_factory=dict)
    timeout_ms: int | None = None

    def __post_init__(self) -> None:
        """Freeze nested mappings so group data stays immutable."""
        object.__setattr__(self, "events", MappingProxyType(dict(self.events)))
        object.__setattr__(self, "groups", MappingProxyType(dict(self.groups)))


@dataclass(frozen=True)
class CorrelationGroup(EventGroup):
    """Normalized correlation group carrying auto-events and a resolved timeout."""

    type: GroupType = "correlation"
    timeout_ms: int = DEFAULT_CORRELATION_TIMEOUT_MS
    auto: CorrelationAutoEvents | None = None

    @property
    def lifecycle(self) -> CorrelationAutoEvents:
        """Return the synthesized lifecycle events."""
        if self.auto is None:
            raise InvalidConfigError(
                f"correlation group '{self.key}' was not built with define_correlation_group"
            )
        return self.auto


def define_event(
    *,
    key: str,
    level: LogLevel,
    message: str,
    fields: Mapping[str, FieldSchema] | None = None,
    doc: str | None = None,
) -> EventSchema:
    """Build one ``EventSchema``."""
    return EventSchema(key=key, level=level, message=message, fields=fields or {}, doc=doc)


def prefix_event_keys(
    group_key: str, events: Mapping[str, EventSchema] | None
) -> dict[str, EventSchema]:
    """Qualify event keys as ``<group>.<name>`` unless already prefixed."""
    prefixed: dict[str, EventSchema] = {}
    for name, event in (events or {}).items():
        if event.key.startswith(f"{group_key}."):
            prefixed[name] = event
        else:
            prefixed[name] = replace(event, key=f"{group_key}.{name}")
    return prefixed


def define_event_group(
    *,
    key: str,
    type: GroupType = "system",
    doc: str | None = None,
    events: Mapping[str, EventSchema] | None = None,
    groups: Mapping[str, EventGroup] | None = None,
    timeout_ms: int | None = None,
) -> EventGroup:
    """Build an ``EventGroup`` with child keys qualified by ``key``.

    Correlation-typed groups are normalized through
    ``define_correlation_group`` so they always carry auto-events.
    """
    if type == "correlation":
        return define_correlation_group(
            key=key, doc=doc, events=events, groups=groups, timeout_ms=timeout_ms
        )
    return EventGroup(
        key=key,
        type=type,
        doc=doc,
        events=prefix_event_keys(key, events),
        groups=groups or {},
        timeout_ms=timeout_ms,
    )


def build_auto_events(group_key: str) -> CorrelationAutoEvents:
    """Synthesize the five lifecycle events for ``group_key``."""
    return CorrelationAutoEvents(
        start=EventSchema(
            key=f"{group_key}.start",
            level="info",
            message=f"{group_key} started",
            doc="Auto-generated correlation start event",
        ),
        complete=EventSchema(
            key=f"{group_key}.complete",
            level="info",
            message=f"{group_key} completed",
            doc="Auto-generated correlation completion event",
            fields={
                "duration": number_field(
                    "Duration of the correlation in milliseconds", required=False
                ),
            },
        ),
        fail=EventSchema(
            key=f"{group_key}.fail",
            level="error",
            message=f"{group_key} failed",
            doc="Auto-generated correlation failure event",
            fields={
                "duration": number_field(
                    "Duration of the correlation in milliseconds", required=False
                ),
                "error": error_field("Error that caused the failure", required=False),
            },
        ),
        timeout=EventSchema(
            key=f"{group_key}.timeout",
            level="warn",
            message=f"{group_key} timed out",
            doc="Auto-generated correlation timeout event",
        ),
        metadata_warning=EventSchema(
            key=f"{group_key}.metadataWarning",
            level="warn",
            message="Metadata collision detected",
            doc="Logged when metadata overrides are attempted",
            fields={
                "attempted_key": string_field("Key attempted to override"),
                "existing_value": string_field("Existing value preserved"),
                "attempted_value": string_field("Value that was rejected"),
            },
        ),
    )


def define_correlation_group(
    *,
    key: str,
    doc: str | None = None,
    events: Mapping[str, EventSchema] | None = None,
    groups: Mapping[str, EventGroup] | None = None,
    timeout_ms: int | None = None,
) -> CorrelationGroup:
    """Build a correlation group with auto-events and a resolved timeout.

    ``timeout_ms`` defaults to five minutes; ``0`` disables idle timeouts.
    """
    auto = build_auto_events(key)
    merged = {**prefix_event_keys(key, events), **auto.as_mapping()}
    return CorrelationGroup(
        key=key,
        doc=doc,
        events=merged,
        groups=groups or {},
        timeout_ms=DEFAULT_CORRELATION_TIMEOUT_MS if timeout_ms is None else timeout_ms,
        auto=auto,
    )


def normalize_correlation_group(group: EventGroup) -> CorrelationGroup:
    """Return ``group`` as a ``CorrelationGroup`` with auto-events attached."""
    if isinstance(group, CorrelationGroup) and group.auto is not None:
        return group
    if group.type != "correlation":
        raise InvalidConfigError(f"group '{group.key}' is not a correlation group")
    return define_correlation_group(
        key=group.key,
        doc=group.doc,
        events=group.events,
        groups=group.groups,
        timeout_ms=group.timeout_ms,
    )
