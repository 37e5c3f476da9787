"""Field schema primitives for event definitions."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Final, Literal

FieldType = Literal["string", "number", "boolean", "error"]

FIELD_TYPES: Final[tuple[str, ...]] = ("string", "number", "boolean", "error")


@dataclass(frozen=True, slots=True)
class FieldSchema:
    """Declared type and presence rule for one event field."""

    type: FieldType
    required: bool = True
    doc: str | None = None

    def optional(self) -> FieldSchema:
        """Return a copy of this schema that may be omitted."""
        return replace(self, required=False)

    def describe(self, doc: str) -> FieldSchema:
        """Return a copy of this schema with documentation attached."""
        return replace(self, doc=doc)


def string_field(doc: str | None = None, *, required: bool = True) -> FieldSchema:
    return FieldSchema(type="string", required=required, doc=doc)


def number_field(doc: str | None = None, *, required: bool = True) -> FieldSchema:
    return FieldSchema(type="number", required=required, doc=doc)


def boolean_field(doc: str | None = None, *, required: bool = True) -> FieldSchema:
    return FieldSchema(type="boolean", required=required, doc=doc)


def error_field(doc: str | None = None, *, required: bool = True) -> FieldSchema:
    return FieldSchema(type="error", required=required, doc=doc)
