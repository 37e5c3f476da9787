"""Accumulating metadata store with a first-write-wins collision policy.

Context never raises on bad input. Every ``add`` call returns a
``ContextValidationResult`` describing what was rejected so handles can turn
rejections into diagnostics:

- reserved names are dropped and reported in ``reserved``;
- values that are not scalars or sequences of scalars are skipped silently;
- keys already present keep their original value and land in ``collisions``;
- keys beyond ``max_keys`` are dropped and reported in ``dropped``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Union

from .reserved import is_reserved_key

Scalar = Union[str, int, float, bool, None]
ContextValue = Union[Scalar, tuple[Scalar, ...]]
ContextRecord = Mapping[str, ContextValue]


@dataclass(frozen=True)
class CollisionDetail:
    """One rejected attempt to overwrite an existing context key."""

    key: str
    existing_value: ContextValue
    attempted_value: ContextValue


@dataclass(frozen=True)
class ContextValidationResult:
    """Outcome of one ``ContextStore.add`` call."""

    collisions: list[str] = field(default_factory=list)
    reserved: list[str] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)
    collision_details: list[CollisionDetail] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return ``True`` when every candidate key was accepted or skipped."""
        return not (self.collisions or self.reserved or self.dropped)


def _is_scalar(value: object) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def normalize_context_value(value: object) -> tuple[bool, ContextValue]:
    """Return ``(accepted, normalized)`` for one candidate context value.

    Scalars pass through; lists and tuples of scalars become tuples.
    """
    if _is_scalar(value):
        return True, value  # type: ignore[return-value]
    if isinstance(value, (list, tuple)) and all(_is_scalar(item) for item in value):
        return True, tuple(value)
    return False, None


def sanitize_context_input(
    context: Mapping[Any, object],
    existing: Mapping[str, ContextValue] | None = None,
    *,
    max_new_keys: int | None = None,
) -> tuple[dict[str, ContextValue], ContextValidationResult]:
    """Filter candidate context against ``existing`` without mutating either."""
    current = existing or {}
    accepted: dict[str, ContextValue] = {}
    result = ContextValidationResult()

    for key, raw_value in context.items():
        if not isinstance(key, str):
            continue
        if is_reserved_key(key):
            result.reserved.append(key)
            continue

        # TODO: surface skipped non-scalar values once a diagnostics field exists for them.
        valid, value = normalize_context_value(raw_value)
        if not valid:
            continue

        if key in accepted or key in current:
            existing_value = accepted[key] if key in accepted else current[key]
            result.collisions.append(key)
            result.collision_details.append(
                CollisionDetail(key=key, existing_value=existing_value, attempted_value=value)
            )
            continue

        if max_new_keys is not None and len(accepted) >= max_new_keys:
            result.dropped.append(key)
            continue

        accepted[key] = value

    return accepted, result


class ContextStore:
    """Metadata owned by one handle; shared only by snapshot."""

    def __init__(
        self,
        initial: Mapping[str, object] | None = None,
        max_keys: int | None = None,
    ) -> None:
        self._max_keys = max_keys
        self._context: dict[str, ContextValue] = {}
        self._pending_collisions: list[str] = []
        self.seed_result = self.add(initial or {})

    @property
    def max_keys(self) -> int | None:
        """Return the configured key cap, or ``None`` when unbounded."""
        return self._max_keys

    def __len__(self) -> int:
        return len(self._context)

    def __contains__(self, key: object) -> bool:
        return key in self._context

    def add(self, record: Mapping[str, object]) -> ContextValidationResult:
        """Merge ``record`` into the store and report rejected keys."""
        remaining = None
        if self._max_keys is not None:
            remaining = max(0, self._max_keys - len(self._context))
        accepted, result = sanitize_context_input(
            record, self._context, max_new_keys=remaining
        )
        self._context.update(accepted)
        for key in result.collisions:
            if key not in self._pending_collisions:
                self._pending_collisions.append(key)
        return result

    def snapshot(self) -> Mapping[str, ContextValue]:
        """Return a read-only shallow copy of the current context."""
        return MappingProxyType(dict(self._context))

    def consume_collisions(self) -> list[str]:
        """Return and clear collision keys not yet reported on an event."""
        pending = self._pending_collisions
        self._pending_collisions = []
        return pending
