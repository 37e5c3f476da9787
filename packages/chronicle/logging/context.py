"""Structured context for Chronicle's own log records.

Library warnings refer to a specific handle and event. ``handle_context``
binds the event key, correlation id and fork id for the duration of a block
so ``ContextFilter`` can stamp them on every record emitted inside it.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Mapping

from . import fields

_LOG_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar("chronicle_log_context", default={})


def get_context() -> dict[str, str]:
    """Return a copy of the bound context."""
    return dict(_LOG_CONTEXT.get())


def bind_context(**values: object) -> None:
    """Stringify and bind values; ``None`` leaves an existing key untouched."""
    bound = {str(key): str(value) for key, value in values.items() if value is not None}
    if bound:
        _LOG_CONTEXT.set({**_LOG_CONTEXT.get(), **bound})


@contextmanager
def log_context(values: Mapping[str, object]) -> Iterator[None]:
    """Bind ``values`` inside the block and restore the previous context after."""
    token = _LOG_CONTEXT.set(_LOG_CONTEXT.get())
    try:
        bind_context(**dict(values))
        yield
    finally:
        _LOG_CONTEXT.reset(token)


@contextmanager
def handle_context(*, event_key: str, correlation_id: str, fork_id: str) -> Iterator[None]:
    """Bind the identity of the handle and event a record is about."""
    with log_context(
        {
            fields.EVENT_KEY: event_key,
            fields.CORRELATION_ID: correlation_id,
            fields.FORK_ID: fork_id,
        }
    ):
        yield
