"""Sink contract, stdlib adapter, and level fallback.

A sink is any object, or mapping, exposing one callable per Chronicle level
with the signature ``(message, payload) -> None``. Delivery is synchronous;
exceptions raised by a sink propagate to the emitting caller.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping, Protocol

from packages.chronicle.constants import REQUIRED_LEVELS
from packages.chronicle.errors import SinkMethodError, UnsupportedLogLevelError
from packages.chronicle.logging import STDLIB_LEVELS, get_logger, register_level_names

from .payload import LogPayload

SinkMethod = Callable[[str, LogPayload], None]

# Nearest available level first; ``info`` is the last resort for every chain.
LEVEL_FALLBACK_CHAINS: dict[str, tuple[str, ...]] = {
    "fatal": ("critical", "error", "warn", "info"),
    "critical": ("error", "warn", "info"),
    "alert": ("error", "warn", "info"),
    "error": ("warn", "info"),
    "warn": ("info",),
    "audit": ("info",),
    "info": (),
    "debug": ("info",),
    "trace": ("debug", "info"),
}


class Sink(Protocol):
    """Structural type for objects that accept Chronicle payloads."""

    def fatal(self, message: str, payload: LogPayload) -> None: ...
    def critical(self, message: str, payload: LogPayload) -> None: ...
    def alert(self, message: str, payload: LogPayload) -> None: ...
    def error(self, message: str, payload: LogPayload) -> None: ...
    def warn(self, message: str, payload: LogPayload) -> None: ...
    def audit(self, message: str, payload: LogPayload) -> None: ...
    def info(self, message: str, payload: LogPayload) -> None: ...
    def debug(self, message: str, payload: LogPayload) -> None: ...
    def trace(self, message: str, payload: LogPayload) -> None: ...


def get_sink_method(sink: Any, level: str) -> SinkMethod | None:
    """Return the callable ``sink`` exposes for ``level``, if any."""
    if isinstance(sink, Mapping):
        method = sink.get(level)
    else:
        method = getattr(sink, level, None)
    return method if callable(method) else None


def missing_sink_levels(sink: Any, levels: Iterable[str] = REQUIRED_LEVELS) -> list[str]:
    """Return the levels ``sink`` has no callable for, in severity order."""
    return [level for level in levels if get_sink_method(sink, level) is None]


def validate_sink_methods(sink: Any, levels: Iterable[str] = REQUIRED_LEVELS) -> None:
    """Raise ``UnsupportedLogLevelError`` naming every unsupported level."""
    missing = missing_sink_levels(sink, levels)
    if missing:
        raise UnsupportedLogLevelError(missing)


def call_sink_method(sink: Any, level: str, message: str, payload: LogPayload) -> None:
    """Deliver ``payload`` to ``sink`` at ``level``."""
    method = get_sink_method(sink, level)
    if method is None:
        raise SinkMethodError(level)
    method(message, payload)


class LoggingSink:
    """Sink that forwards payloads to a stdlib ``logging.Logger``.

    The payload rides on the record as ``payload`` so ``JsonFormatter``
    renders it as a structured field.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        register_level_names()
        self.logger = logger or get_logger("chronicle.events")

    def _emit(self, level: str, message: str, payload: LogPayload) -> None:
        self.logger.log(STDLIB_LEVELS[level], message, extra={"payload": payload.to_dict()})

    def fatal(self, message: str, payload: LogPayload) -> None:
        self._emit("fatal", message, payload)

    def critical(self, message: str, payload: LogPayload) -> None:
        self._emit("critical", message, payload)

    def alert(self, message: str, payload: LogPayload) -> None:
        self._emit("alert", message, payload)

    def error(self, message: str, payload: LogPayload) -> None:
        self._emit("error", message, payload)

    def warn(self, message: str, payload: LogPayload) -> None:
        self._emit("warn", message, payload)

    def audit(self, message: str, payload: LogPayload) -> None:
        self._emit("audit", message, payload)

    def info(self, message: str, payload: LogPayload) -> None:
        self._emit("info", message, payload)

    def debug(self, message: str, payload: LogPayload) -> None:
        self._emit("debug", message, payload)

    def trace(self, message: str, payload: LogPayload) -> None:
        self._emit("trace", message, payload)


def build_sink(partial: Any = None, *, fallback: Sink | None = None) -> dict[str, SinkMethod]:
    """Complete a partial sink into a full level mapping.

    Each missing level borrows the first method found along its
    ``LEVEL_FALLBACK_CHAINS`` entry; any level still unresolved is routed to
    ``fallback`` (a ``LoggingSink`` by default).
    """
    default = fallback or LoggingSink()
    provided: dict[str, SinkMethod] = {}
    if partial is not None:
        for level in REQUIRED_LEVELS:
            method = get_sink_method(partial, level)
            if method is not None:
                provided[level] = method

    resolved: dict[str, SinkMethod] = {}
    for level in REQUIRED_LEVELS:
        if level in provided:
            resolved[level] = provided[level]
            continue
        chain = (provided[name] for name in LEVEL_FALLBACK_CHAINS[level] if name in provided)
        resolved[level] = next(chain, None) or getattr(default, level)
    return resolved
