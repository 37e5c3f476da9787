"""Stdout logging configuration and stdlib level mapping for Chronicle.

Design goals:
- Emit library and sink records to stdout as JSON or plain text.
- Carry bound context and Chronicle payloads as structured fields.
- Map the nine Chronicle levels onto numeric stdlib levels.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, Mapping

from . import fields
from .context import bind_context, get_context

# Custom numbers sit between the stdlib defaults so ordering is preserved.
STDLIB_LEVELS: dict[str, int] = {
    "fatal": 60,
    "critical": logging.CRITICAL,
    "alert": 45,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "audit": 25,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": 5,
}

_CUSTOM_LEVEL_NAMES = {"fatal": "FATAL", "alert": "ALERT", "audit": "AUDIT", "trace": "TRACE"}


def register_level_names() -> None:
    """Register display names for Chronicle levels absent from stdlib logging."""
    for level, name in _CUSTOM_LEVEL_NAMES.items():
        logging.addLevelName(STDLIB_LEVELS[level], name)


class ContextFilter(logging.Filter):
    """Inject bound logging context into each log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = get_context()
        setattr(record, "context", context)
        for key, value in context.items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """Emit newline-delimited JSON logs with stable core fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            fields.TIMESTAMP: datetime.now(UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
        }

        context = getattr(record, "context", None)
        if isinstance(context, dict):
            payload.update(context)

        chronicle_payload = getattr(record, fields.PAYLOAD, None)
        if isinstance(chronicle_payload, Mapping):
            payload[fields.PAYLOAD] = dict(chronicle_payload)

        if record.exc_info:
            payload[fields.EXCEPTION] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """Human-readable formatter that still appends structured context."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = getattr(record, "context", None)
        if not isinstance(context, dict) or not context:
            return message
        suffix = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        return f"{message} {suffix}"


def configure_logging(
    *,
    level: str = "INFO",
    json_output: bool = True,
    service: str | None = None,
    environment: str | None = None,
) -> None:
    """Configure root logging with a single stdout handler.

    Existing root handlers are replaced, so repeated calls never duplicate
    emissions.
    """
    register_level_names()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(level.upper())
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter() if json_output else PlainFormatter())

    root.addHandler(handler)

    seed_context: dict[str, str] = {}
    if service:
        seed_context[fields.SERVICE] = service
    if environment:
        seed_context[fields.ENVIRONMENT] = environment
    if seed_context:
        bind_context(**seed_context)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger using Python's standard logging hierarchy."""
    return logging.getLogger(name)
