"""Shared fixtures for Chronicle tests."""

from __future__ import annotations

import itertools
import threading
from typing import Any

import pytest

from packages.chronicle import Chronicle, LogPayload, create_chronicle
from packages.chronicle.constants import REQUIRED_LEVELS


class RecordingSink:
    """Sink that records ``(level, message, payload)`` for assertions."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str, LogPayload]] = []
        self._condition = threading.Condition()
        for level in REQUIRED_LEVELS:
            setattr(self, level, self._recorder(level))

    def _recorder(self, level: str) -> Any:
        """Return a sink method bound to ``level``."""

        def record(message: str, payload: LogPayload) -> None:
            with self._condition:
                self.records.append((level, message, payload))
                self._condition.notify_all()

        return record

    def keys(self) -> list[str]:
        """Return emitted event keys in delivery order."""
        with self._condition:
            return [payload.event_key for _, _, payload in self.records]

    def payloads(self, event_key: str) -> list[LogPayload]:
        """Return payloads emitted for ``event_key``."""
        with self._condition:
            return [payload for _, _, payload in self.records if payload.event_key == event_key]

    def levels(self, event_key: str) -> list[str]:
        """Return the levels ``event_key`` was delivered at."""
        with self._condition:
            return [level for level, _, payload in self.records if payload.event_key == event_key]

    def last(self) -> LogPayload:
        """Return the most recently delivered payload."""
        with self._condition:
            return self.records[-1][2]

    def wait_for(self, event_key: str, timeout: float = 2.0) -> LogPayload | None:
        """Block until ``event_key`` is delivered or ``timeout`` seconds pass."""

        def _find() -> LogPayload | None:
            for _, _, payload in self.records:
                if payload.event_key == event_key:
                    return payload
            return None

        with self._condition:
            self._condition.wait_for(lambda: _find() is not None, timeout=timeout)
            return _find()


def sequential_ids(prefix: str = "corr") -> Any:
    """Return a deterministic correlation id generator."""
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


@pytest.fixture
def sink() -> RecordingSink:
    """Return a fresh recording sink."""
    return RecordingSink()


@pytest.fixture
def chronicle(sink: RecordingSink) -> Chronicle:
    """Return a root handle wired to the recording sink."""
    return create_chronicle(
        sink=sink,
        metadata={"service": "api", "region": "eu-west-1"},
        correlation_id_generator=sequential_ids(),
    )
