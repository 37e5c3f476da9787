"""Correlation lifecycle: start, activity-driven idle timeout, terminal events.

A correlation is ``ACTIVE`` from construction until exactly one of
``complete``, ``fail`` or ``timeout`` wins the terminal transition. The
winner releases the shared active-correlation slot and stops the idle timer;
later ``complete``/``fail`` calls are still emitted, flagged with
``multiple_completes``.
"""

from __future__ import annotations

import threading
import time
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping

from packages.chronicle.context import ContextStore, ContextValidationResult
from packages.chronicle.events import (
    CorrelationAutoEvents,
    CorrelationGroup,
    EventGroup,
    EventSchema,
    normalize_correlation_group,
)
from packages.chronicle.logging import get_logger

from .handle import Chronicle, ForkPath, describe_context_value
from .timer import IdleTimer

if TYPE_CHECKING:
    from .handle import _Runtime

_LOGGER = get_logger(__name__)


class CorrelationState(str, Enum):
    """Lifecycle states of a correlation."""

    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class Correlation:
    """Handle for one logical unit of work spanning many events.

    Built by ``Chronicle.start_correlation``. Events, context changes and
    forks made through this correlation, its forks, or their descendants
    reset its idle timer while it is active.
    """

    def __init__(
        self,
        group: EventGroup,
        *,
        runtime: _Runtime,
        correlation_id: str,
        fork_path: ForkPath,
        store: ContextStore,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        self._group: CorrelationGroup = normalize_correlation_group(group)
        self._lock = threading.Lock()
        self._state = CorrelationState.ACTIVE
        self._started_at = time.perf_counter()
        self._ended_at: float | None = None
        self._runtime = runtime
        self._timer = IdleTimer(self._group.timeout_ms, self.timeout)
        self._handle = Chronicle(
            runtime=runtime,
            correlation_id=correlation_id,
            fork_path=fork_path,
            store=store,
            on_activity=self._touch,
        )

        seeded = store.add(metadata) if metadata else None
        self._handle._emit(self._auto.start)
        if seeded is not None:
            self._report(seeded)
        self._timer.start()
        _LOGGER.debug("correlation %s started for %s", correlation_id, self._group.key)

    @property
    def _auto(self) -> CorrelationAutoEvents:
        return self._group.lifecycle

    @property
    def group(self) -> CorrelationGroup:
        """Return the normalized correlation group."""
        return self._group

    @property
    def state(self) -> CorrelationState:
        """Return the current lifecycle state."""
        with self._lock:
            return self._state

    @property
    def correlation_id(self) -> str:
        """Return this correlation's id."""
        return self._handle.correlation_id

    @property
    def fork_id(self) -> str:
        """Return the fork id inherited from the starting handle."""
        return self._handle.fork_id

    @property
    def context(self) -> Mapping[str, Any]:
        """Return a read-only snapshot of the correlation metadata."""
        return self._handle.context

    @property
    def duration(self) -> float:
        """Return elapsed milliseconds, frozen at the terminal transition."""
        end = self._ended_at if self._ended_at is not None else time.perf_counter()
        return round((end - self._started_at) * 1000, 3)

    def event(self, schema: EventSchema, fields: Mapping[str, Any] | None = None) -> None:
        """Emit a typed event under this correlation."""
        self._handle.event(schema, fields)

    def log(self, level: str, message: str, fields: Mapping[str, Any] | None = None) -> None:
        """Emit an untyped record under this correlation."""
        self._handle.log(level, message, fields)

    def add_context(self, record: Mapping[str, Any]) -> ContextValidationResult:
        """Merge metadata; each collision also emits ``metadataWarning``."""
        self._touch()
        result = self._handle._store.add(record)
        self._report(result)
        return result

    def fork(self, context: Mapping[str, Any] | None = None) -> Chronicle:
        """Return a child handle sharing this correlation's id and timer."""
        return self._handle.fork(context)

    def complete(self, fields: Mapping[str, Any] | None = None) -> None:
        """Finish successfully and emit ``<group>.complete``."""
        first = self._terminate(CorrelationState.COMPLETED)
        self._handle._emit(
            self._auto.complete,
            {**(fields or {}), "duration": self.duration},
            multiple_completes=not first,
        )

    def fail(
        self,
        error: BaseException | str | None = None,
        fields: Mapping[str, Any] | None = None,
    ) -> None:
        """Finish unsuccessfully and emit ``<group>.fail``."""
        first = self._terminate(CorrelationState.FAILED)
        payload_fields: dict[str, Any] = {**(fields or {}), "duration": self.duration}
        if error is not None:
            payload_fields["error"] = error
        self._handle._emit(self._auto.fail, payload_fields, multiple_completes=not first)

    def timeout(self) -> None:
        """Expire the correlation; a no-op once it has terminated."""
        if not self._terminate(CorrelationState.TIMED_OUT):
            return
        self._handle._emit(self._auto.timeout)

    def _report(self, result: ContextValidationResult) -> None:
        self._handle._report_context(result)
        for detail in result.collision_details:
            self._handle._emit(
                self._auto.metadata_warning,
                {
                    "attempted_key": detail.key,
                    "existing_value": describe_context_value(detail.existing_value),
                    "attempted_value": describe_context_value(detail.attempted_value),
                },
                attach_collisions=False,
            )

    def _touch(self) -> None:
        with self._lock:
            if self._state is CorrelationState.ACTIVE:
                self._timer.touch()

    def _terminate(self, state: CorrelationState) -> bool:
        with self._lock:
            if self._state is not CorrelationState.ACTIVE:
                return False
            self._state = state
            self._ended_at = time.perf_counter()
        self._timer.clear()
        self._runtime.counter.release()
        _LOGGER.debug("correlation %s %s", self.correlation_id, state.value)
        return True
