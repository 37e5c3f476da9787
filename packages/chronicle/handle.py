"""Root and fork logging handles.

A ``Chronicle`` owns a context store, a correlation id and a hierarchical
fork id. Every handle in one tree shares a ``_Runtime``: the sink, limits,
id generator, emission options and the active-correlation counter.
"""

from __future__ import annotations

import itertools
import json
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Mapping

from pydantic import ValidationError

from packages.chronicle.config import ChronicleSettings, LimitsSettings, MonitoringSettings
from packages.chronicle.constants import (
    FORK_ID_SEPARATOR,
    LOG_LEVELS,
    ROOT_FORK_ID,
    LogLevel,
    is_log_level,
    level_passes,
)
from packages.chronicle.context import (
    ContextStore,
    ContextValidationResult,
    find_reserved_keys,
)
from packages.chronicle.errors import (
    CorrelationLimitExceededError,
    ForkDepthExceededError,
    InvalidConfigError,
    ReservedFieldError,
    UnsupportedLogLevelError,
)
from packages.chronicle.events import EventGroup, EventSchema
from packages.chronicle.events.system import (
    CONTEXT_COLLISION,
    CONTEXT_LIMIT_REACHED,
    RESERVED_FIELD_ATTEMPT,
)
from packages.chronicle.logging import configure_logging, get_logger, handle_context

from .ids import CorrelationIdGenerator, generate_correlation_id
from .payload import LogPayload, build_payload
from .perf import PerfContext, sample_performance
from .sinks import LoggingSink, call_sink_method, validate_sink_methods
from .validation import (
    FieldValidationResult,
    build_validation_metadata,
    sanitize_log_fields,
    sanitize_string,
    serialize_error,
    validate_fields,
)

if TYPE_CHECKING:
    from .correlation import Correlation

_LOGGER = get_logger(__name__)

ForkPath = tuple[int, ...]
ActivityCallback = Callable[[], None]


def render_fork_id(path: ForkPath) -> str:
    """Return ``"0"`` for the root path, else the dotted counter path."""
    if not path:
        return ROOT_FORK_ID
    return FORK_ID_SEPARATOR.join(str(part) for part in path)


def fork_depth(path: ForkPath) -> int:
    """Return the number of separators in the rendered fork id."""
    return max(len(path) - 1, 0)


class ActiveCorrelationCounter:
    """Lock-guarded count of open correlations shared by a handle tree."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self._active = 0
        self._lock = threading.Lock()

    @property
    def active(self) -> int:
        """Return the number of correlations not yet terminated."""
        with self._lock:
            return self._active

    def acquire(self) -> None:
        """Reserve a slot or raise ``CorrelationLimitExceededError``."""
        with self._lock:
            if self._active >= self.limit:
                raise CorrelationLimitExceededError(limit=self.limit)
            self._active += 1

    def release(self) -> None:
        """Return a slot reserved by ``acquire``."""
        with self._lock:
            self._active = max(self._active - 1, 0)


@dataclass(frozen=True)
class _Runtime:
    sink: Any
    limits: LimitsSettings
    counter: ActiveCorrelationCounter
    correlation_id_generator: CorrelationIdGenerator
    sanitize_strings: bool
    strict: bool
    min_level: LogLevel
    perf: PerfContext | None


class Chronicle:
    """Logging handle for one scope of work.

    Instances come from ``create_chronicle`` or from ``fork`` on an existing
    handle or correlation; they are not meant to be built directly.
    """

    def __init__(
        self,
        *,
        runtime: _Runtime,
        correlation_id: str,
        fork_path: ForkPath,
        store: ContextStore,
        on_activity: ActivityCallback | None = None,
    ) -> None:
        self._runtime = runtime
        self._correlation_id = correlation_id
        self._fork_path = fork_path
        self._fork_id = render_fork_id(fork_path)
        self._store = store
        self._on_activity = on_activity
        self._fork_counter = itertools.count(1)
        self._fork_lock = threading.Lock()

    @property
    def correlation_id(self) -> str:
        """Return the correlation id stamped on every event of this handle."""
        return self._correlation_id

    @property
    def fork_id(self) -> str:
        """Return this handle's hierarchical fork id."""
        return self._fork_id

    @property
    def context(self) -> Mapping[str, Any]:
        """Return a read-only snapshot of this handle's metadata."""
        return self._store.snapshot()

    @property
    def active_correlations(self) -> int:
        """Return the number of open correlations in this handle tree."""
        return self._runtime.counter.active

    def event(self, schema: EventSchema, fields: Mapping[str, Any] | None = None) -> None:
        """Validate ``fields`` against ``schema`` and deliver the event."""
        self._touch()
        self._emit(schema, fields)

    def log(self, level: str, message: str, fields: Mapping[str, Any] | None = None) -> None:
        """Deliver an untyped record; ``level`` must be a Chronicle level."""
        if not is_log_level(level):
            raise UnsupportedLogLevelError([level])
        self._touch()
        values = {
            key: serialize_error(value) if isinstance(value, BaseException) else value
            for key, value in (fields or {}).items()
        }
        if self._runtime.sanitize_strings:
            values = sanitize_log_fields(values)
            message = sanitize_string(message)
        self._deliver(level, message, "", values)

    def add_context(self, record: Mapping[str, Any]) -> ContextValidationResult:
        """Merge ``record`` into this handle's metadata and report rejections."""
        self._touch()
        result = self._store.add(record)
        self._report_context(result)
        return result

    def fork(self, context: Mapping[str, Any] | None = None) -> Chronicle:
        """Return an independent child handle seeded with this handle's metadata."""
        self._touch()
        max_depth = self._runtime.limits.max_fork_depth
        attempted = fork_depth(self._fork_path + (0,))
        if attempted > max_depth:
            raise ForkDepthExceededError(attempted_depth=attempted, max_depth=max_depth)

        with self._fork_lock:
            index = next(self._fork_counter)
        child = Chronicle(
            runtime=self._runtime,
            correlation_id=self._correlation_id,
            fork_path=self._fork_path + (index,),
            store=ContextStore(
                self._store.snapshot(), max_keys=self._runtime.limits.max_context_keys
            ),
            on_activity=self._on_activity,
        )
        _LOGGER.debug("forked handle %s from %s", child.fork_id, self._fork_id)
        if context:
            child.add_context(context)
        return child

    def start_correlation(
        self,
        group: EventGroup,
        metadata: Mapping[str, Any] | None = None,
    ) -> Correlation:
        """Open a correlation for ``group`` with a fresh correlation id."""
        from .correlation import Correlation

        self._runtime.counter.acquire()
        self._touch()
        try:
            return Correlation(
                group,
                runtime=self._runtime,
                correlation_id=self._runtime.correlation_id_generator(),
                fork_path=self._fork_path,
                store=ContextStore(
                    self._store.snapshot(), max_keys=self._runtime.limits.max_context_keys
                ),
                metadata=metadata,
            )
        except Exception:
            self._runtime.counter.release()
            raise

    def _touch(self) -> None:
        if self._on_activity is not None:
            self._on_activity()

    def _emit(
        self,
        schema: EventSchema,
        fields: Mapping[str, Any] | None = None,
        *,
        multiple_completes: bool = False,
        attach_collisions: bool = True,
    ) -> LogPayload | None:
        result = validate_fields(
            schema, fields, sanitize_strings=self._runtime.sanitize_strings
        )
        if self._runtime.strict and not result.ok:
            self._warn_invalid(schema.key, result)
        return self._deliver(
            schema.level,
            schema.message,
            schema.key,
            result.normalized_fields,
            result,
            multiple_completes=multiple_completes,
            attach_collisions=attach_collisions,
        )

    def _deliver(
        self,
        level: str,
        message: str,
        event_key: str,
        normalized_fields: Mapping[str, Any],
        result: FieldValidationResult | None = None,
        *,
        multiple_completes: bool = False,
        attach_collisions: bool = True,
    ) -> LogPayload | None:
        if not level_passes(level, self._runtime.min_level):
            return None
        collisions = self._store.consume_collisions() if attach_collisions else []
        payload = build_payload(
            event_key=event_key,
            normalized_fields=normalized_fields,
            correlation_id=self._correlation_id,
            fork_id=self._fork_id,
            metadata=self._store.snapshot(),
            validation=build_validation_metadata(
                result,
                context_collisions=collisions,
                multiple_completes=multiple_completes,
            ),
            perf=sample_performance(self._runtime.perf),
        )
        call_sink_method(self._runtime.sink, level, message, payload)
        return payload

    def _report_context(self, result: ContextValidationResult) -> None:
        for schema, keys in (
            (CONTEXT_COLLISION, result.collisions),
            (RESERVED_FIELD_ATTEMPT, result.reserved),
            (CONTEXT_LIMIT_REACHED, result.dropped),
        ):
            if keys:
                self._emit(
                    schema,
                    {"keys": ", ".join(keys), "count": len(keys)},
                    attach_collisions=False,
                )

    def _warn_invalid(self, event_key: str, result: FieldValidationResult) -> None:
        problems: list[str] = []
        if result.missing_fields:
            problems.append(f"missing required fields: {', '.join(result.missing_fields)}")
        if result.type_errors:
            problems.append(f"type errors: {', '.join(result.type_errors)}")
        with handle_context(
            event_key=event_key, correlation_id=self._correlation_id, fork_id=self._fork_id
        ):
            _LOGGER.warning("event %s failed validation: %s", event_key, "; ".join(problems))


def describe_context_value(value: Any) -> str:
    """Render a context value as text for diagnostic event fields."""
    if isinstance(value, str):
        return value
    if isinstance(value, tuple):
        value = list(value)
    return json.dumps(value)


def _coerce_model(model: type, value: Any, name: str) -> Any:
    if value is None:
        return model()
    if isinstance(value, model):
        return value
    try:
        return model.model_validate(value)
    except ValidationError as exc:
        raise InvalidConfigError(f"invalid {name}: {exc}") from exc


def create_chronicle(
    *,
    sink: Any = None,
    metadata: Mapping[str, Any] | None = None,
    limits: LimitsSettings | Mapping[str, Any] | None = None,
    correlation_id_generator: CorrelationIdGenerator | None = None,
    sanitize_strings: bool = False,
    strict: bool = False,
    min_level: str = "trace",
    monitoring: MonitoringSettings | Mapping[str, Any] | None = None,
) -> Chronicle:
    """Build a root handle.

    Raises:
        UnsupportedLogLevelError: ``sink`` lacks a callable for some level.
        ReservedFieldError: ``metadata`` uses a reserved key.
        InvalidConfigError: limits, monitoring or ``min_level`` are invalid.
    """
    resolved_sink = LoggingSink() if sink is None else sink
    validate_sink_methods(resolved_sink)

    base_metadata = dict(metadata or {})
    reserved = find_reserved_keys(key for key in base_metadata if isinstance(key, str))
    if reserved:
        raise ReservedFieldError(reserved)

    if min_level not in LOG_LEVELS:
        raise InvalidConfigError(f"unknown min_level '{min_level}'")

    resolved_limits = _coerce_model(LimitsSettings, limits, "limits")
    resolved_monitoring = _coerce_model(MonitoringSettings, monitoring, "monitoring")
    generator = correlation_id_generator or generate_correlation_id

    runtime = _Runtime(
        sink=resolved_sink,
        limits=resolved_limits,
        counter=ActiveCorrelationCounter(resolved_limits.max_active_correlations),
        correlation_id_generator=generator,
        sanitize_strings=sanitize_strings,
        strict=strict,
        min_level=min_level,  # type: ignore[arg-type]
        perf=PerfContext(resolved_monitoring) if resolved_monitoring.enabled else None,
    )
    store = ContextStore(base_metadata, max_keys=resolved_limits.max_context_keys)
    root = Chronicle(
        runtime=runtime,
        correlation_id=generator(),
        fork_path=(),
        store=store,
    )
    root._report_context(store.seed_result)
    _LOGGER.debug("created chronicle %s", root.correlation_id)
    return root


def create_chronicle_from_settings(
    settings: ChronicleSettings,
    *,
    sink: Any = None,
    correlation_id_generator: CorrelationIdGenerator | None = None,
    apply_logging: bool = False,
) -> Chronicle:
    """Build a root handle from resolved ``ChronicleSettings``.

    With ``apply_logging`` the ``logging`` section also configures stdout
    logging for the process through ``configure_logging``.
    """
    if apply_logging:
        configure_logging(**settings.logging.model_dump())
    return create_chronicle(
        sink=sink,
        metadata=settings.metadata,
        limits=settings.limits,
        correlation_id_generator=correlation_id_generator,
        sanitize_strings=settings.sanitize_strings,
        strict=settings.strict,
        min_level=settings.min_level,
        monitoring=settings.monitoring,
    )
