"""Tests for the correlation lifecycle, idle timeout and active-correlation limit."""

from __future__ import annotations

import threading
import time

import pytest

from packages.chronicle import (
    Chronicle,
    CorrelationGroup,
    CorrelationLimitExceededError,
    CorrelationState,
    InvalidConfigError,
    create_chronicle,
    define_correlation_group,
    define_event,
    define_event_group,
    string_field,
)

REQUEST = define_correlation_group(
    key="request",
    doc="HTTP request lifecycle",
    events={
        "validated": define_event(
            key="validated", level="info", message="Validated", fields={"user": string_field()}
        ),
    },
)
VALIDATED = REQUEST.events["validated"]


def _short_group(timeout_ms: int) -> CorrelationGroup:
    """Return a correlation group with a short idle timeout."""
    return define_correlation_group(key="job", timeout_ms=timeout_ms)


def test_start_emits_start_event_with_fresh_id(chronicle: Chronicle, sink) -> None:
    """Correlations get their own id but keep the starting handle's fork id."""
    correlation = chronicle.start_correlation(REQUEST, {"route": "/users"})

    start = sink.payloads("request.start")
    assert len(start) == 1
    assert start[0].correlation_id == "corr-2"
    assert start[0].fork_id == "0"
    assert start[0].metadata["route"] == "/users"
    assert start[0].metadata["service"] == "api"
    assert correlation.state is CorrelationState.ACTIVE
    assert chronicle.active_correlations == 1
    correlation.complete()


def test_complete_emits_duration_and_releases_slot(chronicle: Chronicle, sink) -> None:
    """The first completion carries a duration and frees the counter."""
    correlation = chronicle.start_correlation(REQUEST)
    correlation.event(VALIDATED, {"user": "u-1"})
    correlation.complete({"status": 200})

    payload = sink.payloads("request.complete")[0]
    assert sink.levels("request.complete") == ["info"]
    assert payload.fields["status"] == 200
    assert payload.fields["duration"] >= 0
    assert payload.correlation_id == correlation.correlation_id
    assert sink.payloads("request.validated")[0].correlation_id == correlation.correlation_id
    assert correlation.state is CorrelationState.COMPLETED
    assert chronicle.active_correlations == 0


def test_repeated_terminal_calls_are_flagged_and_counted_once(chronicle: Chronicle, sink) -> None:
    """Only the first terminal transition decrements the shared counter."""
    first = chronicle.start_correlation(REQUEST)
    second = chronicle.start_correlation(REQUEST)

    first.complete()
    first.complete()
    first.fail("late")

    assert chronicle.active_correlations == 1
    completes = sink.payloads("request.complete")
    assert completes[0].validation is None
    assert completes[1].validation.multiple_completes is True
    assert sink.payloads("request.fail")[0].validation.multiple_completes is True
    assert first.state is CorrelationState.COMPLETED

    second.complete()
    assert chronicle.active_correlations == 0


def test_fail_serializes_error_at_error_level(chronicle: Chronicle, sink) -> None:
    """Failures carry the serialized error and duration."""
    correlation = chronicle.start_correlation(REQUEST)
    correlation.fail(ValueError("bad input"), {"attempt": 2})

    payload = sink.payloads("request.fail")[0]
    assert sink.levels("request.fail") == ["error"]
    assert payload.fields["error"] == "ValueError: bad input"
    assert payload.fields["attempt"] == 2
    assert "duration" in payload.fields
    assert correlation.state is CorrelationState.FAILED


def test_limit_rejects_new_correlations_before_any_state_change(sink) -> None:
    """Exceeding ``max_active_correlations`` raises and emits nothing."""
    root = create_chronicle(sink=sink, limits={"max_active_correlations": 1})
    active = root.start_correlation(REQUEST)

    with pytest.raises(CorrelationLimitExceededError) as exc_info:
        root.fork().start_correlation(REQUEST)

    assert exc_info.value.limit == 1
    assert len(sink.payloads("request.start")) == 1

    active.complete()
    root.start_correlation(REQUEST).complete()
    assert len(sink.payloads("request.start")) == 2


def test_invalid_group_does_not_leak_a_slot(chronicle: Chronicle) -> None:
    """A non-correlation group is rejected without consuming capacity."""
    with pytest.raises(InvalidConfigError):
        chronicle.start_correlation(define_event_group(key="plain"))

    assert chronicle.active_correlations == 0


def test_idle_correlation_times_out(chronicle: Chronicle, sink) -> None:
    """Without activity the timeout event fires and the slot is released."""
    correlation = chronicle.start_correlation(_short_group(30))

    payload = sink.wait_for("job.timeout")
    assert payload is not None
    assert sink.levels("job.timeout") == ["warn"]
    assert correlation.state is CorrelationState.TIMED_OUT
    assert chronicle.active_correlations == 0

    correlation.complete()
    assert sink.payloads("job.complete")[0].validation.multiple_completes is True
    assert chronicle.active_correlations == 0


def test_activity_from_descendant_forks_resets_timer(chronicle: Chronicle, sink) -> None:
    """Events from forks of forks keep the correlation alive."""
    correlation = chronicle.start_correlation(_short_group(200))
    grandchild = correlation.fork().fork()

    for _ in range(8):
        time.sleep(0.05)
        grandchild.log("debug", "working")
    assert sink.payloads("job.timeout") == []

    correlation.complete()
    assert correlation.state is CorrelationState.COMPLETED


def test_completed_correlation_never_times_out(chronicle: Chronicle, sink) -> None:
    """The first terminal transition clears the timer for good."""
    correlation = chronicle.start_correlation(_short_group(30))
    correlation.complete()
    correlation.log("info", "after the fact")

    assert sink.wait_for("job.timeout", timeout=0.2) is None


def test_zero_timeout_disables_expiry(chronicle: Chronicle, sink) -> None:
    """Correlations without a timeout stay active until completed."""
    correlation = chronicle.start_correlation(_short_group(0))

    assert sink.wait_for("job.timeout", timeout=0.1) is None
    assert correlation.state is CorrelationState.ACTIVE
    correlation.complete()


def test_rejected_start_does_not_keep_the_correlation_alive(sink) -> None:
    """A start refused by the active limit is not activity on the enclosing correlation."""
    root = create_chronicle(sink=sink, limits={"max_active_correlations": 1})
    correlation = root.start_correlation(_short_group(300))
    child = correlation.fork()

    time.sleep(0.2)
    with pytest.raises(CorrelationLimitExceededError):
        child.start_correlation(REQUEST)

    assert sink.wait_for("job.timeout", timeout=0.2) is not None
    assert correlation.state is CorrelationState.TIMED_OUT


def test_busy_correlation_does_not_start_a_thread_per_event(chronicle: Chronicle, monkeypatch) -> None:
    """Logging through a correlation only moves its idle deadline."""
    started: list[str] = []
    original = threading.Thread.start

    def _start(self: threading.Thread) -> None:
        started.append(self.name)
        original(self)

    monkeypatch.setattr(threading.Thread, "start", _start)
    correlation = chronicle.start_correlation(_short_group(60_000))

    for index in range(1000):
        correlation.log("debug", f"step {index}")

    assert len(started) <= 2
    correlation.complete()


def test_metadata_collisions_emit_warnings(chronicle: Chronicle, sink) -> None:
    """Each colliding key produces a ``metadataWarning`` plus a system event."""
    correlation = chronicle.start_correlation(REQUEST, {"service": "other"})

    start = sink.payloads("request.start")[0]
    assert start.validation.context_collisions == ("service",)
    warning = sink.payloads("request.metadataWarning")[0]
    assert dict(warning.fields) == {
        "attempted_key": "service",
        "existing_value": "api",
        "attempted_value": "other",
    }

    correlation.add_context({"region": "us-east-1", "retries": 3})
    correlation.add_context({"retries": 4})
    warnings = sink.payloads("request.metadataWarning")
    assert [payload.fields["attempted_key"] for payload in warnings] == ["service", "region", "retries"]
    assert warnings[-1].fields["existing_value"] == "3"
    assert len(sink.payloads("chronicle.contextCollision")) == 3

    correlation.event(VALIDATED, {"user": "u-1"})
    assert sink.last().validation.context_collisions == ("region", "retries")
    correlation.complete()


def test_correlation_forks_and_nested_correlations(chronicle: Chronicle, sink) -> None:
    """Forks of a correlation share its id; nested correlations count toward the limit."""
    correlation = chronicle.fork().start_correlation(REQUEST)
    child = correlation.fork()

    assert correlation.fork_id == "1"
    assert child.fork_id == "1.1"
    assert child.correlation_id == correlation.correlation_id
    assert not hasattr(correlation, "start_correlation")

    nested = child.start_correlation(_short_group(0))
    assert chronicle.active_correlations == 2
    assert nested.correlation_id not in {chronicle.correlation_id, correlation.correlation_id}

    nested.complete()
    correlation.complete()
    assert chronicle.active_correlations == 0
