"""Tests for process sampling and correlation id generation."""

from __future__ import annotations

import re

import psutil
import pytest

from packages.chronicle import create_chronicle
from packages.chronicle.config import MonitoringSettings
from packages.chronicle.ids import generate_correlation_id, generate_ulid
from packages.chronicle.perf import PerfContext, sample_performance

_ULID_RE = re.compile(r"[0-9A-HJKMNP-TV-Z]{26}")


def test_memory_sampling_reports_rss_and_vms() -> None:
    """Memory sampling reads the current process."""
    sample = PerfContext(MonitoringSettings(memory=True)).sample()

    assert sample is not None
    assert sample.rss > 0
    assert sample.vms > 0
    assert sample.cpu_user is None
    assert set(sample.to_dict()) == {"rss", "vms"}


def test_cpu_sampling_reports_non_negative_deltas() -> None:
    """CPU values are deltas since the previous sample."""
    context = PerfContext(MonitoringSettings(cpu=True))
    sum(index * index for index in range(200_000))

    first = context.sample()
    second = context.sample()
    assert first is not None and second is not None
    assert first.cpu_user >= 0
    assert first.cpu_system >= 0
    assert second.cpu_user >= 0
    assert first.rss is None


def test_disabled_monitoring_returns_none() -> None:
    """Nothing is sampled when monitoring is off."""
    assert PerfContext(MonitoringSettings()).sample() is None
    assert sample_performance(None) is None


class _ExitedProcess:
    """Process stand-in whose readings fail the way a vanished process does."""

    def memory_info(self):
        """Raise as psutil does once the process is gone."""
        raise psutil.NoSuchProcess(pid=1)

    def cpu_times(self):
        """Raise as psutil does when access is refused."""
        raise psutil.AccessDenied(pid=1)


def test_unreadable_process_yields_no_sample() -> None:
    """psutil failures are absorbed and reported as a missing sample."""
    context = PerfContext(MonitoringSettings(memory=True, cpu=True), process=_ExitedProcess())

    assert context.sample() is None


def test_events_still_deliver_when_sampling_fails(sink, monkeypatch: pytest.MonkeyPatch) -> None:
    """A failed sample drops ``_perf`` but never the event."""
    monkeypatch.setattr(psutil, "Process", _ExitedProcess)
    root = create_chronicle(sink=sink, monitoring={"memory": True})

    root.log("info", "still delivered")

    assert sink.keys() == [""]
    assert "_perf" not in sink.last().to_dict()


def test_ulid_shape_and_ordering() -> None:
    """ULIDs are 26 Crockford characters and sort by timestamp."""
    earlier = generate_ulid(timestamp_ms=1_000)
    later = generate_ulid(timestamp_ms=2_000)

    assert _ULID_RE.fullmatch(earlier)
    assert earlier < later
    assert generate_ulid() != generate_ulid()


def test_correlation_id_prefixes_hostname() -> None:
    """Correlation ids are ``<hostname>_<ULID>``."""
    value = generate_correlation_id(hostname="worker-1")

    prefix, _, ulid = value.partition("_")
    assert prefix == "worker-1"
    assert _ULID_RE.fullmatch(ulid)
