"""Opt-in process resource sampling attached to payloads as ``_perf``.

Sampling failures never reach the emitting caller: a payload whose sample
could not be read is delivered without ``_perf``.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

import psutil

from packages.chronicle.config import MonitoringSettings
from packages.chronicle.logging import get_logger

from .payload import PerformanceSample

_LOGGER = get_logger(__name__)


@dataclass
class _CpuBaseline:
    user: float
    system: float


class PerfContext:
    """Per-tree sampling state; CPU deltas are measured against the last sample."""

    def __init__(self, monitoring: MonitoringSettings, process: psutil.Process | None = None) -> None:
        self.monitoring = monitoring
        self._process = process or psutil.Process()
        self._lock = threading.Lock()
        self._baseline: _CpuBaseline | None = None
        if monitoring.cpu:
            try:
                times = self._process.cpu_times()
            except psutil.Error as exc:
                _LOGGER.warning("cpu baseline unavailable: %s", exc)
            else:
                self._baseline = _CpuBaseline(user=times.user, system=times.system)

    def sample(self) -> PerformanceSample | None:
        """Return a fresh sample, or ``None`` when disabled or unreadable."""
        if not self.monitoring.enabled:
            return None
        try:
            return self._read()
        except psutil.Error as exc:
            _LOGGER.warning("performance sample skipped: %s", exc)
            return None

    def _read(self) -> PerformanceSample:
        rss = vms = None
        if self.monitoring.memory:
            memory = self._process.memory_info()
            rss, vms = memory.rss, memory.vms

        cpu_user = cpu_system = None
        if self.monitoring.cpu:
            times = self._process.cpu_times()
            with self._lock:
                previous = self._baseline or _CpuBaseline(user=times.user, system=times.system)
                cpu_user = round((times.user - previous.user) * 1000, 3)
                cpu_system = round((times.system - previous.system) * 1000, 3)
                self._baseline = _CpuBaseline(user=times.user, system=times.system)

        return PerformanceSample(rss=rss, vms=vms, cpu_user=cpu_user, cpu_system=cpu_system)


def sample_performance(context: PerfContext | None) -> PerformanceSample | None:
    """Return a sample from ``context``; ``None`` when there is nothing to sample."""
    if context is None:
        return None
    return context.sample()
