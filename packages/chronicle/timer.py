"""Resettable one-shot idle timer used by correlations."""

from __future__ import annotations

import threading
import time
from typing import Callable

from packages.chronicle.logging import get_logger

_LOGGER = get_logger(__name__)


class IdleTimer:
    """Fire ``on_timeout`` once after ``timeout_ms`` without a ``touch``.

    One daemon waiter thread serves an armed period. ``touch`` only moves the
    monotonic deadline; the waiter sleeps until the current deadline and
    re-checks it on wake. ``clear`` sets the period's wake event so the waiter
    exits without firing. A non-positive timeout disables firing.
    """

    def __init__(self, timeout_ms: int, on_timeout: Callable[[], None]) -> None:
        self._timeout_ms = timeout_ms
        self._on_timeout = on_timeout
        self._lock = threading.Lock()
        self._deadline: float | None = None
        self._wake: threading.Event | None = None

    @property
    def enabled(self) -> bool:
        """Return ``True`` when this timer can ever fire."""
        return self._timeout_ms > 0

    @property
    def armed(self) -> bool:
        """Return ``True`` while a countdown is pending."""
        with self._lock:
            return self._deadline is not None

    def start(self) -> None:
        """Arm the countdown, restarting it if one is pending."""
        self._arm()

    def touch(self) -> None:
        """Restart the countdown from zero."""
        self._arm()

    def clear(self) -> None:
        """Cancel any pending countdown without firing."""
        with self._lock:
            wake, self._wake = self._wake, None
            self._deadline = None
        if wake is not None:
            wake.set()

    def _arm(self) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._deadline = time.monotonic() + self._timeout_ms / 1000
            if self._wake is not None:
                return
            wake = threading.Event()
            self._wake = wake
        waiter = threading.Thread(target=self._wait, args=(wake,), name="chronicle-idle-timer", daemon=True)
        waiter.start()

    def _wait(self, wake: threading.Event) -> None:
        while True:
            with self._lock:
                if wake.is_set() or self._wake is not wake or self._deadline is None:
                    return
                remaining = self._deadline - time.monotonic()
                if remaining <= 0:
                    self._deadline = None
                    self._wake = None
                    break
            if wake.wait(remaining):
                return
        _LOGGER.debug("idle timer expired after %sms", self._timeout_ms)
        self._on_timeout()
