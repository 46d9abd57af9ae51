"""Clocks used by the scheduler to realise deferred delays.

Usage:
    scheduler = Scheduler()                      # MonotonicClock, real waiting
    scheduler = Scheduler(clock=VirtualClock())  # manual time, waiting is instant
"""

from __future__ import annotations

import threading
import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Time source for the scheduler.

    ``now`` must be monotonic. ``wait_until`` blocks (or pretends to) until
    ``deadline`` or until ``wakeup`` is set by a cross-thread enqueue.
    """

    def now(self) -> float:
        """Current time in seconds."""
        ...

    def wait_until(self, deadline: float, wakeup: threading.Event) -> None:
        """Wait until ``deadline`` has been reached or ``wakeup`` fires."""
        ...


class MonotonicClock:
    """Real time based on ``time.monotonic``."""

    def now(self) -> float:
        return time.monotonic()

    def wait_until(self, deadline: float, wakeup: threading.Event) -> None:
        timeout = deadline - time.monotonic()
        if timeout > 0:
            wakeup.wait(timeout)


class VirtualClock:
    """Manually driven clock for deterministic tests and simulations.

    Waiting jumps straight to the deadline, so a scheduler on a virtual clock
    runs timers in order without sleeping.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        """Move time forward by ``seconds``."""
        if seconds < 0:
            raise ValueError(f"Cannot move a clock backwards, got {seconds}")
        self._now += seconds

    def wait_until(self, deadline: float, wakeup: threading.Event) -> None:
        # Jump exactly to the deadline so entries due at it are ready
        if deadline > self._now:
            self._now = deadline
