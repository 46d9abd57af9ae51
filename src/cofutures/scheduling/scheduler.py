"""Cooperative scheduler with a priority queue and a deferred queue.

Usage:
    scheduler = Scheduler()
    scheduler.enqueue_priority(callback)              # continuation work
    handle = scheduler.enqueue_deferred(tick, 0.5)    # timer-like work
    handle.cancel()
    scheduler.drain()                                 # run until idle

    # Deterministic time for tests and simulations
    scheduler = Scheduler(clock=VirtualClock())
    with scheduler.activate():
        future = delay(1.0, "done")
    assert scheduler.run_until_settled(future) == "done"

Lifecycle of the default scheduler:
    ``Scheduler.get()`` lazily creates one process-wide instance on first use.
    It lives for the rest of the process, is never reset between logical runs
    and needs no teardown: it idles whenever both queues are empty. Code that
    wants isolation creates its own instance and makes it current for a block
    with ``Scheduler.activate()``.
"""

from __future__ import annotations

import heapq
import itertools
import threading
from collections import deque
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, ClassVar, cast

import structlog

from cofutures.errors import InvalidConfiguration, SchedulerIdleError
from cofutures.scheduling.clock import Clock, MonotonicClock
from cofutures.scheduling.models import (
    DeferredEntry,
    DeferredHandle,
    EntryState,
    SchedulerConfig,
)
from cofutures.tracing.models import UnhandledRejection

if TYPE_CHECKING:
    from cofutures.core.future import Future
    from cofutures.tracing.protocol import RejectionHook

logger = structlog.get_logger(__name__)

_current: ContextVar[Scheduler | None] = ContextVar("cofutures_scheduler", default=None)


class Scheduler:
    """Single-threaded cooperative execution engine.

    Two queues:
    - priority queue: continuations of settled futures, FIFO.
    - deferred queue: timer-like callbacks ordered by (due time, insertion order).

    The priority queue is drained completely, including work it produces while
    draining, before a single deferred entry runs. Callbacks are never
    preempted. Queue mutation is guarded by a lock so producers on other
    threads may enqueue; callbacks always run on the thread that drives the
    scheduler.

    Args:
        config: Scheduler configuration (unhandled rejection reporting, race policy).
        clock: Time source. Defaults to MonotonicClock.
    """

    _default: ClassVar[Scheduler | None] = None
    _default_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, config: SchedulerConfig | None = None, clock: Clock | None = None) -> None:
        self._config = config or SchedulerConfig()
        self._clock = clock or MonotonicClock()
        self._priority: deque[tuple[Callable[..., Any], tuple[Any, ...]]] = deque()
        self._deferred: list[DeferredEntry] = []
        self._seq = itertools.count()
        self._lock = threading.Lock()
        self._wakeup = threading.Event()
        self._unhandled: dict[int, Future[Any]] = {}
        self._rejection_hooks: list[RejectionHook] = []

    @classmethod
    def get(cls) -> Scheduler:
        """Get the process-wide default scheduler, creating it if necessary."""
        if cls._default is None:
            with cls._default_lock:
                if cls._default is None:
                    cls._default = cls()
        return cls._default

    @contextmanager
    def activate(self) -> Iterator[Scheduler]:
        """Make this scheduler current for futures created inside the block."""
        token = _current.set(self)
        try:
            yield self
        finally:
            _current.reset(token)

    @property
    def config(self) -> SchedulerConfig:
        return self._config

    @property
    def clock(self) -> Clock:
        return self._clock

    def now(self) -> float:
        """Current time of the scheduler's clock."""
        return self._clock.now()

    # --- Queues ---

    def enqueue_priority(self, callback: Callable[..., Any], *args: Any) -> None:
        """Queue a continuation. Priority entries are not cancellable."""
        with self._lock:
            self._priority.append((callback, args))
        self._wakeup.set()

    def enqueue_deferred(
        self, callback: Callable[..., Any], delay: float = 0.0, *args: Any
    ) -> DeferredHandle:
        """Queue a timer-like callback to run ``delay`` seconds from now.

        Safe to call from other threads; a waiting ``drain`` wakes up.

        Raises:
            InvalidConfiguration: If delay is negative.
        """
        if delay < 0:
            raise InvalidConfiguration(f"Delay must be non-negative, got {delay}")
        with self._lock:
            entry = DeferredEntry(self._clock.now() + delay, next(self._seq), callback, args)
            heapq.heappush(self._deferred, entry)
        self._wakeup.set()
        return DeferredHandle(self, entry)

    def cancel(self, handle: DeferredHandle) -> bool:
        """Remove a deferred entry that has not run yet.

        Cancelling an entry that already ran or was already cancelled is a no-op.

        Returns:
            True if the entry was removed.
        """
        entry = handle._entry
        with self._lock:
            if entry.state is not EntryState.SCHEDULED:
                return False
            entry.state = EntryState.CANCELLED
            self._deferred.remove(entry)
            heapq.heapify(self._deferred)
        return True

    def pending_count(self) -> tuple[int, int]:
        """Number of (priority, deferred) entries waiting to run."""
        with self._lock:
            return len(self._priority), len(self._deferred)

    def is_idle(self) -> bool:
        """True when both queues are empty."""
        with self._lock:
            return not self._priority and not self._deferred

    # --- Driving ---

    def run_priority(self) -> int:
        """Run priority entries until the queue is empty.

        Entries enqueued while draining run in the same call.

        Returns:
            Number of callbacks run.
        """
        count = 0
        while True:
            with self._lock:
                if not self._priority:
                    return count
                callback, args = self._priority.popleft()
            callback(*args)
            count += 1

    def run_once(self) -> bool:
        """Drain the priority queue, then run at most one ready deferred entry.

        Returns:
            True if any callback ran.
        """
        ran = self.run_priority()
        self._report_unhandled()
        entry = self._pop_ready()
        if entry is None:
            return ran > 0
        entry.callback(*entry.args)
        return True

    def drain(self) -> None:
        """Run until both queues are empty, waiting on the clock for future timers."""
        while self._step():
            pass

    def run_until_settled(self, future: Future[Any]) -> Any:
        """Drive the scheduler until ``future`` settles and return its result.

        Raises:
            SchedulerIdleError: If the scheduler runs out of work first.
            BaseException: The future's error if it rejects.
        """
        future._observe()
        while future.is_pending():
            if not self._step():
                raise SchedulerIdleError(f"Scheduler is idle but {future!r} is still pending")
        return future.result()

    def _step(self) -> bool:
        """Do one unit of work or wait for the next timer. False when idle."""
        if self.run_once():
            return True
        deadline = self._next_deadline()
        if deadline is None:
            return False
        logger.debug("scheduler_waiting", until=deadline)
        self._clock.wait_until(deadline, self._wakeup)
        return True

    def _pop_ready(self) -> DeferredEntry | None:
        with self._lock:
            if not self._deferred or self._deferred[0].due > self._clock.now():
                return None
            entry = heapq.heappop(self._deferred)
            entry.state = EntryState.RAN
            return entry

    def _next_deadline(self) -> float | None:
        with self._lock:
            self._wakeup.clear()
            if self._priority:
                return self._clock.now()
            if self._deferred:
                return self._deferred[0].due
            return None

    # --- Unhandled rejections ---

    def add_rejection_hook(self, hook: RejectionHook) -> None:
        """Register a callable notified of every unhandled rejection."""
        self._rejection_hooks.append(hook)

    def remove_rejection_hook(self, hook: RejectionHook) -> None:
        self._rejection_hooks.remove(hook)

    def track_rejection(self, future: Future[Any]) -> None:
        """Remember a future that rejected with no reactions registered."""
        self._unhandled[id(future)] = future

    def withdraw_rejection(self, future: Future[Any]) -> None:
        """Forget a tracked rejection once a reaction is registered."""
        self._unhandled.pop(id(future), None)

    def _report_unhandled(self) -> None:
        # Pop one at a time: if a hook raises, the rest stay tracked for the next drain
        while self._unhandled:
            future = self._unhandled.pop(next(iter(self._unhandled)))
            error = cast(BaseException, future.exception())
            record = UnhandledRejection(future=future, error=error, detected_at=self.now())
            if self._config.report_unhandled_rejections:
                logger.warning(
                    "unhandled_rejection",
                    error=repr(error),
                    error_type=type(error).__name__,
                    future=repr(future),
                )
            for hook in list(self._rejection_hooks):
                hook(record)


def get_scheduler() -> Scheduler:
    """Scheduler current in this context, falling back to the process-wide default."""
    scheduler = _current.get()
    if scheduler is None:
        return Scheduler.get()
    return scheduler
