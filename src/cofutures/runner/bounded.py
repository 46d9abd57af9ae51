"""Run task producers with a maximum number in flight.

Usage:
    outcomes = run_bounded([lambda: fetch(url) for url in urls], concurrency_limit=4)
    scheduler.drain()
    for outcome in outcomes.result():
        ...

Admission is FIFO: tasks start in input order and each settlement admits the
lowest queued index. Task failures never abort the batch; the result is one
Outcome per task in input order, like ``all_settled``.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from typing import Any

import structlog
from pydantic import ValidationError

from cofutures.core.future import Future, Outcome, invoke_producer
from cofutures.errors import InvalidConfiguration, InvalidStateError
from cofutures.runner.models import TaskProducer, TaskRecord, TaskState, TransitionCallback
from cofutures.scheduling import Scheduler, get_scheduler

logger = structlog.get_logger(__name__)


class BoundedRunner:
    """Single-batch task runner with a concurrency limit.

    Args:
        concurrency_limit: Maximum tasks RUNNING at once. Must be >= 1.
        scheduler: Scheduler for continuations. Defaults to the current one.
        on_transition: Called with the TaskRecord after every state change.
            It runs inside task continuations; an exception it raises is
            logged as ``transition_observer_failed`` and does not stop the batch.
    """

    def __init__(
        self,
        concurrency_limit: int,
        *,
        scheduler: Scheduler | None = None,
        on_transition: TransitionCallback | None = None,
    ) -> None:
        self._limit = concurrency_limit
        self._scheduler = scheduler or get_scheduler()
        self._on_transition = on_transition
        self._records: list[TaskRecord] = []
        self._queue: deque[TaskRecord] = deque()
        self._in_flight = 0
        self._peak_in_flight = 0
        self._remaining = 0
        self._started = False

    @property
    def concurrency_limit(self) -> int:
        return self._limit

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def peak_in_flight(self) -> int:
        """Highest number of tasks that were RUNNING at the same time."""
        return self._peak_in_flight

    @property
    def records(self) -> list[TaskRecord]:
        return list(self._records)

    def run(self, producers: Iterable[TaskProducer]) -> Future[list[Outcome[Any]]]:
        """Start the batch.

        Never raises: an invalid limit or a second call rejects the returned future.
        """

        def executor(settle_fulfilled: Any, settle_rejected: Any) -> None:
            if self._limit < 1:
                raise InvalidConfiguration(
                    f"concurrency_limit must be >= 1, got {self._limit}"
                )
            if self._started:
                raise InvalidStateError("BoundedRunner.run() can only be called once")
            self._started = True

            self._records = [TaskRecord(index, producer) for index, producer in enumerate(producers)]
            self._queue.extend(self._records)
            self._remaining = len(self._records)
            if not self._records:
                settle_fulfilled([])
                return

            def finish(record: TaskRecord, outcome: Outcome[Any]) -> None:
                record.outcome = outcome
                self._in_flight -= 1
                self._remaining -= 1
                self._transition(record, TaskState.SETTLED)
                logger.debug(
                    "task_settled",
                    index=record.index,
                    ok=outcome.ok,
                    in_flight=self._in_flight,
                )
                if self._remaining == 0:
                    settle_fulfilled([r.outcome for r in self._records])
                else:
                    admit()

            def start(record: TaskRecord) -> None:
                self._in_flight += 1
                self._peak_in_flight = max(self._peak_in_flight, self._in_flight)
                self._transition(record, TaskState.RUNNING)
                logger.debug("task_started", index=record.index, in_flight=self._in_flight)
                invoke_producer(record.producer, scheduler=self._scheduler).then(
                    lambda value: finish(record, Outcome.fulfilled(value)),
                    lambda error: finish(record, Outcome.rejected(error)),
                )

            def admit() -> None:
                while self._queue and self._in_flight < self._limit:
                    start(self._queue.popleft())

            admit()

        return Future(executor, scheduler=self._scheduler)

    def _transition(self, record: TaskRecord, state: TaskState) -> None:
        record.state = state
        if self._on_transition is None:
            return
        try:
            self._on_transition(record)
        except Exception:
            logger.exception("transition_observer_failed", index=record.index, state=state.name)


def run_bounded(
    producers: Iterable[TaskProducer],
    concurrency_limit: int | None = None,
    *,
    scheduler: Scheduler | None = None,
    on_transition: TransitionCallback | None = None,
) -> Future[list[Outcome[Any]]]:
    """Run ``producers`` with at most ``concurrency_limit`` in flight.

    Args:
        producers: Zero-argument callables returning futures, in start order.
        concurrency_limit: Maximum tasks running at once. None uses
            ``RuntimeSettings().default_concurrency``.
        scheduler: Scheduler for continuations. Defaults to the current one.
        on_transition: Observer for every task state change.

    Returns:
        Future fulfilled with one Outcome per producer, in input order.
        Invalid settings reject it with InvalidConfiguration.
    """
    if concurrency_limit is None:
        try:
            concurrency_limit = _default_concurrency()
        except InvalidConfiguration as exc:
            return Future.rejected(exc, scheduler=scheduler)
    runner = BoundedRunner(concurrency_limit, scheduler=scheduler, on_transition=on_transition)
    return runner.run(producers)


def _default_concurrency() -> int:
    from cofutures.config import RuntimeSettings

    try:
        return RuntimeSettings().default_concurrency
    except ValidationError as exc:
        raise InvalidConfiguration(f"Invalid runtime settings: {exc}") from exc


def run_sequential(
    producers: Iterable[TaskProducer], *, scheduler: Scheduler | None = None
) -> Future[list[Outcome[Any]]]:
    """Run producers one at a time.

    Equivalent to ``run_bounded(producers, 1)``.
    """
    return run_bounded(producers, 1, scheduler=scheduler)
