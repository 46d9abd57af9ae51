"""Combinators composing several futures into one.

All combinators preserve input order in their results, whatever the
completion order. None of them cancel inputs: once the combined future has
settled, the remaining inputs keep running and their outcomes are ignored.

Usage:
    values = all_of([fetch(1), fetch(2)])          # [v1, v2] or first error
    first = race([fetch(1), delay(5, "timeout")])  # first to settle
    outcomes = all_settled([fetch(1), fetch(2)])   # [Outcome, Outcome]
    value = any_of([mirror_a(), mirror_b()])       # first success or AggregateError
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from cofutures.core.future import Future, Outcome, PlainValue, classify
from cofutures.errors import AggregateError, InvalidConfiguration
from cofutures.scheduling import Scheduler, get_scheduler


def _prepare(
    futures: Iterable[Any], scheduler: Scheduler | None
) -> tuple[list[Future[Any]], Scheduler]:
    """Materialize inputs as futures and pick the scheduler for the combined future.

    Plain (non-future) items count as already-fulfilled inputs. Without an
    explicit scheduler the first input future's scheduler is used.
    """
    items = list(futures)
    if scheduler is None:
        scheduler = next(
            (item.scheduler for item in items if isinstance(item, Future)),
            None,
        ) or get_scheduler()
    inputs: list[Future[Any]] = []
    for item in items:
        tagged = classify(item)
        if isinstance(tagged, PlainValue):
            inputs.append(Future.fulfilled(tagged.value, scheduler=scheduler))
        else:
            inputs.append(tagged.future)
    return inputs, scheduler


def all_of(futures: Iterable[Any], *, scheduler: Scheduler | None = None) -> Future[list[Any]]:
    """Fulfill with every value in input order, or reject with the first error.

    "First" is by settlement time, not by index. Empty input fulfills with ``[]``.
    """
    inputs, scheduler = _prepare(futures, scheduler)

    def executor(settle_fulfilled: Any, settle_rejected: Any) -> None:
        if not inputs:
            settle_fulfilled([])
            return
        values: list[Any] = [None] * len(inputs)
        remaining = len(inputs)

        def on_value(index: int, value: Any) -> None:
            nonlocal remaining
            values[index] = value
            remaining -= 1
            if remaining == 0:
                settle_fulfilled(values)

        for index, future in enumerate(inputs):
            future.then(lambda value, index=index: on_value(index, value), settle_rejected)

    return Future(executor, scheduler=scheduler)


def race(
    futures: Iterable[Any],
    *,
    reject_on_empty: bool | None = None,
    scheduler: Scheduler | None = None,
) -> Future[Any]:
    """Settle with the outcome of whichever input settles first.

    Warning:
        With empty input the returned future never settles unless
        ``reject_on_empty`` (or ``SchedulerConfig.reject_empty_race``) is set,
        in which case it rejects with InvalidConfiguration.
    """
    inputs, scheduler = _prepare(futures, scheduler)
    if reject_on_empty is None:
        reject_on_empty = scheduler.config.reject_empty_race

    def executor(settle_fulfilled: Any, settle_rejected: Any) -> None:
        if not inputs and reject_on_empty:
            settle_rejected(InvalidConfiguration("race() of an empty sequence can never settle"))
            return
        for future in inputs:
            future.then(settle_fulfilled, settle_rejected)

    return Future(executor, scheduler=scheduler)


def all_settled(
    futures: Iterable[Any], *, scheduler: Scheduler | None = None
) -> Future[list[Outcome[Any]]]:
    """Fulfill with one Outcome per input once every input has settled. Never rejects."""
    inputs, scheduler = _prepare(futures, scheduler)

    def executor(settle_fulfilled: Any, settle_rejected: Any) -> None:
        if not inputs:
            settle_fulfilled([])
            return
        outcomes: list[Outcome[Any] | None] = [None] * len(inputs)
        remaining = len(inputs)

        def record(index: int, outcome: Outcome[Any]) -> None:
            nonlocal remaining
            outcomes[index] = outcome
            remaining -= 1
            if remaining == 0:
                settle_fulfilled(outcomes)

        for index, future in enumerate(inputs):
            future.then(
                lambda value, index=index: record(index, Outcome.fulfilled(value)),
                lambda error, index=index: record(index, Outcome.rejected(error)),
            )

    return Future(executor, scheduler=scheduler)


def any_of(futures: Iterable[Any], *, scheduler: Scheduler | None = None) -> Future[Any]:
    """Fulfill with the first value to arrive; if all reject, reject with AggregateError.

    The aggregate holds every error in input order. Empty input rejects
    immediately with an empty AggregateError.
    """
    inputs, scheduler = _prepare(futures, scheduler)

    def executor(settle_fulfilled: Any, settle_rejected: Any) -> None:
        if not inputs:
            settle_rejected(AggregateError([]))
            return
        errors: list[BaseException | None] = [None] * len(inputs)
        remaining = len(inputs)

        def on_error(index: int, error: BaseException) -> None:
            nonlocal remaining
            errors[index] = error
            remaining -= 1
            if remaining == 0:
                settle_rejected(AggregateError([e for e in errors if e is not None]))

        for index, future in enumerate(inputs):
            future.then(settle_fulfilled, lambda error, index=index: on_error(index, error))

    return Future(executor, scheduler=scheduler)
