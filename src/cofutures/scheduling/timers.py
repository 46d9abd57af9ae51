"""Timer-like futures built on the deferred queue."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from cofutures.scheduling.scheduler import Scheduler, get_scheduler

if TYPE_CHECKING:
    from cofutures.core.future import Future

T = TypeVar("T")


def delay(seconds: float, value: T | None = None, *, scheduler: Scheduler | None = None) -> Future[T | None]:
    """Future fulfilled with ``value`` after ``seconds`` on the scheduler's clock.

    A negative delay rejects the returned future with InvalidConfiguration.
    """
    # Import here to avoid circular dependency at module level
    from cofutures.core.future import Future

    scheduler = scheduler or get_scheduler()

    def executor(settle_fulfilled: Any, settle_rejected: Any) -> None:
        scheduler.enqueue_deferred(settle_fulfilled, seconds, value)

    return Future(executor, scheduler=scheduler)


def reject_after(seconds: float, error: BaseException, *, scheduler: Scheduler | None = None) -> Future[Any]:
    """Future rejected with ``error`` after ``seconds``."""
    from cofutures.core.future import Future

    scheduler = scheduler or get_scheduler()

    def executor(settle_fulfilled: Any, settle_rejected: Any) -> None:
        scheduler.enqueue_deferred(settle_rejected, seconds, error)

    return Future(executor, scheduler=scheduler)
