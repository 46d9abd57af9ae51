"""Retry a fallible producer with bounded attempts and backoff.

Usage:
    policy = RetryPolicy(max_attempts=3, delay=0.1, backoff="exponential")
    result = with_retry(lambda: fetch_profile(user_id), policy)
    scheduler.drain()

Tenacity decides what happens after each attempt (retry, wait, give up).
Waiting never blocks: each wait becomes a deferred scheduler entry.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import structlog
import tenacity

from cofutures.core.future import Future, invoke_producer
from cofutures.retry.models import RetryPolicy
from cofutures.scheduling import Scheduler, get_scheduler

logger = structlog.get_logger(__name__)


def _log_retry(retry_state: tenacity.RetryCallState) -> None:
    outcome = retry_state.outcome
    logger.debug(
        "retry_scheduled",
        attempt=retry_state.attempt_number,
        delay=retry_state.next_action.sleep if retry_state.next_action else 0.0,
        error=repr(outcome.exception()) if outcome is not None else None,
    )


def build_retrying(policy: RetryPolicy) -> tenacity.Retrying:
    """Build a tenacity retry controller from RetryPolicy configuration.

    The controller is only stepped through ``iter``; its sleep is never used.
    Exhaustion surfaces as ``tenacity.RetryError``; a non-retryable error is
    raised as-is.
    """
    return tenacity.Retrying(
        stop=tenacity.stop_after_attempt(policy.max_attempts),
        wait=policy.build_wait(),
        retry=tenacity.retry_if_exception_type(policy.retry_on),
        before_sleep=_log_retry,
        reraise=False,
    )


def with_retry(
    producer: Callable[[], Future[Any]],
    policy: RetryPolicy | None = None,
    *,
    scheduler: Scheduler | None = None,
) -> Future[Any]:
    """Invoke ``producer`` until its future fulfills or attempts run out.

    Fulfillment at any attempt settles the result immediately. After the last
    failed attempt the result rejects with the last error only. Errors that
    are not instances of ``policy.retry_on`` reject without another attempt.
    Never raises: an invalid policy rejects the returned future with
    InvalidConfiguration.

    Args:
        producer: Zero-argument callable returning a Future. Raising or
            returning a non-future counts as a failed attempt.
        policy: Attempts and delays. Defaults to a single attempt.
        scheduler: Scheduler for waits and continuations. Defaults to the current one.
    """
    scheduler = scheduler or get_scheduler()
    policy = policy or RetryPolicy()

    def executor(settle_fulfilled: Any, settle_rejected: Any) -> None:
        policy.validate()
        retrying = build_retrying(policy)
        retrying.begin()
        retry_state = tenacity.RetryCallState(retrying, fn=producer, args=(), kwargs={})

        def step() -> None:
            try:
                action = retrying.iter(retry_state)
            except tenacity.RetryError as exc:
                last_error = exc.last_attempt.exception()
                logger.debug(
                    "retry_exhausted",
                    attempts=retry_state.attempt_number,
                    error=repr(last_error),
                )
                settle_rejected(last_error)
                return
            except Exception as exc:
                logger.debug(
                    "retry_aborted",
                    attempts=retry_state.attempt_number,
                    error=repr(exc),
                )
                settle_rejected(exc)
                return
            if isinstance(action, tenacity.DoAttempt):
                invoke_producer(producer, scheduler=scheduler).then(on_value, on_error)
            elif isinstance(action, tenacity.DoSleep):
                retry_state.prepare_for_next_attempt()
                scheduler.enqueue_deferred(step, float(action))
            else:
                settle_fulfilled(action)

        def on_value(value: Any) -> None:
            retry_state.set_result(value)
            step()

        def on_error(error: BaseException) -> None:
            retry_state.set_exception((type(error), error, error.__traceback__))
            step()

        step()

    return Future(executor, scheduler=scheduler)
