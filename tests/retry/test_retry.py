"""Tests for with_retry and RetryPolicy.

Critical Invariants:
- Fulfillment at any attempt stops further attempts
- Exhaustion rejects with the last error only
- Waits between attempts follow the policy and never block
- with_retry never raises synchronously
"""

import pytest
from structlog.testing import capture_logs

from cofutures import (
    Future,
    InvalidConfiguration,
    ProducerError,
    RetryPolicy,
    with_retry,
)
from cofutures.config import RuntimeSettings


def flaky(scheduler, failures, value="ok", error_type=ConnectionError):
    """Producer failing ``failures`` times before fulfilling; records call times."""
    calls = []

    def producer():
        calls.append(scheduler.now())
        if len(calls) <= failures:
            return Future.rejected(error_type(f"attempt {len(calls)}"))
        return Future.fulfilled(value)

    return producer, calls


def test_succeeds_on_third_attempt(scheduler):
    """CRITICAL: Rejections on attempts 1 and 2, success on 3 -> "ok" after exactly 3 calls."""
    producer, calls = flaky(scheduler, failures=2)

    result = with_retry(producer, RetryPolicy(max_attempts=3, delay=0))

    assert scheduler.run_until_settled(result) == "ok"
    assert len(calls) == 3


def test_success_stops_attempts(scheduler):
    producer, calls = flaky(scheduler, failures=0)

    result = with_retry(producer, RetryPolicy(max_attempts=5, delay=0.1))
    scheduler.drain()

    assert result.result() == "ok"
    assert len(calls) == 1


def test_exhaustion_rejects_with_last_error(scheduler):
    errors = []

    def producer():
        error = ConnectionError(f"attempt {len(errors) + 1}")
        errors.append(error)
        return Future.rejected(error)

    result = with_retry(producer, RetryPolicy(max_attempts=3))

    with pytest.raises(ConnectionError) as excinfo:
        scheduler.run_until_settled(result)
    assert excinfo.value is errors[-1]
    assert len(errors) == 3


def test_single_attempt_policy_does_not_retry(scheduler):
    producer, calls = flaky(scheduler, failures=1)

    result = with_retry(producer)

    with pytest.raises(ConnectionError, match="attempt 1"):
        scheduler.run_until_settled(result)
    assert len(calls) == 1


def test_constant_delay_between_attempts(scheduler):
    producer, calls = flaky(scheduler, failures=2)

    result = with_retry(producer, RetryPolicy(max_attempts=3, delay=0.5))
    scheduler.run_until_settled(result)

    assert calls == pytest.approx([0.0, 0.5, 1.0])


def test_exponential_backoff_timings(scheduler):
    producer, calls = flaky(scheduler, failures=10)

    result = with_retry(producer, RetryPolicy(max_attempts=4, delay=0.1, backoff="exponential"))
    with pytest.raises(ConnectionError):
        scheduler.run_until_settled(result)

    # Waits of 0.1, 0.2 and 0.4 seconds
    assert calls == pytest.approx([0.0, 0.1, 0.3, 0.7])


def test_delay_function_receives_failed_attempt_number(scheduler):
    seen = []

    def backoff(attempt_number):
        seen.append(attempt_number)
        return 0.05 * attempt_number

    producer, calls = flaky(scheduler, failures=2)

    result = with_retry(producer, RetryPolicy(max_attempts=3, delay=backoff))

    assert scheduler.run_until_settled(result) == "ok"
    assert seen == [1, 2]
    assert calls == pytest.approx([0.0, 0.05, 0.15])


def test_retry_waits_do_not_block_other_work(scheduler):
    order = []
    producer, _ = flaky(scheduler, failures=1)

    result = with_retry(producer, RetryPolicy(max_attempts=2, delay=1.0))
    result.then(lambda v: order.append("retry done"))
    scheduler.enqueue_deferred(order.append, 0.5, "timer")
    scheduler.drain()

    assert order == ["timer", "retry done"]


def test_non_retryable_error_rejects_immediately(scheduler):
    producer, calls = flaky(scheduler, failures=3, error_type=ValueError)

    result = with_retry(
        producer, RetryPolicy(max_attempts=5, retry_on=(ConnectionError,))
    )

    with pytest.raises(ValueError, match="attempt 1"):
        scheduler.run_until_settled(result)
    assert len(calls) == 1


def test_producer_raising_counts_as_failed_attempt(scheduler):
    attempts = []

    def producer():
        attempts.append(1)
        if len(attempts) == 1:
            raise ConnectionError("refused")
        return Future.fulfilled("second time lucky")

    result = with_retry(producer, RetryPolicy(max_attempts=2))

    assert scheduler.run_until_settled(result) == "second time lucky"


def test_producer_returning_non_future_rejects(scheduler):
    result = with_retry(lambda: "not a future", RetryPolicy(max_attempts=2))

    with pytest.raises(ProducerError) as excinfo:
        scheduler.run_until_settled(result)
    assert excinfo.value.value == "not a future"


@pytest.mark.parametrize(
    "policy",
    [
        RetryPolicy(max_attempts=0),
        RetryPolicy(max_attempts=2, delay=-1.0),
        RetryPolicy(max_attempts=2, delay=0.1, max_delay=-1.0),
    ],
    ids=["zero-attempts", "negative-delay", "negative-max-delay"],
)
def test_invalid_policy_rejects_without_raising(scheduler, policy):
    calls = []

    result = with_retry(lambda: calls.append(1), policy)

    with pytest.raises(InvalidConfiguration):
        scheduler.run_until_settled(result)
    assert calls == []


# Policy delays


@pytest.mark.parametrize(
    ("policy", "expected"),
    [
        (RetryPolicy(delay=0.5), [0.5, 0.5, 0.5]),
        (RetryPolicy(delay=0.5, backoff="linear"), [0.5, 1.0, 1.5]),
        (RetryPolicy(delay=0.1, backoff="exponential"), [0.1, 0.2, 0.4]),
        (RetryPolicy(delay=0.1, backoff="exponential", max_delay=0.25), [0.1, 0.2, 0.25]),
        (RetryPolicy(delay=lambda n: n * n), [1.0, 4.0, 9.0]),
    ],
    ids=["constant", "linear", "exponential", "capped", "function"],
)
def test_delay_for(policy, expected):
    assert [policy.delay_for(n) for n in (1, 2, 3)] == pytest.approx(expected)


def test_policy_from_settings():
    settings = RuntimeSettings(
        retry_max_attempts=5,
        retry_backoff="linear",
        retry_base_delay=0.2,
        retry_max_delay=1.0,
    )

    policy = RetryPolicy.from_settings(settings)

    assert policy.max_attempts == 5
    assert policy.backoff == "linear"
    assert policy.delay == 0.2
    assert policy.max_delay == 1.0


# Logging


def retry_events(logs):
    return [entry["event"] for entry in logs if entry["event"].startswith("retry_")]


def test_exhaustion_logs_retry_exhausted(scheduler):
    producer, _ = flaky(scheduler, failures=5)

    with capture_logs() as logs:
        result = with_retry(producer, RetryPolicy(max_attempts=2))
        with pytest.raises(ConnectionError, match="attempt 2"):
            scheduler.run_until_settled(result)

    assert retry_events(logs) == ["retry_scheduled", "retry_exhausted"]


def test_non_retryable_error_logs_retry_aborted(scheduler):
    """Giving up early is not exhaustion: attempts remained."""
    producer, _ = flaky(scheduler, failures=5, error_type=ValueError)

    with capture_logs() as logs:
        result = with_retry(producer, RetryPolicy(max_attempts=3, retry_on=(ConnectionError,)))
        with pytest.raises(ValueError):
            scheduler.run_until_settled(result)

    assert retry_events(logs) == ["retry_aborted"]


def test_raising_delay_function_rejects_and_logs_retry_aborted(scheduler):
    def broken_backoff(attempt_number):
        raise ArithmeticError("bad backoff")

    producer, calls = flaky(scheduler, failures=5)

    with capture_logs() as logs:
        result = with_retry(producer, RetryPolicy(max_attempts=3, delay=broken_backoff))
        with pytest.raises(ArithmeticError, match="bad backoff"):
            scheduler.run_until_settled(result)

    assert len(calls) == 1
    assert retry_events(logs) == ["retry_aborted"]
