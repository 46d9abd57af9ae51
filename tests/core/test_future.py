"""Tests for the Future state machine.

Critical Invariants:
- A future settles exactly once; later settle calls are no-ops
- Continuations never run synchronously with registration
- Continuations on the same future run in registration order
- Future return values are flattened, never surfaced as values
- Self-resolution is detected instead of deadlocking
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from cofutures import (
    CyclicDependency,
    Future,
    FutureState,
    InvalidStateError,
    Outcome,
    ProducerError,
    Scheduler,
    VirtualClock,
    create_future,
    delay,
)


def capture_settlers():
    """Executor that stores its settle capabilities for the test to call later."""
    settlers = {}

    def executor(settle_fulfilled, settle_rejected):
        settlers["fulfill"] = settle_fulfilled
        settlers["reject"] = settle_rejected

    return executor, settlers


# Settlement


def test_settle_fulfilled_is_permanent(scheduler):
    """CRITICAL: Second settlement attempts leave state and payload unchanged.

    Why: Futures are shared between consumers; a payload that changes after the
    fact would give consumers different answers.
    """
    executor, settlers = capture_settlers()
    future = create_future(executor)
    assert future.state is FutureState.PENDING

    settlers["fulfill"](1)
    settlers["fulfill"](2)
    settlers["reject"](ValueError("late"))

    assert future.state is FutureState.FULFILLED
    assert future.result() == 1


def test_settle_rejected_is_permanent(scheduler):
    executor, settlers = capture_settlers()
    future = Future(executor)
    error = ValueError("first")

    settlers["reject"](error)
    settlers["fulfill"]("ignored")

    assert future.state is FutureState.REJECTED
    assert future.exception() is error
    future.catch_error(lambda e: None)


def test_executor_exception_rejects():
    """Raising inside the executor equals calling settle_rejected."""
    scheduler = Scheduler(clock=VirtualClock())

    def executor(settle_fulfilled, settle_rejected):
        raise KeyError("missing")

    future = Future(executor, scheduler=scheduler)

    assert future.state is FutureState.REJECTED
    assert isinstance(future.exception(), KeyError)
    assert future.scheduler is scheduler
    future.catch_error(lambda e: None)


def test_executor_exception_after_settlement_is_ignored(scheduler):
    def executor(settle_fulfilled, settle_rejected):
        settle_fulfilled("done")
        raise RuntimeError("too late")

    future = Future(executor)

    assert future.result() == "done"


def test_non_exception_rejection_is_wrapped(scheduler):
    future = Future.rejected("plain string")  # type: ignore[arg-type]

    error = future.exception()
    assert isinstance(error, ProducerError)
    assert error.value == "plain string"
    future.catch_error(lambda e: None)


def test_result_of_pending_future_raises(scheduler):
    future = Future()

    assert future.is_pending()
    with pytest.raises(InvalidStateError):
        future.result()
    with pytest.raises(InvalidStateError):
        future.exception()
    with pytest.raises(InvalidStateError):
        future.outcome()


def test_outcome_records(scheduler):
    error = ValueError("x")
    rejected = Future.rejected(error)
    rejected.catch_error(lambda e: None)

    assert Future.fulfilled(3).outcome() == Outcome.fulfilled(3)
    assert rejected.outcome() == Outcome.rejected(error)


# Continuation scheduling


def test_continuation_not_run_on_registration(scheduler):
    """CRITICAL: Code after then() runs before the continuation, even if already settled."""
    order = []
    future = Future.fulfilled(1)

    future.then(lambda v: order.append(("continuation", v)))
    order.append("after-then")

    assert order == ["after-then"]
    scheduler.drain()
    assert order == ["after-then", ("continuation", 1)]


def test_continuations_run_in_registration_order(scheduler):
    order = []
    future = Future.fulfilled("x")

    future.then(lambda v: order.append("c1"))
    future.then(lambda v: order.append("c2"))
    future.then(lambda v: order.append("c3"))
    scheduler.drain()

    assert order == ["c1", "c2", "c3"]


def test_pending_continuations_run_in_registration_order(scheduler):
    order = []
    executor, settlers = capture_settlers()
    future = Future(executor)
    future.then(lambda v: order.append("c1"))
    future.then(lambda v: order.append("c2"))

    settlers["fulfill"](None)
    assert order == []
    scheduler.drain()

    assert order == ["c1", "c2"]


def test_continuations_run_before_deferred_work(scheduler):
    order = []
    scheduler.enqueue_deferred(order.append, 0.0, "timer")
    Future.fulfilled(1).then(lambda v: order.append("continuation")).then(
        lambda v: order.append("chained")
    )

    scheduler.drain()

    assert order == ["continuation", "chained", "timer"]


# then / catch_error / finally_


def test_then_transforms_value(scheduler):
    result = Future.fulfilled(2).then(lambda v: v * 10)

    assert scheduler.run_until_settled(result) == 20


def test_then_exactly_one_callback_runs(scheduler):
    calls = []
    error = ValueError("bad")

    Future.fulfilled(1).then(lambda v: calls.append("ok"), lambda e: calls.append("err"))
    Future.rejected(error).then(lambda v: calls.append("ok"), lambda e: calls.append("err"))
    scheduler.drain()

    assert calls == ["ok", "err"]


def test_missing_callbacks_pass_outcome_through(scheduler):
    error = ValueError("bad")

    passed_value = Future.fulfilled(7).then(None, lambda e: "recovered")
    passed_error = Future.rejected(error).then(lambda v: "unused")

    assert scheduler.run_until_settled(passed_value) == 7
    with pytest.raises(ValueError) as excinfo:
        scheduler.run_until_settled(passed_error)
    assert excinfo.value is error


def test_raising_callback_rejects_derived(scheduler):
    def explode(value):
        raise RuntimeError(f"cannot handle {value}")

    derived = Future.fulfilled(1).then(explode)

    with pytest.raises(RuntimeError, match="cannot handle 1"):
        scheduler.run_until_settled(derived)


def test_catch_error_recovers(scheduler):
    recovered = Future.rejected(ValueError("bad")).catch_error(lambda e: f"handled {e}")

    assert scheduler.run_until_settled(recovered) == "handled bad"


def test_returned_future_is_flattened(scheduler, clock):
    """CRITICAL: A continuation returning a future yields that future's value, not the future."""
    outer = Future.fulfilled(1).then(lambda _: delay(0.05, "inner"))

    value = scheduler.run_until_settled(outer)

    assert value == "inner"
    assert not isinstance(value, Future)
    assert clock.now() == pytest.approx(0.05)


def test_settling_with_future_adopts_its_outcome(scheduler):
    executor, settlers = capture_settlers()
    future = Future(executor)
    inner_executor, inner_settlers = capture_settlers()
    inner = Future(inner_executor)

    settlers["fulfill"](inner)
    settlers["fulfill"]("ignored: already locked to inner")
    scheduler.drain()
    assert future.is_pending()

    inner_settlers["fulfill"]("from inner")
    scheduler.drain()
    assert future.result() == "from inner"


def test_fulfilled_with_rejected_future_rejects(scheduler):
    error = ValueError("inner failed")

    future = Future.fulfilled(Future.rejected(error))

    with pytest.raises(ValueError) as excinfo:
        scheduler.run_until_settled(future)
    assert excinfo.value is error


def test_objects_with_then_attribute_are_plain_values(scheduler):
    """Flattening uses an explicit type check, not duck typing."""

    class LooksLikeAFuture:
        def then(self, *args):
            raise AssertionError("must not be called")

    thing = LooksLikeAFuture()
    result = Future.fulfilled(1).then(lambda _: thing)

    assert scheduler.run_until_settled(result) is thing


def test_finally_preserves_value(scheduler):
    calls = []

    result = Future.fulfilled(5).finally_(lambda: calls.append("cleanup"))

    assert scheduler.run_until_settled(result) == 5
    assert calls == ["cleanup"]


def test_finally_preserves_error(scheduler):
    calls = []
    error = ValueError("original")

    result = Future.rejected(error).finally_(lambda: calls.append("cleanup"))

    with pytest.raises(ValueError) as excinfo:
        scheduler.run_until_settled(result)
    assert excinfo.value is error
    assert calls == ["cleanup"]


def test_finally_error_supersedes_outcome(scheduler):
    def failing_cleanup():
        raise RuntimeError("cleanup failed")

    from_value = Future.fulfilled(1).finally_(failing_cleanup)
    from_error = Future.rejected(ValueError("original")).finally_(failing_cleanup)

    with pytest.raises(RuntimeError, match="cleanup failed"):
        scheduler.run_until_settled(from_value)
    with pytest.raises(RuntimeError, match="cleanup failed"):
        scheduler.run_until_settled(from_error)


def test_finally_waits_for_returned_future(scheduler, clock):
    result = Future.fulfilled("value").finally_(lambda: delay(0.1))

    assert scheduler.run_until_settled(result) == "value"
    assert clock.now() == pytest.approx(0.1)


# Cyclic dependencies


def test_resolving_with_itself_is_cyclic(scheduler):
    """CRITICAL: Self-resolution rejects with CyclicDependency instead of hanging."""
    executor, settlers = capture_settlers()
    future = Future(executor)

    settlers["fulfill"](future)

    assert future.state is FutureState.REJECTED
    assert isinstance(future.exception(), CyclicDependency)
    future.catch_error(lambda e: None)


def test_continuation_returning_its_own_future_is_cyclic(scheduler):
    box = {}
    derived = Future.fulfilled(1).then(lambda _: box["derived"])
    box["derived"] = derived

    with pytest.raises(CyclicDependency):
        scheduler.run_until_settled(derived)


def test_mutual_adoption_is_cyclic(scheduler):
    executor_a, settlers_a = capture_settlers()
    executor_b, settlers_b = capture_settlers()
    a = Future(executor_a)
    b = Future(executor_b)

    settlers_a["fulfill"](b)
    settlers_b["fulfill"](a)
    a.catch_error(lambda e: None)
    scheduler.drain()

    assert isinstance(b.exception(), CyclicDependency)
    assert isinstance(a.exception(), CyclicDependency)


def test_resolve_passes_futures_through(scheduler):
    future = Future.fulfilled(1)

    assert Future.resolve(future) is future
    assert Future.resolve(2).result() == 2


# Properties


@given(
    value=st.integers(),
    depth=st.integers(min_value=0, max_value=25),
    reject=st.booleans(),
)
def test_identity_chain_preserves_outcome(value, depth, reject):
    """PROPERTY: Chaining then(x => x) any number of times never changes the outcome."""
    scheduler = Scheduler(clock=VirtualClock())
    error = ValueError(value)
    if reject:
        future = Future.rejected(error, scheduler=scheduler)
    else:
        future = Future.fulfilled(value, scheduler=scheduler)

    for _ in range(depth):
        future = future.then(lambda x: x)

    if reject:
        with pytest.raises(ValueError) as excinfo:
            scheduler.run_until_settled(future)
        assert excinfo.value is error
    else:
        assert scheduler.run_until_settled(future) == value


@given(
    calls=st.lists(
        st.tuples(st.sampled_from(["fulfill", "reject"]), st.integers()),
        min_size=1,
        max_size=10,
    )
)
def test_first_settlement_wins(calls):
    """PROPERTY: Whatever sequence of settle calls happens, the first one decides."""
    scheduler = Scheduler(clock=VirtualClock())
    executor, settlers = capture_settlers()
    future = Future(executor, scheduler=scheduler)

    for kind, payload in calls:
        if kind == "fulfill":
            settlers["fulfill"](payload)
        else:
            settlers["reject"](ValueError(payload))

    first_kind, first_payload = calls[0]
    if first_kind == "fulfill":
        assert future.result() == first_payload
    else:
        assert future.exception().args == (first_payload,)
