"""Future: the single pending -> settled state machine.

Usage:
    def executor(settle_fulfilled, settle_rejected):
        scheduler.enqueue_deferred(settle_fulfilled, 0.1, "value")

    future = Future(executor)
    doubled = future.then(lambda v: v * 2)
    handled = doubled.catch_error(lambda e: "fallback")
    handled.finally_(lambda: print("done"))
    scheduler.drain()

Continuations never run synchronously with registration; they always go
through the scheduler's priority queue.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, cast

from cofutures.core.future.models import (
    Executor,
    FutureState,
    Outcome,
    PlainValue,
    ThenableFuture,
    classify,
)
from cofutures.errors import CyclicDependency, InvalidStateError, ProducerError
from cofutures.scheduling.scheduler import Scheduler, get_scheduler

T = TypeVar("T")


@dataclass(slots=True)
class _Reaction:
    """Continuation registered on a pending future."""

    on_fulfilled: Callable[[Any], Any] | None
    on_rejected: Callable[[BaseException], Any] | None
    derived: Future[Any]


class Future(Generic[T]):
    """Handle to a value that is not known yet, settled exactly once.

    Args:
        executor: Called synchronously with ``(settle_fulfilled, settle_rejected)``.
            An exception it raises rejects the future.
        scheduler: Scheduler running continuations. Defaults to the current scheduler.
    """

    __slots__ = (
        "_scheduler",
        "_state",
        "_value",
        "_error",
        "_reactions",
        "_locked",
        "_adopted",
        "_handled",
    )

    def __init__(self, executor: Executor | None = None, *, scheduler: Scheduler | None = None) -> None:
        self._scheduler = scheduler or get_scheduler()
        self._state = FutureState.PENDING
        self._value: T | None = None
        self._error: BaseException | None = None
        self._reactions: list[_Reaction] | None = []
        # Set once a settle capability has been used, even while adopting
        self._locked = False
        self._adopted: Future[Any] | None = None
        self._handled = False

        if executor is not None:
            try:
                executor(self._settle_fulfilled, self._settle_rejected)
            except Exception as exc:
                self._settle_rejected(exc)

    # --- Constructors ---

    @classmethod
    def fulfilled(cls, value: T, *, scheduler: Scheduler | None = None) -> Future[T]:
        """Future already fulfilled with ``value`` (a future value is adopted)."""
        future: Future[T] = cls(scheduler=scheduler)
        future._settle_fulfilled(value)
        return future

    @classmethod
    def rejected(cls, error: BaseException, *, scheduler: Scheduler | None = None) -> Future[Any]:
        """Future already rejected with ``error``."""
        future: Future[Any] = cls(scheduler=scheduler)
        future._settle_rejected(error)
        return future

    @classmethod
    def resolve(cls, value: Any, *, scheduler: Scheduler | None = None) -> Future[Any]:
        """Return ``value`` if it is already a future, otherwise a future fulfilled with it."""
        tagged = classify(value)
        if isinstance(tagged, ThenableFuture):
            return tagged.future
        return cls.fulfilled(tagged.value, scheduler=scheduler)

    # --- Inspection ---

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def state(self) -> FutureState:
        return self._state

    def is_pending(self) -> bool:
        return self._state is FutureState.PENDING

    def is_settled(self) -> bool:
        return self._state is not FutureState.PENDING

    def result(self) -> T:
        """Return the value, or raise the error of a rejected future.

        Raises:
            InvalidStateError: If the future is still pending.
        """
        if self._state is FutureState.PENDING:
            raise InvalidStateError("Future is still pending")
        if self._state is FutureState.REJECTED:
            raise cast(BaseException, self._error)
        return self._value  # type: ignore[return-value]

    def exception(self) -> BaseException | None:
        """Return the rejection error, or None if fulfilled.

        Raises:
            InvalidStateError: If the future is still pending.
        """
        if self._state is FutureState.PENDING:
            raise InvalidStateError("Future is still pending")
        return self._error

    def outcome(self) -> Outcome[T]:
        """Settled result as an Outcome record."""
        if self._state is FutureState.PENDING:
            raise InvalidStateError("Future is still pending")
        if self._state is FutureState.FULFILLED:
            return Outcome.fulfilled(self._value)  # type: ignore[arg-type]
        return Outcome.rejected(cast(BaseException, self._error))

    # --- Continuations ---

    def then(
        self,
        on_fulfilled: Callable[[T], Any] | None = None,
        on_rejected: Callable[[BaseException], Any] | None = None,
    ) -> Future[Any]:
        """Register continuations and return the derived future.

        Exactly one callback runs per settlement, chosen by the outcome. A
        missing callback passes the outcome through. A raising callback
        rejects the derived future; a returned future is adopted.
        """
        derived: Future[Any] = Future(scheduler=self._scheduler)
        self._add_reaction(_Reaction(on_fulfilled, on_rejected, derived))
        return derived

    def catch_error(self, on_rejected: Callable[[BaseException], Any]) -> Future[Any]:
        """Shorthand for ``then(None, on_rejected)``."""
        return self.then(None, on_rejected)

    def finally_(self, on_settle: Callable[[], Any]) -> Future[T]:
        """Run ``on_settle()`` on either outcome and keep the outcome.

        If ``on_settle`` raises, or returns a future that rejects, that error
        supersedes the original outcome.
        """

        def after_value(value: T) -> Any:
            return Future.resolve(on_settle(), scheduler=self._scheduler).then(lambda _: value)

        def after_error(error: BaseException) -> Any:
            def reraise(_: Any) -> Any:
                raise error

            return Future.resolve(on_settle(), scheduler=self._scheduler).then(reraise)

        return self.then(after_value, after_error)

    def __repr__(self) -> str:
        if self._state is FutureState.FULFILLED:
            return f"<Future fulfilled value={self._value!r}>"
        if self._state is FutureState.REJECTED:
            return f"<Future rejected error={self._error!r}>"
        return "<Future pending>"

    # --- Settlement ---

    def _settle_fulfilled(self, value: Any = None) -> None:
        if self._locked:
            return
        self._locked = True
        self._resolve(value)

    def _settle_rejected(self, error: Any) -> None:
        if self._locked:
            return
        self._locked = True
        self._reject(error)

    def _resolve(self, value: Any) -> None:
        match classify(value):
            case ThenableFuture(future=inner):
                if self._adopts(inner):
                    self._reject(CyclicDependency(f"{self!r} cannot be resolved with itself"))
                    return
                self._adopted = inner
                inner._add_reaction(_Reaction(None, None, self))
            case PlainValue(value=plain):
                self._fulfill(plain)

    def _adopts(self, inner: Future[Any]) -> bool:
        """True if adopting ``inner`` would make this future wait on itself."""
        node: Future[Any] | None = inner
        while node is not None:
            if node is self:
                return True
            node = node._adopted
        return False

    def _fulfill(self, value: T) -> None:
        if self._state is not FutureState.PENDING:
            return
        self._state = FutureState.FULFILLED
        self._value = value
        self._flush_reactions()

    def _reject(self, error: Any) -> None:
        if self._state is not FutureState.PENDING:
            return
        if not isinstance(error, BaseException):
            error = ProducerError.wrap(error)
        self._state = FutureState.REJECTED
        self._error = error
        if not self._reactions and not self._handled:
            self._scheduler.track_rejection(self)
        self._flush_reactions()

    def _flush_reactions(self) -> None:
        reactions, self._reactions = self._reactions, None
        self._adopted = None
        for reaction in reactions or ():
            self._scheduler.enqueue_priority(self._run_reaction, reaction)

    def _add_reaction(self, reaction: _Reaction) -> None:
        self._observe()
        if self._reactions is not None:
            self._reactions.append(reaction)
        else:
            self._scheduler.enqueue_priority(self._run_reaction, reaction)

    def _observe(self) -> None:
        """Mark the future as handled so its rejection is not reported."""
        if not self._handled:
            self._handled = True
            if self._state is FutureState.REJECTED:
                self._scheduler.withdraw_rejection(self)

    def _run_reaction(self, reaction: _Reaction) -> None:
        derived = reaction.derived
        if self._state is FutureState.FULFILLED:
            handler: Callable[[Any], Any] | None = reaction.on_fulfilled
            payload: Any = self._value
        else:
            handler = reaction.on_rejected
            payload = self._error

        if handler is None:
            if self._state is FutureState.FULFILLED:
                derived._fulfill(payload)
            else:
                derived._reject(payload)
            return

        try:
            result = handler(payload)
        except Exception as exc:
            derived._reject(exc)
        else:
            derived._resolve(result)


def create_future(executor: Executor, *, scheduler: Scheduler | None = None) -> Future[Any]:
    """Create a pending future driven by ``executor``.

    ``executor`` receives ``settle_fulfilled(value)`` and ``settle_rejected(error)``.
    Only the first settle call counts; raising inside the executor is the same
    as calling ``settle_rejected`` with the exception.
    """
    return Future(executor, scheduler=scheduler)


def invoke_producer(producer: Callable[[], Any], *, scheduler: Scheduler | None = None) -> Future[Any]:
    """Call a caller-supplied producer and always get a future back.

    A synchronous exception becomes a rejected future. A return value that is
    not a future rejects with ProducerError.
    """
    try:
        result = producer()
    except Exception as exc:
        return Future.rejected(exc, scheduler=scheduler)
    tagged = classify(result)
    if isinstance(tagged, ThenableFuture):
        return tagged.future
    return Future.rejected(
        ProducerError(
            f"Producer {producer!r} returned {type(result).__name__}, expected a Future",
            result,
        ),
        scheduler=scheduler,
    )
