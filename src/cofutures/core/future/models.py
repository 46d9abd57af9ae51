"""Future state and value tagging models.

Usage:
    outcome = Outcome.fulfilled(1)
    assert outcome.status is FutureState.FULFILLED

    match classify(value):
        case ThenableFuture(future=inner): ...
        case PlainValue(value=plain): ...
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Generic, TypeVar, cast

if TYPE_CHECKING:
    from cofutures.core.future.core import Future

T = TypeVar("T")


class FutureState(Enum):
    """Lifecycle of a future. The only transitions are PENDING -> FULFILLED and PENDING -> REJECTED."""

    PENDING = auto()
    FULFILLED = auto()
    REJECTED = auto()


@dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    """Settled result of a future.

    Produced by ``all_settled`` and the bounded runner, one per input.
    """

    status: FutureState
    value: T | None = None
    error: BaseException | None = None

    @classmethod
    def fulfilled(cls, value: T) -> Outcome[T]:
        return cls(FutureState.FULFILLED, value=value)

    @classmethod
    def rejected(cls, error: BaseException) -> Outcome[T]:
        return cls(FutureState.REJECTED, error=error)

    @property
    def ok(self) -> bool:
        return self.status is FutureState.FULFILLED

    def unwrap(self) -> T:
        """Return the value, or raise the error of a rejected outcome."""
        if self.status is FutureState.REJECTED:
            raise cast(BaseException, self.error)
        return self.value  # type: ignore[return-value]

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary (``{"status": ..., "value"|"error": ...}``)."""
        if self.status is FutureState.FULFILLED:
            return {"status": self.status.name.lower(), "value": self.value}
        return {"status": self.status.name.lower(), "error": self.error}


@dataclass(frozen=True, slots=True)
class PlainValue(Generic[T]):
    """A resolution value that is used as-is."""

    value: T


@dataclass(frozen=True, slots=True)
class ThenableFuture(Generic[T]):
    """A resolution value that is itself a future and must be adopted."""

    future: Future[T]


def classify(value: Any) -> PlainValue[Any] | ThenableFuture[Any]:
    """Tag a resolution value as a plain value or a future to adopt.

    Only real ``Future`` instances are adopted. Objects that merely look like
    futures (anything with a ``then`` attribute) are plain values.
    """
    from cofutures.core.future.core import Future

    if isinstance(value, Future):
        return ThenableFuture(value)
    return PlainValue(value)


# Executor signature: receives settle_fulfilled and settle_rejected
Executor = Callable[[Callable[[Any], None], Callable[[Any], None]], None]
"""Signature: (settle_fulfilled, settle_rejected) -> None"""
