"""Future primitive: state machine, continuations and value tagging."""

from cofutures.core.future.core import Future, create_future, invoke_producer
from cofutures.core.future.models import (
    Executor,
    FutureState,
    Outcome,
    PlainValue,
    ThenableFuture,
    classify,
)

__all__ = [
    "Future",
    "create_future",
    "invoke_producer",
    "Executor",
    "FutureState",
    "Outcome",
    "PlainValue",
    "ThenableFuture",
    "classify",
]
