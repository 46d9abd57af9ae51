"""Core primitives.

Re-exports the future primitive and its models so callers can write
``from cofutures.core import Future, Outcome``.
"""

from cofutures.core.future import (
    Executor,
    Future,
    FutureState,
    Outcome,
    PlainValue,
    ThenableFuture,
    classify,
    create_future,
    invoke_producer,
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
