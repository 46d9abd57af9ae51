"""cofutures: cooperative futures with combinators, retry and bounded concurrency.

Usage:
    from cofutures import Future, Scheduler, VirtualClock, all_of, delay, with_retry

    scheduler = Scheduler(clock=VirtualClock())
    with scheduler.activate():
        first = delay(0.1, 1)
        second = first.then(lambda v: v + 1)
        both = all_of([first, second])

    assert scheduler.run_until_settled(both) == [1, 2]
"""

__version__ = "0.1.0"

# Core primitives
from cofutures.core import (
    Future,
    FutureState,
    Outcome,
    PlainValue,
    ThenableFuture,
    classify,
    create_future,
    invoke_producer,
)

# Scheduling
from cofutures.scheduling import (
    DeferredHandle,
    MonotonicClock,
    Scheduler,
    SchedulerConfig,
    VirtualClock,
    delay,
    get_scheduler,
    reject_after,
)

# Combinators
from cofutures.combinators import all_of, all_settled, any_of, race

# Retry
from cofutures.retry import RetryPolicy, with_retry

# Bounded runner
from cofutures.runner import BoundedRunner, TaskRecord, TaskState, run_bounded, run_sequential

# Adapters
from cofutures.adapters import callback_api, from_callback

# Diagnostics
from cofutures.tracing import RejectionHook, RejectionLog, UnhandledRejection, configure_logging

# Errors
from cofutures.errors import (
    AggregateError,
    CyclicDependency,
    FutureError,
    InvalidConfiguration,
    InvalidStateError,
    ProducerError,
    SchedulerIdleError,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "Future",
    "FutureState",
    "Outcome",
    "PlainValue",
    "ThenableFuture",
    "classify",
    "create_future",
    "invoke_producer",
    # Scheduling
    "Scheduler",
    "SchedulerConfig",
    "DeferredHandle",
    "MonotonicClock",
    "VirtualClock",
    "delay",
    "get_scheduler",
    "reject_after",
    # Combinators
    "all_of",
    "all_settled",
    "any_of",
    "race",
    # Retry
    "RetryPolicy",
    "with_retry",
    # Runner
    "BoundedRunner",
    "TaskRecord",
    "TaskState",
    "run_bounded",
    "run_sequential",
    # Adapters
    "callback_api",
    "from_callback",
    # Diagnostics
    "RejectionHook",
    "RejectionLog",
    "UnhandledRejection",
    "configure_logging",
    # Errors
    "AggregateError",
    "CyclicDependency",
    "FutureError",
    "InvalidConfiguration",
    "InvalidStateError",
    "ProducerError",
    "SchedulerIdleError",
]
