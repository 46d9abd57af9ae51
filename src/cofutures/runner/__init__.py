"""Bounded-concurrency task runner."""

from cofutures.runner.bounded import BoundedRunner, run_bounded, run_sequential
from cofutures.runner.models import TaskProducer, TaskRecord, TaskState, TransitionCallback

__all__ = [
    "BoundedRunner",
    "run_bounded",
    "run_sequential",
    "TaskProducer",
    "TaskRecord",
    "TaskState",
    "TransitionCallback",
]
