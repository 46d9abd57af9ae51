"""Bounded runner models."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cofutures.core.future import Future, Outcome


class TaskState(Enum):
    """Per-task state machine: QUEUED -> RUNNING -> SETTLED."""

    QUEUED = auto()
    RUNNING = auto()
    SETTLED = auto()


TaskProducer = Callable[[], "Future[Any]"]
"""Zero-argument callable starting a task and returning its future."""


@dataclass(slots=True)
class TaskRecord:
    """Bookkeeping for one task, indexed by its position in the input."""

    index: int
    producer: TaskProducer = field(repr=False)
    state: TaskState = TaskState.QUEUED
    outcome: Outcome[Any] | None = None


TransitionCallback = Callable[[TaskRecord], None]
"""Signature: (record) -> None. Called after every state change."""
