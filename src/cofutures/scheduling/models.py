"""Scheduling models and configuration.

Types for deferred queue entries, cancellation handles and scheduler configuration.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cofutures.config import RuntimeSettings
    from cofutures.scheduling.scheduler import Scheduler


class EntryState(Enum):
    """Lifecycle of a deferred queue entry."""

    SCHEDULED = auto()
    """Waiting in the deferred queue."""

    RAN = auto()
    """Popped and executed."""

    CANCELLED = auto()
    """Removed from the queue before it ran."""


@dataclass(order=True)
class DeferredEntry:
    """Timer-like callback in the deferred queue.

    Entries order by due time, then by insertion sequence, so equal delays
    registered at the same instant run first-registered-first-run.
    """

    due: float
    seq: int
    callback: Callable[..., Any] = field(compare=False)
    args: tuple[Any, ...] = field(compare=False, default=())
    state: EntryState = field(compare=False, default=EntryState.SCHEDULED)


class DeferredHandle:
    """Cancellation token returned by ``Scheduler.enqueue_deferred``."""

    __slots__ = ("_scheduler", "_entry")

    def __init__(self, scheduler: Scheduler, entry: DeferredEntry) -> None:
        self._scheduler = scheduler
        self._entry = entry

    @property
    def when(self) -> float:
        """Clock time at which the entry becomes ready."""
        return self._entry.due

    @property
    def state(self) -> EntryState:
        return self._entry.state

    def cancelled(self) -> bool:
        return self._entry.state is EntryState.CANCELLED

    def cancel(self) -> bool:
        """Remove the entry if it has not run yet.

        Returns:
            True if the entry was removed, False if it already ran or was cancelled.
        """
        return self._scheduler.cancel(self)

    def __repr__(self) -> str:
        return f"DeferredHandle(when={self._entry.due!r}, state={self._entry.state.name})"


@dataclass
class SchedulerConfig:
    """Configuration for scheduler behavior.

    Passed to the scheduler at construction.
    """

    report_unhandled_rejections: bool = True
    """Log a warning for rejections nobody handled by the end of a priority drain."""

    reject_empty_race: bool = False
    """Make ``race([])`` reject instead of staying pending forever. Default keeps it pending."""

    @classmethod
    def from_settings(cls, settings: RuntimeSettings | None = None) -> SchedulerConfig:
        """Build a config from environment-backed settings."""
        if settings is None:
            from cofutures.config import RuntimeSettings

            settings = RuntimeSettings()
        return cls(
            report_unhandled_rejections=settings.report_unhandled_rejections,
            reject_empty_race=settings.reject_empty_race,
        )
