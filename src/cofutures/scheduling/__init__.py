"""Cooperative scheduling: queues, clocks and timers."""

from cofutures.scheduling.clock import Clock, MonotonicClock, VirtualClock
from cofutures.scheduling.models import (
    DeferredEntry,
    DeferredHandle,
    EntryState,
    SchedulerConfig,
)
from cofutures.scheduling.scheduler import Scheduler, get_scheduler
from cofutures.scheduling.timers import delay, reject_after

__all__ = [
    # Scheduler
    "Scheduler",
    "get_scheduler",
    # Models
    "DeferredEntry",
    "DeferredHandle",
    "EntryState",
    "SchedulerConfig",
    # Clocks
    "Clock",
    "MonotonicClock",
    "VirtualClock",
    # Timers
    "delay",
    "reject_after",
]
