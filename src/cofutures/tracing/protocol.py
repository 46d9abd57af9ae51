"""Protocols for diagnostics hooks.

These protocols define what a host attaches to the scheduler to observe
rejections nobody handled, allowing different sinks (logs, error trackers,
test recorders).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from cofutures.tracing.models import UnhandledRejection


@runtime_checkable
class RejectionHook(Protocol):
    """Callable notified about unhandled rejections.

    The scheduler reports a rejection as unhandled when a future rejected with
    no reactions and still has none once the priority queue has drained.

    Usage:
        log = RejectionLog()
        scheduler.add_rejection_hook(log)
        scheduler.drain()
        assert not log.records

    Note:
        Hooks run on the scheduler's thread. An exception raised by a hook
        propagates out of ``drain``; rejections not yet reported stay
        tracked and are reported on the next drain.
    """

    def __call__(self, record: UnhandledRejection) -> None:
        """Handle one unhandled rejection.

        Args:
            record: The rejected future, its error and the detection time.
        """
        ...
