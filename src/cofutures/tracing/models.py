"""Data models for runtime diagnostics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cofutures.core.future import Future


@dataclass(slots=True)
class UnhandledRejection:
    """A rejection no reaction observed by the end of a priority-queue drain.

    Attributes:
        future: The rejected future.
        error: The rejection error.
        detected_at: Scheduler clock time when the rejection was reported.

    Example:
        def report(record: UnhandledRejection) -> None:
            sentry_sdk.capture_exception(record.error)

        scheduler.add_rejection_hook(report)
    """

    future: Future[Any]
    error: BaseException
    detected_at: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "future": repr(self.future),
            "error": repr(self.error),
            "error_type": type(self.error).__name__,
            "detected_at": self.detected_at,
        }
