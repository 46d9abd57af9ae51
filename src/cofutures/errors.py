"""Error taxonomy for the future runtime.

Rejections always carry an exception. The classes here cover the failures the
runtime itself produces; errors raised by caller code travel through futures
unchanged.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


class FutureError(Exception):
    """Base class for all errors raised by the runtime."""


class ProducerError(FutureError):
    """A caller-supplied producer broke its contract.

    Raised (as a rejection) when a producer returns something other than a
    Future, or when a future is rejected with a value that is not an exception.
    The offending value is kept on ``value``.
    """

    def __init__(self, message: str, value: Any = None) -> None:
        super().__init__(message)
        self.value = value

    @classmethod
    def wrap(cls, value: Any) -> ProducerError:
        """Wrap a non-exception rejection value."""
        return cls(f"Future rejected with non-exception value: {value!r}", value)


class AggregateError(FutureError):
    """Every alternative failed.

    ``errors`` preserves input order and may be empty (``any_of([])``).
    """

    def __init__(self, errors: Iterable[BaseException], message: str | None = None) -> None:
        self.errors: tuple[BaseException, ...] = tuple(errors)
        if message is None:
            message = f"All {len(self.errors)} futures were rejected"
        super().__init__(message)

    def __repr__(self) -> str:
        return f"AggregateError({list(self.errors)!r})"


class CyclicDependency(FutureError):
    """A future was resolved with itself, directly or through a chain of adoptions."""


class InvalidConfiguration(FutureError, ValueError):
    """A runtime object was configured with values outside their domain."""


class InvalidStateError(FutureError):
    """The operation is not valid in the future's current state."""


class SchedulerIdleError(FutureError):
    """The scheduler ran out of work while a future was still pending."""
