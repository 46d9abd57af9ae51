"""Retry policy configuration."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

import tenacity

from cofutures.errors import InvalidConfiguration

if TYPE_CHECKING:
    from cofutures.config import RuntimeSettings

DelayFunction = Callable[[int], float]
"""Signature: (attempt_number) -> seconds. attempt_number is 1-based: the attempt that just failed."""


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Configuration for re-attempting a failed producer.

    Useful for producers wrapping external calls with transient failures.

    Examples:
        RetryPolicy(max_attempts=3)                                   # no wait
        RetryPolicy(max_attempts=5, delay=0.1, backoff="exponential") # 0.1, 0.2, 0.4, ...
        RetryPolicy(max_attempts=4, delay=lambda n: n * 0.5)          # custom
    """

    max_attempts: int = 1
    """Maximum attempts (1 = no retry). Default: no retry."""

    delay: float | DelayFunction = 0.0
    """Seconds to wait before the next attempt, or a function of the failed attempt number."""

    backoff: Literal["none", "linear", "exponential"] = "none"
    """How a numeric delay grows between attempts. Ignored for delay functions."""

    max_delay: float | None = None
    """Upper bound on any single wait. None = unbounded."""

    retry_on: tuple[type[BaseException], ...] = (Exception,)
    """Error types worth another attempt. Others reject immediately."""

    @classmethod
    def from_settings(cls, settings: RuntimeSettings | None = None) -> RetryPolicy:
        """Build a policy from environment-backed settings."""
        if settings is None:
            from cofutures.config import RuntimeSettings

            settings = RuntimeSettings()
        return cls(
            max_attempts=settings.retry_max_attempts,
            delay=settings.retry_base_delay,
            backoff=settings.retry_backoff,
            max_delay=settings.retry_max_delay,
        )

    def validate(self) -> None:
        """Check the policy.

        Raises:
            InvalidConfiguration: On max_attempts < 1, a negative delay or an unknown backoff.
        """
        if self.max_attempts < 1:
            raise InvalidConfiguration(f"max_attempts must be >= 1, got {self.max_attempts}")
        if not callable(self.delay) and self.delay < 0:
            raise InvalidConfiguration(f"delay must be non-negative, got {self.delay}")
        if self.max_delay is not None and self.max_delay < 0:
            raise InvalidConfiguration(f"max_delay must be non-negative, got {self.max_delay}")
        if self.backoff not in ("none", "linear", "exponential"):
            raise InvalidConfiguration(f"Unknown backoff strategy: {self.backoff}")

    def build_wait(self) -> tenacity.wait.wait_base:
        """Translate the delay settings into a tenacity wait strategy."""
        max_delay = self.max_delay if self.max_delay is not None else float("inf")
        if callable(self.delay):
            return _WaitFunction(self.delay, max_delay)
        if self.backoff == "exponential":
            return tenacity.wait_exponential(multiplier=self.delay, min=self.delay, max=max_delay)
        if self.backoff == "linear":
            return tenacity.wait_incrementing(start=self.delay, increment=self.delay, max=max_delay)
        return tenacity.wait_fixed(min(self.delay, max_delay))

    def delay_for(self, attempt_number: int) -> float:
        """Seconds waited after failed attempt ``attempt_number`` (1-based)."""
        retry_state = tenacity.RetryCallState(retry_object=None, fn=None, args=(), kwargs={})  # type: ignore[arg-type]
        retry_state.attempt_number = attempt_number
        return float(self.build_wait()(retry_state))


class _WaitFunction(tenacity.wait.wait_base):
    """Tenacity wait strategy delegating to a user delay function."""

    def __init__(self, delay: DelayFunction, max_delay: float) -> None:
        self._delay = delay
        self._max_delay = max_delay

    def __call__(self, retry_state: tenacity.RetryCallState) -> float:
        seconds = float(self._delay(retry_state.attempt_number))
        if seconds < 0:
            raise InvalidConfiguration(f"delay function returned a negative delay: {seconds}")
        return min(seconds, self._max_delay)
