"""Retry with bounded attempts and backoff, backed by tenacity."""

from cofutures.retry.core import build_retrying, with_retry
from cofutures.retry.models import DelayFunction, RetryPolicy

__all__ = [
    "DelayFunction",
    "RetryPolicy",
    "build_retrying",
    "with_retry",
]
