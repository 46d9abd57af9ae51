"""Diagnostics for the runtime: unhandled rejection reporting and logging setup.

Usage:
    from cofutures.tracing import RejectionLog, configure_logging

    configure_logging(level="debug")

    log = RejectionLog()
    scheduler.add_rejection_hook(log)
    scheduler.drain()
    for record in log.records:
        print(record.to_dict())
"""

from cofutures.tracing.log_config import configure_logging
from cofutures.tracing.models import UnhandledRejection
from cofutures.tracing.protocol import RejectionHook
from cofutures.tracing.recorder import RejectionLog

__all__ = [
    "RejectionHook",
    "RejectionLog",
    "UnhandledRejection",
    "configure_logging",
]
