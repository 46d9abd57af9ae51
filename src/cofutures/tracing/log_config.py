"""Structured logging configuration (structlog + stdlib integration).

The runtime logs key/value events through ``structlog.get_logger(__name__)``.
Hosts that have no logging setup of their own can call ``configure_logging``
once at startup:

    from cofutures.tracing import configure_logging

    configure_logging(level="debug")            # coloured console output
    configure_logging(json_output=True)         # one JSON object per line
    configure_logging(settings=RuntimeSettings())
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from cofutures.config import RuntimeSettings


def configure_logging(
    level: str = "info",
    json_output: bool = False,
    settings: RuntimeSettings | None = None,
) -> None:
    """Configure structlog with stdlib logging integration.

    Args:
        level: Log level string (``debug``, ``info``, ``warning``, ``error``).
        json_output: Render JSON lines instead of human-readable console output.
        settings: If given, ``log_level`` and ``log_json`` override the other arguments.
    """
    if settings is not None:
        level = settings.log_level
        json_output = settings.log_json
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    package_logger = logging.getLogger("cofutures")
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(log_level)
    package_logger.propagate = False
