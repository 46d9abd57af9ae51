"""Adapter for error-first callback APIs.

Many existing APIs report completion through a callback taking
``(error, value)``. These helpers wrap such a call in a future executor.
They live outside the core: the runtime itself never calls them.

Usage:
    def read_config(path, callback):
        ...
        callback(None, data)    # or callback(exc, None)

    future = from_callback(read_config, "app.toml")

    read_config_async = callback_api(read_config)
    future = read_config_async("app.toml")
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any

from cofutures.core.future import Future
from cofutures.scheduling import Scheduler

ErrorFirstCallback = Callable[[Any, Any], None]
"""Signature: (error, value) -> None. A non-None error means failure."""


def from_callback(
    fn: Callable[..., Any],
    *args: Any,
    scheduler: Scheduler | None = None,
    **kwargs: Any,
) -> Future[Any]:
    """Call ``fn(*args, callback, **kwargs)`` and settle a future from the callback.

    The callback is appended as the last positional argument. A non-None
    error rejects the future (non-exception errors are wrapped in
    ProducerError); otherwise it fulfills with the value. Calls after the
    first are ignored, and an exception raised by ``fn`` itself rejects.
    """

    def executor(settle_fulfilled: Any, settle_rejected: Any) -> None:
        def callback(error: Any, value: Any = None) -> None:
            if error is not None:
                settle_rejected(error)
            else:
                settle_fulfilled(value)

        fn(*args, callback, **kwargs)

    return Future(executor, scheduler=scheduler)


def callback_api(
    fn: Callable[..., Any], *, scheduler: Scheduler | None = None
) -> Callable[..., Future[Any]]:
    """Turn an error-first callback function into one that returns futures."""

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Future[Any]:
        return from_callback(fn, *args, scheduler=scheduler, **kwargs)

    return wrapper
