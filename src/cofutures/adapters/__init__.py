"""Adapters between other asynchronous conventions and futures.

Usage:
    from cofutures.adapters import from_callback

    future = from_callback(legacy_fetch, "key")
"""

from cofutures.adapters.callback import ErrorFirstCallback, callback_api, from_callback

__all__ = [
    "ErrorFirstCallback",
    "callback_api",
    "from_callback",
]
