"""Configuration module using Pydantic Settings.

Provides typed runtime configuration with environment variable support.

Usage:
    from cofutures.config import RuntimeSettings

    settings = RuntimeSettings(default_concurrency=8)
"""

from cofutures.config.settings import RuntimeSettings

__all__ = [
    "RuntimeSettings",
]
