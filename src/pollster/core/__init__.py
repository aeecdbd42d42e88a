"""Core infrastructure: configuration and logging."""

from pollster.core.config import (
    ExceptionSettings,
    PollingSettings,
    RetrySettings,
    load_settings,
)
from pollster.core.logging import configure_logging, get_logger

__all__ = [
    "ExceptionSettings",
    "PollingSettings",
    "RetrySettings",
    "configure_logging",
    "get_logger",
    "load_settings",
]
