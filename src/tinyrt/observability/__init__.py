"""Observability module for tinyrt.

Provides logging configuration (plain text or JSON lines) and helpers for
logging environment values without leaking their content.
"""

from .logger import (
    LOGGER_NAME,
    EventType,
    JSONFormatter,
    configure_logging,
    payload_scrubber,
    scrub_for_log,
)

__all__ = [
    "LOGGER_NAME",
    "EventType",
    "JSONFormatter",
    "configure_logging",
    "payload_scrubber",
    "scrub_for_log",
]
