"""Structured logging setup for tinyrt.

Library modules log through ``logging.getLogger(__name__)`` and never
install handlers themselves. Entry points (the CLI, an application
bootstrap) call :func:`configure_logging` once to choose between a plain
text format and JSON lines.

Environment values can carry credentials, so anything derived from a
registry value goes through :func:`scrub_for_log` before it is logged.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import IO, Any

LOGGER_NAME = "tinyrt"

PLAIN_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_RECORD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "event_type",
    }
)


class EventType(Enum):
    """Types of registry events to log."""

    ENVIRONMENT_BUILT = "environment_built"
    ENVIRONMENT_PUBLISHED = "environment_published"
    VALUE_RESOLVED = "value_resolved"
    WRITE_REJECTED = "write_rejected"
    CUSTOM_DEFAULT_DROPPED = "custom_default_dropped"


# ---------------------------------------------------------------------------
# Payload Scrubbing
# ---------------------------------------------------------------------------


def payload_scrubber(
    text: str,
    max_length: int = 50,
    mask_char: str = "*",
) -> str:
    """Scrub long text for safe logging.

    Args:
        text: The text to scrub
        max_length: Maximum length of text to show (rest is masked)
        mask_char: Character to use for masking

    Returns:
        Scrubbed text safe for logging
    """
    if not text:
        return "[empty]"

    if not isinstance(text, str):
        return f"[non-string:{type(text).__name__}]"

    clean = re.sub(r"[\n\r\t]+", " ", text)

    if len(clean) > max_length:
        visible_chars = max_length // 2
        return f"{clean[:visible_chars]}{mask_char * 3}[{len(clean)} chars]{mask_char * 3}{clean[-visible_chars:]}"

    return clean


def scrub_for_log(value: Any, max_length: int = 50) -> str:
    """Convert any value to a log-safe scrubbed string.

    Args:
        value: Any value to convert for logging
        max_length: Maximum length for string values

    Returns:
        Log-safe string representation
    """
    if value is None:
        return "[none]"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, str):
        return payload_scrubber(value, max_length)
    if isinstance(value, (int, float, bool)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return f"[{type(value).__name__}:{len(value)} items]"
    if isinstance(value, dict):
        return f"[dict:{len(value)} keys]"
    return f"[{type(value).__name__}]"


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event_type": getattr(record, "event_type", "unknown"),
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def configure_logging(
    level: int | str = logging.WARNING,
    json_logging: bool = False,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Install a single stream handler on the ``tinyrt`` logger.

    Calling this again replaces the previous handler, so entry points can
    reconfigure without duplicating output.

    Args:
        level: Minimum level, as a number or a name such as ``"DEBUG"``
        json_logging: Emit JSON lines instead of plain text
        stream: Target stream (defaults to stderr)

    Returns:
        The configured package logger
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.WARNING

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if json_logging else logging.Formatter(PLAIN_FORMAT))

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger
