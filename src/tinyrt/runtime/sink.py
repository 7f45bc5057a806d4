"""Sinks receiving the merged environment view after construction.

The registry never touches ``os.environ`` itself. A bootstrap that wants
other collaborators (subprocesses, libraries reading ``os.environ``) to see
the merged view passes an :class:`OsEnvironSink`.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, MutableMapping
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from ..observability.logger import EventType
from .probes import UNRESOLVED

logger = logging.getLogger(__name__)


@runtime_checkable
class EnvironmentSink(Protocol):
    """Receiver of a freshly merged environment mapping."""

    def publish(self, entries: Mapping[str, Any]) -> None:
        """Accept the merged entries, in registry order."""
        ...


def to_env_value(value: Any) -> str | None:
    """Convert an entry value to its environment-variable form.

    Returns:
        The string form, or None when the value has no scalar form
        (unresolved, None, lists and other containers).
    """
    if value is UNRESOLVED or value is None:
        return None
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


def is_env_name(key: Any) -> bool:
    """Return True if *key* can name a process environment variable."""
    return isinstance(key, str) and bool(key) and "=" not in key and "\x00" not in key


class OsEnvironSink:
    """Write scalar entries into a process environment table."""

    def __init__(self, target: MutableMapping[str, str] | None = None) -> None:
        self.target = os.environ if target is None else target

    def publish(self, entries: Mapping[str, Any]) -> None:
        """Write every representable entry; skip and log the rest.

        All entries are checked before the first write.
        """
        pending: dict[str, str] = {}
        for key, value in entries.items():
            env_value = to_env_value(value)
            if env_value is None:
                continue
            if not is_env_name(key):
                logger.debug("Skipping %r: not a valid environment variable name", key)
                continue
            if "\x00" in env_value:
                logger.debug("Skipping %s: value contains a NUL byte", key)
                continue
            pending[key] = env_value

        written = 0
        for key, env_value in pending.items():
            try:
                self.target[key] = env_value
            except (ValueError, TypeError) as e:
                logger.debug("Skipping %s: %s", key, e)
                continue
            written += 1

        logger.debug(
            "Published %d of %d entries to the environment",
            written,
            len(entries),
            extra={"event_type": EventType.ENVIRONMENT_PUBLISHED.value},
        )


class DictSink:
    """Keep the last published mapping."""

    def __init__(self) -> None:
        self.entries: dict[str, Any] = {}
        self.publish_count = 0

    def publish(self, entries: Mapping[str, Any]) -> None:
        self.entries = dict(entries)
        self.publish_count += 1
