"""Compiled-in environment defaults and the custom defaults store.

``ENV_DEFAULTS`` lists every key the framework itself contributes to a
registry. Entries holding :data:`UNRESOLVED` are computed on first access
by :mod:`tinyrt.runtime.probes`.

Only the keys in ``ENV_CUSTOM_KEYS`` may be overridden by the application.
Overrides are collected in a :class:`CustomDefaults` store, either an
explicit instance handed to the registry or the process-wide store behind
:func:`set_custom_defaults`. The process-wide store must be populated
before the first registry is built; nothing enforces that ordering.
"""

from __future__ import annotations

import logging
import os
import platform
import sys
from collections.abc import Iterator, Mapping
from typing import Any

from ..observability.logger import EventType
from .mode import RuntimeMode
from .probes import UNRESOLVED

logger = logging.getLogger(__name__)

FRAMEWORK_NAME = "tinyrt"
FRAMEWORK_VERSION = "1.0.0"
FRAMEWORK_PATH = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

DEFAULT_TICK_LINE = 10

ENV_DEFAULTS: dict[str, Any] = {
    "FRAMEWORK_NAME": FRAMEWORK_NAME,
    "FRAMEWORK_PATH": FRAMEWORK_PATH,
    "FRAMEWORK_VERSION": FRAMEWORK_VERSION,
    "PYTHON_VERSION": platform.python_version(),
    "PYTHON_VERSION_ID": sys.version_info.major * 10000
    + sys.version_info.minor * 100
    + sys.version_info.micro,
    "PYTHON_PLATFORM": sys.platform,
    "PYTHON_EXECUTABLE": UNRESOLVED,
    "PID": UNRESOLVED,
    "GID": UNRESOLVED,
    "UID": UNRESOLVED,
    "USER": UNRESOLVED,
    "SYSTEM_NAME": UNRESOLVED,
    "HOSTNAME": UNRESOLVED,
    "SYSTEM_VERSION_NAME": UNRESOLVED,
    "SYSTEM_VERSION_INFO": UNRESOLVED,
    "MACHINE_TYPE": UNRESOLVED,
    "RUNTIME_TICK_LINE": DEFAULT_TICK_LINE,
    "RUNTIME_MEMORY_SIZE": UNRESOLVED,
    "RUNTIME_DEBUG_BACKTRACE": UNRESOLVED,
    "SCRIPT_DIR": UNRESOLVED,
    "SCRIPT_FILENAME": UNRESOLVED,
    "RUNTIME_MODE": RuntimeMode.WEB,
    "RUNTIME_MODE_CONSOLE": RuntimeMode.CONSOLE,
    "RUNTIME_MODE_WEB": RuntimeMode.WEB,
    "RUNTIME_MODE_RPC": RuntimeMode.RPC,
}

# Keys the application may override through custom defaults.
ENV_CUSTOM_KEYS: frozenset[str] = frozenset({"RUNTIME_TICK_LINE"})


class CustomDefaults:
    """Allow-listed overrides applied on top of the compiled-in defaults.

    Keys outside the allow-list are dropped without error.

    Example:
        >>> defaults = CustomDefaults({"RUNTIME_TICK_LINE": 42, "PID": 1})
        >>> defaults.as_dict()
        {'RUNTIME_TICK_LINE': 42}
    """

    def __init__(
        self,
        values: Mapping[str, Any] | None = None,
        allowed: frozenset[str] = ENV_CUSTOM_KEYS,
    ) -> None:
        self.allowed = allowed
        self._values: dict[str, Any] = {}
        if values:
            self.update(values)

    def update(self, values: Mapping[str, Any]) -> None:
        """Store allow-listed entries, overwriting earlier values.

        Args:
            values: Proposed key/value overrides.
        """
        for key, value in values.items():
            if key in self.allowed:
                self._values[key] = value
            else:
                logger.debug(
                    "Dropping custom default %r: not overridable",
                    key,
                    extra={"event_type": EventType.CUSTOM_DEFAULT_DROPPED.value},
                )

    def clear(self) -> None:
        self._values.clear()

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def as_dict(self) -> dict[str, Any]:
        """Return a copy of the stored overrides."""
        return dict(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"CustomDefaults({self._values!r})"


_process_defaults = CustomDefaults()


def get_custom_defaults() -> CustomDefaults:
    """Return the process-wide custom defaults store."""
    return _process_defaults


def set_custom_defaults(values: Mapping[str, Any]) -> None:
    """Apply overrides to every registry constructed from now on.

    Registries that already exist are not affected. Keys outside
    ``ENV_CUSTOM_KEYS`` are ignored.

    Args:
        values: Proposed key/value overrides.
    """
    _process_defaults.update(values)


def reset_custom_defaults() -> None:
    """Clear the process-wide store."""
    _process_defaults.clear()
