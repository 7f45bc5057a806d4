"""Lazy probes for expensive or context-sensitive environment entries.

Entries such as the process id, host name or memory usage are not read at
construction. The registry stores :data:`UNRESOLVED` for them and calls
:func:`resolve` on first access. Probes only read process and platform
state; a probe that cannot answer on the current platform yields None.
"""

from __future__ import annotations

import getpass
import logging
import os
import platform
import sys
import traceback
from collections.abc import Callable, Mapping
from typing import Any

import psutil

logger = logging.getLogger(__name__)


class _Unresolved:
    """Marker for an entry whose value has not been computed yet."""

    _instance: _Unresolved | None = None

    def __new__(cls) -> _Unresolved:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNRESOLVED"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "UNRESOLVED"


UNRESOLVED: Any = _Unresolved()


def _script_path() -> str | None:
    main = sys.modules.get("__main__")
    path = getattr(main, "__file__", None)
    if not path and sys.argv and sys.argv[0] not in ("", "-c", "-m"):
        path = sys.argv[0]
    if not path:
        return None
    return os.path.abspath(path)


def _script_dir() -> str | None:
    path = _script_path()
    return os.path.dirname(path) if path else None


def _memory_usage() -> int:
    return int(psutil.Process().memory_info().rss)


def _backtrace() -> list[dict[str, Any]]:
    # Drop the probe machinery itself from the snapshot.
    frames = traceback.extract_stack()[:-2]
    return [
        {"file": frame.filename, "line": frame.lineno, "function": frame.name}
        for frame in reversed(frames)
    ]


def _user() -> str | None:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return None


def _posix_id(name: str) -> Callable[[], int | None]:
    def probe() -> int | None:
        getter = getattr(os, name, None)
        return getter() if getter is not None else None

    return probe


PROBES: dict[str, Callable[[], Any]] = {
    "PID": os.getpid,
    "GID": _posix_id("getgid"),
    "UID": _posix_id("getuid"),
    "USER": _user,
    "SYSTEM_NAME": lambda: platform.uname().system,
    "HOSTNAME": lambda: platform.uname().node,
    "SYSTEM_VERSION_NAME": lambda: platform.uname().release,
    "SYSTEM_VERSION_INFO": lambda: platform.uname().version,
    "MACHINE_TYPE": lambda: platform.uname().machine,
    "SCRIPT_DIR": _script_dir,
    "SCRIPT_FILENAME": _script_path,
    "RUNTIME_MEMORY_SIZE": _memory_usage,
    "RUNTIME_DEBUG_BACKTRACE": _backtrace,
}


def resolve(key: str, entries: Mapping[str, Any] | None = None) -> Any:
    """Compute the value of a lazily resolved entry.

    Args:
        key: Entry name.
        entries: The registry's merged entries. ``PYTHON_EXECUTABLE`` reads
            the shell-provided ``_`` entry from here before falling back to
            ``sys.executable``.

    Returns:
        The computed value, or None for unknown keys and failed probes.
    """
    if key == "PYTHON_EXECUTABLE":
        launcher = entries.get("_") if entries else None
        if isinstance(launcher, str) and launcher:
            return launcher
        return sys.executable or None

    probe = PROBES.get(key)
    if probe is None:
        return None
    try:
        return probe()
    except (OSError, psutil.Error) as e:
        logger.debug("Probe for %s failed: %s", key, e)
        return None
