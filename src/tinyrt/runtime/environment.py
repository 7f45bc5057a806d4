"""Read-only runtime environment registry.

The registry merges four layers into one ordered mapping, lowest priority
first:

1. server/request variables (a CGI or WSGI environ)
2. process environment variables
3. compiled-in defaults (``ENV_DEFAULTS``)
4. custom defaults (allow-listed overrides)

A key keeps the position where it first appeared; later layers only
replace its value. After construction the key set is fixed and every
write or delete raises :class:`ImmutableWriteError`. Entries stored as
``UNRESOLVED`` are computed on first read and cached in place, whether
read by key or through the cursor.

Usage:
    from tinyrt.runtime import Environment

    env = Environment(interactive=True)
    env["RUNTIME_MODE"]        # RuntimeMode.CONSOLE
    env["PID"]                 # resolved and cached on first access

    env.rewind()
    while env.valid():
        print(env.key(), env.current())
        env.next()

The registry is meant to be owned by a single execution context. The
cursor is shared per instance and the lazy cache is unguarded, so threads
should each build their own registry.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Mapping
from typing import Any

from ..observability.logger import EventType, scrub_for_log
from ..utils.errors import ImmutableWriteError
from .defaults import ENV_DEFAULTS, CustomDefaults, get_custom_defaults, set_custom_defaults
from .mode import RuntimeMode, detect_runtime_mode
from .probes import UNRESOLVED, resolve
from .sink import EnvironmentSink

logger = logging.getLogger(__name__)


class Environment:
    """Ordered, immutable, lazily populated view of the runtime environment.

    Supports keyed lookup (``env[key]``, :meth:`get`), membership
    (``key in env``), size (``len(env)``, :meth:`count`), a forward cursor
    (:meth:`rewind`, :meth:`valid`, :meth:`key`, :meth:`current`,
    :meth:`next`) and ordinary Python iteration over keys.
    """

    def __init__(
        self,
        server: Mapping[str, Any] | None = None,
        environ: Mapping[str, Any] | None = None,
        request: Mapping[str, Any] | None = None,
        interactive: bool | None = None,
        defaults: CustomDefaults | None = None,
        sink: EnvironmentSink | None = None,
    ) -> None:
        """Merge the configuration layers and detect the runtime mode.

        Args:
            server: Server/request variables. None when no request is served.
            environ: Process environment variables. Defaults to a snapshot
                of ``os.environ``.
            request: Decoded request fields, inspected for the RPC marker.
            interactive: Explicit batch/interactive signal. Derived from
                ``server`` when None.
            defaults: Custom defaults for this registry. Defaults to the
                process-wide store.
            sink: Receives the merged mapping once it is built.
        """
        if environ is None:
            environ = dict(os.environ)
        if defaults is None:
            defaults = get_custom_defaults()

        entries: dict[str, Any] = {}
        entries.update(server or {})
        entries.update(environ)
        entries.update(ENV_DEFAULTS)
        entries.update(defaults.as_dict())

        mode = detect_runtime_mode(server, request, interactive)
        entries["RUNTIME_MODE"] = entries[f"RUNTIME_MODE_{mode.name}"]

        if sink is not None:
            sink.publish(entries)

        self._entries = entries
        self._keys: tuple[str, ...] = tuple(entries)
        self._position = 0
        self._mode = mode

        logger.debug(
            "Environment built in %s mode with %d entries",
            mode.value,
            len(self._keys),
            extra={"event_type": EventType.ENVIRONMENT_BUILT.value},
        )

    # ------------------------------------------------------------------
    # Static configuration
    # ------------------------------------------------------------------

    @staticmethod
    def set_custom_defaults(values: Mapping[str, Any]) -> None:
        """Apply allow-listed overrides to registries constructed later."""
        set_custom_defaults(values)

    # ------------------------------------------------------------------
    # Keyed access
    # ------------------------------------------------------------------

    def _lookup(self, key: str) -> Any:
        value = self._entries[key]
        if value is UNRESOLVED:
            value = resolve(key, self._entries)
            self._entries[key] = value
            logger.debug(
                "Resolved %s -> %s",
                key,
                scrub_for_log(value),
                extra={"event_type": EventType.VALUE_RESOLVED.value},
            )
        return value

    def __getitem__(self, key: str) -> Any:
        if key not in self._entries:
            return None
        return self._lookup(key)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for *key*, or *default* if the key is absent."""
        if key not in self._entries:
            return default
        return self._lookup(key)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def _reject(self, key: Any, operation: str) -> ImmutableWriteError:
        error = ImmutableWriteError(key, operation)
        error.log(logging.WARNING, event_type=EventType.WRITE_REJECTED.value)
        return error

    def __setitem__(self, key: str, value: Any) -> None:
        raise self._reject(key, "set")

    def __delitem__(self, key: str) -> None:
        raise self._reject(key, "unset")

    def set(self, key: str, value: Any) -> None:
        """Always raises :class:`ImmutableWriteError`."""
        raise self._reject(key, "set")

    def unset(self, key: str) -> None:
        """Always raises :class:`ImmutableWriteError`."""
        raise self._reject(key, "unset")

    # ------------------------------------------------------------------
    # Size
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._keys)

    def count(self) -> int:
        """Return the number of keys fixed at construction."""
        return len(self._keys)

    # ------------------------------------------------------------------
    # Forward cursor
    # ------------------------------------------------------------------

    def rewind(self) -> None:
        """Move the cursor back to the first entry."""
        self._position = 0

    def valid(self) -> bool:
        """Return True while the cursor references an entry."""
        return self._position < len(self._keys)

    def key(self) -> str | None:
        """Return the key under the cursor, or None past the end."""
        if not self.valid():
            return None
        return self._keys[self._position]

    def current(self) -> Any:
        """Return the value under the cursor, resolving it if needed."""
        if not self.valid():
            return None
        return self._lookup(self._keys[self._position])

    def next(self) -> None:
        """Advance the cursor by one entry."""
        if self.valid():
            self._position += 1

    # ------------------------------------------------------------------
    # Python iteration
    # ------------------------------------------------------------------

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys)

    def keys(self) -> list[str]:
        return list(self._keys)

    def values(self) -> list[Any]:
        return [self._lookup(key) for key in self._keys]

    def items(self) -> list[tuple[str, Any]]:
        return [(key, self._lookup(key)) for key in self._keys]

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def mode(self) -> RuntimeMode:
        """Execution mode detected at construction."""
        return self._mode

    def is_resolved(self, key: str) -> bool:
        """Return True if *key* exists and its value has been computed."""
        return key in self._entries and self._entries[key] is not UNRESOLVED

    def to_dict(self, resolve: bool = False) -> dict[str, Any]:
        """Return an ordered plain-dict copy of the entries.

        Args:
            resolve: Compute every pending entry first. Otherwise pending
                entries appear as None.
        """
        if resolve:
            return dict(self.items())
        return {
            key: (None if value is UNRESOLVED else value)
            for key, value in self._entries.items()
        }

    def __repr__(self) -> str:
        return f"<Environment mode={self._mode.value} entries={len(self._keys)}>"
