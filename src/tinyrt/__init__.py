"""
tinyrt - runtime environment registry.

Exposes merged runtime parameters (process metadata, host/platform
identifiers, framework constants and a few overridable tuning values)
through one read-only, lazily populated, ordered registry.

Public API:
-----------
- Environment: The registry
- RuntimeMode: Execution modes (console, web, rpc)
- CustomDefaults: Allow-listed overrides
- set_custom_defaults: Configure overrides for registries built later
- create_environment: Bootstrap factory that also publishes to os.environ
- ImmutableWriteError: Raised on any write or delete

Quick Start:
-----------
>>> from tinyrt import create_environment
>>> env = create_environment(publish=False)
>>> env["RUNTIME_MODE"]
<RuntimeMode.CONSOLE: 'console'>
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .runtime import (
    CustomDefaults,
    DictSink,
    Environment,
    EnvironmentSink,
    OsEnvironSink,
    RuntimeMode,
    get_custom_defaults,
    reset_custom_defaults,
    set_custom_defaults,
)
from .runtime.defaults import FRAMEWORK_VERSION
from .utils.errors import ConfigurationError, ErrorCode, ImmutableWriteError, TinyRTError

__version__ = FRAMEWORK_VERSION


def create_environment(
    server: Mapping[str, Any] | None = None,
    request: Mapping[str, Any] | None = None,
    interactive: bool | None = None,
    defaults: CustomDefaults | None = None,
    publish: bool = True,
) -> Environment:
    """
    Build the process environment registry.

    This is the recommended entry point for application bootstrap code.
    It reads ``os.environ`` and, unless ``publish`` is False, writes the
    merged view back so that other consumers of ``os.environ`` see it.

    Args:
        server: Server/request variables (CGI/WSGI environ) when serving a request
        request: Decoded request fields, inspected for the RPC marker
        interactive: Explicit batch/interactive signal (derived when None)
        defaults: Custom defaults (process-wide store when None)
        publish: Write scalar entries back into ``os.environ``

    Returns:
        Constructed Environment.

    Example:
        >>> from tinyrt import create_environment, set_custom_defaults
        >>> set_custom_defaults({"RUNTIME_TICK_LINE": 42})
        >>> env = create_environment(publish=False)
        >>> env["RUNTIME_TICK_LINE"]
        42
    """
    return Environment(
        server=server,
        request=request,
        interactive=interactive,
        defaults=defaults,
        sink=OsEnvironSink() if publish else None,
    )


__all__ = [
    "__version__",
    "ConfigurationError",
    "CustomDefaults",
    "DictSink",
    "Environment",
    "EnvironmentSink",
    "ErrorCode",
    "ImmutableWriteError",
    "OsEnvironSink",
    "RuntimeMode",
    "TinyRTError",
    "create_environment",
    "get_custom_defaults",
    "reset_custom_defaults",
    "set_custom_defaults",
]
