"""Runtime environment registry.

Public API:
-----------
- Environment: Read-only, lazily populated registry of runtime parameters
- RuntimeMode: Execution modes (console, web, rpc)
- CustomDefaults: Allow-listed overrides applied at construction
- set_custom_defaults / get_custom_defaults / reset_custom_defaults:
  Process-wide custom defaults store
- EnvironmentSink, OsEnvironSink, DictSink: Receivers of the merged view
"""

from .mode import (
    RPC_METHOD_FIELD,
    RPC_METHOD_MARKER,
    RuntimeMode,
    detect_runtime_mode,
    is_interactive_invocation,
    is_rpc_request,
)
from .probes import UNRESOLVED, resolve
from .defaults import (
    ENV_CUSTOM_KEYS,
    ENV_DEFAULTS,
    FRAMEWORK_NAME,
    FRAMEWORK_VERSION,
    CustomDefaults,
    get_custom_defaults,
    reset_custom_defaults,
    set_custom_defaults,
)
from .sink import DictSink, EnvironmentSink, OsEnvironSink, to_env_value
from .environment import Environment

__all__ = [
    "Environment",
    "RuntimeMode",
    "RPC_METHOD_FIELD",
    "RPC_METHOD_MARKER",
    "detect_runtime_mode",
    "is_interactive_invocation",
    "is_rpc_request",
    "UNRESOLVED",
    "resolve",
    "ENV_DEFAULTS",
    "ENV_CUSTOM_KEYS",
    "FRAMEWORK_NAME",
    "FRAMEWORK_VERSION",
    "CustomDefaults",
    "get_custom_defaults",
    "set_custom_defaults",
    "reset_custom_defaults",
    "EnvironmentSink",
    "OsEnvironSink",
    "DictSink",
    "to_env_value",
]
