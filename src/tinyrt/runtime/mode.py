"""Execution mode detection.

A process runs in one of three modes:
- console: batch or interactive invocation (scripts, workers, shells)
- web: serving an ordinary HTTP request
- rpc: serving a request that carries the RPC method marker

Detection order:
1. An interactive/batch invocation is always CONSOLE.
2. A request whose ``FRPC_METHOD`` field, or whose transport-level
   ``REQUEST_METHOD``, equals ``FRPC_POST`` is RPC.
3. Anything else is WEB.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

RPC_METHOD_FIELD = "FRPC_METHOD"
RPC_METHOD_MARKER = "FRPC_POST"

# Server variables that only exist while a request is being served (CGI/WSGI).
REQUEST_MARKERS = ("REQUEST_METHOD", "GATEWAY_INTERFACE")


class RuntimeMode(str, Enum):
    """Execution modes exposed through the ``RUNTIME_MODE`` entry."""

    CONSOLE = "console"
    WEB = "web"
    RPC = "rpc"


def is_interactive_invocation(server: Mapping[str, Any] | None) -> bool:
    """Return True when no request is being served.

    Args:
        server: Server/request variables (a CGI or WSGI environ), if any.
    """
    if not server:
        return True
    return not any(marker in server for marker in REQUEST_MARKERS)


def is_rpc_request(
    server: Mapping[str, Any] | None, request: Mapping[str, Any] | None
) -> bool:
    """Return True when the request carries the RPC method marker."""
    if request and request.get(RPC_METHOD_FIELD) == RPC_METHOD_MARKER:
        return True
    return bool(server) and server.get("REQUEST_METHOD") == RPC_METHOD_MARKER


def detect_runtime_mode(
    server: Mapping[str, Any] | None = None,
    request: Mapping[str, Any] | None = None,
    interactive: bool | None = None,
) -> RuntimeMode:
    """Determine the execution mode of the current invocation.

    Args:
        server: Server/request variables.
        request: Decoded request fields (form/body parameters).
        interactive: Explicit invocation signal. When None it is derived
            from ``server`` via :func:`is_interactive_invocation`.

    Returns:
        RuntimeMode enum value.
    """
    if interactive is None:
        interactive = is_interactive_invocation(server)

    if interactive:
        return RuntimeMode.CONSOLE
    if is_rpc_request(server, request):
        return RuntimeMode.RPC
    return RuntimeMode.WEB
