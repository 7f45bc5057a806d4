"""
tinyrt CLI - inspect the runtime environment registry.

Commands:
- tinyrt info: Show framework version, interpreter and detected mode
- tinyrt env: Dump every registry entry in order
- tinyrt get KEY: Print one resolved entry
"""

import argparse
import json
import logging
import sys
from enum import Enum
from typing import Any

from tinyrt.config import apply_custom_defaults, load_custom_defaults
from tinyrt.observability import configure_logging
from tinyrt.runtime import Environment
from tinyrt.utils.env import get_env_bool, get_env_str
from tinyrt.utils.errors import ConfigurationError, create_error_response, log_error

logger = logging.getLogger(__name__)


def _format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, list):
        return f"[{len(value)} frames]"
    return str(value)


def _build_environment(args: argparse.Namespace) -> Environment:
    defaults = load_custom_defaults(getattr(args, "config", None))
    tick_line = getattr(args, "tick_line", None)
    if tick_line is not None:
        defaults.update({"RUNTIME_TICK_LINE": tick_line})
    apply_custom_defaults(defaults)
    return Environment()


def cmd_info(args: argparse.Namespace) -> int:
    """Show framework version, interpreter and detected mode."""
    env = _build_environment(args)

    print("=" * 60)
    print(f"{env['FRAMEWORK_NAME']} - Runtime Environment Registry")
    print("=" * 60)
    print()
    print(f"Version:     {env['FRAMEWORK_VERSION']}")
    print(f"Path:        {env['FRAMEWORK_PATH']}")
    print(f"Python:      {env['PYTHON_VERSION']} ({env['PYTHON_PLATFORM']})")
    print(f"Mode:        {_format_value(env['RUNTIME_MODE'])}")
    print(f"Tick line:   {env['RUNTIME_TICK_LINE']}")
    print(f"Entries:     {len(env)}")
    print()
    print("=" * 60)
    print("Run 'tinyrt env' to list every entry")
    print("=" * 60)
    return 0


def cmd_env(args: argparse.Namespace) -> int:
    """Dump the registry in insertion order."""
    env = _build_environment(args)

    if args.json:
        print(json.dumps(env.to_dict(resolve=args.resolve), indent=2, default=str))
        return 0

    env.rewind()
    while env.valid():
        key = env.key()
        if args.resolve or env.is_resolved(key):
            print(f"{key}={_format_value(env.current())}")
        else:
            print(f"{key}=<unresolved>")
        env.next()
    return 0


def cmd_get(args: argparse.Namespace) -> int:
    """Print one resolved entry; exit 1 if the key is absent."""
    env = _build_environment(args)

    if args.key not in env:
        print(f"Error: unknown key {args.key!r}", file=sys.stderr)
        return 1

    value = env[args.key]
    if args.json:
        print(json.dumps({args.key: value}, default=str))
    else:
        print(_format_value(value))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    from tinyrt import __version__

    parser = argparse.ArgumentParser(
        prog="tinyrt",
        description="tinyrt - Runtime Environment Registry CLI",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=get_env_str("TINYRT_LOG_LEVEL") or "WARNING",
        help="Logging level (default: WARNING, or TINYRT_LOG_LEVEL env var)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=get_env_bool("TINYRT_JSON_LOGGING"),
        help="Emit JSON log lines (or set TINYRT_JSON_LOGGING=1)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML file with an 'environment:' section of custom defaults",
    )
    parser.add_argument(
        "--tick-line",
        type=int,
        default=None,
        help="Override RUNTIME_TICK_LINE for this invocation",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("info", help="Show version, interpreter and mode")

    env_parser = subparsers.add_parser("env", help="List every registry entry")
    env_parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )
    env_parser.add_argument(
        "-r",
        "--resolve",
        action="store_true",
        help="Compute lazily resolved entries before printing",
    )

    get_parser = subparsers.add_parser("get", help="Print one entry")
    get_parser.add_argument("key", type=str, help="Entry name, e.g. HOSTNAME")
    get_parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level, json_logging=args.json_logs)

    try:
        if args.command == "info":
            return cmd_info(args)
        elif args.command == "env":
            return cmd_env(args)
        elif args.command == "get":
            return cmd_get(args)
    except ConfigurationError as e:
        log_error(e, additional_context={"command": args.command})
        print(json.dumps(create_error_response(e)), file=sys.stderr)
        return 2

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
