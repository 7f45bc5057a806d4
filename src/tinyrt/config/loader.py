"""
Bootstrap loading of custom environment defaults.

Custom defaults can come from two places, lowest priority first:
1. The ``environment:`` mapping of a YAML file
2. Environment variables named ``TINYRT_<KEY>`` (e.g. ``TINYRT_RUNTIME_TICK_LINE``)

Only allow-listed keys survive; everything else is dropped by
:class:`~tinyrt.runtime.CustomDefaults`.

Usage:
    from tinyrt.config import load_custom_defaults
    from tinyrt.runtime import Environment

    env = Environment(defaults=load_custom_defaults("config/runtime.yaml"))
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from ..runtime.defaults import ENV_CUSTOM_KEYS, ENV_DEFAULTS, CustomDefaults, set_custom_defaults
from ..utils.env import get_env_int, get_env_str
from ..utils.errors import ConfigurationError, ErrorCode

logger = logging.getLogger(__name__)

ENV_PREFIX = "TINYRT_"
YAML_SECTION = "environment"


def load_custom_defaults_from_env(
    prefix: str = ENV_PREFIX,
    environ: Mapping[str, str] | None = None,
) -> CustomDefaults:
    """Build custom defaults from prefixed environment variables.

    Integer-valued keys are parsed with :func:`get_env_int`; invalid or
    negative values are logged and ignored.

    Args:
        prefix: Variable name prefix.
        environ: Variables to read (defaults to ``os.environ``).

    Returns:
        CustomDefaults holding the overrides found.
    """
    values: dict[str, Any] = {}
    for key in sorted(ENV_CUSTOM_KEYS):
        name = f"{prefix}{key}"
        if isinstance(ENV_DEFAULTS.get(key), int):
            parsed: Any = get_env_int(name, environ=environ)
        else:
            parsed = get_env_str(name, environ=environ)
        if parsed is not None:
            values[key] = parsed
    return CustomDefaults(values)


def load_custom_defaults_from_yaml(path: str | Path) -> CustomDefaults:
    """Build custom defaults from the ``environment:`` section of a YAML file.

    A missing file yields empty defaults.

    Args:
        path: YAML file path.

    Returns:
        CustomDefaults holding the overrides found.

    Raises:
        ConfigurationError: If the file cannot be read or is malformed.
    """
    path = Path(path)
    if not path.exists():
        logger.debug("No custom defaults file at %s", path)
        return CustomDefaults()

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            ErrorCode.E801_INVALID_CONFIG_FILE,
            f"Invalid YAML syntax in '{path}': {e}",
            details={"path": str(path)},
        ) from e
    except OSError as e:
        raise ConfigurationError(
            ErrorCode.E802_CONFIG_READ_FAILED,
            f"Error reading '{path}': {e}",
            details={"path": str(path)},
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            ErrorCode.E801_INVALID_CONFIG_FILE,
            f"Top level of '{path}' must be a mapping",
            details={"path": str(path)},
        )

    section = data.get(YAML_SECTION) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(
            ErrorCode.E801_INVALID_CONFIG_FILE,
            f"'{YAML_SECTION}' in '{path}' must be a mapping",
            details={"path": str(path), "section": YAML_SECTION},
        )

    return CustomDefaults(section)


def load_custom_defaults(
    path: str | Path | None = None,
    prefix: str = ENV_PREFIX,
    environ: Mapping[str, str] | None = None,
) -> CustomDefaults:
    """Load custom defaults from an optional YAML file, then the environment.

    Environment variables take precedence over the file.
    """
    defaults = load_custom_defaults_from_yaml(path) if path is not None else CustomDefaults()
    defaults.update(load_custom_defaults_from_env(prefix, environ).as_dict())
    return defaults


def apply_custom_defaults(defaults: CustomDefaults) -> None:
    """Copy *defaults* into the process-wide store."""
    set_custom_defaults(defaults.as_dict())
