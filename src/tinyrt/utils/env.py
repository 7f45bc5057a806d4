"""Environment variable parsing helpers."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

_logger = logging.getLogger(__name__)


def get_env_str(*keys: str, environ: Mapping[str, str] | None = None) -> str | None:
    """Return the first non-empty string environment variable."""
    source = os.environ if environ is None else environ
    for key in keys:
        value = source.get(key)
        if value:
            return value
    return None


def get_env_int(*keys: str, environ: Mapping[str, str] | None = None) -> int | None:
    """Parse the first available integer environment variable.

    Ignores invalid or negative values, logging a warning for invalid input.
    """
    source = os.environ if environ is None else environ
    for key in keys:
        value = source.get(key)
        if value is None:
            continue
        try:
            parsed = int(value)
        except ValueError:
            _logger.warning("Invalid int for %s=%r; ignoring.", key, value)
            continue
        if parsed < 0:
            _logger.warning("Negative value for %s=%r; ignoring.", key, value)
            continue
        return parsed
    return None


def get_env_bool(
    key: str, default: bool = False, environ: Mapping[str, str] | None = None
) -> bool:
    """Get boolean from environment."""
    source = os.environ if environ is None else environ
    val = source.get(key)
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")
