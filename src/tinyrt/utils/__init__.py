"""
tinyrt utility modules.

Provides:
- Structured error codes and exceptions
- Environment variable parsing helpers
"""

from .env import get_env_bool, get_env_int, get_env_str
from .errors import (
    ConfigurationError,
    ErrorCode,
    ErrorDetails,
    ImmutableWriteError,
    TinyRTError,
    create_error_response,
    log_error,
)

__all__ = [
    "get_env_bool",
    "get_env_int",
    "get_env_str",
    "ConfigurationError",
    "ErrorCode",
    "ErrorDetails",
    "ImmutableWriteError",
    "TinyRTError",
    "create_error_response",
    "log_error",
]
