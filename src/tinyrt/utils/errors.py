"""Structured error codes and error handling for tinyrt.

Error codes follow the pattern: E{category}{number}
- E7xx: System/Platform errors
- E8xx: Configuration and environment registry errors

Example:
    >>> from tinyrt.utils.errors import ErrorCode, TinyRTError
    >>> raise TinyRTError(ErrorCode.E801_INVALID_CONFIG_FILE, "Top level must be a mapping")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    """Standardized error codes for tinyrt.

    Codes are grouped by category for easier identification.
    """

    # E7xx: System/Platform errors
    E700_SYSTEM_ERROR = "E700"

    # E8xx: Configuration errors
    E800_CONFIG_ERROR = "E800"
    E801_INVALID_CONFIG_FILE = "E801"
    E802_CONFIG_READ_FAILED = "E802"

    # E81x: Environment registry errors
    E810_IMMUTABLE_WRITE = "E810"


# Default messages for error codes
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.E700_SYSTEM_ERROR: "System error",
    ErrorCode.E800_CONFIG_ERROR: "Configuration error",
    ErrorCode.E801_INVALID_CONFIG_FILE: "Invalid configuration file format",
    ErrorCode.E802_CONFIG_READ_FAILED: "Configuration file could not be read",
    ErrorCode.E810_IMMUTABLE_WRITE: "Environment registry is read-only",
}


@dataclass
class ErrorDetails:
    """Structured error details for logging and CLI output.

    Attributes:
        code: Error code enum value
        message: Human-readable error message
        details: Additional error details
        context: Context information (entry point, file path, etc.)
    """

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization.

        Returns:
            Dictionary representation of error details
        """
        result: dict[str, Any] = {
            "error_code": self.code.value,
            "message": self.message,
        }

        if self.details:
            result["details"] = self.details

        if self.context:
            result["context"] = self.context

        return result

    def to_log_dict(self) -> dict[str, Any]:
        """Convert to dictionary suitable for structured logging.

        Returns:
            Dictionary for logging with flattened structure
        """
        log_dict: dict[str, Any] = {
            "error_code": self.code.value,
            "error_message": self.message,
        }

        for key, value in self.details.items():
            log_dict[f"detail_{key}"] = value

        for key, value in self.context.items():
            log_dict[f"ctx_{key}"] = value

        return log_dict


class TinyRTError(Exception):
    """Base exception class for tinyrt errors with structured error codes.

    Example:
        >>> try:
        ...     raise TinyRTError(
        ...         ErrorCode.E801_INVALID_CONFIG_FILE,
        ...         "Expected a mapping under 'environment'",
        ...         details={"path": "runtime.yaml"}
        ...     )
        ... except TinyRTError as e:
        ...     print(e.error_details.to_dict())
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str | None = None,
        details: dict[str, Any] | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize tinyrt error.

        Args:
            code: Error code from ErrorCode enum
            message: Custom message (uses default if not provided)
            details: Additional error details
            context: Context information
        """
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, "Unknown error")
        self.error_details = ErrorDetails(
            code=code,
            message=self.message,
            details=details or {},
            context=context or {},
        )
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return string representation."""
        return f"[{self.code.value}] {self.message}"

    def log(self, level: int = logging.ERROR, event_type: str | None = None) -> None:
        """Log the error with structured details.

        Args:
            level: Logging level (default: ERROR)
            event_type: Optional event type tag for structured logs
        """
        extra = self.error_details.to_log_dict()
        if event_type is not None:
            extra["event_type"] = event_type
        logger.log(level, str(self), extra=extra)


# ---------------------------------------------------------------------------
# Specific exception classes
# ---------------------------------------------------------------------------


class ConfigurationError(TinyRTError):
    """Configuration error."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.E800_CONFIG_ERROR,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(code, message, **kwargs)


class ImmutableWriteError(TinyRTError, RuntimeError):
    """Raised on any attempt to set or remove an environment registry key."""

    def __init__(
        self,
        key: Any,
        operation: str = "set",
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        details: dict[str, Any] = kwargs.pop("details", {})
        details["key"] = key
        details["operation"] = operation
        self.key = key
        self.operation = operation
        super().__init__(
            ErrorCode.E810_IMMUTABLE_WRITE,
            message or f"Environment is read-only: cannot {operation} {key!r}",
            details=details,
            **kwargs,
        )


# ---------------------------------------------------------------------------
# Error reporting utilities
# ---------------------------------------------------------------------------


def log_error(
    error: TinyRTError | Exception,
    additional_context: dict[str, Any] | None = None,
) -> None:
    """Log an error with structured context.

    Args:
        error: The error to log
        additional_context: Additional context to include
    """
    if isinstance(error, TinyRTError):
        if additional_context:
            error.error_details.context.update(additional_context)
        error.log()
    else:
        extra: dict[str, Any] = {
            "error_code": ErrorCode.E700_SYSTEM_ERROR.value,
            "error_type": type(error).__name__,
        }
        if additional_context:
            extra.update(additional_context)
        logger.exception(str(error), extra=extra)


def create_error_response(
    error: TinyRTError | Exception,
    include_details: bool = True,
) -> dict[str, Any]:
    """Create a structured error payload for machine-readable output.

    Args:
        error: The error to convert
        include_details: Whether to include detailed error info

    Returns:
        Dictionary suitable for JSON output
    """
    if isinstance(error, TinyRTError):
        response = error.error_details.to_dict()
        if not include_details:
            response.pop("details", None)
            response.pop("context", None)
        return {"error": response}
    return {
        "error": {
            "error_code": ErrorCode.E700_SYSTEM_ERROR.value,
            "message": str(error) if include_details else "An unexpected error occurred",
        }
    }
