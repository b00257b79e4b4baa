"""
Infrastructure exceptions for LifeQuest.

Purpose
-------
Define the structured exception hierarchy for infrastructure-level concerns:
storage media failures, database failures and configuration errors.

Design Notes
------------
- All infrastructure exceptions inherit from `LifeQuestInfrastructureException`.
- Each exception carries:
  - `message`: human-readable description
  - `details`: additional structured context (dict)
  - `severity`: `ErrorSeverity` value for logging
  - `is_retryable`: whether the operation can be retried
  - `error_code`: short, stable identifier for programmatic use
- Storage errors never reach callers of the durable store; they are raised by
  individual media and absorbed by the fallback chain.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels for logging."""

    DEBUG = "debug"  # Expected, not concerning (e.g., repeated taps)
    INFO = "info"  # Normal operation (e.g., validation failures)
    WARNING = "warning"  # Concerning but handled (e.g., medium fallback)
    ERROR = "error"  # Unexpected errors requiring attention
    CRITICAL = "critical"  # Misconfiguration preventing startup


class LifeQuestInfrastructureException(Exception):
    """
    Base exception for all LifeQuest infrastructure-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling

    Example:
        >>> raise LifeQuestInfrastructureException(
        ...     "Backup directory is read-only",
        ...     {"path": "/data/backup"}
        ... )
    """

    # Default severity and retry behavior (subclasses can override)
    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.is_retryable: bool = (
            is_retryable if is_retryable is not None else self.DEFAULT_RETRYABLE
        )
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{details_str}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"severity={self.severity.value!r}, "
            f"is_retryable={self.is_retryable!r}"
            ")"
        )


class ConfigurationError(LifeQuestInfrastructureException):
    """
    Raised when a configuration key is invalid or missing.

    Args:
        config_key: The configuration key that has issues
        message: Description of the configuration problem
    """

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL
    DEFAULT_RETRYABLE = False

    def __init__(self, config_key: str, message: str) -> None:
        self.config_key = config_key
        error_message = f"Configuration error for {config_key}: {message}"
        super().__init__(
            error_message,
            details={
                "config_key": config_key,
                "message": message,
            },
            error_code="CONFIG_ERROR",
        )


class DatabaseError(LifeQuestInfrastructureException):
    """
    Raised when database operations fail.

    Args:
        operation: Description of the database operation that failed
        original_error: The underlying database exception
    """

    DEFAULT_SEVERITY = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE = True

    def __init__(self, operation: str, original_error: Exception) -> None:
        self.operation = operation
        self.original_error = original_error
        message = f"Database error during {operation}: {str(original_error)}"
        super().__init__(
            message,
            details={
                "operation": operation,
                "error": str(original_error),
                "error_type": type(original_error).__name__,
            },
            error_code="DATABASE_ERROR",
        )


class StorageUnavailableError(LifeQuestInfrastructureException):
    """
    Raised by a storage medium that cannot complete a read or write.

    Typical causes: database file locked or missing, backup directory not
    writable, disk quota exceeded, medium explicitly disabled.

    Args:
        medium: Name of the medium that failed
        operation: "read" or "write"
        key: Storage key involved
        original_error: Optional underlying exception
    """

    DEFAULT_SEVERITY = ErrorSeverity.WARNING
    DEFAULT_RETRYABLE = True

    def __init__(
        self,
        medium: str,
        operation: str,
        key: str,
        original_error: Optional[Exception] = None,
    ) -> None:
        self.medium = medium
        self.operation = operation
        self.key = key
        self.original_error = original_error
        reason = f": {original_error}" if original_error is not None else ""
        super().__init__(
            f"Storage medium '{medium}' failed to {operation} '{key}'{reason}",
            details={
                "medium": medium,
                "operation": operation,
                "key": key,
                "error_type": (
                    type(original_error).__name__ if original_error is not None else None
                ),
            },
            error_code="STORAGE_UNAVAILABLE",
        )


# Utility functions for exception handling patterns


def is_transient_error(exc: Exception) -> bool:
    """
    Check if an exception represents a transient error that can be retried.

    Args:
        exc: Exception to check

    Returns:
        True if error is retryable, False otherwise.
    """
    if isinstance(exc, LifeQuestInfrastructureException):
        return exc.is_retryable
    return False


def get_error_severity(exc: Exception) -> ErrorSeverity:
    """
    Get the severity level of an exception for logging.

    Args:
        exc: Exception to check

    Returns:
        ErrorSeverity level.
    """
    if isinstance(exc, LifeQuestInfrastructureException):
        return exc.severity
    return ErrorSeverity.ERROR  # Default for unknown exceptions
