"""
Domain exceptions for LifeQuest.

Purpose
-------
Define the structured, domain-specific exception hierarchy for the progress
engine. Services raise these for rule violations (unknown quests, repeated
completions, corrupt snapshots). The tracker service converts the expected
ones into no-op return values so a UI layer never has to catch them.

Design Notes
------------
- All domain exceptions inherit from `LifeQuestException`.
- Each exception carries:
  - `message`: human-readable description
  - `details`: additional structured context (dict-like)
  - `severity`: `ErrorSeverity` value for logging
  - `is_retryable`: whether the operation can be retried
  - `error_code`: short, stable identifier for programmatic use
- Severity is shared with the infrastructure hierarchy in
  `lifequest.core.exceptions` so log handlers treat both the same way.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from lifequest.core.exceptions import ErrorSeverity, get_error_severity


class LifeQuestException(Exception):
    """
    Base exception for all LifeQuest domain-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error (dict-like)
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling

    Example:
        >>> raise LifeQuestException(
        ...     "Quest catalog is empty",
        ...     {"source": "quests.yaml"}
        ... )
    """

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


class NotFoundError(LifeQuestException):
    """
    Raised when a quest or step id does not exist in the live state.

    Args:
        resource_type: Type of resource (e.g., "DailyQuest", "Step")
        identifier: Optional identifier for the missing resource
    """

    DEFAULT_SEVERITY = ErrorSeverity.DEBUG
    DEFAULT_RETRYABLE = False

    def __init__(self, resource_type: str, identifier: Optional[Any] = None) -> None:
        self.resource_type = resource_type
        self.identifier = identifier

        if identifier is not None:
            message = f"{resource_type} not found: {identifier}"
        else:
            message = f"{resource_type} not found"

        super().__init__(
            message,
            details={
                "resource_type": resource_type,
                "identifier": identifier,
            },
            error_code=f"{resource_type.upper()}_NOT_FOUND",
        )


class InvalidTransitionError(LifeQuestException):
    """
    Raised when a completion transition is not allowed.

    Covers repeated completion of a daily quest or step. The tracker service
    turns this into a `None` return and logs it at DEBUG.

    Args:
        entity: Kind of entity (e.g., "daily_quest", "step")
        identifier: Id of the entity
        reason: Why the transition is rejected
    """

    DEFAULT_SEVERITY = ErrorSeverity.DEBUG
    DEFAULT_RETRYABLE = False

    def __init__(self, entity: str, identifier: Any, reason: str) -> None:
        self.entity = entity
        self.identifier = identifier
        self.reason = reason
        super().__init__(
            f"Invalid transition for {entity} {identifier!r}: {reason}",
            details={
                "entity": entity,
                "identifier": identifier,
                "reason": reason,
            },
            error_code="INVALID_TRANSITION",
        )


class AggregateValidationError(LifeQuestException):
    """
    Raised when a persisted snapshot fails structural validation.

    Restore is aborted and the live state stays untouched.

    Args:
        reasons: Human-readable list of validation failures
    """

    DEFAULT_SEVERITY = ErrorSeverity.WARNING
    DEFAULT_RETRYABLE = False

    def __init__(self, reasons: List[str]) -> None:
        self.reasons = list(reasons)
        super().__init__(
            f"Persisted snapshot is invalid: {'; '.join(self.reasons) or 'unknown'}",
            details={"reasons": self.reasons},
            error_code="AGGREGATE_INVALID",
        )


class InvalidOperationError(LifeQuestException):
    """
    Raised when a request violates a tracker rule.

    Args:
        action: Description of the invalid action
        reason: Explanation of why it's not allowed

    Example:
        >>> raise InvalidOperationError("update_settings", "unknown theme 'neon'")
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False

    def __init__(self, action: str, reason: str) -> None:
        self.action = action
        self.reason = reason
        super().__init__(
            f"Invalid operation '{action}': {reason}",
            details={
                "action": action,
                "reason": reason,
            },
            error_code=f"INVALID_{action.upper()}",
        )


def should_alert(exc: Exception) -> bool:
    """
    Determine if an exception should be logged at ERROR or above.

    Args:
        exc: Exception to check

    Returns:
        True if severity is ERROR or CRITICAL, False otherwise.
    """
    if isinstance(exc, LifeQuestException):
        severity = exc.severity
    else:
        severity = get_error_severity(exc)
    return severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
