"""
Base domain model classes for LifeQuest.

Purpose
-------
Provide the building blocks for rich domain models:

- `DomainEvent`: a recorded state change, drained by services and published
  on the EventBus.
- `ValueObject`: immutable, compared by attributes.
- `Entity`: identity plus a buffer of pending domain events.
- `AggregateRoot`: consistency boundary and single mutation entry point.
- Validators raising `DomainValidationError` for constructor-level
  invariant violations (negative XP, empty ids, ...).

Design Notes
------------
Domain models never touch infrastructure. They record what happened; the
tracker service decides when the events are published.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from lifequest.core.exceptions import ErrorSeverity
from lifequest.modules.shared.exceptions import LifeQuestException

# ============================================================================
# DOMAIN EVENTS
# ============================================================================


@dataclass
class DomainEvent:
    """
    A state change that other parts of the system may react to.

    Attributes
    ----------
    event_name : str
        Event name (e.g., "main_quest.completed")
    payload : Dict[str, Any]
        Event payload with relevant data
    occurred_at : datetime
        When the event occurred (UTC)
    """

    event_name: str
    payload: Dict[str, Any]
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ============================================================================
# VALUE OBJECT
# ============================================================================


class ValueObject(ABC):
    """
    Base class for immutable value objects.

    Subclasses set their attributes in `__init__`, call `_validate()` and
    expose no setters.
    """

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self) -> int:
        return hash(tuple(sorted((k, repr(v)) for k, v in self.__dict__.items())))

    def _validate(self) -> None:
        """Enforce invariants; raise `DomainValidationError` on violation."""


# ============================================================================
# ENTITY
# ============================================================================


class Entity(ABC):
    """
    Base class for entities with identity.

    Two entities with the same id are the same entity even if their
    attributes differ.
    """

    def __init__(self, entity_id: Any) -> None:
        self._id = entity_id
        self._domain_events: List[DomainEvent] = []

    @property
    def id(self) -> Any:
        """Get entity ID (immutable)."""
        return self._id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity) or type(other) is not type(self):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id))

    def add_domain_event(self, event_name: str, payload: Dict[str, Any]) -> None:
        """
        Record a domain event to be published later.

        Examples
        --------
        >>> state.add_domain_event("xp.awarded", {
        ...     "amount": 30,
        ...     "source": "quest_step",
        ...     "total_xp": state.profile.total_xp,
        ... })
        """
        self._domain_events.append(DomainEvent(event_name=event_name, payload=payload))

    def clear_domain_events(self) -> List[DomainEvent]:
        """Return all pending events and empty the buffer."""
        events = self._domain_events.copy()
        self._domain_events.clear()
        return events

    def get_pending_events(self) -> List[DomainEvent]:
        """Return pending events without clearing them."""
        return self._domain_events.copy()


# ============================================================================
# AGGREGATE ROOT
# ============================================================================


class AggregateRoot(Entity):
    """
    Base class for aggregate roots.

    All changes to the objects inside the aggregate go through the root, so
    the root can keep cross-object invariants (for example: a quest id is in
    the completed set only if all of its steps are complete).
    """


# ============================================================================
# DOMAIN MODEL VALIDATION
# ============================================================================


class DomainValidationError(LifeQuestException):
    """
    Raised when a domain object would be built in an invalid state.

    These are programming or data errors and are allowed to propagate.

    Parameters
    ----------
    message : str
        Human-readable error message
    field : Optional[str]
        Field name that failed validation (if applicable)
    """

    DEFAULT_SEVERITY = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE = False

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        self.field = field
        super().__init__(
            message,
            details={"field": field} if field else None,
            error_code="DOMAIN_VALIDATION",
        )


def _require_int(value: Any, field_name: str) -> None:
    # bool is an int subclass but never a valid amount
    if isinstance(value, bool) or not isinstance(value, int):
        raise DomainValidationError(
            f"{field_name} must be an integer, got {type(value).__name__}",
            field=field_name,
        )


def validate_positive(value: int, field_name: str) -> None:
    """Raise `DomainValidationError` unless `value` is an int > 0."""
    _require_int(value, field_name)
    if value <= 0:
        raise DomainValidationError(
            f"{field_name} must be positive, got {value}",
            field=field_name,
        )


def validate_non_negative(value: int, field_name: str) -> None:
    """Raise `DomainValidationError` unless `value` is an int >= 0."""
    _require_int(value, field_name)
    if value < 0:
        raise DomainValidationError(
            f"{field_name} must be non-negative, got {value}",
            field=field_name,
        )


def validate_not_empty(value: str, field_name: str) -> None:
    """Raise `DomainValidationError` if `value` is empty or whitespace-only."""
    if not isinstance(value, str) or not value.strip():
        raise DomainValidationError(
            f"{field_name} cannot be empty",
            field=field_name,
        )
