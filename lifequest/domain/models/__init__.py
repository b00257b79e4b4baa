"""
Domain models for LifeQuest.
"""

from lifequest.domain.models.base import (
    AggregateRoot,
    DomainEvent,
    DomainValidationError,
    Entity,
    ValueObject,
    validate_non_negative,
    validate_not_empty,
    validate_positive,
)
from lifequest.domain.models.profile import Theme, TrackerSettings, UserProfile
from lifequest.domain.models.progress_state import ProgressState
from lifequest.domain.models.quest import (
    DailyQuest,
    MainQuest,
    QuestStatus,
    Step,
    round_half_up_percent,
)

__all__ = [
    "AggregateRoot",
    "DomainEvent",
    "DomainValidationError",
    "Entity",
    "ValueObject",
    "validate_positive",
    "validate_non_negative",
    "validate_not_empty",
    "UserProfile",
    "TrackerSettings",
    "Theme",
    "Step",
    "MainQuest",
    "DailyQuest",
    "QuestStatus",
    "round_half_up_percent",
    "ProgressState",
]
