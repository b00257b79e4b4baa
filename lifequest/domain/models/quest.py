"""
Quest domain models: daily quests, main quests and their steps.

Purpose
-------
Immutable value objects describing quests. Transitions return new objects;
the `ProgressState` aggregate swaps them in, so a reader never observes a
half-applied change.

Invariants
----------
- Step ids are unique within a quest; steps are never reordered or removed.
- `0 <= completed_steps <= total_steps`.
- `progress` is derived from the steps (round half up to an integer
  percent) and never stored independently.
- `xp_reward` of a main quest is the one-time completion bonus only.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from lifequest.domain.models.base import (
    DomainValidationError,
    validate_not_empty,
    validate_positive,
)


def round_half_up_percent(done: int, total: int) -> int:
    """
    Integer percentage of `done / total`, rounding .5 up; 0 when total is 0.

    >>> round_half_up_percent(1, 20)
    5
    >>> round_half_up_percent(1, 8)
    13
    """
    if total <= 0:
        return 0
    return (200 * done + total) // (2 * total)


def _reward_from(data: Mapping[str, Any]) -> Any:
    # "xp" is the key used by snapshots written before the rename.
    return data.get("xp_reward", data.get("xp"))


class QuestStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


# ============================================================================
# STEPS
# ============================================================================


@dataclass(frozen=True)
class Step:
    """One ordered mini-task of a main quest."""

    id: str
    text: str
    completed: bool = False

    def __post_init__(self) -> None:
        validate_not_empty(self.id, "step.id")

    def mark_completed(self) -> Step:
        return replace(self, completed=True)

    def reset(self) -> Step:
        return replace(self, completed=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "text": self.text, "completed": self.completed}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Step:
        if not isinstance(data, Mapping):
            raise DomainValidationError("step must be an object", field="step")
        return cls(
            id=data.get("id", ""),
            text=str(data.get("text", "")),
            completed=data.get("completed") is True,
        )


# ============================================================================
# MAIN QUESTS
# ============================================================================


@dataclass(frozen=True)
class MainQuest:
    """
    A long-running goal broken into ordered steps.

    Attributes
    ----------
    id : str
        Stable identifier, e.g. "career-1"
    xp_reward : int
        One-time bonus granted the first time every step is complete
    steps : Tuple[Step, ...]
        Ordered steps; ids unique within the quest
    """

    id: str
    title: str
    xp_reward: int
    category: str
    steps: Tuple[Step, ...] = ()
    description: str = ""
    icon: str = ""

    def __post_init__(self) -> None:
        validate_not_empty(self.id, "quest.id")
        validate_positive(self.xp_reward, "xp_reward")
        steps = tuple(self.steps)
        seen = set()
        for step in steps:
            if step.id in seen:
                raise DomainValidationError(
                    f"Duplicate step id {step.id!r} in quest {self.id!r}",
                    field="steps",
                )
            seen.add(step.id)
        object.__setattr__(self, "steps", steps)

    # ------------------------------------------------------------------ #
    # Derived values
    # ------------------------------------------------------------------ #

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def completed_steps(self) -> int:
        return sum(1 for step in self.steps if step.completed)

    @property
    def progress(self) -> int:
        return round_half_up_percent(self.completed_steps, self.total_steps)

    @property
    def is_complete(self) -> bool:
        # A quest without steps can never be completed.
        return self.total_steps > 0 and self.completed_steps == self.total_steps

    @property
    def status(self) -> QuestStatus:
        if self.is_complete:
            return QuestStatus.COMPLETE
        if self.completed_steps > 0:
            return QuestStatus.IN_PROGRESS
        return QuestStatus.NOT_STARTED

    def find_step(self, step_id: str) -> Optional[Step]:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #

    def with_step_completed(self, step_id: str) -> MainQuest:
        """Return a copy with `step_id` completed; the caller checks it exists."""
        return replace(
            self,
            steps=tuple(
                step.mark_completed() if step.id == step_id else step
                for step in self.steps
            ),
        )

    def with_steps_reset(self) -> MainQuest:
        return replace(self, steps=tuple(step.reset() for step in self.steps))

    def with_steps_from(self, other: MainQuest) -> MainQuest:
        """
        Copy completion flags from `other` onto matching step ids.

        Used to apply a persisted quest onto the shipped catalog entry.
        """
        done = {step.id for step in other.steps if step.completed}
        return replace(
            self,
            steps=tuple(
                step.mark_completed() if step.id in done else step
                for step in self.steps
            ),
        )

    # ------------------------------------------------------------------ #
    # Serialization
    # ------------------------------------------------------------------ #

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "icon": self.icon,
            "xp_reward": self.xp_reward,
            "category": self.category,
            # Courtesy copy for readers of the raw snapshot; ignored on restore.
            "progress": self.progress,
            "steps": [step.to_dict() for step in self.steps],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MainQuest:
        if not isinstance(data, Mapping):
            raise DomainValidationError("main quest must be an object", field="main_quests")
        raw_steps = data.get("steps") or []
        if not isinstance(raw_steps, list):
            raise DomainValidationError("steps must be a list", field="steps")
        return cls(
            id=data.get("id", ""),
            title=str(data.get("title", "")),
            xp_reward=_reward_from(data),
            category=str(data.get("category", "")),
            steps=tuple(Step.from_dict(step) for step in raw_steps),
            description=str(data.get("description", "")),
            icon=str(data.get("icon", "")),
        )


# ============================================================================
# DAILY QUESTS
# ============================================================================


@dataclass(frozen=True)
class DailyQuest:
    """A recurring quest, re-armed at every daily cutover."""

    id: int
    title: str
    xp_reward: int
    category: str
    emoji: str = ""
    completed: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.id, bool) or not isinstance(self.id, int):
            raise DomainValidationError("daily quest id must be an integer", field="id")
        validate_positive(self.xp_reward, "xp_reward")

    @property
    def status(self) -> QuestStatus:
        return QuestStatus.COMPLETE if self.completed else QuestStatus.NOT_STARTED

    def mark_completed(self) -> DailyQuest:
        return replace(self, completed=True)

    def reset(self) -> DailyQuest:
        return replace(self, completed=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "xp_reward": self.xp_reward,
            "category": self.category,
            "emoji": self.emoji,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DailyQuest:
        if not isinstance(data, Mapping):
            raise DomainValidationError("daily quest must be an object", field="daily_quests")
        return cls(
            id=data.get("id"),
            title=str(data.get("title", "")),
            xp_reward=_reward_from(data),
            category=str(data.get("category", "")),
            emoji=str(data.get("emoji", "")),
            completed=data.get("completed") is True,
        )


def count_completed(quests: Iterable[Any]) -> int:
    """Number of complete quests in a collection of daily or main quests."""
    total = 0
    for quest in quests:
        if isinstance(quest, MainQuest):
            total += quest.is_complete
        else:
            total += bool(quest.completed)
    return total
