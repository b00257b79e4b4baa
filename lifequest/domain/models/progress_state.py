"""
ProgressState aggregate: the whole live state of one user.

Holds the profile, both quest collections, the set of main quests that
already paid their completion bonus, the last daily reset date and the
user's settings. Every mutation goes through this root so the
cross-object invariants hold:

- a main quest id is in `completed_quests` only if it exists;
- `profile.total_xp` changes only through `award_xp`;
- `last_reset_date` is empty or a `YYYY-MM-DD` key.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple

from lifequest.domain.models.base import AggregateRoot, DomainValidationError
from lifequest.domain.models.profile import TrackerSettings, UserProfile
from lifequest.domain.models.quest import DailyQuest, MainQuest, count_completed

DATE_KEY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

XP_AWARDED_EVENT = "xp.awarded"


class ProgressState(AggregateRoot):
    """
    Aggregate root for a single user's progress.

    Examples
    --------
    >>> state = ProgressState(daily_quests=catalog.daily, main_quests=catalog.main)
    >>> state.award_xp(50, source="daily_quest", quest_id=1)
    >>> state.profile.total_xp
    50
    """

    def __init__(
        self,
        profile: Optional[UserProfile] = None,
        daily_quests: Iterable[DailyQuest] = (),
        main_quests: Iterable[MainQuest] = (),
        completed_quests: Iterable[str] = (),
        last_reset_date: str = "",
        settings: Optional[TrackerSettings] = None,
        state_id: str = "local",
    ) -> None:
        super().__init__(state_id)
        self._profile = profile or UserProfile()
        self._daily_quests: Tuple[DailyQuest, ...] = tuple(daily_quests)
        self._main_quests: Tuple[MainQuest, ...] = tuple(main_quests)
        self._settings = settings or TrackerSettings()
        self._completed_quests: FrozenSet[str] = frozenset()
        self._last_reset_date = ""

        self._check_unique_ids()
        self.set_completed_quests(completed_quests)
        self.set_last_reset_date(last_reset_date)

    def _check_unique_ids(self) -> None:
        daily_ids = [quest.id for quest in self._daily_quests]
        if len(daily_ids) != len(set(daily_ids)):
            raise DomainValidationError("Duplicate daily quest id", field="daily_quests")
        main_ids = [quest.id for quest in self._main_quests]
        if len(main_ids) != len(set(main_ids)):
            raise DomainValidationError("Duplicate main quest id", field="main_quests")

    # ------------------------------------------------------------------ #
    # Read access
    # ------------------------------------------------------------------ #

    @property
    def profile(self) -> UserProfile:
        return self._profile

    @property
    def daily_quests(self) -> Tuple[DailyQuest, ...]:
        return self._daily_quests

    @property
    def main_quests(self) -> Tuple[MainQuest, ...]:
        return self._main_quests

    @property
    def completed_quests(self) -> FrozenSet[str]:
        return self._completed_quests

    @property
    def last_reset_date(self) -> str:
        return self._last_reset_date

    @property
    def settings(self) -> TrackerSettings:
        return self._settings

    def find_daily_quest(self, quest_id: int) -> Optional[DailyQuest]:
        for quest in self._daily_quests:
            if quest.id == quest_id:
                return quest
        return None

    def find_main_quest(self, quest_id: str) -> Optional[MainQuest]:
        for quest in self._main_quests:
            if quest.id == quest_id:
                return quest
        return None

    def completed_main_count(self) -> int:
        return count_completed(self._main_quests)

    def completed_daily_count(self) -> int:
        return count_completed(self._daily_quests)

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def replace_daily_quest(self, updated: DailyQuest) -> None:
        if self.find_daily_quest(updated.id) is None:
            raise DomainValidationError(
                f"Unknown daily quest {updated.id!r}", field="daily_quests"
            )
        self._daily_quests = tuple(
            updated if quest.id == updated.id else quest for quest in self._daily_quests
        )

    def replace_main_quest(self, updated: MainQuest) -> None:
        if self.find_main_quest(updated.id) is None:
            raise DomainValidationError(
                f"Unknown main quest {updated.id!r}", field="main_quests"
            )
        self._main_quests = tuple(
            updated if quest.id == updated.id else quest for quest in self._main_quests
        )

    def set_daily_quests(self, quests: Iterable[DailyQuest]) -> None:
        previous = self._daily_quests
        self._daily_quests = tuple(quests)
        try:
            self._check_unique_ids()
        except DomainValidationError:
            self._daily_quests = previous
            raise

    def set_main_quests(
        self,
        quests: Iterable[MainQuest],
        completed_quests: Optional[Iterable[str]] = None,
    ) -> None:
        """
        Replace the main quest collection and, optionally, the completed set.

        Both are swapped together, so readers never see steps reset while the
        completed set still lists the quest.
        """
        quests = tuple(quests)
        ids = [quest.id for quest in quests]
        if len(ids) != len(set(ids)):
            raise DomainValidationError("Duplicate main quest id", field="main_quests")

        completed = self._completed_quests
        if completed_quests is not None:
            completed = frozenset(completed_quests)
        completed = frozenset(quest_id for quest_id in completed if quest_id in set(ids))

        self._main_quests = quests
        self._completed_quests = completed

    def set_completed_quests(self, quest_ids: Iterable[str]) -> None:
        known = {quest.id for quest in self._main_quests}
        self._completed_quests = frozenset(
            quest_id for quest_id in quest_ids if quest_id in known
        )

    def mark_bonus_granted(self, quest_id: str) -> None:
        if self.find_main_quest(quest_id) is None:
            raise DomainValidationError(f"Unknown main quest {quest_id!r}", field="quest_id")
        self._completed_quests = self._completed_quests | {quest_id}

    def has_received_bonus(self, quest_id: str) -> bool:
        return quest_id in self._completed_quests

    def set_last_reset_date(self, date_key: str) -> None:
        if date_key and not DATE_KEY_PATTERN.match(date_key):
            raise DomainValidationError(
                f"last_reset_date must be YYYY-MM-DD, got {date_key!r}",
                field="last_reset_date",
            )
        self._last_reset_date = date_key

    def set_profile(self, profile: UserProfile) -> None:
        self._profile = profile

    def set_settings(self, settings: TrackerSettings) -> None:
        self._settings = settings

    def award_xp(self, amount: int, source: str, **context: Any) -> int:
        """
        Add `amount` XP to the profile and record an `xp.awarded` event.

        Returns the new XP total.
        """
        self._profile = self._profile.add_xp(amount)
        self.add_domain_event(
            XP_AWARDED_EVENT,
            {
                "amount": amount,
                "source": source,
                "total_xp": self._profile.total_xp,
                **context,
            },
        )
        return self._profile.total_xp

    def replace_with(self, other: ProgressState) -> None:
        """Adopt every field of `other` in one step; pending events are kept."""
        self._profile = other.profile
        self._daily_quests = other.daily_quests
        self._main_quests = other.main_quests
        self._completed_quests = other.completed_quests
        self._last_reset_date = other.last_reset_date
        self._settings = other.settings

    def copy(self) -> ProgressState:
        """Detached copy without pending events. Quests are immutable, so shallow is enough."""
        return ProgressState(
            profile=replace(self._profile),
            daily_quests=self._daily_quests,
            main_quests=self._main_quests,
            completed_quests=self._completed_quests,
            last_reset_date=self._last_reset_date,
            settings=self._settings,
            state_id=self.id,
        )

    def summary(self) -> Dict[str, Any]:
        return {
            "total_xp": self._profile.total_xp,
            "daily_completed": self.completed_daily_count(),
            "daily_total": len(self._daily_quests),
            "main_completed": self.completed_main_count(),
            "main_total": len(self._main_quests),
            "last_reset_date": self._last_reset_date,
        }

    def __repr__(self) -> str:
        return (
            f"<ProgressState id={self.id!r} total_xp={self._profile.total_xp} "
            f"daily={len(self._daily_quests)} main={len(self._main_quests)}>"
        )
