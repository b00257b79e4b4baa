"""
Progress Tracker Service
========================

Purpose
-------
Single mutation entry point for a UI layer. Every change to the progress
aggregate goes through here, one at a time, behind one `asyncio.Lock`.

Domain
------
- Daily quest completion and manual daily reset
- Main quest step completion, completion bonus and full reset
- Avatar, profile and settings updates
- Progress summary (level, reward, motivational message, counts)
- Startup restore from durable storage

Flow of a mutation
------------------
1. Take the lock.
2. Apply the change through the `QuestStateMachine` or the aggregate.
3. Drain the aggregate's domain events and hand a snapshot to the ordered
   writer (fire-and-forget).
4. Release the lock, then publish the drained events on the `EventBus`, so
   listeners may call back into the tracker.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, TypeVar

from lifequest.core.logging.logger import LogContext
from lifequest.domain.models.base import DomainValidationError
from lifequest.domain.models.profile import TrackerSettings, UserProfile
from lifequest.domain.models.progress_state import ProgressState
from lifequest.domain.models.quest import DailyQuest, MainQuest
from lifequest.modules.daily.reset_scheduler import DailyResetScheduler, ResetOutcome
from lifequest.modules.quests.catalog import ALL_CATEGORIES
from lifequest.modules.quests.state_machine import QuestStateMachine
from lifequest.modules.shared.base_service import BaseService
from lifequest.modules.shared.exceptions import InvalidOperationError, NotFoundError

if TYPE_CHECKING:
    from logging import Logger

    from lifequest.core.config.manager import ConfigManager
    from lifequest.core.event.bus import EventBus
    from lifequest.modules.persistence.coordinator import PersistenceCoordinator
    from lifequest.modules.progression.calculator import ProgressionCalculator

T = TypeVar("T")

PROFILE_UPDATED = "profile.updated"
SETTINGS_UPDATED = "settings.updated"


class ProgressTrackerService(BaseService):
    """
    Serialized access to one user's progress.

    Public Methods
    --------------
    - load() -> Restore saved progress at startup
    - complete_daily_quest() -> Complete a daily quest, award its XP
    - toggle_step() -> Complete a main-quest step, award step XP and bonus
    - reset_all_main_quests() / reset_daily_quests() -> Explicit resets
    - filter_main_quests() / filter_daily_quests() -> Category filters
    - get_progress_summary() / get_main_quest_summary() -> Read models
    - select_avatar() / update_profile() / update_settings()
    - start_daily_reset() / shutdown()
    """

    def __init__(
        self,
        state: ProgressState,
        calculator: ProgressionCalculator,
        coordinator: PersistenceCoordinator,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
    ) -> None:
        super().__init__(config_manager, event_bus, logger)
        self.state = state
        self.calculator = calculator
        self.coordinator = coordinator
        self.state_machine = QuestStateMachine(state, step_xp=calculator.step_xp)
        self.lock = asyncio.Lock()
        self._scheduler: Optional[DailyResetScheduler] = None
        self._closed = False

    # ========================================================================
    # INTERNALS
    # ========================================================================

    async def _mutate(
        self,
        operation: str,
        change: Callable[[], T],
        *,
        quest_id: Optional[Any] = None,
        persist: bool = True,
    ) -> T:
        async with LogContext(action=operation, quest_id=quest_id, component="tracker"):
            async with self.lock:
                if self._closed:
                    raise InvalidOperationError(operation, "tracker is shut down")
                result = change()
                events = self.state.clear_domain_events()
                if persist and events:
                    self.coordinator.save(self.state)
            await self.publish_domain_events(events)

            if events:
                self.log_operation(operation, event_count=len(events), total_xp=self.state.profile.total_xp)
        return result

    # ========================================================================
    # STARTUP
    # ========================================================================

    async def load(self) -> bool:
        """
        Restore saved progress into the live state.

        Returns False, with the live defaults untouched, when nothing usable
        was stored.
        """
        async with LogContext(action="load", component="tracker"):
            async with self.lock:
                restored = await self.coordinator.load(self.state)
                self.state.clear_domain_events()
            self.log_operation("load", restored=restored, total_xp=self.state.profile.total_xp)
        return restored

    def create_reset_scheduler(self, **overrides: Any) -> DailyResetScheduler:
        """Scheduler sharing this tracker's lock; changes are saved and published."""
        self._scheduler = DailyResetScheduler(
            self.state,
            self.state_machine,
            lock=self.lock,
            on_change=self._after_reset_check,
            **overrides,
        )
        return self._scheduler

    async def _after_reset_check(self, outcome: ResetOutcome) -> None:
        async with self.lock:
            events = self.state.clear_domain_events()
            self.coordinator.save(self.state)
        await self.publish_domain_events(events)
        self.log_operation("daily_reset", outcome=outcome.value, date_key=self.state.last_reset_date)

    async def start_daily_reset(self) -> DailyResetScheduler:
        """Run one check now (initialising the reset date on first launch), then start the loop."""
        scheduler = self._scheduler or self.create_reset_scheduler()
        await scheduler.run_check()
        scheduler.start()
        return scheduler

    async def shutdown(self) -> None:
        """Stop the reset loop and flush pending saves; later mutations are refused."""
        self._closed = True
        if self._scheduler is not None:
            await self._scheduler.stop()
        await self.coordinator.close()
        self.log_operation("shutdown", total_xp=self.state.profile.total_xp)

    # ========================================================================
    # QUESTS
    # ========================================================================

    async def complete_daily_quest(self, quest_id: int) -> Optional[DailyQuest]:
        """Complete a daily quest; None when unknown or already completed."""
        return await self._mutate(
            "complete_daily_quest",
            lambda: self.state_machine.complete_daily_quest(quest_id),
            quest_id=quest_id,
        )

    async def toggle_step(self, quest_id: str, step_id: str) -> Optional[MainQuest]:
        """Complete a main-quest step; None when unknown or already completed."""
        return await self._mutate(
            "toggle_step",
            lambda: self.state_machine.toggle_step(quest_id, step_id),
            quest_id=quest_id,
        )

    async def reset_all_main_quests(self) -> int:
        return await self._mutate("reset_all_main_quests", self.state_machine.reset_all_main_quests)

    async def reset_daily_quests(self) -> int:
        """Manual re-arm of daily quests; the stored reset date is unchanged."""
        return await self._mutate("reset_daily_quests", self.state_machine.reset_daily_quests)

    def filter_main_quests(self, category: str = ALL_CATEGORIES) -> List[MainQuest]:
        return QuestStateMachine.filter_by_category(self.state.main_quests, category)

    def filter_daily_quests(self, category: str = ALL_CATEGORIES) -> List[DailyQuest]:
        return QuestStateMachine.filter_by_category(self.state.daily_quests, category)

    # ========================================================================
    # PROFILE & SETTINGS
    # ========================================================================

    async def select_avatar(self, avatar: str) -> UserProfile:
        """Set the avatar; the profile is the only place it is kept."""
        return await self.update_profile(avatar=avatar)

    async def update_profile(self, **changes: Any) -> UserProfile:
        """
        Change editable profile fields (name, avatar, streak, mood, mood_text).

        Raises:
            InvalidOperationError: Unknown field or invalid value
        """

        def change() -> UserProfile:
            try:
                profile = self.state.profile.with_changes(**changes)
            except DomainValidationError as exc:
                raise InvalidOperationError("update_profile", exc.message) from exc
            self.state.set_profile(profile)
            self.state.add_domain_event(PROFILE_UPDATED, {"fields": sorted(changes)})
            return profile

        return await self._mutate("update_profile", change)

    async def update_settings(self, **changes: Any) -> TrackerSettings:
        """
        Change settings flags or the theme.

        Raises:
            InvalidOperationError: Unknown key, non-bool flag or unknown theme
        """

        def change() -> TrackerSettings:
            try:
                settings = self.state.settings.updated(**changes)
            except DomainValidationError as exc:
                raise InvalidOperationError("update_settings", exc.message) from exc
            self.state.set_settings(settings)
            self.state.add_domain_event(SETTINGS_UPDATED, {"settings": settings.to_dict()})
            return settings

        return await self._mutate("update_settings", change)

    # ========================================================================
    # READ MODELS
    # ========================================================================

    def get_progress_summary(self) -> Dict[str, Any]:
        """Everything the profile screen shows, derived from `total_xp`."""
        profile = self.state.profile
        snapshot = self.calculator.snapshot(profile.total_xp)
        return {
            "profile": profile.to_dict(),
            "progression": snapshot.to_dict(),
            "motivational_message": self.calculator.motivational_message(profile.total_xp),
            "daily_completed": self.state.completed_daily_count(),
            "daily_total": len(self.state.daily_quests),
            "main_completed": self.state.completed_main_count(),
            "main_total": len(self.state.main_quests),
            "completed_quests": sorted(self.state.completed_quests),
            "last_reset_date": self.state.last_reset_date,
            "settings": self.state.settings.to_dict(),
        }

    def get_main_quest_summary(self, quest_id: str) -> Dict[str, Any]:
        """
        Step counts, status and completion bonus of one main quest.

        Raises:
            NotFoundError: Unknown quest id
        """
        quest = self.state.find_main_quest(quest_id)
        if quest is None:
            raise NotFoundError("MainQuest", quest_id)
        return {
            "quest_id": quest.id,
            "title": quest.title,
            "category": quest.category,
            "completed_steps": quest.completed_steps,
            "total_steps": quest.total_steps,
            "progress": quest.progress,
            "status": quest.status.value,
            "completion_bonus": quest.xp_reward,
            "bonus_received": self.state.has_received_bonus(quest.id),
        }
