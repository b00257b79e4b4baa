"""
Quest state machine: completion transitions and the XP they award.

Purpose
-------
Apply daily-quest completion, main-quest step completion and the two reset
operations to an injected `ProgressState`, recording domain events on the
aggregate for every change. The tracker service drains and publishes them.

Transitions
-----------
- Daily quest: not completed -> completed (+quest.xp_reward). Back to not
  completed only through the daily reset.
- Step: not completed -> completed (+step_xp). Back only through the full
  main-quest reset.
- Main quest: NOT_STARTED -> IN_PROGRESS -> COMPLETE, derived from steps.
  The first COMPLETE pays `quest.xp_reward` once; the quest id is then kept
  in the completed set until the full reset.

Unknown ids and repeated completions are no-ops: the public methods return
None and log at DEBUG. The strict `apply_*` variants raise instead.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

from lifequest.core.logging.logger import get_logger
from lifequest.domain.models.progress_state import ProgressState
from lifequest.domain.models.quest import DailyQuest, MainQuest
from lifequest.modules.progression.constants import STEP_XP
from lifequest.modules.quests.catalog import filter_by_category
from lifequest.modules.shared.exceptions import InvalidTransitionError, NotFoundError

logger = get_logger(__name__)

DAILY_QUEST_COMPLETED = "daily_quest.completed"
DAILY_QUEST_RESET = "daily_quest.reset"
STEP_COMPLETED = "main_quest.step_completed"
MAIN_QUEST_COMPLETED = "main_quest.completed"
COMPLETION_BONUS = "quest.completion_bonus"
MAIN_QUESTS_RESET = "main_quest.reset_all"


class QuestStateMachine:
    """
    Quest transitions over one `ProgressState`.

    Examples
    --------
    >>> machine = QuestStateMachine(state)
    >>> quest = machine.toggle_step("career-1", "c1-s1")
    >>> quest.progress
    5
    """

    def __init__(self, state: ProgressState, *, step_xp: int = STEP_XP) -> None:
        self.state = state
        self.step_xp = step_xp

    # ------------------------------------------------------------------ #
    # Daily quests
    # ------------------------------------------------------------------ #

    def apply_daily_completion(self, quest_id: int) -> DailyQuest:
        """
        Complete daily quest `quest_id` and award its XP.

        Raises:
            NotFoundError: Unknown quest id
            InvalidTransitionError: Quest already completed this cycle
        """
        quest = self.state.find_daily_quest(quest_id)
        if quest is None:
            raise NotFoundError("DailyQuest", quest_id)
        if quest.completed:
            raise InvalidTransitionError("daily_quest", quest_id, "already completed")

        updated = quest.mark_completed()
        self.state.replace_daily_quest(updated)
        self.state.add_domain_event(
            DAILY_QUEST_COMPLETED,
            {"quest_id": quest_id, "xp_reward": quest.xp_reward},
        )
        self.state.award_xp(quest.xp_reward, source="daily_quest", quest_id=quest_id)
        return updated

    def complete_daily_quest(self, quest_id: int) -> Optional[DailyQuest]:
        try:
            return self.apply_daily_completion(quest_id)
        except (NotFoundError, InvalidTransitionError) as exc:
            logger.debug("Daily quest completion ignored", extra={"quest_id": quest_id, "reason": exc.message})
            return None

    def reset_daily_quests(self) -> int:
        """Mark every daily quest not completed. XP is untouched. Returns how many were reset."""
        previously_completed = self.state.completed_daily_count()
        self.state.set_daily_quests(quest.reset() for quest in self.state.daily_quests)
        self.state.add_domain_event(
            DAILY_QUEST_RESET,
            {
                "quest_count": len(self.state.daily_quests),
                "previously_completed": previously_completed,
            },
        )
        return previously_completed

    # ------------------------------------------------------------------ #
    # Main quests
    # ------------------------------------------------------------------ #

    def apply_step_completion(self, quest_id: str, step_id: str) -> MainQuest:
        """
        Complete one step, award the step XP and, on first full completion,
        the quest's bonus.

        Raises:
            NotFoundError: Unknown quest or step id
            InvalidTransitionError: Step already completed
        """
        quest = self.state.find_main_quest(quest_id)
        if quest is None:
            raise NotFoundError("MainQuest", quest_id)
        step = quest.find_step(step_id)
        if step is None:
            raise NotFoundError("Step", f"{quest_id}/{step_id}")
        if step.completed:
            raise InvalidTransitionError("step", f"{quest_id}/{step_id}", "already completed")

        updated = quest.with_step_completed(step_id)
        self.state.replace_main_quest(updated)
        self.state.add_domain_event(
            STEP_COMPLETED,
            {
                "quest_id": quest_id,
                "step_id": step_id,
                "completed_steps": updated.completed_steps,
                "total_steps": updated.total_steps,
                "progress": updated.progress,
            },
        )
        self.state.award_xp(
            self.step_xp, source="quest_step", quest_id=quest_id, step_id=step_id
        )

        if updated.is_complete and not self.state.has_received_bonus(quest_id):
            self._grant_completion_bonus(updated)

        return updated

    def _grant_completion_bonus(self, quest: MainQuest) -> None:
        self.state.mark_bonus_granted(quest.id)
        self.state.add_domain_event(MAIN_QUEST_COMPLETED, {"quest_id": quest.id, "title": quest.title})
        self.state.add_domain_event(
            COMPLETION_BONUS, {"quest_id": quest.id, "xp_reward": quest.xp_reward}
        )
        self.state.award_xp(quest.xp_reward, source="completion_bonus", quest_id=quest.id)
        logger.info(
            "Main quest completed",
            extra={"quest_id": quest.id, "bonus_xp": quest.xp_reward},
        )

    def toggle_step(self, quest_id: str, step_id: str) -> Optional[MainQuest]:
        try:
            return self.apply_step_completion(quest_id, step_id)
        except (NotFoundError, InvalidTransitionError) as exc:
            logger.debug(
                "Step completion ignored",
                extra={"quest_id": quest_id, "step_id": step_id, "reason": exc.message},
            )
            return None

    def reset_all_main_quests(self) -> int:
        """
        Clear every step and the completed set in one swap.

        XP already earned is kept. Returns the number of steps that were reset.
        """
        cleared_steps = sum(quest.completed_steps for quest in self.state.main_quests)
        self.state.set_main_quests(
            (quest.with_steps_reset() for quest in self.state.main_quests),
            completed_quests=(),
        )
        self.state.add_domain_event(
            MAIN_QUESTS_RESET,
            {"quest_count": len(self.state.main_quests), "cleared_steps": cleared_steps},
        )
        return cleared_steps

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    @staticmethod
    def filter_by_category(collection: Sequence[Any], category: str) -> List[Any]:
        return filter_by_category(collection, category)
