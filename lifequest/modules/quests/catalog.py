"""
Quest catalog loaded from YAML configuration.

The catalog is the shipped content: every daily quest and main quest with
its ordered steps, all in their pristine (not completed) state. It seeds a
fresh `ProgressState` and is reconciled against restored snapshots so newly
shipped quests show up for existing users.

YAML layout (`config/quests.yaml`)::

    quests:
      daily:
        - {id: 1, title: "...", xp_reward: 100, category: morning, emoji: "📱"}
      main:
        - id: career-1
          title: "..."
          xp_reward: 1000
          category: career
          step_prefix: c1          # step ids become c1-s1, c1-s2, ...
          steps: ["...", "..."]    # or [{id: ..., text: ...}]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Sequence, Tuple

from lifequest.core.exceptions import ConfigurationError
from lifequest.core.logging.logger import get_logger
from lifequest.domain.models.base import DomainValidationError
from lifequest.domain.models.profile import TrackerSettings, UserProfile
from lifequest.domain.models.progress_state import ProgressState
from lifequest.domain.models.quest import DailyQuest, MainQuest, Step

if TYPE_CHECKING:
    from lifequest.core.config.manager import ConfigManager

logger = get_logger(__name__)

ALL_CATEGORIES = "all"

MAIN_QUEST_CATEGORIES = (
    "career",
    "finance",
    "health",
    "travel",
    "relationships",
    "hobby",
    "legendary",
    "growth",
    "home",
    "brain",
    "social",
    "creative",
)

DAILY_QUEST_CATEGORIES = ("morning", "development", "balance", "household", "social")


def _build_steps(entry: Mapping[str, Any]) -> Tuple[Step, ...]:
    prefix = entry.get("step_prefix") or entry.get("id")
    steps: List[Step] = []
    for index, raw in enumerate(entry.get("steps") or [], start=1):
        if isinstance(raw, Mapping):
            steps.append(
                Step(id=str(raw.get("id") or f"{prefix}-s{index}"), text=str(raw.get("text", "")))
            )
        else:
            steps.append(Step(id=f"{prefix}-s{index}", text=str(raw)))
    return tuple(steps)


@dataclass(frozen=True)
class QuestCatalog:
    """Shipped quest content."""

    daily: Tuple[DailyQuest, ...] = field(default_factory=tuple)
    main: Tuple[MainQuest, ...] = field(default_factory=tuple)

    @classmethod
    def from_config(cls, config_manager: ConfigManager) -> QuestCatalog:
        """
        Build the catalog from `quests.daily` and `quests.main`.

        Raises:
            ConfigurationError: If an entry is malformed or ids collide
        """
        raw_daily = config_manager.get("quests.daily") or []
        raw_main = config_manager.get("quests.main") or []
        if not isinstance(raw_daily, list) or not isinstance(raw_main, list):
            raise ConfigurationError("quests", "quests.daily and quests.main must be lists")

        try:
            daily = tuple(DailyQuest.from_dict(entry) for entry in raw_daily)
            main = tuple(
                MainQuest(
                    id=str(entry.get("id", "")),
                    title=str(entry.get("title", "")),
                    xp_reward=entry.get("xp_reward"),
                    category=str(entry.get("category", "")),
                    steps=_build_steps(entry),
                    description=str(entry.get("description", "")),
                    icon=str(entry.get("icon", "")),
                )
                for entry in raw_main
            )
        except (DomainValidationError, AttributeError) as exc:
            raise ConfigurationError("quests", f"Invalid quest entry: {exc}") from exc

        catalog = cls(daily=daily, main=main)
        catalog.validate()

        if not daily and not main:
            logger.warning("Quest catalog is empty", extra={"config_dir": str(config_manager.config_dir)})

        unknown = sorted({q.category for q in main} - set(MAIN_QUEST_CATEGORIES))
        if unknown:
            logger.info("Main quests use custom categories", extra={"categories": unknown})

        logger.info(
            "Quest catalog loaded",
            extra={"daily_quests": len(daily), "main_quests": len(main)},
        )
        return catalog

    def validate(self) -> None:
        daily_ids = [quest.id for quest in self.daily]
        if len(daily_ids) != len(set(daily_ids)):
            raise ConfigurationError("quests.daily", "Duplicate daily quest id")
        main_ids = [quest.id for quest in self.main]
        if len(main_ids) != len(set(main_ids)):
            raise ConfigurationError("quests.main", "Duplicate main quest id")

    def build_state(
        self,
        profile: Optional[UserProfile] = None,
        settings: Optional[TrackerSettings] = None,
    ) -> ProgressState:
        """Fresh aggregate seeded with the catalog."""
        return ProgressState(
            profile=profile,
            daily_quests=self.daily,
            main_quests=self.main,
            settings=settings,
        )

    def find_main(self, quest_id: str) -> Optional[MainQuest]:
        for quest in self.main:
            if quest.id == quest_id:
                return quest
        return None

    def find_daily(self, quest_id: int) -> Optional[DailyQuest]:
        for quest in self.daily:
            if quest.id == quest_id:
                return quest
        return None


def filter_by_category(collection: Sequence[Any], category: str) -> List[Any]:
    """
    Quests whose category equals `category`; everything for `"all"`.

    Pure; the input collection is not modified.
    """
    if category == ALL_CATEGORIES:
        return list(collection)
    return [quest for quest in collection if quest.category == category]
