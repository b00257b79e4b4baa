"""
Quests: shipped catalog and the completion state machine.
"""

from lifequest.modules.quests.catalog import (
    ALL_CATEGORIES,
    QuestCatalog,
    filter_by_category,
)
from lifequest.modules.quests.state_machine import QuestStateMachine

__all__ = ["ALL_CATEGORIES", "QuestCatalog", "QuestStateMachine", "filter_by_category"]
