"""
Progression: XP to level, progress, XP-to-next and level rewards.
"""

from lifequest.modules.progression.calculator import (
    LevelReward,
    LevelTable,
    ProgressionCalculator,
    ProgressionSnapshot,
)
from lifequest.modules.progression.constants import (
    DEFAULT_LEVEL_REWARDS,
    DEFAULT_LEVEL_TABLE,
    MAX_LEVEL,
    STEP_XP,
)

__all__ = [
    "LevelReward",
    "LevelTable",
    "ProgressionCalculator",
    "ProgressionSnapshot",
    "DEFAULT_LEVEL_REWARDS",
    "DEFAULT_LEVEL_TABLE",
    "MAX_LEVEL",
    "STEP_XP",
]
