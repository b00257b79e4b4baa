"""
Progression constants for LifeQuest.

Single source of truth for:
- The default 100-level cost curve
- Level reward milestones (titles and cosmetic rewards)
- Per-step XP award and level cap

Pure data only. Values can be overridden through `config/progression.yaml`;
the calculator falls back to these when the YAML is silent.
"""

from typing import Dict, Tuple

MAX_LEVEL = 100

# Fixed award for completing any single main-quest step.
STEP_XP = 30


# ============================================================================
# LEVEL CURVE
# ============================================================================

# DEFAULT_LEVEL_TABLE[i] is the XP needed to go from level i+1 to level i+2.
DEFAULT_LEVEL_TABLE: Tuple[int, ...] = (
    500, 540, 583, 630, 680, 734, 793, 856, 924, 998,
    1079, 1166, 1259, 1359, 1468, 1585, 1712, 1849, 1997, 2157,
    2330, 2517, 2718, 2936, 3171, 3424, 3698, 3994, 4314, 4659,
    5032, 5434, 5869, 6338, 6845, 7393, 7984, 8623, 9313, 10058,
    10862, 11731, 12670, 13683, 14778, 15960, 17237, 18616, 20105, 21713,
    23450, 25326, 27352, 29540, 31903, 34455, 37211, 40188, 43403, 46875,
    50625, 54675, 59049, 63773, 68875, 74385, 80336, 86763, 93704, 101200,
    109296, 118040, 127483, 137682, 148696, 160592, 173439, 187314, 202299, 218483,
    235962, 254839, 275226, 297244, 321024, 346706, 374442, 404398, 436750, 471690,
    509425, 550180, 594194, 641730, 693068, 748514, 808395, 872667, 942480, 1017878,
)


# ============================================================================
# LEVEL REWARDS
# ============================================================================

# Sparse: a level without an entry shows the nearest milestone below it.
DEFAULT_LEVEL_REWARDS: Dict[int, Dict[str, str]] = {
    1: {"title": "Beginning", "reward": "First victory", "description": "The first step towards success"},
    2: {"title": "Apprentice", "reward": "Novice cloak", "description": "A stylish cloak for a beginner"},
    3: {"title": "Trainee", "reward": "Belt of strength", "description": "A belt that increases strength"},
    4: {"title": "Seasoned", "reward": "Ring of wisdom", "description": "A magic ring"},
    5: {"title": "Warrior", "reward": "Might of resolve", "description": "Inner strength to reach your goals"},
    6: {"title": "Hunter", "reward": "Bracelet of luck", "description": "A bracelet that brings luck"},
    7: {"title": "Wanderer", "reward": "Boots of speed", "description": "Boots for fast journeys"},
    8: {"title": "Explorer", "reward": "Talisman of knowledge", "description": "A talisman that widens knowledge"},
    9: {"title": "Mage", "reward": "Glowing aura", "description": "Your character starts to glow"},
    10: {"title": "Magister", "reward": "Mantle of the ruler", "description": "A legendary mantle"},
    15: {"title": "Expert", "reward": "Crown of achievements", "description": "A symbol of mastery"},
    20: {"title": "Master", "reward": "Sceptre of power", "description": "The mark of a true leader"},
    25: {"title": "Grandmaster", "reward": "Aura of legend", "description": "You are becoming a legend"},
    30: {"title": "Archmage", "reward": "Mantle of immortality", "description": "An undying mantle"},
    40: {"title": "Titan", "reward": "Armour of the gods", "description": "Divine protection"},
    50: {"title": "Imperial", "reward": "Crown of the world", "description": "Ruler of the world"},
    60: {"title": "Deity", "reward": "Sceptre of the creator", "description": "The power to create worlds"},
    70: {"title": "Creator", "reward": "Crown of the universe", "description": "Master of everything"},
    80: {"title": "Boundless", "reward": "Energy of eternity", "description": "Limitless strength"},
    90: {"title": "Absolute", "reward": "Crown of the absolute", "description": "The absolute achieved"},
    100: {"title": "God", "reward": "Boundless power", "description": "You became a god of progress"},
}


# ============================================================================
# MOTIVATION
# ============================================================================

# XP-to-next threshold below which the "almost there" message wins.
MOTIVATION_NEAR_REWARD_XP = 50

# (minimum level, message), checked from the top.
DEFAULT_MOTIVATION_TIERS: Tuple[Tuple[int, str], ...] = (
    (50, "You are a true master! Keep it up 💪"),
    (25, "Excellent progress! You are on the right path 🌟"),
    (10, "You are doing well! Keep growing 🎯"),
    (1, "Every step brings you closer to the goal! Keep going! 🌱"),
)

NEAR_REWARD_MESSAGE = "Only {xp} XP left until a new reward 🚀"
