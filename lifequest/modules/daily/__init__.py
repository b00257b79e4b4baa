"""
Daily cycle: timezone-anchored reset of recurring quests.
"""

from lifequest.modules.daily.reset_scheduler import DailyResetScheduler, ResetOutcome

__all__ = ["DailyResetScheduler", "ResetOutcome"]
