"""
LifeQuest: progression and persistence engine for a gamified
personal-development tracker.
"""

__version__ = "1.0.1"
