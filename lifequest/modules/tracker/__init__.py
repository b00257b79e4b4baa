"""
Tracker: the serialized entry point a UI layer talks to.
"""

from lifequest.modules.tracker.service import ProgressTrackerService

__all__ = ["ProgressTrackerService"]
