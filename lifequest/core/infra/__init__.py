"""
Infrastructure orchestration for LifeQuest.
"""

from lifequest.core.infra.application_context import ApplicationContext

__all__ = ["ApplicationContext"]
