"""
Database subsystem for LifeQuest: declarative base and async engine service.
"""

from lifequest.core.database.base import Base, IdMixin, TimestampMixin
from lifequest.core.database.service import (
    DatabaseInitializationError,
    DatabaseNotInitializedError,
    DatabaseService,
)

__all__ = [
    "Base",
    "IdMixin",
    "TimestampMixin",
    "DatabaseService",
    "DatabaseInitializationError",
    "DatabaseNotInitializedError",
]
