"""
ORM models for LifeQuest.

Importing this package registers every table on `Base.metadata`.
"""

from lifequest.core.database.base import Base
from lifequest.database.models.storage_entry import StorageEntry

__all__ = [
    "Base",
    "StorageEntry",
]
