"""
Durable key/value storage for LifeQuest.
"""

from lifequest.core.storage.durable_store import (
    BACKUP_SUFFIX,
    TIMESTAMP_SUFFIX,
    DurableStore,
)
from lifequest.core.storage.media import (
    FileStorageMedium,
    MemoryStorageMedium,
    SqlStorageMedium,
    StorageMedium,
)

__all__ = [
    "DurableStore",
    "StorageMedium",
    "SqlStorageMedium",
    "FileStorageMedium",
    "MemoryStorageMedium",
    "BACKUP_SUFFIX",
    "TIMESTAMP_SUFFIX",
]
