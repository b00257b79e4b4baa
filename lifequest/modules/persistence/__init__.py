"""
Persistence: snapshot serialization, validation, restore and ordered writes.
"""

from lifequest.modules.persistence.coordinator import (
    PersistenceCoordinator,
    normalize_snapshot,
    validate,
    validation_errors,
)
from lifequest.modules.persistence.writer import PersistenceWriter

__all__ = [
    "PersistenceCoordinator",
    "PersistenceWriter",
    "normalize_snapshot",
    "validate",
    "validation_errors",
]
