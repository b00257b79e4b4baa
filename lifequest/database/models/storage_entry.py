from __future__ import annotations

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lifequest.core.database.base import Base, IdMixin, TimestampMixin


class StorageEntry(Base, IdMixin, TimestampMixin):
    """
    One key/value pair of the primary storage medium.

    Schema-only model:
    - storage_key: unique logical key (e.g. "userProgressData",
      "userProgressData_timestamp")
    - value: opaque text payload, usually a JSON document
    - created_at / updated_at: timestamps from TimestampMixin
    """

    __tablename__ = "storage_entries"

    storage_key: Mapped[str] = mapped_column(
        String(200),
        unique=True,
        nullable=False,
        index=True,
    )

    value: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<StorageEntry(key={self.storage_key!r}, size={len(self.value or '')})>"
