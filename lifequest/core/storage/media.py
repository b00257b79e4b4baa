"""
Storage media: interchangeable key/value backends for the durable store.

Purpose
-------
Give `DurableStore` a uniform async `read` / `write` surface over very
different places to keep a string:

- `SqlStorageMedium`: a row per key in the `storage_entries` table (primary).
- `FileStorageMedium`: one file per key in a directory (secondary).
- `MemoryStorageMedium`: a dict, for ephemeral runs and tests.

Contract
--------
- `read(key)` returns the stored string or None when the key is absent.
- Any failure of the underlying medium is raised as
  `StorageUnavailableError`; absence is never an error.
"""

from __future__ import annotations

import asyncio
import os
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from lifequest.core.database.service import DatabaseNotInitializedError, DatabaseService
from lifequest.core.exceptions import DatabaseError, StorageUnavailableError
from lifequest.core.logging.logger import get_logger
from lifequest.database.models.storage_entry import StorageEntry

logger = get_logger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.\-]{1,200}$")


class StorageMedium(ABC):
    """Async key/value medium."""

    name: str = "medium"

    @abstractmethod
    async def read(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    async def write(self, key: str, value: str) -> None:
        ...

    async def write_many(self, items: Mapping[str, str]) -> None:
        """Write several keys. Media that can do so atomically override this."""
        for key, value in items.items():
            await self.write(key, value)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


# ============================================================================
# In-memory
# ============================================================================


class MemoryStorageMedium(StorageMedium):
    """
    Dict-backed medium.

    `enabled=False` models a medium the host refuses to use (private mode,
    quota exhausted): every call raises `StorageUnavailableError`.
    """

    def __init__(self, name: str = "memory", *, enabled: bool = True) -> None:
        self.name = name
        self.enabled = enabled
        self._data: Dict[str, str] = {}

    def _check(self, operation: str, key: str) -> None:
        if not self.enabled:
            raise StorageUnavailableError(self.name, operation, key)

    async def read(self, key: str) -> Optional[str]:
        self._check("read", key)
        return self._data.get(key)

    async def write(self, key: str, value: str) -> None:
        self._check("write", key)
        self._data[key] = value

    def snapshot(self) -> Dict[str, str]:
        return dict(self._data)


# ============================================================================
# Filesystem
# ============================================================================


class FileStorageMedium(StorageMedium):
    """
    Directory-backed medium; one UTF-8 file per key.

    Writes go to a temporary file in the same directory and are moved into
    place with `os.replace`, so a crash never leaves a half-written value.
    Blocking I/O runs in a worker thread.
    """

    SUFFIX = ".dat"

    def __init__(self, directory: Path, name: str = "file") -> None:
        self.name = name
        self.directory = Path(directory)

    def _path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise StorageUnavailableError(
                self.name, "resolve", key, ValueError("key contains unsupported characters")
            )
        return self.directory / f"{key}{self.SUFFIX}"

    def _read_sync(self, path: Path) -> Optional[str]:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _write_sync(self, path: Path, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=str(self.directory), prefix=f".{path.stem}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def read(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            return await asyncio.to_thread(self._read_sync, path)
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageUnavailableError(self.name, "read", key, exc) from exc

    async def write(self, key: str, value: str) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(self._write_sync, path, value)
        except OSError as exc:
            raise StorageUnavailableError(self.name, "write", key, exc) from exc


# ============================================================================
# SQL (SQLAlchemy async)
# ============================================================================


class SqlStorageMedium(StorageMedium):
    """Medium backed by the `storage_entries` table."""

    def __init__(self, database: DatabaseService, name: str = "sql") -> None:
        self.name = name
        self.database = database

    async def read(self, key: str) -> Optional[str]:
        try:
            async with self.database.get_session() as session:
                result = await session.execute(
                    select(StorageEntry.value).where(StorageEntry.storage_key == key)
                )
                return result.scalar_one_or_none()
        except (SQLAlchemyError, DatabaseNotInitializedError) as exc:
            raise StorageUnavailableError(self.name, "read", key, exc) from exc

    async def write(self, key: str, value: str) -> None:
        await self.write_many({key: value})

    async def write_many(self, items: Mapping[str, str]) -> None:
        """Upsert all items in one transaction."""
        keys = list(items.keys())
        label = ",".join(keys)
        try:
            async with self.database.get_transaction() as session:
                result = await session.execute(
                    select(StorageEntry).where(StorageEntry.storage_key.in_(keys))
                )
                existing = {entry.storage_key: entry for entry in result.scalars()}

                for key, value in items.items():
                    entry = existing.get(key)
                    if entry is None:
                        session.add(StorageEntry(storage_key=key, value=value))
                    else:
                        entry.value = value
        except (DatabaseError, SQLAlchemyError, DatabaseNotInitializedError) as exc:
            raise StorageUnavailableError(self.name, "write", label, exc) from exc
