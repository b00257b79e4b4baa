"""
DurableStore: key/value persistence with a primary copy, a backup copy and
write-time metadata.

Write path (`set`)
------------------
1. Primary medium receives `key` and `key_timestamp` (epoch milliseconds).
2. Secondary medium receives `key_backup`.
3. If step 1 failed, the secondary medium also receives `key`.

Read path (`get`)
-----------------
primary `key` (logging the age of the data) -> secondary `key` ->
secondary `key_backup` -> None.

Medium failures are logged and absorbed here; callers only ever see a value
or None.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from lifequest.core.exceptions import StorageUnavailableError
from lifequest.core.logging.logger import get_logger
from lifequest.core.storage.media import StorageMedium

logger = get_logger(__name__)

BACKUP_SUFFIX = "_backup"
TIMESTAMP_SUFFIX = "_timestamp"


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class DurableStore:
    """
    Fallback-aware key/value store over two media.

    Parameters
    ----------
    primary:
        Medium holding the live copy and its timestamp.
    secondary:
        Medium holding the backup copy (and the live copy when the primary
        cannot be written).
    clock:
        Returns the current time in epoch milliseconds.

    Examples
    --------
    >>> store = DurableStore(SqlStorageMedium(db), FileStorageMedium(backup_dir))
    >>> await store.set("userProgressData", payload)
    >>> await store.get("userProgressData") == payload
    True
    """

    def __init__(
        self,
        primary: StorageMedium,
        secondary: StorageMedium,
        *,
        clock: Callable[[], int] = _epoch_ms,
    ) -> None:
        self.primary = primary
        self.secondary = secondary
        self._clock = clock

    # ------------------------------------------------------------------ #
    # Write
    # ------------------------------------------------------------------ #

    async def set(self, key: str, value: str) -> bool:
        """
        Persist `value` under `key`.

        Returns True when at least one medium accepted the live or backup
        copy. Never raises for medium failures.
        """
        primary_ok = await self._attempt_write(
            self.primary,
            {key: value, key + TIMESTAMP_SUFFIX: str(self._clock())},
        )
        backup_ok = await self._attempt_write(
            self.secondary, {key + BACKUP_SUFFIX: value}
        )

        fallback_ok = False
        if not primary_ok:
            fallback_ok = await self._attempt_write(self.secondary, {key: value})
            if fallback_ok:
                logger.info(
                    "Primary medium unavailable; value stored on secondary medium",
                    extra={"storage_key": key, "medium": self.secondary.name},
                )

        stored = primary_ok or backup_ok or fallback_ok
        if stored:
            logger.debug(
                "Value stored",
                extra={
                    "storage_key": key,
                    "primary": primary_ok,
                    "backup": backup_ok,
                    "fallback": fallback_ok,
                    "size": len(value),
                },
            )
        else:
            logger.error(
                "Value could not be stored on any medium",
                extra={"storage_key": key},
            )
        return stored

    async def _attempt_write(self, medium: StorageMedium, items: dict[str, str]) -> bool:
        try:
            await medium.write_many(items)
            return True
        except StorageUnavailableError as exc:
            logger.warning(
                "Storage write failed",
                extra={
                    "medium": medium.name,
                    "keys": sorted(items.keys()),
                    "error": exc.message,
                },
            )
            return False

    # ------------------------------------------------------------------ #
    # Read
    # ------------------------------------------------------------------ #

    async def get(self, key: str) -> Optional[str]:
        """Return the freshest available copy of `key`, or None."""
        data = await self._attempt_read(self.primary, key)
        if data:
            await self._log_data_age(key)
            return data

        data = await self._attempt_read(self.secondary, key)
        if data:
            logger.info(
                "Value recovered from secondary medium",
                extra={"storage_key": key, "medium": self.secondary.name},
            )
            return data

        data = await self._attempt_read(self.secondary, key + BACKUP_SUFFIX)
        if data:
            logger.info(
                "Value recovered from backup copy",
                extra={"storage_key": key, "medium": self.secondary.name},
            )
            return data

        logger.debug("No stored value found", extra={"storage_key": key})
        return None

    async def _attempt_read(self, medium: StorageMedium, key: str) -> Optional[str]:
        try:
            return await medium.read(key)
        except StorageUnavailableError as exc:
            logger.warning(
                "Storage read failed",
                extra={"medium": medium.name, "storage_key": key, "error": exc.message},
            )
            return None

    async def _log_data_age(self, key: str) -> None:
        raw = await self._attempt_read(self.primary, key + TIMESTAMP_SUFFIX)
        if not raw:
            return
        try:
            written_at = int(raw)
        except ValueError:
            logger.debug(
                "Ignoring malformed storage timestamp",
                extra={"storage_key": key, "raw_timestamp": raw},
            )
            return

        age_ms = self._clock() - written_at
        logger.info(
            "Loaded stored value",
            extra={
                "storage_key": key,
                "age_minutes": round(age_ms / 1000 / 60),
            },
        )

    async def get_written_at(self, key: str) -> Optional[int]:
        """Epoch milliseconds of the last successful primary write, if known."""
        raw = await self._attempt_read(self.primary, key + TIMESTAMP_SUFFIX)
        if not raw:
            return None
        try:
            return int(raw)
        except ValueError:
            return None
