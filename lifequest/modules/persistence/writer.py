"""
PersistenceWriter: ordered, coalescing background writes.

Callers enqueue serialized snapshots and return immediately. A single
consumer task writes them to the DurableStore strictly in enqueue order.
When several snapshots are waiting, only the newest is written; the older
ones would be overwritten anyway.

`flush()` waits until everything enqueued so far has been written, which is
what shutdown and tests rely on.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

from lifequest.core.logging.logger import get_logger
from lifequest.core.storage.durable_store import DurableStore

logger = get_logger(__name__)


@dataclass
class WriterMetrics:
    enqueued: int = 0
    written: int = 0
    coalesced: int = 0
    failed: int = 0


class PersistenceWriter:
    """
    Single-consumer writer for one storage key.

    Examples
    --------
    >>> writer = PersistenceWriter(store, "userProgressData")
    >>> writer.enqueue(json_payload)
    >>> await writer.flush()
    """

    def __init__(self, store: DurableStore, storage_key: str) -> None:
        self.store = store
        self.storage_key = storage_key
        self.metrics = WriterMetrics()

        self._pending: Optional[str] = None
        self._enqueued_seq = 0
        self._completed_seq = 0
        self._wakeup = asyncio.Event()
        self._progress = asyncio.Condition()
        self._task: Optional[asyncio.Task[None]] = None
        self._closed = False

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def has_pending(self) -> bool:
        return self._completed_seq < self._enqueued_seq

    def start(self) -> None:
        if self.is_running:
            return
        self._closed = False
        self._task = asyncio.create_task(self._run(), name="lifequest-persistence-writer")
        logger.debug("Persistence writer started", extra={"storage_key": self.storage_key})

    def enqueue(self, payload: str) -> None:
        """Queue `payload` for writing; never blocks."""
        if self._closed:
            raise RuntimeError("PersistenceWriter is stopped")

        if self._pending is not None:
            self.metrics.coalesced += 1
        self._pending = payload
        self._enqueued_seq += 1
        self.metrics.enqueued += 1
        self._wakeup.set()

        if not self.is_running:
            self.start()

    async def _run(self) -> None:
        while True:
            await self._wakeup.wait()
            self._wakeup.clear()

            if self._pending is not None:
                payload, seq = self._pending, self._enqueued_seq
                self._pending = None
                await self._write(payload)
                async with self._progress:
                    self._completed_seq = seq
                    self._progress.notify_all()

            if self._closed and self._pending is None:
                return

    async def _write(self, payload: str) -> None:
        try:
            stored = await self.store.set(self.storage_key, payload)
        except Exception as exc:
            # DurableStore absorbs medium errors; anything else is a bug worth seeing.
            self.metrics.failed += 1
            logger.error(
                "Persistence write raised",
                extra={"storage_key": self.storage_key, "error": str(exc)},
                exc_info=True,
            )
            return

        if stored:
            self.metrics.written += 1
        else:
            self.metrics.failed += 1

    async def flush(self) -> None:
        """Wait until every snapshot enqueued before this call is written."""
        target = self._enqueued_seq
        if self._completed_seq >= target:
            return
        if not self.is_running:
            self.start()
        async with self._progress:
            await self._progress.wait_for(lambda: self._completed_seq >= target)

    async def stop(self) -> None:
        """Flush outstanding writes and stop the consumer task."""
        if self._task is None:
            self._closed = True
            return

        await self.flush()
        self._closed = True
        self._wakeup.set()
        await self._task
        self._task = None
        logger.debug(
            "Persistence writer stopped",
            extra={
                "storage_key": self.storage_key,
                "written": self.metrics.written,
                "coalesced": self.metrics.coalesced,
                "failed": self.metrics.failed,
            },
        )
