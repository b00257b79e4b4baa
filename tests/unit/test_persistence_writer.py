"""
Unit tests for PersistenceWriter.

Tests ordered background writes, coalescing of waiting snapshots, flush
semantics and failure accounting.
"""

import asyncio

import pytest

from lifequest.modules.persistence.writer import PersistenceWriter
from tests.conftest import STORAGE_KEY


@pytest.fixture
def recording_store(mocker):
    """DurableStore stand-in that records every value written."""
    store = mocker.MagicMock()
    store.written = []

    async def _set(key, value):
        store.written.append((key, value))
        return True

    store.set = mocker.AsyncMock(side_effect=_set)
    return store


@pytest.mark.unit
class TestWriterBasics:
    """Test enqueue and flush."""

    async def test_enqueue_then_flush_writes(self, recording_store):
        # Arrange
        writer = PersistenceWriter(recording_store, STORAGE_KEY)

        # Act
        writer.enqueue("snapshot-1")
        await writer.flush()

        # Assert
        assert recording_store.written == [(STORAGE_KEY, "snapshot-1")]
        assert writer.has_pending is False
        assert writer.metrics.written == 1
        await writer.stop()

    async def test_flush_without_pending_returns(self, recording_store):
        writer = PersistenceWriter(recording_store, STORAGE_KEY)

        await writer.flush()

        assert recording_store.written == []

    async def test_enqueue_after_stop_rejected(self, recording_store):
        writer = PersistenceWriter(recording_store, STORAGE_KEY)
        writer.enqueue("snapshot-1")
        await writer.stop()

        with pytest.raises(RuntimeError):
            writer.enqueue("snapshot-2")

        assert writer.is_running is False

    async def test_stop_flushes_outstanding_writes(self, recording_store):
        writer = PersistenceWriter(recording_store, STORAGE_KEY)
        writer.enqueue("snapshot-1")

        await writer.stop()

        assert recording_store.written == [(STORAGE_KEY, "snapshot-1")]


@pytest.mark.unit
class TestWriterOrdering:
    """Test that the newest snapshot always lands last."""

    async def test_waiting_snapshots_coalesce(self, recording_store):
        """Snapshots enqueued before the consumer runs collapse to the newest."""
        # Arrange
        writer = PersistenceWriter(recording_store, STORAGE_KEY)

        # Act
        writer.enqueue("snapshot-1")
        writer.enqueue("snapshot-2")
        writer.enqueue("snapshot-3")
        await writer.flush()

        # Assert
        assert recording_store.written == [(STORAGE_KEY, "snapshot-3")]
        assert writer.metrics.coalesced == 2
        await writer.stop()

    async def test_write_in_flight_is_followed_by_newest(self, mocker):
        """A snapshot enqueued during a slow write is written after it."""
        # Arrange
        gate = asyncio.Event()
        started = []

        async def slow_set(key, value):
            started.append(value)
            await gate.wait()
            return True

        store = mocker.MagicMock()
        store.set = mocker.AsyncMock(side_effect=slow_set)
        writer = PersistenceWriter(store, STORAGE_KEY)

        writer.enqueue("snapshot-1")
        while not started:
            await asyncio.sleep(0)

        # Act
        writer.enqueue("snapshot-2")
        writer.enqueue("snapshot-3")
        gate.set()
        await writer.flush()

        # Assert
        assert started == ["snapshot-1", "snapshot-3"]
        assert writer.metrics.written == 2
        await writer.stop()


@pytest.mark.unit
class TestWriterFailures:
    """Test that failed writes are counted and do not stop the writer."""

    async def test_store_refusal_counted(self, mocker):
        store = mocker.MagicMock()
        store.set = mocker.AsyncMock(return_value=False)
        writer = PersistenceWriter(store, STORAGE_KEY)

        writer.enqueue("snapshot-1")
        await writer.flush()

        assert writer.metrics.failed == 1
        assert writer.metrics.written == 0
        await writer.stop()

    async def test_unexpected_error_logged_and_writer_continues(self, mocker):
        # Arrange
        store = mocker.MagicMock()
        store.set = mocker.AsyncMock(side_effect=[RuntimeError("disk on fire"), True])
        writer = PersistenceWriter(store, STORAGE_KEY)

        # Act
        writer.enqueue("snapshot-1")
        await writer.flush()
        writer.enqueue("snapshot-2")
        await writer.flush()

        # Assert
        assert writer.metrics.failed == 1
        assert writer.metrics.written == 1
        assert writer.is_running is True
        await writer.stop()
