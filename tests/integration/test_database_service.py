"""
Integration Tests for DatabaseService
=====================================

Purpose
-------
Test the async SQLAlchemy service against a real SQLite file, and the SQL
storage medium built on it.

Test Coverage
-------------
- Initialization, health check and summary
- Idempotent initialize / shutdown
- Use before initialization
- Transaction commit and rollback
- SqlStorageMedium upserts

Testing Strategy
----------------
- Temporary SQLite database per test (aiosqlite driver)
- Tests actual database behavior, not mocks
"""

import pytest
from sqlalchemy import func, select, text

from lifequest.core.database.service import (
    DatabaseInitializationError,
    DatabaseNotInitializedError,
    DatabaseService,
)
from lifequest.core.exceptions import DatabaseError, StorageUnavailableError
from lifequest.core.storage.media import SqlStorageMedium
from lifequest.database.models.storage_entry import StorageEntry


# ============================================================================
# DATABASE CONNECTION TESTS
# ============================================================================


@pytest.mark.integration
@pytest.mark.database
class TestDatabaseConnection:
    """Test database connection and basic operations."""

    async def test_database_connection(self, database):
        """Test that we can connect to the database."""
        # Act
        async with database.get_session() as session:
            result = await session.execute(text("SELECT 1 as value"))
            row = result.fetchone()

        # Assert
        assert row is not None
        assert row.value == 1

    async def test_schema_created(self, database):
        async with database.get_session() as session:
            count = await session.scalar(select(func.count()).select_from(StorageEntry))

        assert count == 0

    async def test_health_check_and_summary(self, database):
        assert await database.health_check() is True

        summary = database.get_summary()
        assert summary["initialized"] is True
        assert summary["url_scheme"] == "sqlite+aiosqlite"

    async def test_initialize_is_idempotent(self, database):
        await database.initialize()

        assert database.is_initialized is True

    async def test_shutdown_twice(self, sqlite_url):
        service = DatabaseService(sqlite_url)
        await service.initialize()

        await service.shutdown()
        await service.shutdown()

        assert service.is_initialized is False
        assert await service.health_check() is False

    async def test_use_before_initialize(self, sqlite_url):
        service = DatabaseService(sqlite_url)

        with pytest.raises(DatabaseNotInitializedError):
            async with service.get_session():
                pass

    async def test_unusable_path(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        service = DatabaseService(f"sqlite+aiosqlite:///{blocker / 'lifequest.db'}")

        with pytest.raises(DatabaseInitializationError):
            await service.initialize()

        assert service.is_initialized is False


# ============================================================================
# TRANSACTION TESTS
# ============================================================================


@pytest.mark.integration
@pytest.mark.database
class TestTransactions:
    """Test transaction commit and rollback."""

    async def test_commit(self, database):
        # Act
        async with database.get_transaction() as session:
            session.add(StorageEntry(storage_key="userProgressData", value="{}"))

        # Assert
        async with database.get_session() as session:
            stored = await session.scalar(
                select(StorageEntry.value).where(StorageEntry.storage_key == "userProgressData")
            )
        assert stored == "{}"

    async def test_duplicate_key_rolls_back(self, database):
        # Arrange
        async with database.get_transaction() as session:
            session.add(StorageEntry(storage_key="userProgressData", value="first"))

        # Act
        with pytest.raises(DatabaseError):
            async with database.get_transaction() as session:
                session.add(StorageEntry(storage_key="userProgressData", value="second"))

        # Assert
        async with database.get_session() as session:
            values = (await session.scalars(select(StorageEntry.value))).all()
        assert values == ["first"]

    async def test_other_errors_propagate(self, database):
        with pytest.raises(KeyError):
            async with database.get_transaction() as session:
                session.add(StorageEntry(storage_key="userProgressData", value="x"))
                raise KeyError("boom")

        async with database.get_session() as session:
            count = await session.scalar(select(func.count()).select_from(StorageEntry))
        assert count == 0


# ============================================================================
# SQL STORAGE MEDIUM TESTS
# ============================================================================


@pytest.mark.integration
@pytest.mark.storage
class TestSqlStorageMedium:
    """Test the key/value medium on the storage_entries table."""

    async def test_read_missing_key(self, database):
        medium = SqlStorageMedium(database)

        assert await medium.read("userProgressData") is None

    async def test_upsert(self, database):
        # Arrange
        medium = SqlStorageMedium(database)

        # Act
        await medium.write("userProgressData", "v1")
        await medium.write_many({"userProgressData": "v2", "userProgressData_timestamp": "1"})

        # Assert
        assert await medium.read("userProgressData") == "v2"
        assert await medium.read("userProgressData_timestamp") == "1"

    async def test_unicode_value(self, database):
        medium = SqlStorageMedium(database)

        await medium.write("userProgressData", '{"emoji": "📱"}')

        assert await medium.read("userProgressData") == '{"emoji": "📱"}'

    async def test_uninitialized_database_unavailable(self, sqlite_url):
        medium = SqlStorageMedium(DatabaseService(sqlite_url))

        with pytest.raises(StorageUnavailableError):
            await medium.read("userProgressData")
        with pytest.raises(StorageUnavailableError):
            await medium.write("userProgressData", "v1")
