"""
DatabaseService: async SQLAlchemy engine and session management.

Purpose
-------
Own the async engine behind the primary storage medium and hand out
sessions with a strict commit/rollback discipline.

Responsibilities
----------------
- Build the engine from `Config.DATABASE_URL` (SQLite via aiosqlite by
  default) and create the schema on startup.
- `get_session()` for reads, `get_transaction()` for atomic writes.
- `health_check()` for startup verification.

Design Notes
------------
- Instance-based: the application context owns one service, tests build
  their own against a temporary database file.
- SQLAlchemy errors are wrapped in `DatabaseError` at the transaction
  boundary so callers deal with one exception type.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from lifequest.core.config.config import Config
from lifequest.core.database.base import Base
from lifequest.core.exceptions import DatabaseError
from lifequest.core.logging.logger import get_logger

logger = get_logger(__name__)


class DatabaseInitializationError(RuntimeError):
    """Raised when database engine initialization fails."""


class DatabaseNotInitializedError(RuntimeError):
    """Raised when database operations are attempted before initialization."""


@dataclass(frozen=True)
class _DatabaseConfigSnapshot:
    url: str
    echo: bool

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def url_scheme(self) -> str:
        return self.url.split(":", 1)[0] if ":" in self.url else "unknown"


class DatabaseService:
    """
    Async engine and session factory.

    Examples
    --------
    >>> db = DatabaseService("sqlite+aiosqlite:///data/lifequest.db")
    >>> await db.initialize()
    >>> async with db.get_transaction() as session:
    ...     session.add(entry)
    """

    def __init__(self, url: Optional[str] = None, *, echo: Optional[bool] = None) -> None:
        self._config = _DatabaseConfigSnapshot(
            url=url or Config.DATABASE_URL,
            echo=Config.DATABASE_ECHO if echo is None else echo,
        )
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._init_lock = asyncio.Lock()

    @property
    def url(self) -> str:
        return self._config.url

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    # ========================================================================
    # Initialization & Shutdown
    # ========================================================================

    def _ensure_sqlite_directory(self) -> None:
        if not self._config.is_sqlite:
            return
        database = make_url(self._config.url).database
        if database and database != ":memory:":
            Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)

    async def initialize(self, *, create_schema: bool = True) -> None:
        """
        Create the engine and session factory. Idempotent.

        Raises
        ------
        DatabaseInitializationError
            If the engine cannot be created or the schema cannot be built.
        """
        async with self._init_lock:
            if self._engine is not None:
                logger.debug("DatabaseService already initialized; skipping")
                return

            logger.info(
                "Initializing DatabaseService",
                extra={"url_scheme": self._config.url_scheme},
            )

            try:
                self._ensure_sqlite_directory()
                engine = create_async_engine(self._config.url, echo=self._config.echo)

                if create_schema:
                    # Importing the models registers their tables on Base.metadata.
                    import lifequest.database.models  # noqa: F401

                    async with engine.begin() as conn:
                        await conn.run_sync(Base.metadata.create_all)
            except (SQLAlchemyError, OSError) as exc:
                logger.error(
                    "DatabaseService initialization failed",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                    exc_info=True,
                )
                raise DatabaseInitializationError(
                    f"Database initialization failed: {exc}"
                ) from exc

            self._engine = engine
            self._session_factory = async_sessionmaker(
                bind=engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )

            logger.info(
                "DatabaseService initialized successfully",
                extra={
                    "url_scheme": self._config.url_scheme,
                    "schema_created": create_schema,
                },
            )

    async def shutdown(self) -> None:
        """Dispose the engine. Safe to call more than once."""
        async with self._init_lock:
            if self._engine is None:
                logger.debug("DatabaseService not initialized; nothing to shutdown")
                return

            logger.info("Shutting down DatabaseService")
            try:
                await self._engine.dispose()
            finally:
                self._engine = None
                self._session_factory = None
            logger.info("DatabaseService shutdown complete")

    # ========================================================================
    # Health Check
    # ========================================================================

    async def health_check(self) -> bool:
        """Run `SELECT 1`; returns False instead of raising."""
        if self._engine is None:
            logger.warning("Health check called on uninitialized DatabaseService")
            return False

        start = time.perf_counter()
        success = False
        try:
            async with self._engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
            success = True
            return True
        except SQLAlchemyError as exc:
            logger.warning(
                "Database health check failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            return False
        finally:
            logger.debug(
                "Database health check completed",
                extra={
                    "success": success,
                    "duration_ms": (time.perf_counter() - start) * 1000.0,
                },
            )

    # ========================================================================
    # Session & Transaction Context Managers
    # ========================================================================

    def _ensure_initialized(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            logger.error("DatabaseService operation attempted before initialization")
            raise DatabaseNotInitializedError(
                "DatabaseService must be initialized before use. "
                "Call DatabaseService.initialize() during startup."
            )
        return self._session_factory

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Session without automatic commit, for reads.

        For writes, prefer `get_transaction()`.
        """
        factory = self._ensure_initialized()
        async with factory() as session:
            yield session

    @asynccontextmanager
    async def get_transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Session wrapped in an atomic transaction.

        Commits on success; rolls back and raises `DatabaseError` when
        SQLAlchemy fails; rolls back and re-raises anything else.
        """
        factory = self._ensure_initialized()
        start = time.perf_counter()

        async with factory() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.warning(
                    "Database transaction rolled back",
                    extra={
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                        "duration_ms": (time.perf_counter() - start) * 1000.0,
                    },
                )
                raise DatabaseError("transaction", exc) from exc
            except Exception:
                await session.rollback()
                raise

            logger.debug(
                "Database transaction committed",
                extra={"duration_ms": (time.perf_counter() - start) * 1000.0},
            )

    def get_summary(self) -> dict[str, Any]:
        return {
            "url_scheme": self._config.url_scheme,
            "initialized": self.is_initialized,
            "echo": self._config.echo,
        }
