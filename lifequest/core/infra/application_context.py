"""
Application Context - LifeQuest infrastructure orchestration
============================================================

Purpose
-------
Build every component in dependency order, restore saved progress, start
the daily reset loop, and tear everything down in reverse order.

Initialization Order
--------------------
    1. ConfigManager (YAML content and balance)
    2. EventBus
    3. DatabaseService (primary storage medium)
    4. DurableStore (SQL primary + file backup)
    5. ProgressionCalculator and QuestCatalog
    6. PersistenceCoordinator and ProgressTrackerService
    7. Restore saved progress, first daily reset check, reset loop

Shutdown Order (Reverse)
------------------------
    1. Reset loop stopped, pending snapshot flushed
    2. EventBus background listeners drained
    3. DatabaseService disposed

A database that cannot be opened is not fatal: the file medium then holds
both the live and the backup copy.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Optional

from lifequest.core.config.config import Config
from lifequest.core.config.manager import ConfigManager
from lifequest.core.database.service import DatabaseInitializationError, DatabaseService
from lifequest.core.event.bus import EventBus
from lifequest.core.logging.logger import get_logger
from lifequest.core.storage.durable_store import DurableStore
from lifequest.core.storage.media import (
    FileStorageMedium,
    MemoryStorageMedium,
    SqlStorageMedium,
    StorageMedium,
)
from lifequest.modules.persistence.coordinator import PersistenceCoordinator
from lifequest.modules.progression.calculator import ProgressionCalculator
from lifequest.modules.quests.catalog import QuestCatalog
from lifequest.modules.tracker.service import ProgressTrackerService

logger = get_logger(__name__)


class ApplicationContext:
    """
    Kernel for infrastructure orchestration and dependency injection.

    Usage:
        context = ApplicationContext()
        await context.initialize()
        await context.tracker.complete_daily_quest(1)
        await context.shutdown()

    Args:
        config_manager: Pre-built manager (tests); loaded from `Config.CONFIG_DIR` otherwise
        database_url: Overrides `Config.DATABASE_URL`
        backup_dir: Overrides `Config.BACKUP_DIR`
        ephemeral: Keep everything in memory (privacy mode, tests)
        start_scheduler: Start the periodic daily reset loop
    """

    def __init__(
        self,
        config_manager: Optional[ConfigManager] = None,
        *,
        database_url: Optional[str] = None,
        backup_dir: Optional[Path] = None,
        ephemeral: bool = False,
        start_scheduler: bool = True,
    ) -> None:
        self._config_manager = config_manager
        self._database_url = database_url
        self._backup_dir = Path(backup_dir) if backup_dir else Path(Config.BACKUP_DIR)
        self._ephemeral = ephemeral
        self._start_scheduler = start_scheduler

        self.event_bus: Optional[EventBus] = None
        self.database: Optional[DatabaseService] = None
        self.store: Optional[DurableStore] = None
        self.tracker: Optional[ProgressTrackerService] = None
        self._initialized: bool = False

        logger.debug("ApplicationContext created")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def config_manager(self) -> ConfigManager:
        if self._config_manager is None:
            raise RuntimeError("ApplicationContext not initialized")
        return self._config_manager

    # ========================================================================
    # INITIALIZATION
    # ========================================================================

    async def initialize(self) -> ProgressTrackerService:
        """
        Build all components and restore saved progress.

        Raises:
            RuntimeError: If already initialized or initialization fails
        """
        if self._initialized:
            raise RuntimeError("ApplicationContext already initialized")

        logger.info("=" * 70)
        logger.info("APPLICATION CONTEXT INITIALIZATION")
        logger.info("=" * 70)
        start_time = time.perf_counter()

        try:
            step_start = time.perf_counter()
            if self._config_manager is None:
                self._config_manager = ConfigManager()
                self._config_manager.load()
            logger.info("✓ ConfigManager ready (%.2fms)", (time.perf_counter() - step_start) * 1000)

            self.event_bus = EventBus(config_manager=self._config_manager)
            logger.info("✓ EventBus created")

            step_start = time.perf_counter()
            self.store = await self._build_store()
            logger.info(
                "✓ DurableStore ready (%.2fms)",
                (time.perf_counter() - step_start) * 1000,
                extra={
                    "primary": self.store.primary.name,
                    "secondary": self.store.secondary.name,
                },
            )

            calculator = ProgressionCalculator.from_config(self._config_manager)
            catalog = QuestCatalog.from_config(self._config_manager)
            coordinator = PersistenceCoordinator(self.store, catalog=catalog)

            self.tracker = ProgressTrackerService(
                state=catalog.build_state(),
                calculator=calculator,
                coordinator=coordinator,
                config_manager=self._config_manager,
                event_bus=self.event_bus,
                logger=get_logger("lifequest.modules.tracker"),
            )
            logger.info("✓ ProgressTrackerService created")

            step_start = time.perf_counter()
            restored = await self.tracker.load()
            logger.info(
                "✓ Progress %s (%.2fms)",
                "restored" if restored else "initialised from catalog",
                (time.perf_counter() - step_start) * 1000,
            )

            if self._start_scheduler:
                await self.tracker.start_daily_reset()
                logger.info("✓ Daily reset scheduler started")

            self._initialized = True
            logger.info("=" * 70)
            logger.info("✓ Application context initialized successfully")
            logger.info("  Total time: %.2fms", (time.perf_counter() - start_time) * 1000)
            logger.info("=" * 70)
            return self.tracker

        except Exception as exc:
            logger.critical(
                "Application context initialization failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
                exc_info=True,
            )
            await self._emergency_shutdown()
            raise RuntimeError("Failed to initialize application context") from exc

    async def _build_store(self) -> DurableStore:
        if self._ephemeral:
            return DurableStore(MemoryStorageMedium("memory-primary"), MemoryStorageMedium("memory-backup"))

        primary: StorageMedium
        self.database = DatabaseService(self._database_url)
        try:
            await self.database.initialize()
            primary = SqlStorageMedium(self.database)
        except DatabaseInitializationError as exc:
            logger.error(
                "Database unavailable; file medium will hold the live copy",
                extra={"error": str(exc)},
            )
            self.database = None
            primary = MemoryStorageMedium("sql-unavailable", enabled=False)

        return DurableStore(primary, FileStorageMedium(self._backup_dir))

    # ========================================================================
    # SHUTDOWN
    # ========================================================================

    async def shutdown(self) -> None:
        """Gracefully shut down all components in reverse order."""
        if not self._initialized:
            logger.warning("ApplicationContext not initialized, nothing to shut down")
            return

        logger.info("=" * 70)
        logger.info("APPLICATION CONTEXT SHUTDOWN")
        logger.info("=" * 70)

        await self._shutdown_components()
        self._initialized = False
        logger.info("✓ Application context shut down")

    async def _shutdown_components(self) -> None:
        if self.tracker is not None:
            try:
                await self.tracker.shutdown()
                logger.info("✓ Tracker stopped, progress flushed")
            except Exception as exc:
                logger.error(
                    "Error stopping tracker",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                    exc_info=True,
                )

        if self.event_bus is not None:
            await self.event_bus.drain()

        if self.database is not None:
            try:
                await self.database.shutdown()
                logger.info("✓ DatabaseService shut down")
            except Exception as exc:
                logger.error(
                    "Error shutting down database",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                    exc_info=True,
                )

    async def _emergency_shutdown(self) -> None:
        logger.warning("Performing emergency shutdown after initialization failure")
        await self._shutdown_components()
