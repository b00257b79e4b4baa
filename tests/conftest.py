"""
Pytest Configuration and Fixtures for LifeQuest Tests
=====================================================

Purpose
-------
Centralized test fixtures for the LifeQuest test suite. Provides the shipped
configuration, a fresh progress aggregate, in-memory storage, and fully wired
services so individual tests stay short.

Responsibilities
----------------
- Load the real YAML content from `config/`
- Build domain aggregates and services per test (clean slate)
- In-memory and temporary on-disk storage for persistence tests
- EventBus mocks for service tests
- Domain event assertion helpers

Architecture Notes
------------------
- Unit tests use in-memory media and mocks (fast, isolated)
- Integration tests use a temporary SQLite file and backup directory
- Every fixture is function scoped; nothing leaks between tests
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, AsyncGenerator, Dict

import pytest
import pytest_asyncio

from lifequest.core.config.config import Config
from lifequest.core.config.manager import ConfigManager
from lifequest.core.database.service import DatabaseService
from lifequest.core.event.bus import EventBus
from lifequest.core.logging.logger import clear_log_context, get_logger
from lifequest.core.storage.durable_store import DurableStore
from lifequest.core.storage.media import MemoryStorageMedium
from lifequest.domain.models.progress_state import ProgressState
from lifequest.modules.persistence.coordinator import PersistenceCoordinator
from lifequest.modules.progression.calculator import ProgressionCalculator
from lifequest.modules.quests.catalog import QuestCatalog
from lifequest.modules.tracker.service import ProgressTrackerService

logger = get_logger(__name__)

CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"
STORAGE_KEY = "userProgressData"
FIXED_EPOCH_MS = 1_760_000_000_000

# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config):
    """Configure pytest environment."""
    os.environ.setdefault("ENVIRONMENT", "testing")
    os.environ.setdefault("LOG_LEVEL", "DEBUG")
    Config.load()


@pytest.fixture(autouse=True)
def _isolated_log_context():
    """Each test starts without a leftover log context."""
    clear_log_context()
    yield
    clear_log_context()


# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================


@pytest.fixture
def config_manager() -> ConfigManager:
    """ConfigManager loaded from the shipped `config/` directory."""
    manager = ConfigManager(CONFIG_DIR)
    manager.load()
    return manager


@pytest.fixture
def catalog(config_manager: ConfigManager) -> QuestCatalog:
    return QuestCatalog.from_config(config_manager)


@pytest.fixture
def calculator(config_manager: ConfigManager) -> ProgressionCalculator:
    return ProgressionCalculator.from_config(config_manager)


# ============================================================================
# DOMAIN FIXTURES
# ============================================================================


@pytest.fixture
def state(catalog: QuestCatalog) -> ProgressState:
    """Fresh aggregate seeded with the shipped catalog; no XP, no reset date."""
    return catalog.build_state()


@pytest.fixture
def state_factory(catalog: QuestCatalog):
    """
    Build aggregates with custom fields.

    Usage:
        state = state_factory(last_reset_date="2026-10-16")
    """

    def _factory(**kwargs: Any) -> ProgressState:
        kwargs.setdefault("daily_quests", catalog.daily)
        kwargs.setdefault("main_quests", catalog.main)
        return ProgressState(**kwargs)

    return _factory


# ============================================================================
# EVENT BUS FIXTURES
# ============================================================================


@pytest.fixture
def event_bus(config_manager: ConfigManager) -> EventBus:
    """Real EventBus with the shipped listener timeouts."""
    return EventBus(config_manager=config_manager)


@pytest.fixture
def mock_event_bus(mocker):
    """EventBus mock whose `publish` can be awaited and inspected."""
    bus = mocker.MagicMock(spec=EventBus)
    bus.publish = mocker.AsyncMock(return_value=[])
    return bus


# ============================================================================
# STORAGE FIXTURES
# ============================================================================


@pytest.fixture
def primary_medium() -> MemoryStorageMedium:
    return MemoryStorageMedium("memory-primary")


@pytest.fixture
def secondary_medium() -> MemoryStorageMedium:
    return MemoryStorageMedium("memory-backup")


@pytest.fixture
def memory_store(primary_medium, secondary_medium) -> DurableStore:
    """DurableStore over two dict media and a frozen clock."""
    return DurableStore(primary_medium, secondary_medium, clock=lambda: FIXED_EPOCH_MS)


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'lifequest-test.db'}"


@pytest.fixture
def backup_dir(tmp_path: Path) -> Path:
    return tmp_path / "backup"


@pytest_asyncio.fixture
async def database(sqlite_url: str) -> AsyncGenerator[DatabaseService, None]:
    """Initialized DatabaseService on a temporary SQLite file."""
    service = DatabaseService(sqlite_url)
    await service.initialize()
    yield service
    await service.shutdown()


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest_asyncio.fixture
async def coordinator(
    memory_store: DurableStore, catalog: QuestCatalog
) -> AsyncGenerator[PersistenceCoordinator, None]:
    coordinator = PersistenceCoordinator(memory_store, catalog=catalog, storage_key=STORAGE_KEY)
    yield coordinator
    await coordinator.close()


@pytest_asyncio.fixture
async def tracker(
    state: ProgressState,
    calculator: ProgressionCalculator,
    coordinator: PersistenceCoordinator,
    config_manager: ConfigManager,
    event_bus: EventBus,
) -> AsyncGenerator[ProgressTrackerService, None]:
    """Tracker wired to in-memory storage and a real EventBus."""
    service = ProgressTrackerService(
        state=state,
        calculator=calculator,
        coordinator=coordinator,
        config_manager=config_manager,
        event_bus=event_bus,
        logger=get_logger("tests.tracker"),
    )
    yield service
    await service.shutdown()
    await event_bus.drain()


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================


def assert_domain_event_emitted(model: Any, event_name: str) -> None:
    """Assert that `model` has a pending domain event named `event_name`."""
    events = model.get_pending_events()
    event_names = [e.event_name for e in events]
    assert event_name in event_names, (
        f"Expected domain event '{event_name}' not found. "
        f"Emitted events: {event_names}"
    )


def get_domain_event_payload(model: Any, event_name: str) -> Dict[str, Any]:
    """Payload of the first pending domain event named `event_name`."""
    for event in model.get_pending_events():
        if event.event_name == event_name:
            return event.payload
    raise AssertionError(f"Domain event '{event_name}' not found")


def pending_event_names(model: Any) -> list:
    return [e.event_name for e in model.get_pending_events()]
