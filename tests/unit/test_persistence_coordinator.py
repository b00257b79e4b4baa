"""
Unit Tests for PersistenceCoordinator
=====================================

Purpose
-------
Test serialization, validation and restore of the progress aggregate over
an in-memory DurableStore.

Test Coverage
-------------
- Snapshot layout and save path (live copy, timestamp, backup)
- Round trip: save then load reproduces the state
- Validation rejects malformed snapshots without calling restore
- Field-by-field restore keeps live values for bad optional fields
- Catalog reconciliation of restored quests
- Snapshots written with the first release's camelCase keys

Testing Strategy
----------------
- Async tests, in-memory media, no filesystem
- AAA pattern (Arrange, Act, Assert)
"""

import json
from datetime import datetime, timezone

import pytest

from lifequest.core.storage.durable_store import BACKUP_SUFFIX, TIMESTAMP_SUFFIX
from lifequest.domain.models import Theme
from lifequest.modules.persistence.coordinator import (
    normalize_snapshot,
    validate,
    validation_errors,
)
from lifequest.modules.quests.state_machine import QuestStateMachine
from lifequest.modules.shared.exceptions import AggregateValidationError
from tests.conftest import FIXED_EPOCH_MS, STORAGE_KEY

SAVED_AT = datetime(2026, 10, 17, 6, 0, tzinfo=timezone.utc)


def _play(state) -> None:
    """Drive the state through a few public transitions."""
    machine = QuestStateMachine(state)
    machine.complete_daily_quest(1)
    machine.complete_daily_quest(44)
    machine.toggle_step("career-1", "c1-s1")
    machine.toggle_step("career-1", "c1-s2")
    for step in state.find_main_quest("health-1").steps:
        machine.toggle_step("health-1", step.id)
    state.set_last_reset_date("2026-10-17")
    state.set_settings(state.settings.updated(theme="dark", sound_enabled=True))
    state.clear_domain_events()


def _legacy_snapshot() -> dict:
    return {
        "userProfile": {
            "name": "Olena",
            "avatar": "🦊",
            "totalXP": 1230.0,
            "streak": 3,
            "mood": "💪",
            "moodText": "In focus!",
        },
        "dailyQuests": [
            {"id": 1, "title": "No phone", "xp": 100, "category": "morning", "emoji": "📱", "completed": True}
        ],
        "mainQuests": [
            {
                "id": "career-1",
                "title": "Finish university",
                "xp": 1000,
                "category": "career",
                "progress": 10,
                "steps": [
                    {"id": "c1-s1", "text": "Choose a major", "completed": True},
                    {"id": "c1-s2", "text": "Submit the documents", "completed": True},
                ],
            }
        ],
        "completedQuests": [],
        "lastResetDate": "2026-10-16",
        "selectedCharacter": "🐼",
        "notifications": False,
        "soundEnabled": True,
        "theme": "dark",
        "version": "1.0.1",
        "savedAt": "2026-10-16T20:00:00.000Z",
    }


# ============================================================================
# VALIDATION TESTS
# ============================================================================


@pytest.mark.unit
class TestValidation:
    """Test structural validation of snapshots."""

    async def test_serialized_state_is_valid(self, coordinator, state):
        _play(state)

        assert validate(coordinator.serialize(state)) is True

    def test_missing_main_quests_rejected(self):
        snapshot = {"user_profile": {"total_xp": 10}, "daily_quests": []}

        assert validate(snapshot) is False
        assert validation_errors(snapshot) == ["missing main_quests"]

    def test_empty_collections_are_present(self):
        """An empty quest list is still a collection."""
        assert validate({"user_profile": {"total_xp": 0}, "daily_quests": [], "main_quests": []})

    @pytest.mark.parametrize("total_xp", ["100", None, True, [1]])
    def test_non_numeric_xp_rejected(self, total_xp):
        snapshot = {"user_profile": {"total_xp": total_xp}, "daily_quests": [], "main_quests": []}

        assert validate(snapshot) is False

    @pytest.mark.parametrize("total_xp", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_xp_rejected(self, total_xp):
        snapshot = {"user_profile": {"total_xp": total_xp}, "daily_quests": [], "main_quests": []}

        assert validation_errors(snapshot) == ["user_profile.total_xp is not finite"]

    def test_huge_integer_xp_accepted(self):
        assert validate({"user_profile": {"total_xp": 10**400}, "daily_quests": [], "main_quests": []})

    @pytest.mark.parametrize("snapshot", [None, [], "userProgressData", 42])
    def test_non_object_rejected(self, snapshot):
        assert validate(snapshot) is False

    def test_legacy_layout_validated_after_normalizing(self):
        assert validate(_legacy_snapshot()) is True


# ============================================================================
# SAVE TESTS
# ============================================================================


@pytest.mark.unit
class TestSerializeAndSave:
    """Test snapshot layout and the write path."""

    async def test_snapshot_layout(self, coordinator, state):
        # Arrange
        _play(state)

        # Act
        snapshot = coordinator.serialize(state, saved_at=SAVED_AT)

        # Assert
        assert snapshot["user_profile"]["total_xp"] == state.profile.total_xp
        assert snapshot["completed_quests"] == ["health-1"]
        assert snapshot["last_reset_date"] == "2026-10-17"
        assert snapshot["settings"]["theme"] == "dark"
        assert snapshot["schema_version"] == coordinator.schema_version
        assert snapshot["saved_at"] == "2026-10-17T06:00:00+00:00"
        assert "selected_character" not in snapshot

    async def test_save_writes_live_copy_timestamp_and_backup(
        self, coordinator, state, primary_medium, secondary_medium
    ):
        # Act
        assert coordinator.save(state) is True
        await coordinator.flush()

        # Assert
        primary = primary_medium.snapshot()
        secondary = secondary_medium.snapshot()
        assert json.loads(primary[STORAGE_KEY])["user_profile"]["total_xp"] == 0
        assert primary[STORAGE_KEY + TIMESTAMP_SUFFIX] == str(FIXED_EPOCH_MS)
        assert secondary[STORAGE_KEY + BACKUP_SUFFIX] == primary[STORAGE_KEY]

    async def test_snapshot_keeps_unicode(self, coordinator, state, primary_medium):
        coordinator.save(state)
        await coordinator.flush()

        assert "📱" in primary_medium.snapshot()[STORAGE_KEY]


# ============================================================================
# LOAD / RESTORE TESTS
# ============================================================================


@pytest.mark.unit
class TestRoundTrip:
    """Test that a saved state loads back unchanged."""

    async def test_save_then_load(self, coordinator, catalog, state):
        # Arrange
        _play(state)
        coordinator.save(state)
        await coordinator.flush()
        restored = catalog.build_state()

        # Act
        loaded = await coordinator.load(restored)

        # Assert
        assert loaded is True
        assert restored.profile == state.profile
        assert restored.daily_quests == state.daily_quests
        assert restored.main_quests == state.main_quests
        assert restored.completed_quests == state.completed_quests
        assert restored.last_reset_date == state.last_reset_date
        assert restored.settings == state.settings

    async def test_nothing_stored(self, coordinator, state):
        assert await coordinator.load(state) is False
        assert state.profile.total_xp == 0


@pytest.mark.unit
class TestRejectedSnapshots:
    """Test that invalid stored data never reaches the live state."""

    async def test_missing_main_quests_never_restored(
        self, coordinator, state, primary_medium, mocker
    ):
        # Arrange
        payload = {"user_profile": {"total_xp": 5000}, "daily_quests": []}
        await primary_medium.write(STORAGE_KEY, json.dumps(payload))
        spy = mocker.spy(coordinator, "restore")

        # Act
        loaded = await coordinator.load(state)

        # Assert
        assert loaded is False
        spy.assert_not_called()
        assert state.profile.total_xp == 0

    @pytest.mark.parametrize("raw_xp", ["NaN", "Infinity", "-Infinity", "1e400"])
    async def test_non_finite_xp_never_restored(self, coordinator, state, primary_medium, raw_xp):
        # Arrange
        raw = f'{{"user_profile": {{"total_xp": {raw_xp}}}, "daily_quests": [], "main_quests": []}}'
        await primary_medium.write(STORAGE_KEY, raw)

        # Act
        loaded = await coordinator.load(state)

        # Assert
        assert loaded is False
        assert state.profile.total_xp == 0

    async def test_invalid_json(self, coordinator, state, primary_medium):
        await primary_medium.write(STORAGE_KEY, "{not json")

        assert await coordinator.load(state) is False

    async def test_restore_raises_for_invalid_snapshot(self, coordinator, state):
        with pytest.raises(AggregateValidationError) as exc_info:
            coordinator.restore({"user_profile": {"total_xp": "lots"}, "daily_quests": [], "main_quests": []}, state)

        assert exc_info.value.reasons == ["user_profile.total_xp is not numeric"]
        assert state.profile.total_xp == 0


@pytest.mark.unit
class TestFieldByFieldRestore:
    """Test that each field is applied on its own."""

    async def test_bad_optional_fields_keep_live_values(self, coordinator, state):
        # Arrange
        state.set_last_reset_date("2026-10-15")
        snapshot = coordinator.serialize(state)
        snapshot["user_profile"]["total_xp"] = 700
        snapshot["last_reset_date"] = "yesterday"
        snapshot["settings"] = "dark"
        snapshot["completed_quests"] = "career-1"

        # Act
        skipped = coordinator.restore(snapshot, state)

        # Assert
        assert state.profile.total_xp == 700
        assert state.last_reset_date == "2026-10-15"
        assert state.settings.theme is Theme.LIGHT
        assert {"last_reset_date", "settings", "completed_quests"} <= set(skipped)

    async def test_malformed_quest_entries_dropped_and_refilled(self, coordinator, state, catalog):
        # Arrange
        snapshot = coordinator.serialize(state)
        snapshot["daily_quests"] = [{"id": "one", "xp_reward": 10}, snapshot["daily_quests"][1]]

        # Act
        skipped = coordinator.restore(snapshot, state)

        # Assert
        assert "daily_quests[]" in skipped
        assert len(state.daily_quests) == len(catalog.daily)

    async def test_non_list_quests_keep_live_collection(self, coordinator, state, catalog):
        snapshot = coordinator.serialize(state)
        snapshot["main_quests"] = {"career-1": {}}

        skipped = coordinator.restore(snapshot, state)

        assert "main_quests" in skipped
        assert state.main_quests == catalog.main


@pytest.mark.unit
class TestCatalogReconciliation:
    """Test merging restored quests with the shipped catalog."""

    async def test_new_catalog_quests_are_appended(self, coordinator, state, catalog):
        # Arrange
        snapshot = coordinator.serialize(state)
        snapshot["main_quests"] = [q for q in snapshot["main_quests"] if q["id"] != "travel-1"]

        # Act
        coordinator.restore(snapshot, state)

        # Assert
        assert state.find_main_quest("travel-1") == catalog.find_main("travel-1")
        assert len(state.main_quests) == len(catalog.main)

    async def test_catalog_text_with_stored_completion(self, coordinator, state):
        # Arrange
        snapshot = coordinator.serialize(state)
        career = snapshot["main_quests"][0]
        career["title"] = "Old title"
        career["steps"][0]["completed"] = True

        # Act
        coordinator.restore(snapshot, state)

        # Assert
        quest = state.find_main_quest("career-1")
        assert quest.title == "Finish university"
        assert quest.completed_steps == 1

    async def test_unknown_stored_quest_is_kept(self, coordinator, state):
        snapshot = coordinator.serialize(state)
        snapshot["main_quests"].append(
            {"id": "custom-1", "title": "My own goal", "xp_reward": 300, "category": "growth", "steps": []}
        )

        coordinator.restore(snapshot, state)

        assert state.find_main_quest("custom-1") is not None


@pytest.mark.unit
class TestLegacySnapshots:
    """Test snapshots written with camelCase keys."""

    def test_normalize_maps_keys(self):
        data = normalize_snapshot(_legacy_snapshot())

        assert data["user_profile"]["total_xp"] == 1230.0
        assert data["settings"] == {"notifications": False, "sound_enabled": True, "theme": "dark"}
        assert data["main_quests"][0]["xp_reward"] == 1000
        assert data["schema_version"] == "1.0.1"

    async def test_current_layout_untouched(self, coordinator, state):
        snapshot = coordinator.serialize(state)

        assert normalize_snapshot(snapshot) is snapshot

    async def test_legacy_snapshot_loads(self, coordinator, state, primary_medium, catalog):
        # Arrange
        await primary_medium.write(STORAGE_KEY, json.dumps(_legacy_snapshot()))

        # Act
        loaded = await coordinator.load(state)

        # Assert
        assert loaded is True
        assert state.profile.total_xp == 1230
        assert state.profile.name == "Olena"
        assert state.find_daily_quest(1).completed is True
        assert len(state.daily_quests) == len(catalog.daily)
        assert state.find_main_quest("career-1").completed_steps == 2
        assert state.last_reset_date == "2026-10-16"
        assert state.settings.notifications is False
        assert state.settings.theme is Theme.DARK

    async def test_avatar_comes_from_profile(self, coordinator, state, primary_medium):
        """The separately stored selected character is ignored."""
        await primary_medium.write(STORAGE_KEY, json.dumps(_legacy_snapshot()))

        await coordinator.load(state)

        assert state.profile.avatar == "🦊"
