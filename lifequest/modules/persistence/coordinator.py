"""
Persistence coordinator: serialize, validate and restore the progress
aggregate, and move snapshots to and from the DurableStore.

Snapshot format
---------------
A JSON object::

    {
      "user_profile": {...},
      "daily_quests": [...],
      "main_quests": [...],
      "completed_quests": ["career-1", ...],
      "last_reset_date": "2026-10-17",
      "settings": {...},
      "schema_version": "1.0.1",
      "saved_at": "2026-10-17T06:12:44.120000+00:00"
    }

Snapshots written by the first release use camelCase keys (`userProfile`,
`totalXP`, flat settings flags); `normalize_snapshot` maps them onto the
layout above before anything else looks at them.

Restore rules
-------------
- Nothing is applied unless `validate` passes.
- Every field is applied on its own; a missing or malformed optional field
  keeps the live value.
- The avatar comes from the profile. `selected_character` is ignored.
- Catalog quests missing from the snapshot are appended, and catalog quests
  present in it take their step completion from the snapshot.
- The live state is swapped in one step, so a failed restore leaves it as
  it was.
"""

from __future__ import annotations

import json
import math
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from lifequest.core.config.config import Config
from lifequest.core.logging.logger import get_logger
from lifequest.core.storage.durable_store import DurableStore
from lifequest.domain.models.base import DomainValidationError
from lifequest.domain.models.profile import TrackerSettings, UserProfile
from lifequest.domain.models.progress_state import DATE_KEY_PATTERN, ProgressState
from lifequest.domain.models.quest import DailyQuest, MainQuest
from lifequest.modules.persistence.writer import PersistenceWriter
from lifequest.modules.quests.catalog import QuestCatalog
from lifequest.modules.shared.exceptions import AggregateValidationError, LifeQuestException

logger = get_logger(__name__)

REQUIRED_FIELDS = ("user_profile", "daily_quests", "main_quests")

_LEGACY_TOP_LEVEL = {
    "userProfile": "user_profile",
    "dailyQuests": "daily_quests",
    "mainQuests": "main_quests",
    "completedQuests": "completed_quests",
    "lastResetDate": "last_reset_date",
    "selectedCharacter": "selected_character",
    "version": "schema_version",
    "savedAt": "saved_at",
}

_LEGACY_PROFILE = {"totalXP": "total_xp", "moodText": "mood_text"}

_LEGACY_SETTINGS = {
    "notifications": "notifications",
    "progressReminders": "progress_reminders",
    "soundEnabled": "sound_enabled",
    "vibrationsEnabled": "vibrations_enabled",
    "animationsEnabled": "animations_enabled",
    "theme": "theme",
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_snapshot(aggregate: Any) -> Any:
    """
    Map a legacy camelCase snapshot onto the current key layout.

    Anything that is not a dict, or already uses the current layout, is
    returned unchanged.
    """
    if not isinstance(aggregate, dict) or "userProfile" not in aggregate:
        return aggregate

    data: Dict[str, Any] = {}
    for key, value in aggregate.items():
        data[_LEGACY_TOP_LEVEL.get(key, key)] = value

    profile = data.get("user_profile")
    if isinstance(profile, dict):
        data["user_profile"] = {_LEGACY_PROFILE.get(k, k): v for k, v in profile.items()}

    if "settings" not in data:
        data["settings"] = {
            new: aggregate[old] for old, new in _LEGACY_SETTINGS.items() if old in aggregate
        }

    for name in ("daily_quests", "main_quests"):
        quests = data.get(name)
        if isinstance(quests, list):
            data[name] = [
                {("xp_reward" if k == "xp" else k): v for k, v in quest.items()}
                if isinstance(quest, dict)
                else quest
                for quest in quests
            ]
    return data


def validation_errors(aggregate: Any) -> List[str]:
    """Reasons `aggregate` cannot be restored; empty when it can."""
    aggregate = normalize_snapshot(aggregate)
    if not isinstance(aggregate, dict):
        return ["snapshot is not an object"]

    # Presence only: an empty quest list is still a valid collection.
    errors = [f"missing {name}" for name in REQUIRED_FIELDS if aggregate.get(name) is None]
    if errors:
        return errors

    profile = aggregate["user_profile"]
    if not isinstance(profile, Mapping):
        return ["user_profile is not an object"]
    total_xp = profile.get("total_xp")
    if isinstance(total_xp, bool) or not isinstance(total_xp, (int, float)):
        errors.append("user_profile.total_xp is not numeric")
    elif isinstance(total_xp, float) and not math.isfinite(total_xp):
        errors.append("user_profile.total_xp is not finite")
    return errors


def validate(aggregate: Any) -> bool:
    """True when `aggregate` has a profile with numeric XP and both quest lists."""
    return not validation_errors(aggregate)


class PersistenceCoordinator:
    """
    Moves the progress aggregate in and out of durable storage.

    Args:
        store: DurableStore holding the snapshot
        writer: Ordered background writer; built from `store` when omitted
        catalog: Shipped quest content used to reconcile restored snapshots
        storage_key: Key of the snapshot (default `Config.STORAGE_KEY`)
        schema_version: Stamped into every snapshot
        clock: Returns the current UTC datetime
    """

    def __init__(
        self,
        store: DurableStore,
        *,
        writer: Optional[PersistenceWriter] = None,
        catalog: Optional[QuestCatalog] = None,
        storage_key: Optional[str] = None,
        schema_version: Optional[str] = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.store = store
        self.storage_key = storage_key or Config.STORAGE_KEY
        self.writer = writer or PersistenceWriter(store, self.storage_key)
        self.catalog = catalog or QuestCatalog()
        self.schema_version = schema_version or Config.SCHEMA_VERSION
        self._clock = clock

    validate = staticmethod(validate)

    # ------------------------------------------------------------------ #
    # Serialize
    # ------------------------------------------------------------------ #

    def serialize(self, state: ProgressState, saved_at: Optional[datetime] = None) -> Dict[str, Any]:
        saved_at = saved_at or self._clock()
        return {
            "user_profile": state.profile.to_dict(),
            "daily_quests": [quest.to_dict() for quest in state.daily_quests],
            "main_quests": [quest.to_dict() for quest in state.main_quests],
            "completed_quests": sorted(state.completed_quests),
            "last_reset_date": state.last_reset_date,
            "settings": state.settings.to_dict(),
            "schema_version": self.schema_version,
            "saved_at": saved_at.isoformat(),
        }

    # ------------------------------------------------------------------ #
    # Restore
    # ------------------------------------------------------------------ #

    def restore(self, aggregate: Any, state: ProgressState) -> List[str]:
        """
        Apply a validated snapshot to `state`.

        Returns:
            Names of fields that were skipped and kept their live value

        Raises:
            AggregateValidationError: If the snapshot fails validation;
                `state` is untouched
        """
        errors = validation_errors(aggregate)
        if errors:
            raise AggregateValidationError(errors)

        data = normalize_snapshot(aggregate)
        candidate = state.copy()
        skipped: List[str] = []

        try:
            candidate.set_profile(UserProfile.from_dict(data["user_profile"], base=state.profile))
        except DomainValidationError as exc:
            skipped.append("user_profile")
            logger.warning("Stored profile rejected", extra={"error": exc.message})

        daily, daily_skipped = self._restore_daily(data["daily_quests"])
        if daily is None:
            skipped.append("daily_quests")
        else:
            candidate.set_daily_quests(daily)
            if daily_skipped:
                skipped.append("daily_quests[]")

        main, main_skipped = self._restore_main(data["main_quests"])
        if main is None:
            skipped.append("main_quests")
        else:
            candidate.set_main_quests(main)
            if main_skipped:
                skipped.append("main_quests[]")

        completed = data.get("completed_quests")
        if isinstance(completed, list) and all(isinstance(q, str) for q in completed):
            candidate.set_completed_quests(completed)
        else:
            skipped.append("completed_quests")

        last_reset = data.get("last_reset_date")
        if isinstance(last_reset, str) and DATE_KEY_PATTERN.match(last_reset):
            candidate.set_last_reset_date(last_reset)
        else:
            skipped.append("last_reset_date")

        settings = data.get("settings")
        if isinstance(settings, Mapping):
            candidate.set_settings(TrackerSettings.from_dict(settings, base=state.settings))
        else:
            skipped.append("settings")

        state.replace_with(candidate)
        logger.info(
            "Progress restored",
            extra={
                "total_xp": state.profile.total_xp,
                "saved_at": data.get("saved_at"),
                "schema_version": data.get("schema_version"),
                "skipped_fields": skipped,
            },
        )
        return skipped

    def _restore_daily(self, raw: Any) -> Tuple[Optional[List[DailyQuest]], int]:
        if not isinstance(raw, list):
            return None, 0

        quests: List[DailyQuest] = []
        seen = set()
        dropped = 0
        for entry in raw:
            try:
                quest = DailyQuest.from_dict(entry)
            except DomainValidationError:
                dropped += 1
                continue
            if quest.id in seen:
                dropped += 1
                continue
            seen.add(quest.id)
            quests.append(quest)

        for quest in self.catalog.daily:
            if quest.id not in seen:
                quests.append(quest)
        if dropped:
            logger.warning("Dropped malformed stored daily quests", extra={"dropped": dropped})
        return quests, dropped

    def _restore_main(self, raw: Any) -> Tuple[Optional[List[MainQuest]], int]:
        if not isinstance(raw, list):
            return None, 0

        quests: List[MainQuest] = []
        seen = set()
        dropped = 0
        for entry in raw:
            try:
                stored = MainQuest.from_dict(entry)
            except DomainValidationError:
                dropped += 1
                continue
            if stored.id in seen:
                dropped += 1
                continue
            seen.add(stored.id)
            shipped = self.catalog.find_main(stored.id)
            quests.append(shipped.with_steps_from(stored) if shipped else stored)

        for quest in self.catalog.main:
            if quest.id not in seen:
                quests.append(quest)
        if dropped:
            logger.warning("Dropped malformed stored main quests", extra={"dropped": dropped})
        return quests, dropped

    # ------------------------------------------------------------------ #
    # Store I/O
    # ------------------------------------------------------------------ #

    def save(self, state: ProgressState) -> bool:
        """
        Serialize `state` and hand it to the ordered writer.

        Returns False (and writes nothing) when the snapshot would not pass
        validation.
        """
        snapshot = self.serialize(state)
        errors = validation_errors(snapshot)
        if errors:
            logger.warning("Snapshot failed validation; not saved", extra={"reasons": errors})
            return False

        self.writer.enqueue(json.dumps(snapshot, ensure_ascii=False))
        return True

    async def load(self, state: ProgressState) -> bool:
        """Restore `state` from the store. Any failure is logged and returns False."""
        raw = await self.store.get(self.storage_key)
        if raw is None:
            logger.info("No saved progress found", extra={"storage_key": self.storage_key})
            return False

        try:
            aggregate = json.loads(raw)
        except ValueError as exc:
            logger.warning(
                "Stored progress is not valid JSON",
                extra={"storage_key": self.storage_key, "error": str(exc)},
            )
            return False

        errors = validation_errors(aggregate)
        if errors:
            logger.warning(
                "Stored progress failed validation",
                extra={"storage_key": self.storage_key, "reasons": errors},
            )
            return False

        try:
            self.restore(aggregate, state)
        except LifeQuestException as exc:
            logger.warning(
                "Stored progress could not be restored",
                extra={"error_code": exc.error_code, "error": exc.message},
            )
            return False
        return True

    async def flush(self) -> None:
        await self.writer.flush()

    async def close(self) -> None:
        await self.writer.stop()
