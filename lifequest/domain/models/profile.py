"""
User profile and tracker settings value objects.

`UserProfile.total_xp` is the single source of truth for level, progress
and reward; everything else is derived by the progression calculator.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any, Dict, Mapping

from lifequest.domain.models.base import (
    DomainValidationError,
    validate_non_negative,
    validate_not_empty,
    validate_positive,
)


def _coerce_xp(value: Any) -> int:
    # Snapshots written by older builds may carry floats such as 1230.0.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DomainValidationError(
            f"total_xp must be numeric, got {type(value).__name__}", field="total_xp"
        )
    if isinstance(value, float) and not math.isfinite(value):
        raise DomainValidationError(f"total_xp must be finite, got {value}", field="total_xp")
    return int(value)


@dataclass(frozen=True)
class UserProfile:
    """
    Immutable snapshot of the user's profile.

    Attributes
    ----------
    name : str
        Display name
    avatar : str
        Selected avatar (emoji); the only place the avatar is stored
    total_xp : int
        Lifetime XP, never negative
    streak : int
        Consecutive active days
    mood, mood_text : str
        Free-form status shown next to the avatar
    """

    name: str = "Player"
    avatar: str = "🙂"
    total_xp: int = 0
    streak: int = 0
    mood: str = "💪"
    mood_text: str = "In focus!"

    def __post_init__(self) -> None:
        validate_non_negative(self.total_xp, "total_xp")
        validate_non_negative(self.streak, "streak")

    def add_xp(self, amount: int) -> UserProfile:
        """Return a copy with `amount` (> 0) XP added."""
        validate_positive(amount, "amount")
        return replace(self, total_xp=self.total_xp + amount)

    def with_changes(self, **changes: Any) -> UserProfile:
        """Return a copy with editable fields changed; XP is not editable here."""
        allowed = {"name", "avatar", "streak", "mood", "mood_text"}
        unknown = set(changes) - allowed
        if unknown:
            raise DomainValidationError(
                f"Unknown or read-only profile fields: {sorted(unknown)}",
                field=sorted(unknown)[0],
            )
        if "name" in changes:
            validate_not_empty(changes["name"], "name")
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], base: "UserProfile | None" = None) -> UserProfile:
        """
        Build a profile from a persisted mapping.

        String fields that are missing or of the wrong type keep the value
        from `base` (or the defaults).
        """
        if not isinstance(data, Mapping):
            raise DomainValidationError("user_profile must be an object", field="user_profile")

        base = base or cls()
        fields: Dict[str, Any] = {"total_xp": _coerce_xp(data.get("total_xp"))}

        for key in ("name", "avatar", "mood", "mood_text"):
            value = data.get(key)
            fields[key] = value if isinstance(value, str) and value else getattr(base, key)

        streak = data.get("streak")
        if isinstance(streak, int) and not isinstance(streak, bool) and streak >= 0:
            fields["streak"] = streak
        else:
            fields["streak"] = base.streak

        return cls(**fields)


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    ACCENT = "accent"


@dataclass(frozen=True)
class TrackerSettings:
    """User-facing flags persisted with the progress snapshot."""

    notifications: bool = True
    progress_reminders: bool = True
    sound_enabled: bool = False
    vibrations_enabled: bool = True
    animations_enabled: bool = True
    theme: Theme = Theme.LIGHT

    FLAG_FIELDS = (
        "notifications",
        "progress_reminders",
        "sound_enabled",
        "vibrations_enabled",
        "animations_enabled",
    )

    def updated(self, **changes: Any) -> TrackerSettings:
        """
        Return a copy with `changes` applied.

        Raises
        ------
        DomainValidationError
            For unknown keys, non-bool flags or an unknown theme.
        """
        clean: Dict[str, Any] = {}
        for key, value in changes.items():
            if key in self.FLAG_FIELDS:
                if not isinstance(value, bool):
                    raise DomainValidationError(f"{key} must be a boolean", field=key)
                clean[key] = value
            elif key == "theme":
                try:
                    clean[key] = Theme(value)
                except ValueError as exc:
                    raise DomainValidationError(
                        f"Unknown theme {value!r}", field="theme"
                    ) from exc
            else:
                raise DomainValidationError(f"Unknown setting {key!r}", field=key)
        return replace(self, **clean)

    def to_dict(self) -> Dict[str, Any]:
        data = {name: getattr(self, name) for name in self.FLAG_FIELDS}
        data["theme"] = self.theme.value
        return data

    @classmethod
    def from_dict(cls, data: Any, base: "TrackerSettings | None" = None) -> TrackerSettings:
        """Apply each well-formed key from `data` on top of `base`; ignore the rest."""
        settings = base or cls()
        if not isinstance(data, Mapping):
            return settings

        for key in cls.FLAG_FIELDS:
            value = data.get(key)
            if isinstance(value, bool):
                settings = replace(settings, **{key: value})

        theme = data.get("theme")
        if isinstance(theme, str) and theme in {t.value for t in Theme}:
            settings = replace(settings, theme=Theme(theme))

        return settings
