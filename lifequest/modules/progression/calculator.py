"""
Progression calculator: binds a level table and a reward map to the pure
formulas and produces display-ready snapshots.

Purpose
-------
- `LevelTable`: validated, immutable level cost curve.
- `LevelReward`: one milestone (title, cosmetic reward, description).
- `ProgressionSnapshot`: everything a UI needs to draw the level bar.
- `ProgressionCalculator`: the object services hold; built from
  `ConfigManager` with the constants as fallback.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from lifequest.core.exceptions import ConfigurationError
from lifequest.core.logging.logger import get_logger
from lifequest.domain.models.base import (
    DomainValidationError,
    ValueObject,
    validate_non_negative,
    validate_not_empty,
)
from lifequest.modules.progression import formulas
from lifequest.modules.progression.constants import (
    DEFAULT_LEVEL_REWARDS,
    DEFAULT_LEVEL_TABLE,
    DEFAULT_MOTIVATION_TIERS,
    MAX_LEVEL,
    MOTIVATION_NEAR_REWARD_XP,
    NEAR_REWARD_MESSAGE,
    STEP_XP,
)

if TYPE_CHECKING:
    from lifequest.core.config.manager import ConfigManager

logger = get_logger(__name__)


# ============================================================================
# VALUE OBJECTS
# ============================================================================


class LevelTable(ValueObject):
    """
    Immutable level cost curve.

    Exactly `MAX_LEVEL` strictly positive integer entries; `costs[i]` is the
    XP needed to go from level `i + 1` to level `i + 2`.
    """

    def __init__(self, costs: Iterable[int] = DEFAULT_LEVEL_TABLE) -> None:
        self._costs: Tuple[int, ...] = tuple(costs)
        self._validate()

    def _validate(self) -> None:
        if len(self._costs) != MAX_LEVEL:
            raise DomainValidationError(
                f"Level table must have exactly {MAX_LEVEL} entries, got {len(self._costs)}",
                field="level_table",
            )
        for index, cost in enumerate(self._costs):
            if isinstance(cost, bool) or not isinstance(cost, int) or cost <= 0:
                raise DomainValidationError(
                    f"Level table entry {index} must be a positive integer, got {cost!r}",
                    field="level_table",
                )

    @property
    def costs(self) -> Tuple[int, ...]:
        return self._costs

    @property
    def max_level(self) -> int:
        return len(self._costs)

    def __len__(self) -> int:
        return len(self._costs)

    def __getitem__(self, index: int) -> int:
        return self._costs[index]

    def __iter__(self):
        return iter(self._costs)

    def __repr__(self) -> str:
        return f"LevelTable(first={self._costs[0]}, last={self._costs[-1]})"


@dataclass(frozen=True)
class LevelReward:
    """Cosmetic reward unlocked at a milestone level."""

    level: int
    title: str
    reward: str
    description: str = ""

    def __post_init__(self) -> None:
        validate_non_negative(self.level, "level")
        validate_not_empty(self.title, "title")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "title": self.title,
            "reward": self.reward,
            "description": self.description,
        }


@dataclass(frozen=True)
class ProgressionSnapshot:
    """Derived progression values for one XP total."""

    total_xp: int
    level: int
    progress: float
    xp_into_level: int
    xp_needed_for_level: int
    xp_to_next_level: int
    reward: LevelReward
    is_max_level: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_xp": self.total_xp,
            "level": self.level,
            "progress": self.progress,
            "xp_into_level": self.xp_into_level,
            "xp_needed_for_level": self.xp_needed_for_level,
            "xp_to_next_level": self.xp_to_next_level,
            "reward": self.reward.to_dict(),
            "is_max_level": self.is_max_level,
        }


def build_rewards(raw: Mapping[Any, Mapping[str, Any]]) -> Dict[int, LevelReward]:
    """Turn a `{level: {title, reward, description}}` mapping into `LevelReward`s."""
    rewards: Dict[int, LevelReward] = {}
    for key, entry in raw.items():
        try:
            level = int(key)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                "progression.level_rewards", f"Invalid reward level {key!r}"
            ) from exc
        if not isinstance(entry, Mapping):
            raise ConfigurationError(
                "progression.level_rewards", f"Reward for level {level} must be a mapping"
            )
        rewards[level] = LevelReward(
            level=level,
            title=str(entry.get("title", "")),
            reward=str(entry.get("reward", "")),
            description=str(entry.get("description", "")),
        )
    return rewards


# ============================================================================
# CALCULATOR
# ============================================================================


class ProgressionCalculator:
    """
    Progression operations bound to one level table and reward map.

    Examples
    --------
    >>> calc = ProgressionCalculator()
    >>> calc.level(500)
    2
    >>> calc.snapshot(250).progress
    50.0
    """

    def __init__(
        self,
        table: Optional[LevelTable] = None,
        rewards: Optional[Mapping[int, LevelReward]] = None,
        *,
        step_xp: int = STEP_XP,
        near_reward_xp: int = MOTIVATION_NEAR_REWARD_XP,
        motivation_tiers: Sequence[Tuple[int, str]] = DEFAULT_MOTIVATION_TIERS,
        near_reward_message: str = NEAR_REWARD_MESSAGE,
    ) -> None:
        self.table = table or LevelTable()
        self.rewards: Dict[int, LevelReward] = dict(
            rewards if rewards is not None else build_rewards(DEFAULT_LEVEL_REWARDS)
        )
        if not self.rewards:
            raise DomainValidationError("At least one level reward is required", field="rewards")
        if isinstance(step_xp, bool) or not isinstance(step_xp, int) or step_xp <= 0:
            raise DomainValidationError("step_xp must be a positive integer", field="step_xp")
        if not motivation_tiers:
            raise DomainValidationError(
                "At least one motivation tier is required", field="motivation_tiers"
            )

        self.step_xp = step_xp
        self.near_reward_xp = near_reward_xp
        self.motivation_tiers = tuple(sorted(motivation_tiers, key=lambda tier: tier[0], reverse=True))
        self.near_reward_message = near_reward_message

    @classmethod
    def from_config(cls, config_manager: "ConfigManager") -> ProgressionCalculator:
        """
        Build a calculator from `progression.*` keys, falling back to the
        built-in constants for anything missing.

        Raises:
            ConfigurationError: If a configured value is malformed
        """
        raw_table = config_manager.get("progression.level_table")
        try:
            table = LevelTable(raw_table) if raw_table else LevelTable()
        except (DomainValidationError, TypeError) as exc:
            raise ConfigurationError("progression.level_table", str(exc)) from exc

        raw_rewards = config_manager.get("progression.level_rewards") or DEFAULT_LEVEL_REWARDS
        if not isinstance(raw_rewards, Mapping):
            raise ConfigurationError(
                "progression.level_rewards", "level_rewards must be a mapping"
            )
        try:
            rewards = build_rewards(raw_rewards)
        except DomainValidationError as exc:
            raise ConfigurationError("progression.level_rewards", str(exc)) from exc

        tiers = DEFAULT_MOTIVATION_TIERS
        raw_tiers = config_manager.get("progression.motivation.tiers")
        if raw_tiers:
            try:
                tiers = tuple((int(t["min_level"]), str(t["message"])) for t in raw_tiers)
            except (KeyError, TypeError, ValueError) as exc:
                raise ConfigurationError(
                    "progression.motivation.tiers",
                    "each tier needs an integer min_level and a message",
                ) from exc

        step_xp = config_manager.get("progression.step_xp", STEP_XP)
        try:
            calculator = cls(
                table,
                rewards,
                step_xp=step_xp,
                near_reward_xp=int(
                    config_manager.get(
                        "progression.motivation.near_reward_xp", MOTIVATION_NEAR_REWARD_XP
                    )
                ),
                motivation_tiers=tiers,
                near_reward_message=str(
                    config_manager.get(
                        "progression.motivation.near_reward_message", NEAR_REWARD_MESSAGE
                    )
                ),
            )
        except DomainValidationError as exc:
            raise ConfigurationError("progression", str(exc)) from exc

        logger.debug(
            "Progression calculator configured",
            extra={
                "step_xp": calculator.step_xp,
                "reward_milestones": len(calculator.rewards),
                "custom_table": bool(raw_table),
            },
        )
        return calculator

    # ------------------------------------------------------------------ #
    # Formula bindings
    # ------------------------------------------------------------------ #

    @property
    def max_level(self) -> int:
        return self.table.max_level

    def level(self, xp: int) -> int:
        return formulas.calculate_level(xp, self.table)

    def level_progress(self, xp: int) -> float:
        return formulas.calculate_level_progress(xp, self.table)

    def xp_into_level(self, xp: int) -> int:
        return formulas.calculate_xp_into_level(xp, self.table)

    def xp_needed_for_level(self, xp: int) -> int:
        return formulas.calculate_xp_needed_for_level(xp, self.table)

    def xp_to_next_level(self, xp: int) -> int:
        return formulas.calculate_xp_to_next_level(xp, self.table)

    def reward_for_level(self, level: int) -> LevelReward:
        return formulas.reward_for_level(level, self.rewards)

    def snapshot(self, xp: int) -> ProgressionSnapshot:
        level = self.level(xp)
        return ProgressionSnapshot(
            total_xp=xp,
            level=level,
            progress=self.level_progress(xp),
            xp_into_level=self.xp_into_level(xp),
            xp_needed_for_level=self.xp_needed_for_level(xp),
            xp_to_next_level=self.xp_to_next_level(xp),
            reward=self.reward_for_level(level),
            is_max_level=level >= self.max_level,
        )

    def motivational_message(self, xp: int) -> str:
        """Short encouragement based on level and XP still missing."""
        level = self.level(xp)
        to_next = self.xp_to_next_level(xp)

        if to_next <= self.near_reward_xp and level < self.max_level:
            return self.near_reward_message.format(xp=to_next)

        for min_level, message in self.motivation_tiers:
            if level >= min_level:
                return message
        return self.motivation_tiers[-1][1]
