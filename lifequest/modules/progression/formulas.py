"""
LifeQuest Progression Formulas

Purpose
-------
Pure calculation functions for the level curve. These implement the
mathematical rules of progression: XP to level, progress inside the
current level, XP still missing, and the reward milestone for a level.

Design Notes
------------
All formulas:
- Accept the level table explicitly (no config access)
- Are deterministic and side-effect free
- Share one definition of the level boundaries, `cumulative_cost_through`

A level table `cost` has one entry per level: `cost[i]` is the XP needed to
go from level `i + 1` to level `i + 2`. The player is at level `L` while
`cumulative_cost_through(L - 1) <= xp < cumulative_cost_through(L)`;
level 100 is the cap and is reached at `cumulative_cost_through(99)`.

Usage
-----
    from lifequest.modules.progression.formulas import calculate_level

    level = calculate_level(1230, DEFAULT_LEVEL_TABLE)
"""

from __future__ import annotations

from typing import Mapping, Sequence, TypeVar

R = TypeVar("R")


def _check_xp(xp: int) -> None:
    if xp < 0:
        raise ValueError(f"xp must be non-negative, got {xp}")


def max_level(table: Sequence[int]) -> int:
    return len(table)


def cumulative_cost_through(level: int, table: Sequence[int]) -> int:
    """
    Total XP needed to leave `level` (sum of the first `level` costs).

    Example:
        >>> cumulative_cost_through(0, DEFAULT_LEVEL_TABLE)
        0
        >>> cumulative_cost_through(2, DEFAULT_LEVEL_TABLE)
        1040
    """
    return sum(table[: max(0, level)])


def calculate_level(xp: int, table: Sequence[int]) -> int:
    """
    Calculate the current level from total XP.

    Args:
        xp: Total XP accumulated (>= 0)
        table: Level cost table

    Returns:
        Level in [1, len(table)]

    Example:
        >>> calculate_level(0, DEFAULT_LEVEL_TABLE)
        1
        >>> calculate_level(499, DEFAULT_LEVEL_TABLE)
        1
        >>> calculate_level(500, DEFAULT_LEVEL_TABLE)
        2
    """
    _check_xp(xp)
    total = 0
    for index, cost in enumerate(table):
        total += cost
        if xp < total:
            return index + 1
    return max_level(table)


def calculate_xp_into_level(xp: int, table: Sequence[int]) -> int:
    """XP earned since reaching the current level."""
    level = calculate_level(xp, table)
    return xp - cumulative_cost_through(level - 1, table)


def calculate_xp_needed_for_level(xp: int, table: Sequence[int]) -> int:
    """
    Width of the current level in XP.

    At the cap the last table entry is returned so a progress bar never
    divides by zero.
    """
    level = calculate_level(xp, table)
    return table[min(level, max_level(table)) - 1]


def calculate_level_progress(xp: int, table: Sequence[int]) -> float:
    """
    Percentage of the current level completed.

    Returns:
        Float in [0, 100]; exactly 100 at the cap

    Example:
        >>> calculate_level_progress(250, DEFAULT_LEVEL_TABLE)
        50.0
    """
    level = calculate_level(xp, table)
    if level >= max_level(table):
        return 100.0

    into = calculate_xp_into_level(xp, table)
    needed = table[level - 1]
    return max(0.0, min(100.0, 100.0 * into / needed))


def calculate_xp_to_next_level(xp: int, table: Sequence[int]) -> int:
    """
    XP still missing to leave the current level; 0 at the cap.

    Example:
        >>> calculate_xp_to_next_level(450, DEFAULT_LEVEL_TABLE)
        50
    """
    level = calculate_level(xp, table)
    if level >= max_level(table):
        return 0
    return cumulative_cost_through(level, table) - xp


def reward_for_level(level: int, rewards: Mapping[int, R]) -> R:
    """
    Reward of the nearest milestone at or below `level`.

    Levels below 1 are treated as 1. Never looks upwards, except when no
    milestone at all sits at or below the level, in which case the lowest
    milestone is returned.

    Example:
        >>> reward_for_level(12, DEFAULT_LEVEL_REWARDS)["title"]
        'Magister'
    """
    if not rewards:
        raise ValueError("rewards must not be empty")

    level = max(1, level)
    candidates = [milestone for milestone in rewards if milestone <= level]
    if not candidates:
        return rewards[min(rewards)]
    return rewards[max(candidates)]
