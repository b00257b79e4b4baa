"""
Unit tests for the progression formulas.

Tests XP-to-level mapping, in-level progress, XP still missing, the level
cap and milestone reward lookup against the default 100-level curve.
"""

import pytest

from lifequest.modules.progression.constants import DEFAULT_LEVEL_REWARDS, DEFAULT_LEVEL_TABLE
from lifequest.modules.progression.formulas import (
    calculate_level,
    calculate_level_progress,
    calculate_xp_into_level,
    calculate_xp_needed_for_level,
    calculate_xp_to_next_level,
    cumulative_cost_through,
    max_level,
    reward_for_level,
)

TABLE = DEFAULT_LEVEL_TABLE
CAP_XP = sum(DEFAULT_LEVEL_TABLE[:99])


@pytest.mark.unit
class TestCalculateLevel:
    """Test XP to level mapping."""

    @pytest.mark.parametrize(
        "xp,expected",
        [
            (0, 1),
            (499, 1),
            (500, 2),
            (1039, 2),
            (1040, 3),
            (1230, 3),
            (6240, 10),
        ],
    )
    def test_level_boundaries(self, xp, expected):
        """A level starts exactly at the cumulative cost of the levels below it."""
        assert calculate_level(xp, TABLE) == expected

    def test_cap_reached_at_cumulative_cost_through_99(self):
        assert calculate_level(CAP_XP - 1, TABLE) == 99
        assert calculate_level(CAP_XP, TABLE) == 100

    def test_xp_beyond_table_stays_at_cap(self):
        assert calculate_level(sum(TABLE) * 3, TABLE) == max_level(TABLE) == 100

    def test_level_is_monotonic(self):
        """More XP never means a lower level."""
        previous = 1
        for xp in range(0, 20000, 97):
            level = calculate_level(xp, TABLE)
            assert level >= previous
            previous = level

    def test_negative_xp_rejected(self):
        with pytest.raises(ValueError):
            calculate_level(-1, TABLE)


@pytest.mark.unit
class TestLevelProgress:
    """Test progress inside the current level."""

    def test_halfway_through_level_one(self):
        assert calculate_level_progress(250, TABLE) == 50.0

    def test_start_of_level_is_zero(self):
        assert calculate_level_progress(500, TABLE) == 0.0

    def test_halfway_through_level_two(self):
        assert calculate_level_progress(770, TABLE) == 50.0

    def test_progress_is_full_at_cap(self):
        assert calculate_level_progress(CAP_XP, TABLE) == 100.0

    def test_progress_stays_in_range(self):
        for xp in range(0, 50000, 313):
            assert 0.0 <= calculate_level_progress(xp, TABLE) < 100.0


@pytest.mark.unit
class TestXpAccounting:
    """Test XP into the level, level width and XP to next level."""

    def test_cumulative_cost(self):
        assert cumulative_cost_through(0, TABLE) == 0
        assert cumulative_cost_through(1, TABLE) == 500
        assert cumulative_cost_through(2, TABLE) == 1040

    def test_xp_into_level(self):
        assert calculate_xp_into_level(1230, TABLE) == 190

    def test_xp_needed_for_level(self):
        assert calculate_xp_needed_for_level(1230, TABLE) == 583

    def test_xp_to_next_level(self):
        assert calculate_xp_to_next_level(450, TABLE) == 50
        assert calculate_xp_to_next_level(500, TABLE) == 540

    def test_xp_to_next_level_is_zero_at_cap(self):
        assert calculate_xp_to_next_level(CAP_XP, TABLE) == 0

    def test_into_plus_missing_equals_width(self):
        """Below the cap, XP into the level plus XP missing is the level width."""
        for xp in (0, 499, 500, 1230, 6240, 123456):
            assert (
                calculate_xp_into_level(xp, TABLE) + calculate_xp_to_next_level(xp, TABLE)
                == calculate_xp_needed_for_level(xp, TABLE)
            )


@pytest.mark.unit
class TestRewardForLevel:
    """Test milestone reward lookup."""

    @pytest.mark.parametrize(
        "level,title",
        [
            (1, "Beginning"),
            (10, "Magister"),
            (12, "Magister"),
            (15, "Expert"),
            (49, "Titan"),
            (100, "God"),
        ],
    )
    def test_nearest_milestone_at_or_below(self, level, title):
        assert reward_for_level(level, DEFAULT_LEVEL_REWARDS)["title"] == title

    def test_level_below_one_clamps_to_one(self):
        assert reward_for_level(0, DEFAULT_LEVEL_REWARDS)["title"] == "Beginning"

    def test_level_above_cap_uses_top_milestone(self):
        assert reward_for_level(150, DEFAULT_LEVEL_REWARDS)["title"] == "God"

    def test_lowest_milestone_when_nothing_below(self):
        rewards = {5: "cloak", 10: "crown"}

        assert reward_for_level(2, rewards) == "cloak"

    def test_empty_rewards_rejected(self):
        with pytest.raises(ValueError):
            reward_for_level(1, {})
