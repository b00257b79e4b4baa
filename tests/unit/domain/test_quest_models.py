"""
Unit Tests for Quest Domain Models
==================================

Purpose
-------
Test the quest value objects without services or storage.

Test Coverage
-------------
- Integer progress rounding
- Step, MainQuest and DailyQuest construction and validation
- Derived status and progress of a main quest
- Immutable transitions (complete, reset, copy completion)
- Serialization, including the legacy "xp" key

Testing Strategy
----------------
- Unit tests (fast, no I/O)
- AAA pattern (Arrange, Act, Assert)
- Test one behavior per test
"""

import pytest

from lifequest.domain.models import (
    DailyQuest,
    DomainValidationError,
    MainQuest,
    QuestStatus,
    Step,
    round_half_up_percent,
)
from lifequest.domain.models.quest import count_completed


def _quest(step_count: int = 4, completed: int = 0, **overrides) -> MainQuest:
    steps = tuple(
        Step(id=f"q-s{i}", text=f"Step {i}", completed=i <= completed)
        for i in range(1, step_count + 1)
    )
    fields = dict(id="career-1", title="Finish university", xp_reward=1000, category="career")
    fields.update(overrides)
    return MainQuest(steps=steps, **fields)


# ============================================================================
# PROGRESS ROUNDING TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestRoundHalfUpPercent:
    """Test the integer percentage used for quest progress."""

    @pytest.mark.parametrize(
        "done,total,expected",
        [
            (0, 20, 0),
            (1, 20, 5),
            (1, 8, 13),
            (1, 3, 33),
            (2, 3, 67),
            (20, 20, 100),
        ],
    )
    def test_rounds_half_up(self, done, total, expected):
        """Halves round up, everything else to the nearest integer."""
        assert round_half_up_percent(done, total) == expected

    def test_zero_total_is_zero(self):
        """A quest without steps reports 0% instead of dividing by zero."""
        assert round_half_up_percent(0, 0) == 0


# ============================================================================
# STEP TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestStep:
    """Test Step value object."""

    def test_step_requires_id(self):
        """Test that a step id cannot be empty."""
        with pytest.raises(DomainValidationError):
            Step(id="", text="Pick a topic")

    def test_mark_completed_returns_new_step(self):
        """Completing a step leaves the original untouched."""
        # Arrange
        step = Step(id="c1-s1", text="Pick a topic")

        # Act
        done = step.mark_completed()

        # Assert
        assert done.completed is True
        assert step.completed is False

    def test_from_dict_only_accepts_true_as_completed(self):
        """Truthy non-bool values are not treated as completion."""
        step = Step.from_dict({"id": "c1-s1", "text": "x", "completed": "yes"})

        assert step.completed is False


# ============================================================================
# MAIN QUEST TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestMainQuest:
    """Test MainQuest derived values and transitions."""

    def test_reward_must_be_positive(self):
        """Test that the completion bonus must be positive."""
        with pytest.raises(DomainValidationError) as exc_info:
            _quest(xp_reward=0)

        assert "xp_reward must be positive" in str(exc_info.value)

    def test_duplicate_step_ids_rejected(self):
        """Step ids are unique within a quest."""
        steps = (Step(id="s1", text="a"), Step(id="s1", text="b"))

        with pytest.raises(DomainValidationError):
            MainQuest(id="q", title="Q", xp_reward=10, category="career", steps=steps)

    def test_fresh_quest_is_not_started(self):
        quest = _quest()

        assert quest.status is QuestStatus.NOT_STARTED
        assert quest.progress == 0
        assert quest.completed_steps == 0
        assert quest.total_steps == 4

    def test_partial_quest_is_in_progress(self):
        """One of four steps is 25% and IN_PROGRESS."""
        quest = _quest(completed=1)

        assert quest.status is QuestStatus.IN_PROGRESS
        assert quest.progress == 25

    def test_all_steps_done_is_complete(self):
        quest = _quest(completed=4)

        assert quest.is_complete is True
        assert quest.status is QuestStatus.COMPLETE
        assert quest.progress == 100

    def test_quest_without_steps_never_completes(self):
        """A quest with zero steps stays NOT_STARTED at 0%."""
        quest = _quest(step_count=0)

        assert quest.is_complete is False
        assert quest.status is QuestStatus.NOT_STARTED
        assert quest.progress == 0

    def test_with_step_completed_keeps_order(self):
        """Completing a step changes only that step and keeps step order."""
        # Arrange
        quest = _quest()

        # Act
        updated = quest.with_step_completed("q-s3")

        # Assert
        assert [s.id for s in updated.steps] == ["q-s1", "q-s2", "q-s3", "q-s4"]
        assert [s.completed for s in updated.steps] == [False, False, True, False]
        assert quest.completed_steps == 0

    def test_with_steps_reset_clears_every_step(self):
        quest = _quest(completed=3)

        assert quest.with_steps_reset().completed_steps == 0

    def test_with_steps_from_copies_matching_ids_only(self):
        """Completion flags are copied by step id; unknown ids are ignored."""
        # Arrange
        shipped = _quest()
        stored = MainQuest(
            id="career-1",
            title="Old title",
            xp_reward=1000,
            category="career",
            steps=(
                Step(id="q-s2", text="old", completed=True),
                Step(id="gone", text="removed step", completed=True),
            ),
        )

        # Act
        merged = shipped.with_steps_from(stored)

        # Assert
        assert merged.title == "Finish university"
        assert [s.completed for s in merged.steps] == [False, True, False, False]

    def test_to_dict_includes_derived_progress(self):
        data = _quest(completed=2).to_dict()

        assert data["progress"] == 50
        assert data["xp_reward"] == 1000
        assert len(data["steps"]) == 4

    def test_from_dict_accepts_legacy_xp_key(self):
        """Snapshots from the first release store the bonus under "xp"."""
        # Arrange
        data = {
            "id": "career-1",
            "title": "Finish university",
            "xp": 1000,
            "category": "career",
            "steps": [{"id": "c1-s1", "text": "Pick a topic", "completed": True}],
        }

        # Act
        quest = MainQuest.from_dict(data)

        # Assert
        assert quest.xp_reward == 1000
        assert quest.completed_steps == 1

    def test_from_dict_rejects_non_list_steps(self):
        with pytest.raises(DomainValidationError):
            MainQuest.from_dict({"id": "q", "xp_reward": 10, "steps": "oops"})


# ============================================================================
# DAILY QUEST TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestDailyQuest:
    """Test DailyQuest value object."""

    def test_id_must_be_integer(self):
        with pytest.raises(DomainValidationError):
            DailyQuest(id="1", title="Stretch", xp_reward=80, category="morning")

    def test_bool_id_rejected(self):
        """bool is an int subclass but never a valid quest id."""
        with pytest.raises(DomainValidationError):
            DailyQuest(id=True, title="Stretch", xp_reward=80, category="morning")

    def test_complete_and_reset(self):
        # Arrange
        quest = DailyQuest(id=2, title="Stretch", xp_reward=80, category="morning")

        # Act
        done = quest.mark_completed()

        # Assert
        assert done.status is QuestStatus.COMPLETE
        assert done.reset().completed is False

    def test_round_trip_through_dict(self):
        quest = DailyQuest(id=2, title="Stretch", xp_reward=80, category="morning", emoji="🧘")

        assert DailyQuest.from_dict(quest.to_dict()) == quest


@pytest.mark.unit
@pytest.mark.domain
def test_count_completed_handles_both_kinds():
    """count_completed uses is_complete for main quests and the flag for dailies."""
    daily = [
        DailyQuest(id=1, title="a", xp_reward=10, category="morning", completed=True),
        DailyQuest(id=2, title="b", xp_reward=10, category="morning"),
    ]
    main = [_quest(completed=4), _quest(completed=1, id="career-2")]

    assert count_completed(daily) == 1
    assert count_completed(main) == 1
