"""
Unit Tests for Difficulty Adapter

Tests struggle tracking and automatic difficulty adjustment logic.
"""

import pytest
import sys
import os

# Add project root to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "socratic_dialogue_engine", "src"))

from socratic_dialogue_engine.difficulty_adapter import DifficultyAdapter, DifficultyAdjustment
from socratic_dialogue_engine.session_state import (
    Assessment,
    DifficultyState,
    DifficultyTier,
    StudentProfile,
)


def confident_deep_assessment():
    return Assessment.create(confidence_level=0.9, depth_of_thinking=4)


class TestDifficultyAdapter:
    """Test suite for DifficultyAdapter."""

    @pytest.fixture
    def adapter(self):
        """Create adapter instance."""
        return DifficultyAdapter()

    def test_record_struggle_increments_on_low_confidence(self, adapter):
        state = adapter.record_struggle(DifficultyState(), Assessment.create(confidence_level=0.2))
        assert state.struggling_turns == 1

    def test_record_struggle_increments_on_misconception(self, adapter):
        assessment = Assessment.create(confidence_level=0.9, misconceptions=("overgeneralization:always",))
        state = adapter.record_struggle(DifficultyState(struggling_turns=1), assessment)
        assert state.struggling_turns == 2

    def test_record_struggle_decrements_floored_at_zero(self, adapter):
        calm = Assessment.create(confidence_level=0.5)
        state = adapter.record_struggle(DifficultyState(struggling_turns=1), calm)
        assert state.struggling_turns == 0
        state = adapter.record_struggle(state, calm)
        assert state.struggling_turns == 0

    def test_decrease_difficulty_after_repeated_struggle(self, adapter):
        """Test lowering difficulty once the struggling counter passes 2."""
        state = DifficultyState(tier=DifficultyTier.INTERMEDIATE, struggling_turns=3)
        adjustment = adapter.auto_adjust(
            state,
            Assessment.create(confidence_level=0.2),
            recent_confidences=[0.2, 0.2, 0.2],
            current_depth=1
        )

        assert adjustment.should_adjust == True
        assert adjustment.direction == "decrease"
        assert adjustment.new_difficulty == DifficultyTier.BEGINNER
        assert "Struggling" in adjustment.reason

    def test_decrease_difficulty_low_average_with_misconceptions(self, adapter):
        state = DifficultyState(tier=DifficultyTier.ADVANCED, struggling_turns=1)
        assessment = Assessment.create(confidence_level=0.2, misconceptions=("overgeneralization:never",))
        adjustment = adapter.auto_adjust(state, assessment, [0.2, 0.2], current_depth=2)

        assert adjustment.direction == "decrease"
        assert adjustment.new_difficulty == DifficultyTier.INTERMEDIATE

    def test_low_average_without_misconceptions_holds(self, adapter):
        state = DifficultyState(tier=DifficultyTier.INTERMEDIATE, struggling_turns=1)
        adjustment = adapter.auto_adjust(state, Assessment.create(confidence_level=0.2), [0.2], current_depth=1)

        assert adjustment.should_adjust == False
        assert adjustment.new_difficulty is None

    def test_increase_difficulty_when_thriving(self, adapter):
        """Test raising difficulty for a confident, deep-thinking learner at depth 3+."""
        adjustment = adapter.auto_adjust(
            DifficultyState(tier=DifficultyTier.INTERMEDIATE),
            confident_deep_assessment(),
            recent_confidences=[0.9, 0.9, 0.9],
            current_depth=3
        )

        assert adjustment.should_adjust == True
        assert adjustment.direction == "increase"
        assert adjustment.new_difficulty == DifficultyTier.ADVANCED
        assert "Thriving" in adjustment.reason

    def test_thriving_requires_conversation_depth(self, adapter):
        adjustment = adapter.auto_adjust(
            DifficultyState(tier=DifficultyTier.INTERMEDIATE),
            confident_deep_assessment(),
            recent_confidences=[0.9, 0.9],
            current_depth=2
        )
        assert adjustment.should_adjust == False

    def test_average_uses_last_five_confidences(self, adapter):
        # Old low values fall outside the window
        adjustment = adapter.auto_adjust(
            DifficultyState(tier=DifficultyTier.BEGINNER),
            confident_deep_assessment(),
            recent_confidences=[0.2, 0.2, 0.9, 0.9, 0.9, 0.9, 0.9],
            current_depth=3
        )
        assert adjustment.new_difficulty == DifficultyTier.INTERMEDIATE

    def test_empty_window_falls_back_to_current_confidence(self, adapter):
        adjustment = adapter.auto_adjust(
            DifficultyState(tier=DifficultyTier.BEGINNER),
            confident_deep_assessment(),
            recent_confidences=[],
            current_depth=4
        )
        assert adjustment.direction == "increase"

    def test_no_decrease_below_beginner(self, adapter):
        state = DifficultyState(tier=DifficultyTier.BEGINNER, struggling_turns=5)
        adjustment = adapter.auto_adjust(state, Assessment.create(confidence_level=0.2), [0.2], current_depth=1)

        assert adjustment.should_adjust == False
        assert "lowest" in adjustment.reason

    def test_no_increase_above_advanced(self, adapter):
        adjustment = adapter.auto_adjust(
            DifficultyState(tier=DifficultyTier.ADVANCED),
            confident_deep_assessment(),
            [0.9, 0.9],
            current_depth=5
        )

        assert adjustment.should_adjust == False
        assert "highest" in adjustment.reason

    def test_tier_moves_at_most_one_step(self, adapter):
        """Across every tier and signal combination, one evaluation moves one step at most."""
        assessments = [
            Assessment.create(confidence_level=0.2),
            Assessment.create(confidence_level=0.2, misconceptions=("overgeneralization:always",)),
            Assessment.create(confidence_level=0.5),
            confident_deep_assessment(),
        ]
        for tier in DifficultyTier:
            for struggling in (0, 3, 10):
                for assessment in assessments:
                    for depth in (1, 3, 5):
                        state = DifficultyState(tier=tier, struggling_turns=struggling)
                        adjustment = adapter.auto_adjust(
                            state, assessment, [assessment.confidence_level] * 5, depth
                        )
                        after = adapter.apply_adjustment(state, adjustment).tier
                        assert abs(after.index - tier.index) <= 1

    def test_apply_adjustment(self, adapter):
        """Test applying adjustment to difficulty state."""
        state = DifficultyState(tier=DifficultyTier.INTERMEDIATE, struggling_turns=2)
        adjustment = DifficultyAdjustment(
            should_adjust=True,
            direction="increase",
            reason="Test",
            new_difficulty=DifficultyTier.ADVANCED
        )

        new_state = adapter.apply_adjustment(state, adjustment)

        assert new_state.tier == DifficultyTier.ADVANCED
        assert new_state.struggling_turns == 2
        assert state.tier == DifficultyTier.INTERMEDIATE

    def test_apply_adjustment_no_change(self, adapter):
        """Test that a no-op adjustment returns the same state."""
        state = DifficultyState(tier=DifficultyTier.INTERMEDIATE)
        adjustment = DifficultyAdjustment(should_adjust=False, direction=None, reason="Test")

        assert adapter.apply_adjustment(state, adjustment) is state

    @pytest.mark.parametrize("history,expected", [
        ((), DifficultyTier.INTERMEDIATE),
        ((0.2, 0.3), DifficultyTier.BEGINNER),
        ((0.5, 0.6), DifficultyTier.INTERMEDIATE),
        ((0.8, 0.9), DifficultyTier.ADVANCED),
    ])
    def test_initial_tier_from_profile(self, adapter, history, expected):
        profile = StudentProfile(student_id="s1", mastery_history=history)
        assert adapter.initial_tier(profile) == expected

    def test_initial_tier_without_profile(self, adapter):
        assert adapter.initial_tier(None) == DifficultyTier.INTERMEDIATE
        assert adapter.student_level(None) == "intermediate"

    def test_student_level_labels_beginners_as_novice(self, adapter):
        profile = StudentProfile(student_id="s1", mastery_history=(0.1,))
        assert adapter.student_level(profile) == "novice"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
