"""
Unit Tests for Depth Tracker

Tests depth advancement, concept history capping, the deepen-inquiry signal
and behavioral evidence.
"""

import pytest
import sys
import os

# Add project root to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "socratic_dialogue_engine", "src"))

from socratic_dialogue_engine.depth_tracker import DepthTracker
from socratic_dialogue_engine.prompts import TRANSFER_CHALLENGES
from socratic_dialogue_engine.session_state import (
    Assessment,
    BehavioralEvidence,
    CycleStage,
    DepthState,
    DialogueLevel,
    DifficultyTier,
    QuestionType,
)


READY_AND_DEEP = Assessment.create(confidence_level=0.9, depth_of_thinking=3)
READY_BUT_SHALLOW = Assessment.create(confidence_level=0.9, depth_of_thinking=2)
DEEP_BUT_UNSURE = Assessment.create(confidence_level=0.5, depth_of_thinking=4)


class TestDepthTracker:
    """Test suite for DepthTracker."""

    @pytest.fixture
    def tracker(self):
        return DepthTracker()

    def test_initial_state(self, tracker):
        state = tracker.initial()
        assert state.current_depth == 1
        assert state.max_depth_reached == 1
        assert state.conceptual_connections == ()

    def test_advances_when_ready_and_deep(self, tracker):
        state = tracker.update(tracker.initial(), READY_AND_DEEP, ())

        assert state.current_depth == 2
        assert state.max_depth_reached == 2
        assert state.suggested_next_level == 3

    @pytest.mark.parametrize("assessment", [READY_BUT_SHALLOW, DEEP_BUT_UNSURE])
    def test_holds_otherwise(self, tracker, assessment):
        state = tracker.update(tracker.initial(), assessment, ())
        assert state.current_depth == 1

    def test_depth_capped_at_five(self, tracker):
        state = DepthState(current_depth=5, max_depth_reached=5)
        state = tracker.update(state, READY_AND_DEEP, ())

        assert state.current_depth == 5
        assert state.suggested_next_level == 5

    def test_depth_is_monotonic(self, tracker):
        """Depth never decreases, whatever the assessment sequence."""
        sequence = [READY_AND_DEEP, DEEP_BUT_UNSURE, Assessment.create(confidence_level=0.2),
                    READY_AND_DEEP, READY_BUT_SHALLOW, READY_AND_DEEP] * 3
        state = tracker.initial()
        for assessment in sequence:
            new_state = tracker.update(state, assessment, ())
            assert new_state.current_depth >= state.current_depth
            assert new_state.current_depth - state.current_depth <= 1
            assert new_state.max_depth_reached >= state.max_depth_reached
            assert new_state.max_depth_reached >= new_state.current_depth
            state = new_state

    def test_concepts_keep_last_twenty(self, tracker):
        state = tracker.initial()
        for i in range(25):
            state = tracker.update(state, DEEP_BUT_UNSURE, (f"c{i}",))

        assert len(state.conceptual_connections) == 20
        assert state.conceptual_connections[0] == "c5"
        assert state.conceptual_connections[-1] == "c24"

    def test_should_deepen_inquiry(self, tracker):
        assert tracker.update(tracker.initial(), READY_AND_DEEP, ()).should_deepen_inquiry == True
        assert tracker.update(tracker.initial(), DEEP_BUT_UNSURE, ()).should_deepen_inquiry == False
        assert tracker.update(tracker.initial(), READY_BUT_SHALLOW, ()).should_deepen_inquiry == False

    def test_record_question_opening(self, tracker):
        state = tracker.record_question(tracker.initial(), QuestionType.CLARIFICATION, initial=True)

        assert state.question_type == QuestionType.CLARIFICATION
        assert state.cycle_stage == CycleStage.WONDER_RECEIVE
        assert state.dialogue_level == DialogueLevel.STRATEGIC_DISCOURSE

    def test_record_question_understanding_check(self, tracker):
        state = tracker.record_question(tracker.initial(), QuestionType.EVIDENCE, is_understanding_check=True)

        assert state.cycle_stage == CycleStage.RESTATE
        assert state.dialogue_level == DialogueLevel.META_DISCOURSE

    def test_record_question_meta(self, tracker):
        state = tracker.record_question(tracker.initial(), QuestionType.META_QUESTIONING)

        assert state.cycle_stage == CycleStage.REFLECT
        assert state.dialogue_level == DialogueLevel.META_DISCOURSE

    @pytest.mark.parametrize("evidence,level", [
        (BehavioralEvidence(), 1),
        (BehavioralEvidence(teach_back_score=2), 2),
        (BehavioralEvidence(transfer_success=True), 3),
        (BehavioralEvidence(reasoning_score=3), 4),
        (BehavioralEvidence(reasoning_score=3, depth_level_evidence=4), 5),
    ])
    def test_evidence_level(self, tracker, evidence, level):
        assert tracker.evidence_level(evidence) == level

    def test_behavioral_evidence_raises_depth(self, tracker):
        state, level = tracker.apply_behavioral_evidence(
            tracker.initial(), BehavioralEvidence(reasoning_score=3)
        )
        assert level == 4
        assert state.current_depth == 4
        assert state.max_depth_reached == 4

    def test_behavioral_evidence_never_lowers_depth(self, tracker):
        start = DepthState(current_depth=4, max_depth_reached=4)
        state, level = tracker.apply_behavioral_evidence(start, BehavioralEvidence(teach_back_score=2))

        assert level == 2
        assert state.current_depth == 4


class TestTransferChallenge:
    """Test suite for template-based transfer challenges."""

    @pytest.fixture
    def tracker(self):
        return DepthTracker()

    @pytest.mark.parametrize("concept,category", [
        ("algebra", "algebra"),
        ("Geometry", "geometry"),
        ("right triangles", "geometry"),
        ("area of a circle", "geometry"),
        ("Calculus", "calculus"),
        ("derivatives", "calculus"),
        ("definite integrals", "calculus"),
        ("fractions", "algebra"),
        ("", "algebra"),
    ])
    def test_category_matching(self, tracker, concept, category):
        challenge = tracker.transfer_challenge(concept, DifficultyTier.INTERMEDIATE)

        assert challenge.category == category
        assert challenge.prompt == TRANSFER_CHALLENGES[category]["intermediate"][0]
        assert challenge.expected_approach == TRANSFER_CHALLENGES[category]["intermediate"][1]

    @pytest.mark.parametrize("tier", list(DifficultyTier))
    def test_tier_selects_template(self, tracker, tier):
        challenge = tracker.transfer_challenge("triangle", tier)

        assert challenge.tier == tier
        assert challenge.prompt == TRANSFER_CHALLENGES["geometry"][tier.value][0]

    def test_deterministic(self, tracker):
        first = tracker.transfer_challenge("derivative", DifficultyTier.ADVANCED)
        second = tracker.transfer_challenge("derivative", DifficultyTier.ADVANCED)
        assert first == second

    def test_missing_template_falls_back_to_algebra_intermediate(self, tracker, monkeypatch):
        monkeypatch.delitem(TRANSFER_CHALLENGES["geometry"], "advanced")

        challenge = tracker.transfer_challenge("circle", DifficultyTier.ADVANCED)

        assert challenge.category == "algebra"
        assert challenge.tier == DifficultyTier.INTERMEDIATE
        assert challenge.prompt == "Solve 2(x - 3) + 5 = 13. What steps would you take?"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
