"""
Unit Tests for Assessment Mode

Tests answer normalization and matching, the awaiting-answer → resolved
lifecycle, and the prerequisite offer text.
"""

import pytest
import sys
import os

# Add project root to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "socratic_dialogue_engine", "src"))

from socratic_dialogue_engine.assessment_mode import (
    ASSESSMENT_COMPLETE,
    ASSESSMENT_OPENING,
    CORRECT_RESPONSE,
    GUIDED_HELP_OFFER,
    INCORRECT_NO_EXPECTED_RESPONSE,
    AssessmentModeController,
    answers_match,
    extract_numerals,
    normalize_answer,
)


class TestAnswerMatching:
    """Test suite for fuzzy answer matching."""

    def test_normalize(self):
        assert normalize_answer("  X = 5!!  ") == "x 5"
        assert normalize_answer("3.5 - 1") == "3.5 - 1"
        assert normalize_answer("The   Answer,\tis   Seven") == "the answer is seven"

    def test_extract_numerals_are_whole_tokens(self):
        assert extract_numerals("x 50") == ["50"]
        assert extract_numerals("between -2 and 3.75") == ["-2", "3.75"]
        assert extract_numerals("x5") == ["5"]
        assert extract_numerals("answer5") == ["5"]
        assert extract_numerals("x-5") == ["-5"]

    @pytest.mark.parametrize("student,expected", [
        ("x = 5", "5"),
        ("x=5", "5"),
        ("answer:5", "5"),
        ("X=2.5", "2.5"),
        ("5", "5"),
        ("I got 5 because 11 - 5 is 6", "5"),
        ("x equals 5.", "5"),
        ("The answer is seven", "seven"),
        ("seven", "The answer is seven"),
        ("7 apples", "7"),
        ("x = 2.5", "2.5"),
        ("-3", "-3"),
    ])
    def test_matches(self, student, expected):
        assert answers_match(student, expected) == True

    @pytest.mark.parametrize("student,expected", [
        ("x = 50", "5"),
        ("x = 15", "5"),
        ("x = 1.5", "5"),
        ("x = -5", "5"),
        ("x=50", "5"),
        ("x=15", "5"),
        ("x=-5", "5"),
        ("answer:1.5", "5"),
        ("eight", "seven"),
        ("sevens", "seven"),
    ])
    def test_mismatches(self, student, expected):
        assert answers_match(student, expected) == False

    def test_missing_expected_answer_always_fails(self):
        assert answers_match("5", None) == False
        assert answers_match("5", "") == False

    def test_empty_student_answer_fails(self):
        assert answers_match("?!", "5") == False


class TestAssessmentModeController:
    """Test suite for AssessmentModeController."""

    @pytest.fixture
    def controller(self):
        return AssessmentModeController()

    def test_start(self, controller):
        state, opening = controller.start("5")

        assert opening == ASSESSMENT_OPENING
        assert state.active == True
        assert state.has_answered == False
        assert state.expected_answer == "5"

    def test_correct_answer_resolves(self, controller):
        state, _ = controller.start("5")
        state, outcome = controller.evaluate(state, "x = 5")

        assert outcome.is_correct == True
        assert outcome.response == CORRECT_RESPONSE
        assert state.active == False
        assert state.has_answered == True

    def test_incorrect_answer_reveals_expected(self, controller):
        state, _ = controller.start("5")
        state, outcome = controller.evaluate(state, "x = 50")

        assert outcome.is_correct == False
        assert "The correct answer is: 5" in outcome.response
        assert state.active == False

    def test_correct_response_does_not_reveal_answer(self, controller):
        state, _ = controller.start("42")
        _, outcome = controller.evaluate(state, "42")
        assert "42" not in outcome.response

    def test_no_expected_answer(self, controller):
        state, _ = controller.start(None)
        state, outcome = controller.evaluate(state, "5")

        assert outcome.is_correct == False
        assert outcome.response == INCORRECT_NO_EXPECTED_RESPONSE

    def test_later_calls_return_completion(self, controller):
        state, _ = controller.start("5")
        state, _ = controller.evaluate(state, "5")

        for answer in ["5", "wait, 6?", ""]:
            new_state, outcome = controller.evaluate(state, answer)
            assert outcome.already_complete == True
            assert outcome.response == ASSESSMENT_COMPLETE
            assert new_state is state

    def test_suggest_prerequisites(self, controller):
        assert controller.suggest_prerequisites() == GUIDED_HELP_OFFER
        assert "a prerequisite concept" in controller.suggest_prerequisites(["fractions"])
        assert "some prerequisite concepts" in controller.suggest_prerequisites(["fractions", "ratios"])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
