"""
Assessment Mode

A single graded answer instead of Socratic questioning. The controller
moves from awaiting-answer to resolved exactly once: the first answer is
matched against the expected answer, a fixed verdict is returned, and every
later call gets the fixed completion message.
"""

import re
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from .logger import get_logger
from .session_state import AssessmentModeState

logger = get_logger(__name__)


ASSESSMENT_OPENING = (
    "What's your answer to this problem? Take your time and show your work if needed."
)
CORRECT_RESPONSE = (
    "✅ Correct! Great job!\n\n"
    "You've successfully completed this assessment. Your progress has been recorded."
)
INCORRECT_RESPONSE = (
    "❌ Not quite. The correct answer is: {expected_answer}\n\n"
    "Would you like to review this topic or try a related assessment?"
)
INCORRECT_NO_EXPECTED_RESPONSE = (
    "❌ That's not quite right. Would you like to review this topic or try again?"
)
ASSESSMENT_COMPLETE = (
    "This assessment is complete! You can try another assessment or review related topics."
)
GUIDED_HELP_OFFER = "Would you like me to help guide you through this problem step by step?"
PREREQUISITE_OFFER = (
    "This assessment builds on {prerequisite_text}. Would you like to:\n"
    "1. Review those concepts first?\n"
    "2. Get some guidance on this problem?\n"
    "3. Try again on your own?"
)

_STRIP_CHARS = re.compile(r"[^\w\s.-]")
_WHITESPACE = re.compile(r"\s+")
_NUMERAL = re.compile(r"(?<![\d.])-?\d+(?:\.\d+)?")


def normalize_answer(text: str) -> str:
    """Lower-case, drop everything but word chars, spaces, dots and hyphens, collapse spaces."""
    cleaned = _STRIP_CHARS.sub("", text.lower().strip())
    return _WHITESPACE.sub(" ", cleaned).strip()


def extract_numerals(text: str) -> List[str]:
    """Whole numeral tokens, so "50" never yields "5". A letter may sit right before one ("x5")."""
    return _NUMERAL.findall(text)


def contains_tokens(haystack: str, needle: str) -> bool:
    """True if needle appears in haystack as a whole token sequence."""
    if not needle:
        return False
    # A leading digit must not continue a number ("1.5", "-5", "15"); a letter before it is fine ("x5")
    prefix = r"(?<![\d.-])" if needle[0].isdigit() else r"(?<!\w)"
    pattern = prefix + re.escape(needle) + r"(?!\w|\.\d)"
    return re.search(pattern, haystack) is not None


def answers_match(student_answer: str, expected_answer: Optional[str]) -> bool:
    """
    Fuzzy match a learner answer against the expected answer.

    Matches when the normalized strings are equal, when either contains the
    other as whole tokens, or when they share a numeral token. Without an
    expected answer nothing matches.
    """
    if not expected_answer:
        return False

    student = normalize_answer(student_answer)
    expected = normalize_answer(expected_answer)
    if not student or not expected:
        return False

    if student == expected:
        return True
    if contains_tokens(student, expected) or contains_tokens(expected, student):
        return True

    expected_numerals = set(extract_numerals(expected))
    return any(num in expected_numerals for num in extract_numerals(student))


@dataclass(frozen=True)
class AssessmentOutcome:
    """What the learner sees after submitting an answer."""
    response: str
    is_correct: Optional[bool] = None
    already_complete: bool = False


class AssessmentModeController:
    """Awaiting-answer → resolved state machine for one assessment problem."""

    def start(self, expected_answer: Optional[str] = None) -> Tuple[AssessmentModeState, str]:
        """
        Enter the awaiting-answer state.

        Returns:
            (initial state, fixed opening prompt)
        """
        state = AssessmentModeState(active=True, expected_answer=expected_answer, has_answered=False)
        return state, ASSESSMENT_OPENING

    def evaluate(
        self,
        state: AssessmentModeState,
        answer: str
    ) -> Tuple[AssessmentModeState, AssessmentOutcome]:
        """
        Grade the learner's answer, or report completion if already graded.

        Args:
            state: Current assessment state
            answer: The learner's message

        Returns:
            (new state, outcome)
        """
        if not state.active or state.has_answered:
            return state, AssessmentOutcome(response=ASSESSMENT_COMPLETE, already_complete=True)

        is_correct = answers_match(answer, state.expected_answer)
        if is_correct:
            response = CORRECT_RESPONSE
        elif state.expected_answer:
            response = INCORRECT_RESPONSE.format(expected_answer=state.expected_answer)
        else:
            response = INCORRECT_NO_EXPECTED_RESPONSE

        logger.info("Assessment answer graded", data={
            "correct": is_correct,
            "has_expected_answer": state.expected_answer is not None,
        })
        resolved = replace(state, active=False, has_answered=True)
        return resolved, AssessmentOutcome(response=response, is_correct=is_correct)

    def suggest_prerequisites(self, prerequisites: Optional[Sequence[str]] = None) -> str:
        """Offer review options when the learner is stuck on an assessment."""
        if not prerequisites:
            return GUIDED_HELP_OFFER
        prerequisite_text = (
            "a prerequisite concept" if len(prerequisites) == 1 else "some prerequisite concepts"
        )
        return PREREQUISITE_OFFER.format(prerequisite_text=prerequisite_text)
