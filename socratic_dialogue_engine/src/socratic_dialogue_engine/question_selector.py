"""
Question Type Selection

Chooses which of the six Socratic question types the tutor asks next, and
decides when a turn should become an understanding check instead of moving
the dialogue forward.

Random choices go through a SelectionPolicy so tests can make them
deterministic.
"""

import random
from typing import Optional, Protocol, Sequence, TypeVar

from .logger import get_logger
from .session_state import Assessment, QUESTION_TYPE_ORDER, QuestionType

logger = get_logger(__name__)

T = TypeVar("T")


class SelectionPolicy(Protocol):
    """Picks one option, optionally weighted."""

    def choose(self, options: Sequence[T], weights: Optional[Sequence[float]] = None) -> T:
        ...


class RandomSelectionPolicy:
    """Weighted random choice; pass a seed for reproducible sessions."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def choose(self, options: Sequence[T], weights: Optional[Sequence[float]] = None) -> T:
        return self._rng.choices(list(options), weights=weights, k=1)[0]


class FirstOptionPolicy:
    """Always picks the first (most preferred) option."""

    def choose(self, options: Sequence[T], weights: Optional[Sequence[float]] = None) -> T:
        return options[0]


# Struggling learners: mostly clarification, sometimes assumptions
STRUGGLING_TYPES = (QuestionType.CLARIFICATION, QuestionType.ASSUMPTIONS)
STRUGGLING_WEIGHTS = (0.7, 0.3)

ADVANCED_TYPES = (
    QuestionType.IMPLICATIONS,
    QuestionType.PERSPECTIVE,
    QuestionType.META_QUESTIONING,
)


class QuestionTypeSelector:
    """
    Priority-ordered question type selection.

    1. confidence < 0.3 → clarification (70%) or assumptions (30%)
    2. misconceptions → evidence
    3. ready to advance at depth >= 3 → implications, perspective or meta-questioning
    4. otherwise rotate one step through the fixed order
    """

    LOW_CONFIDENCE = 0.3
    CHECK_LOW_CONFIDENCE = 0.4
    ADVANCED_DEPTH = 3
    DEEP_THINKING = 3

    # Understanding-check spacing (turns since the last check)
    DEFAULT_CHECK_INTERVAL = 4
    LOW_CONFIDENCE_CHECK_GAP = 2
    MISCONCEPTION_CHECK_GAP = 2
    DEEPEN_CHECK_GAP = 3

    def __init__(
        self,
        policy: Optional[SelectionPolicy] = None,
        check_interval: int = DEFAULT_CHECK_INTERVAL
    ):
        self.policy = policy or RandomSelectionPolicy()
        self.check_interval = check_interval

    def select_initial(self, problem: str) -> QuestionType:
        """Question type for the opening turn, from the wording of the problem."""
        text = problem.lower()
        if "solve" in text or "find" in text:
            return QuestionType.CLARIFICATION
        if "why" in text or "explain" in text:
            return QuestionType.EVIDENCE
        if "compare" in text or "evaluate" in text:
            return QuestionType.PERSPECTIVE
        return QuestionType.CLARIFICATION

    def select_next(
        self,
        assessment: Assessment,
        history: Sequence[QuestionType],
        current_depth: int
    ) -> QuestionType:
        """
        Select the next question type.

        Args:
            assessment: Classification of the learner's latest turn
            history: Question types used so far, oldest first
            current_depth: Current conversation depth (1-5)

        Returns:
            The QuestionType for the next tutor turn
        """
        if assessment.confidence_level < self.LOW_CONFIDENCE:
            return self.policy.choose(STRUGGLING_TYPES, STRUGGLING_WEIGHTS)

        if assessment.has_misconceptions:
            return QuestionType.EVIDENCE

        if assessment.readiness_for_advancement and current_depth >= self.ADVANCED_DEPTH:
            return self.policy.choose(ADVANCED_TYPES)

        if not history:
            return QUESTION_TYPE_ORDER[0]
        last_index = QUESTION_TYPE_ORDER.index(history[-1])
        return QUESTION_TYPE_ORDER[(last_index + 1) % len(QUESTION_TYPE_ORDER)]

    def should_check_understanding(
        self,
        assessment: Assessment,
        turn_number: int,
        last_check_turn: int,
        recent_confidences: Sequence[float],
        should_deepen_inquiry: bool
    ) -> bool:
        """
        Decide whether this turn should verify comprehension.

        Args:
            assessment: Classification of the learner's latest turn
            turn_number: 1-based count of learner turns, including this one
            last_check_turn: Turn number of the previous check (0 if none)
            recent_confidences: Recorded learner confidences, oldest first
            should_deepen_inquiry: Current deepen-inquiry signal

        Returns:
            True when any trigger fires
        """
        turns_since = turn_number - last_check_turn

        if turns_since >= self.check_interval:
            return True

        if (assessment.confidence_level < self.CHECK_LOW_CONFIDENCE
                and turns_since >= self.LOW_CONFIDENCE_CHECK_GAP):
            last_two = list(recent_confidences)[-2:]
            if len(last_two) == 2 and all(c < self.CHECK_LOW_CONFIDENCE for c in last_two):
                return True

        if assessment.has_misconceptions and turns_since >= self.MISCONCEPTION_CHECK_GAP:
            return True

        if should_deepen_inquiry and turns_since >= self.DEEPEN_CHECK_GAP:
            return True

        return False

    def select_understanding_check_type(self, assessment: Assessment) -> QuestionType:
        """Narrow an understanding check to evidence, clarification or implications."""
        if assessment.has_misconceptions:
            return QuestionType.EVIDENCE
        if assessment.confidence_level < self.CHECK_LOW_CONFIDENCE:
            return QuestionType.CLARIFICATION
        if assessment.depth_of_thinking >= self.DEEP_THINKING:
            return QuestionType.IMPLICATIONS
        return QuestionType.EVIDENCE
