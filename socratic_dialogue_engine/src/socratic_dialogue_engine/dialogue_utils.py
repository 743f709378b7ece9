"""
Dialogue Utilities

Helpers that place a tutor question inside the Socratic dialogue framework:
which discourse level it operates at and which stage of the inquiry cycle it
belongs to.
"""

from .session_state import CycleStage, DialogueLevel, QuestionType


STRATEGIC_TYPES = frozenset({
    QuestionType.CLARIFICATION,
    QuestionType.ASSUMPTIONS,
    QuestionType.EVIDENCE,
    QuestionType.PERSPECTIVE,
    QuestionType.IMPLICATIONS,
})


def compute_dialogue_level(
    question_type: QuestionType,
    is_understanding_check: bool = False
) -> DialogueLevel:
    """
    Determine the discourse level of a tutor question.

    Meta-questions and understanding checks reflect on the inquiry itself;
    the other five question types shape and probe the learner's reasoning.
    """
    if question_type is QuestionType.META_QUESTIONING or is_understanding_check:
        return DialogueLevel.META_DISCOURSE
    if question_type in STRATEGIC_TYPES:
        return DialogueLevel.STRATEGIC_DISCOURSE
    return DialogueLevel.DIALOGUE


def compute_cycle_stage(
    question_type: QuestionType,
    is_understanding_check: bool = False,
    initial: bool = False
) -> CycleStage:
    """Determine the Socratic cycle stage for the tutor's current turn."""
    if initial:
        return CycleStage.WONDER_RECEIVE
    if is_understanding_check:
        return CycleStage.RESTATE
    if question_type in STRATEGIC_TYPES:
        return CycleStage.REFINE_CROSS_EXAMINE
    if question_type is QuestionType.META_QUESTIONING:
        return CycleStage.REFLECT
    return CycleStage.REPEAT
