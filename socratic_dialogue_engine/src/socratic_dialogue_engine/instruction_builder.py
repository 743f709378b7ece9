"""
Instruction Construction

Builds the text sent to the text-generation service: the tutor system prompt,
the opening steering message, and the per-turn guidance that tells the model
which question to ask and what it must not say.

Everything here is a pure function of its inputs. The directive strings are
module constants so callers can check which ones a built instruction carries.
"""

from typing import Optional, Sequence

from .prompts import (
    ASSESSMENT_SYSTEM_PROMPT_TEMPLATE,
    QUESTION_BANK,
    SYSTEM_PROMPT_TEMPLATE,
)
from .question_selector import FirstOptionPolicy, SelectionPolicy
from .session_state import (
    Assessment,
    DepthState,
    DifficultyState,
    DifficultyTier,
    MAX_DEPTH,
    QuestionType,
)


STUDENT_EXCERPT_LENGTH = 100

# Confidence-tier strategies
SUPPORTIVE_STRATEGY = (
    "YOUR APPROACH: Supportive scaffolding. Be encouraging and shrink the next step: "
    "ask about one small piece of the problem they can already see."
)
PROBING_STRATEGY = (
    "YOUR APPROACH: Probing and challenging. Reference what they just said and ask them "
    "to justify the principle behind it."
)
NUDGING_STRATEGY = (
    "YOUR APPROACH: Contextual nudging. Reference the structure of the problem and nudge "
    "them toward what kind of work it calls for."
)

# Depth strategies
SURFACE_DEPTH_STRATEGY = (
    "DEPTH STRATEGY: Ask what kind of work a problem structured like this suggests."
)
DEEP_DEPTH_STRATEGY = (
    "DEPTH STRATEGY: Probe WHY their approach works and how the underlying ideas connect."
)
DEEPEN_INQUIRY_DIRECTIVE = (
    "The student is ready for a more sophisticated question than the last one."
)

DIFFICULTY_GUIDANCE = {
    DifficultyTier.BEGINNER: (
        "VOCABULARY: Beginner. Use plain everyday words and avoid technical terms."
    ),
    DifficultyTier.INTERMEDIATE: (
        "VOCABULARY: Intermediate. Standard math terms are fine; keep sentences simple."
    ),
    DifficultyTier.ADVANCED: (
        "VOCABULARY: Advanced. Use precise mathematical language and expect rigor."
    ),
}

MISCONCEPTION_ALERT = (
    "ALERT: Possible misconception (an overgeneralization). Reference their claim and ask "
    "them to test whether it always holds."
)

UNDERSTANDING_CHECK_DIRECTIVE = (
    "UNDERSTANDING CHECK: This turn verifies comprehension. Ask a question that reveals "
    "whether they truly grasp the idea rather than moving the problem forward."
)

NO_SOLUTION_DIRECTIVE = (
    "DO NOT state the numeric answer or final result, and DO NOT name the operation, "
    "formula or step that solves the problem."
)

SCAFFOLDING_PERMISSION = (
    "SCAFFOLDING ALLOWED: The student has struggled for {struggling_turns} turns. "
    "You may restate the goal (\"We're trying to find ...\") or the given facts "
    "(\"The problem tells us ...\"), then ask a follow-up question. "
    "Never state the method."
)

FORMAT_CONSTRAINT = (
    "HARD CONSTRAINT: Respond in at most 2 sentences and end with a question mark."
)

OPENING_INSTRUCTION = (
    "Use {question_type} questioning approach. Keep response to 1-2 sentences maximum. "
    "Ask an indirect, exploratory question rather than a direct one."
)


class InstructionBuilder:
    """Assembles system prompts and per-turn guidance."""

    LOW_CONFIDENCE = 0.3
    HIGH_CONFIDENCE = 0.8
    STUCK_CONFIDENCE = 0.2
    DEEP_DEPTH = 3
    DEEP_THINKING = 3
    BUILDING_RESPONSE_LENGTH = 50

    def __init__(
        self,
        scaffolding_threshold: int = 2,
        policy: Optional[SelectionPolicy] = None
    ):
        self.scaffolding_threshold = scaffolding_threshold
        self.policy = policy or FirstOptionPolicy()

    def build_system_prompt(
        self,
        problem: str,
        concepts: Sequence[str],
        student_level: str,
        learning_objective: str
    ) -> str:
        """Tutor persona, rules, question types and the current problem context."""
        return SYSTEM_PROMPT_TEMPLATE.format(
            student_level=student_level,
            problem=problem,
            concepts=", ".join(concepts) if concepts else "general problem solving",
            learning_objective=learning_objective,
        )

    def build_assessment_system_prompt(self, problem: str) -> str:
        return ASSESSMENT_SYSTEM_PROMPT_TEMPLATE.format(problem=problem)

    def build_opening_instruction(self, question_type: QuestionType) -> str:
        """Steering message for the first tutor turn of a problem."""
        return "\n".join([
            OPENING_INSTRUCTION.format(question_type=question_type.value),
            NO_SOLUTION_DIRECTIVE,
            FORMAT_CONSTRAINT,
        ])

    def build_guidance(
        self,
        problem: str,
        student_input: str,
        assessment: Assessment,
        question_type: QuestionType,
        depth_state: DepthState,
        difficulty_state: DifficultyState,
        struggling_turns: int,
        is_understanding_check: bool,
        example_question: Optional[str] = None
    ) -> str:
        """
        Build the steering instruction for one tutoring turn.

        Args:
            problem: The problem being worked on
            student_input: The learner's latest message
            assessment: Classification of that message
            question_type: Question type chosen for this turn
            depth_state: Current depth state
            difficulty_state: Current difficulty state
            struggling_turns: Current struggling-turn counter
            is_understanding_check: Whether this turn is an understanding check
            example_question: Optional bank question the model may adapt

        Returns:
            Guidance text to append as the final system message
        """
        excerpt = student_input.strip()
        if len(excerpt) > STUDENT_EXCERPT_LENGTH:
            excerpt = excerpt[:STUDENT_EXCERPT_LENGTH] + "..."
        confidence_pct = round(assessment.confidence_level * 100)

        sections = [
            f"PROBLEM: {problem}",
            f"IMMEDIATE CONTEXT: The student just said: \"{excerpt}\"",
            f"RESPOND AS: {question_type.value.upper()} question type.",
        ]

        if assessment.confidence_level < self.LOW_CONFIDENCE:
            sections.append(f"STUDENT STATE: Struggling (confidence: {confidence_pct}%)")
            sections.append(SUPPORTIVE_STRATEGY)
        elif assessment.confidence_level > self.HIGH_CONFIDENCE:
            sections.append(f"STUDENT STATE: Confident (confidence: {confidence_pct}%)")
            sections.append(PROBING_STRATEGY)
        else:
            sections.append(f"STUDENT STATE: Building understanding (confidence: {confidence_pct}%)")
            sections.append(NUDGING_STRATEGY)

        sections.append(f"CONVERSATION DEPTH: Level {depth_state.current_depth}/{MAX_DEPTH}")
        if depth_state.current_depth == 1:
            sections.append(SURFACE_DEPTH_STRATEGY)
        elif depth_state.current_depth >= self.DEEP_DEPTH:
            sections.append(DEEP_DEPTH_STRATEGY)
        if depth_state.should_deepen_inquiry:
            sections.append(DEEPEN_INQUIRY_DIRECTIVE)

        sections.append(DIFFICULTY_GUIDANCE[difficulty_state.tier])

        if assessment.has_misconceptions:
            sections.append(MISCONCEPTION_ALERT)

        if is_understanding_check:
            sections.append(UNDERSTANDING_CHECK_DIRECTIVE)

        if example_question:
            sections.append(f"EXAMPLE QUESTION (adapt freely): \"{example_question}\"")

        sections.append(NO_SOLUTION_DIRECTIVE)

        if struggling_turns >= self.scaffolding_threshold:
            sections.append(SCAFFOLDING_PERMISSION.format(struggling_turns=struggling_turns))

        sections.append(FORMAT_CONSTRAINT)
        sections.append("RESPOND NOW:")
        return "\n".join(sections)

    def contextual_question(
        self,
        assessment: Assessment,
        question_type: QuestionType,
        student_input: str = ""
    ) -> str:
        """
        Pick a question from the bank that fits the learner's state.

        Special contexts win over the plain confidence split; medium
        confidence uses the high-confidence pool.
        """
        bank = QUESTION_BANK[question_type.value]

        if question_type is QuestionType.ASSUMPTIONS and assessment.has_misconceptions:
            pool = bank["misconception"]
        elif question_type is QuestionType.EVIDENCE and assessment.readiness_for_advancement:
            pool = bank["after_correct"]
        elif (question_type is QuestionType.IMPLICATIONS
                and len(student_input) > self.BUILDING_RESPONSE_LENGTH):
            pool = bank["building"]
        elif (question_type is QuestionType.META_QUESTIONING
                and assessment.confidence_level > self.HIGH_CONFIDENCE):
            pool = bank["after_success"]
        elif (question_type is QuestionType.CLARIFICATION
                and assessment.confidence_level <= self.STUCK_CONFIDENCE):
            pool = bank["stuck"]
        elif (question_type is QuestionType.META_QUESTIONING
                and assessment.depth_of_thinking >= self.DEEP_THINKING):
            pool = bank["reflection"]
        else:
            key = "low_confidence" if assessment.confidence_level < self.LOW_CONFIDENCE else "high_confidence"
            pool = bank.get(key) or bank["high_confidence"]

        return self.policy.choose(pool)
